"""Headline core: build, classify, score, aggregate and rank posts.

Raw posts are mapped to headlines by the Record Builder, which uses the
Rule Engine and the Scorer. The Aggregator groups surviving headlines by
category and the Ranker produces the bounded Feed.
"""

from src.headlines.aggregator import HeadlineAggregator, PipelineState, aggregate
from src.headlines.builder import BuildResult, HeadlineBuilder, build_headline
from src.headlines.errors import HeadlineFeedError, MalformedInputError
from src.headlines.metrics import PipelineMetrics
from src.headlines.models import (
    Feed,
    Headline,
    RateLimitSnapshot,
    RawPost,
    SourceFetchResult,
)
from src.headlines.ranker import FeedRanker, rank_headlines
from src.headlines.rules import (
    CategoryClassifier,
    Classification,
    ExclusionReason,
    InclusionDecision,
    SourceRuleSet,
    classify,
    should_include,
)
from src.headlines.scorer import HeadlineScorer, score


__all__ = [
    "BuildResult",
    "CategoryClassifier",
    "Classification",
    "ExclusionReason",
    "Feed",
    "FeedRanker",
    "Headline",
    "HeadlineAggregator",
    "HeadlineBuilder",
    "HeadlineFeedError",
    "HeadlineScorer",
    "InclusionDecision",
    "MalformedInputError",
    "PipelineMetrics",
    "PipelineState",
    "RateLimitSnapshot",
    "RawPost",
    "SourceFetchResult",
    "SourceRuleSet",
    "aggregate",
    "build_headline",
    "classify",
    "rank_headlines",
    "score",
    "should_include",
]
