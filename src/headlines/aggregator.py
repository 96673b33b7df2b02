"""Aggregates built headlines across sources into per-run state.

Category lists are deduplicated by description equality: a headline whose
article_description already appears in its category list is skipped, keeping
the earliest inserted copy. The global list keeps every surviving headline.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from src.config.schemas.base import ScoringStrategy
from src.config.schemas.engine import CategoryRule
from src.config.schemas.sources import SourceConfig
from src.headlines.builder import HeadlineBuilder
from src.headlines.constants import DEFAULT_CATEGORY
from src.headlines.errors import MalformedInputError
from src.headlines.metrics import PipelineMetrics
from src.headlines.models import (
    Headline,
    RateLimitSnapshot,
    RawPost,
    SourceFetchResult,
)
from src.headlines.rules import CategoryClassifier
from src.headlines.scorer import HeadlineScorer


logger = structlog.get_logger()


@dataclass
class PipelineState:
    """Buffers of one pipeline run.

    Created fresh for every run and never shared with readers; the
    controller publishes a Feed built from it once the run is complete.

    Attributes:
        headlines: Global list in insertion order.
        categories: Category name to headline list in insertion order.
        rate_limit: Last observed rate-limit snapshot.
        source_headlines: Surviving headlines per source id.
    """

    headlines: list[Headline] = field(default_factory=list)
    categories: dict[str, list[Headline]] = field(default_factory=dict)
    rate_limit: RateLimitSnapshot = field(default_factory=RateLimitSnapshot)
    source_headlines: dict[str, list[Headline]] = field(default_factory=dict)
    _seen_descriptions: dict[str, set[str]] = field(
        default_factory=dict, repr=False
    )

    @classmethod
    def seeded(cls, category_names: Iterable[str]) -> "PipelineState":
        """Create state with every category present and empty.

        Args:
            category_names: Category names in display order.

        Returns:
            PipelineState whose category map always holds the default category.
        """
        state = cls()
        state.categories[DEFAULT_CATEGORY] = []
        for name in category_names:
            state.categories.setdefault(name, [])
        return state

    def add(self, headline: Headline) -> bool:
        """Append a headline to the global list and its category list.

        Args:
            headline: Headline that passed every rule.

        Returns:
            False if the category already held the same description.
        """
        self.headlines.append(headline)

        seen = self._seen_descriptions.setdefault(headline.category, set())
        bucket = self.categories.setdefault(headline.category, [])
        if headline.article_description in seen:
            return False
        seen.add(headline.article_description)
        bucket.append(headline)
        return True


class HeadlineAggregator:
    """Runs the Record Builder over every source's posts.

    One aggregator is created per run. Sources are added one at a time from
    a single thread; the resulting PipelineState is read through ``state``.
    """

    def __init__(
        self,
        category_rules: list[CategoryRule],
        run_id: str,
        scorer: HeadlineScorer | None = None,
        category_names: Iterable[str] | None = None,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            category_rules: Ordered category rules.
            run_id: Run identifier for logging.
            scorer: Scorer shared by every post in the run.
            category_names: Categories to seed; defaults to the rule names.
            metrics: Optional metrics instance.
        """
        self._classifier = CategoryClassifier(category_rules)
        self._scorer = scorer or HeadlineScorer()
        self._metrics = metrics or PipelineMetrics.get_instance()
        names = (
            category_names
            if category_names is not None
            else [rule.category for rule in category_rules]
        )
        self._state = PipelineState.seeded(names)
        self._log = logger.bind(component="aggregator", run_id=run_id)

    @property
    def state(self) -> PipelineState:
        """Get the run's accumulated state."""
        return self._state

    def record_rate_limit(self, snapshot: RateLimitSnapshot) -> None:
        """Overwrite the last observed rate-limit snapshot.

        Args:
            snapshot: Snapshot reported for the source just processed.
        """
        self._state.rate_limit = snapshot

    def add_source(
        self, source: SourceConfig, result: SourceFetchResult
    ) -> list[Headline]:
        """Build and aggregate the posts of one source.

        Args:
            source: Source the posts came from.
            result: Fetched posts and rate-limit snapshot.

        Returns:
            Headlines from this source that passed every rule.
        """
        log = self._log.bind(source_id=source.id)
        builder = HeadlineBuilder(
            source=source, classifier=self._classifier, scorer=self._scorer
        )

        survivors: list[Headline] = []
        excluded = 0
        duplicates = 0
        malformed = 0

        for index, payload in enumerate(result.posts):
            self._metrics.record_post()
            try:
                post = _to_raw_post(payload, source.id)
            except MalformedInputError as e:
                malformed += 1
                self._metrics.record_malformed()
                log.warning("malformed_post_skipped", post_index=index, error=e.message)
                continue

            built = builder.build(post)
            if built.headline is None:
                excluded += 1
                reason = built.exclusion_reason.value if built.exclusion_reason else ""
                self._metrics.record_excluded(reason)
                log.debug("headline_excluded", post_index=index, reason=reason)
                continue

            self._metrics.record_built()
            survivors.append(built.headline)
            if not self._state.add(built.headline):
                duplicates += 1
                self._metrics.record_duplicate()

        self._state.source_headlines[source.id] = survivors
        self.record_rate_limit(result.rate_limit)

        log.info(
            "source_aggregated",
            posts=len(result.posts),
            headlines=len(survivors),
            excluded=excluded,
            duplicates_skipped=duplicates,
            malformed=malformed,
        )
        return survivors


def _to_raw_post(payload: Any, source_id: str) -> RawPost:
    if isinstance(payload, RawPost):
        return payload
    return RawPost.from_tweet(payload, source_id=source_id)


def aggregate(
    per_source_raw_posts: Mapping[str, SourceFetchResult],
    sources: list[SourceConfig],
    category_rules: list[CategoryRule],
    now: datetime | None = None,
    strategy: ScoringStrategy = ScoringStrategy.REVERSE_AGE,
    run_id: str = "aggregate",
) -> PipelineState:
    """Pure function API for aggregating fetched posts.

    Sources are processed in the given order; sources without an entry in
    per_source_raw_posts are skipped.

    Args:
        per_source_raw_posts: Source id to fetched posts.
        sources: Ordered sources.
        category_rules: Ordered category rules.
        now: Reference time for scoring.
        strategy: Scoring strategy.
        run_id: Run identifier for logging.

    Returns:
        PipelineState with global list, category map and last rate limit.
    """
    aggregator = HeadlineAggregator(
        category_rules=category_rules,
        run_id=run_id,
        scorer=HeadlineScorer(strategy=strategy, now=now),
    )
    for source in sources:
        result = per_source_raw_posts.get(source.id)
        if result is None:
            continue
        aggregator.add_source(source, result)
    return aggregator.state
