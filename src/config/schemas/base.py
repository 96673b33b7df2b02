"""Enumerations shared by the configuration schemas."""

from enum import Enum


class DefaultPolicy(str, Enum):
    """Starting inclusion decision for a source before custom rules run."""

    INCLUDE_ALL = "include all"
    EXCLUDE_ALL = "exclude all"


class RuleAction(str, Enum):
    """Effect of a matching custom rule on the inclusion decision."""

    FORCE_INCLUDE = "force include"
    FORCE_EXCLUDE = "force exclude"


class RuleTarget(str, Enum):
    """Headline field a custom rule is tested against."""

    ARTICLE_DESCRIPTION = "article_description"
    SOURCE_NAME = "source_name"


class SortMode(str, Enum):
    """Deployment-wide ranking mode.

    - TOP_SCORE: Stable sort by score, highest first, then cap
    - LATEST: Stable sort by timestamp, newest first, then cap
    - NONE: Keep insertion order, no cap
    """

    TOP_SCORE = "top_score"
    LATEST = "latest"
    NONE = "none"


class ScoringStrategy(str, Enum):
    """Recency weighting policy used by the scorer.

    - REVERSE_AGE: Fresh posts score near the freshness horizon
    - AGE_FORWARD: Older posts score higher (long tail mode)
    """

    REVERSE_AGE = "reverse_age"
    AGE_FORWARD = "age_forward"
