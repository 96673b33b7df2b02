"""Recency and engagement scoring for headlines.

Two recency policies are available:

    reverse_age:  max(0, 200 - hours_ago) + retweets / 10 + favorites / 5
    age_forward:  hours_ago + retweets * 1.5 + favorites

Both are truncated to an integer. hours_ago is the whole number of hours
between the post and "now", never negative. A post whose timestamp could not
be parsed gets no recency credit under either policy; it still receives its
engagement credit, so scoring stays deterministic.
"""

import math
from datetime import UTC, datetime

from src.config.schemas.base import ScoringStrategy
from src.headlines.constants import (
    AGE_FORWARD_FAVORITE_WEIGHT,
    AGE_FORWARD_RETWEET_WEIGHT,
    FRESHNESS_HORIZON_HOURS,
    REVERSE_AGE_FAVORITE_DIVISOR,
    REVERSE_AGE_RETWEET_DIVISOR,
    SECONDS_PER_HOUR,
)


def hours_between(now: datetime, then: datetime | None) -> int | None:
    """Whole hours elapsed from then to now.

    Args:
        now: Reference time.
        then: Post time, None when unknown.

    Returns:
        Non-negative floor of the elapsed hours, None when then is unknown.
    """
    if then is None:
        return None
    elapsed = (now - then).total_seconds()
    return max(0, math.floor(elapsed / SECONDS_PER_HOUR))


def reverse_age_score(
    hours_ago: int | None, retweet_count: int, favorite_count: int
) -> int:
    """Freshness-biased score."""
    recency = 0 if hours_ago is None else max(0, FRESHNESS_HORIZON_HOURS - hours_ago)
    return int(
        recency
        + retweet_count / REVERSE_AGE_RETWEET_DIVISOR
        + favorite_count / REVERSE_AGE_FAVORITE_DIVISOR
    )


def age_forward_score(
    hours_ago: int | None, retweet_count: int, favorite_count: int
) -> int:
    """Long-tail score where older posts rank higher."""
    recency = 0 if hours_ago is None else hours_ago
    return int(
        recency
        + retweet_count * AGE_FORWARD_RETWEET_WEIGHT
        + favorite_count * AGE_FORWARD_FAVORITE_WEIGHT
    )


_STRATEGIES = {
    ScoringStrategy.REVERSE_AGE: reverse_age_score,
    ScoringStrategy.AGE_FORWARD: age_forward_score,
}


def score(
    timestamp: datetime | None,
    retweet_count: int,
    favorite_count: int,
    now: datetime,
    strategy: ScoringStrategy = ScoringStrategy.REVERSE_AGE,
) -> int:
    """Score a post.

    Args:
        timestamp: Parsed post time, None when unparsable.
        retweet_count: Share count.
        favorite_count: Like count.
        now: Reference time.
        strategy: Recency policy.

    Returns:
        Integer score.
    """
    hours_ago = hours_between(now, timestamp)
    return _STRATEGIES[strategy](hours_ago, retweet_count, favorite_count)


class HeadlineScorer:
    """Scores posts with a fixed strategy and reference time.

    One scorer is created per pipeline run so that every post in the run
    is scored against the same "now".
    """

    def __init__(
        self,
        strategy: ScoringStrategy = ScoringStrategy.REVERSE_AGE,
        now: datetime | None = None,
    ) -> None:
        """Initialize the scorer.

        Args:
            strategy: Recency policy.
            now: Reference time (defaults to current UTC time).
        """
        self._strategy = strategy
        self._now = now or datetime.now(UTC)

    @property
    def strategy(self) -> ScoringStrategy:
        """Get the scoring strategy."""
        return self._strategy

    @property
    def now(self) -> datetime:
        """Get the reference time."""
        return self._now

    def score(
        self, timestamp: datetime | None, retweet_count: int, favorite_count: int
    ) -> int:
        """Score a post against the scorer's reference time.

        Args:
            timestamp: Parsed post time, None when unparsable.
            retweet_count: Share count.
            favorite_count: Like count.

        Returns:
            Integer score.
        """
        return score(
            timestamp,
            retweet_count,
            favorite_count,
            now=self._now,
            strategy=self._strategy,
        )
