"""Sorting and truncation of the global feed and category feeds."""

from collections.abc import Sequence
from datetime import UTC, datetime

import structlog

from src.config.schemas.base import SortMode
from src.headlines.constants import DEFAULT_FEED_CAP
from src.headlines.metrics import PipelineMetrics
from src.headlines.models import Feed, Headline, RateLimitSnapshot


logger = structlog.get_logger()


def _score_key(headline: Headline) -> float:
    # A nulled score ranks below every real score.
    return float("-inf") if headline.score is None else headline.score


def _timestamp_key(headline: Headline) -> int:
    return headline.timestamp


def rank_headlines(
    headlines: Sequence[Headline],
    mode: SortMode = SortMode.TOP_SCORE,
    cap: int = DEFAULT_FEED_CAP,
) -> list[Headline]:
    """Sort and truncate a headline list.

    top_score and latest sort descending and keep insertion order on ties,
    then truncate to cap. none returns the list unchanged and untruncated.

    Args:
        headlines: Headlines in insertion order.
        mode: Ranking mode.
        cap: Maximum length after sorting.

    Returns:
        New ranked list.
    """
    if mode == SortMode.NONE:
        return list(headlines)

    key = _score_key if mode == SortMode.TOP_SCORE else _timestamp_key
    # sorted() with reverse=True is stable, so equal keys keep input order
    ranked = sorted(headlines, key=key, reverse=True)
    return ranked[:cap]


class FeedRanker:
    """Applies one ranking mode to the global list and every category."""

    def __init__(
        self,
        mode: SortMode = SortMode.TOP_SCORE,
        cap: int = DEFAULT_FEED_CAP,
        run_id: str = "",
        metrics: PipelineMetrics | None = None,
    ) -> None:
        """Initialize the ranker.

        Args:
            mode: Deployment-wide ranking mode.
            cap: Hard cap for every list.
            run_id: Run identifier for logging.
            metrics: Optional metrics instance.
        """
        self._mode = mode
        self._cap = cap
        self._metrics = metrics or PipelineMetrics.get_instance()
        self._log = logger.bind(component="ranker", run_id=run_id)

    @property
    def mode(self) -> SortMode:
        """Get the ranking mode."""
        return self._mode

    @property
    def cap(self) -> int:
        """Get the list cap."""
        return self._cap

    def rank(self, headlines: Sequence[Headline]) -> list[Headline]:
        """Rank one list with the configured mode and cap."""
        return rank_headlines(headlines, self._mode, self._cap)

    def build_feed(
        self,
        headlines: Sequence[Headline],
        categories: dict[str, list[Headline]],
        rate_limit: RateLimitSnapshot,
        generated_at: datetime | None = None,
    ) -> Feed:
        """Rank every list and assemble a Feed.

        Args:
            headlines: Global list in insertion order.
            categories: Category lists in insertion order.
            rate_limit: Last observed rate-limit snapshot.
            generated_at: Build time (defaults to now).

        Returns:
            Ranked, bounded Feed.
        """
        ranked_categories = {
            name: self.rank(items) for name, items in categories.items()
        }
        feed = Feed(
            headlines=self.rank(headlines),
            categories=ranked_categories,
            rate_limit=rate_limit,
            generated_at=generated_at or datetime.now(UTC),
        )

        category_sizes = {name: len(items) for name, items in feed.categories.items()}
        self._metrics.record_feed(len(feed.headlines), category_sizes)
        self._log.info(
            "feed_ranked",
            mode=self._mode.value,
            cap=self._cap,
            input_count=len(headlines),
            output_count=len(feed.headlines),
            category_sizes=category_sizes,
        )
        return feed
