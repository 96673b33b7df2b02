"""Metrics collection for the headline pipeline."""

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock


# Module-level singleton state
_metrics_instance: "PipelineMetrics | None" = None
_metrics_lock: Lock = Lock()


@dataclass
class PipelineMetrics:
    """Thread-safe metrics for pipeline runs.

    Use get_instance() for singleton access.
    """

    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    posts_seen: int = 0
    headlines_built: int = 0
    malformed_posts: int = 0
    duplicates_skipped: int = 0
    runs_total: int = 0
    runs_failed: int = 0

    # Exclusion counts by reason
    excluded_by_reason: Counter[str] = field(default_factory=Counter)

    # Per-source failure counts by error class
    failures_by_source_error: Counter[tuple[str, str]] = field(
        default_factory=Counter
    )

    # Per-source fetch+build duration in milliseconds
    duration_by_source: dict[str, float] = field(default_factory=dict)

    # Sizes of the last published feed
    feed_size: int = 0
    category_sizes: dict[str, int] = field(default_factory=dict)

    @classmethod
    def get_instance(cls) -> "PipelineMetrics":
        """Get the singleton instance (thread-safe).

        Returns:
            The shared PipelineMetrics instance.
        """
        global _metrics_instance  # noqa: PLW0603
        if _metrics_instance is None:
            with _metrics_lock:
                if _metrics_instance is None:
                    _metrics_instance = cls()
        return _metrics_instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (for testing)."""
        global _metrics_instance  # noqa: PLW0603
        with _metrics_lock:
            _metrics_instance = None

    def record_post(self) -> None:
        """Record a raw post entering the builder."""
        with self._lock:
            self.posts_seen += 1

    def record_built(self) -> None:
        """Record a headline that passed every rule."""
        with self._lock:
            self.headlines_built += 1

    def record_excluded(self, reason: str) -> None:
        """Record an excluded post.

        Args:
            reason: Exclusion reason value.
        """
        with self._lock:
            self.excluded_by_reason[reason] += 1

    def record_malformed(self) -> None:
        """Record a post payload without usable structure."""
        with self._lock:
            self.malformed_posts += 1

    def record_duplicate(self) -> None:
        """Record a headline skipped as a category duplicate."""
        with self._lock:
            self.duplicates_skipped += 1

    def record_source_failure(self, source_id: str, error_class: str) -> None:
        """Record a failed source.

        Args:
            source_id: Identifier of the source.
            error_class: Fetch error classification.
        """
        with self._lock:
            self.failures_by_source_error[(source_id, error_class)] += 1

    def record_duration(self, source_id: str, duration_ms: float) -> None:
        """Record source processing duration.

        Args:
            source_id: Identifier of the source.
            duration_ms: Duration in milliseconds.
        """
        with self._lock:
            self.duration_by_source[source_id] = duration_ms

    def record_run(self, *, failed: bool) -> None:
        """Record a finished run.

        Args:
            failed: Whether the run ended without any successful source.
        """
        with self._lock:
            self.runs_total += 1
            if failed:
                self.runs_failed += 1

    def record_feed(self, feed_size: int, category_sizes: dict[str, int]) -> None:
        """Record the sizes of a published feed.

        Args:
            feed_size: Length of the global list.
            category_sizes: Length of each category list.
        """
        with self._lock:
            self.feed_size = feed_size
            self.category_sizes = dict(category_sizes)

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        with self._lock:
            return {
                "posts_seen": self.posts_seen,
                "headlines_built": self.headlines_built,
                "malformed_posts": self.malformed_posts,
                "duplicates_skipped": self.duplicates_skipped,
                "excluded_by_reason": dict(self.excluded_by_reason),
                "failures_by_source_error": {
                    f"{source_id}:{error_class}": count
                    for (source_id, error_class), count in sorted(
                        self.failures_by_source_error.items()
                    )
                },
                "duration_by_source": dict(self.duration_by_source),
                "runs_total": self.runs_total,
                "runs_failed": self.runs_failed,
                "feed_size": self.feed_size,
                "category_sizes": dict(self.category_sizes),
            }
