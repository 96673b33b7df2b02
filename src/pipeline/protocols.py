"""Protocol interfaces for the pipeline's external collaborators."""

from typing import Protocol, runtime_checkable

from src.config.schemas.sources import SourceConfig
from src.headlines.models import Feed, Headline, SourceFetchResult


@runtime_checkable
class SourceFetcher(Protocol):
    """Protocol for the fetch collaborator.

    Implementations may block on network I/O. They must be safe to call
    from worker threads when the controller runs with more than one worker.
    """

    def fetch_source(self, source: SourceConfig) -> SourceFetchResult:
        """Fetch the posts of one source.

        Args:
            source: Source to fetch.

        Returns:
            Posts and the rate-limit snapshot observed while fetching.

        Raises:
            FetchError: If the source could not be fetched.
            RateLimitExhaustedError: If the rate-limit budget is used up.
        """
        ...


@runtime_checkable
class FeedCache(Protocol):
    """Protocol for the cache collaborator."""

    def load_cached_feed(self) -> Feed | None:
        """Load the last saved feed.

        Returns:
            The cached Feed, None when nothing was saved yet.

        Raises:
            CacheError: If the cached data cannot be read.
        """
        ...

    def save_feed(self, feed: Feed) -> object:
        """Persist a feed, replacing the previous one.

        Raises:
            CacheError: If the feed cannot be written.
        """
        ...

    def save_source_headlines(
        self, slug: str, headlines: list[Headline]
    ) -> object:
        """Persist the surviving headlines of one source.

        Raises:
            CacheError: If the headlines cannot be written.
        """
        ...
