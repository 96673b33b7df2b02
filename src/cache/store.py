"""JSON file cache for published feeds and per-source headlines."""

import json
from pathlib import Path

import structlog
from pydantic import TypeAdapter, ValidationError

from src.cache.constants import FEED_FILE_NAME, JSON_INDENT, SOURCE_FILE_SUFFIX
from src.cache.io import AtomicWriter, WrittenFile
from src.headlines.models import Feed, Headline
from src.pipeline.errors import CacheError


logger = structlog.get_logger()

_HEADLINE_LIST = TypeAdapter(list[Headline])


class JsonFeedCache:
    """Stores feeds as pretty-printed JSON files in one directory.

    Layout:
        headlines.json            combined feed (global list, categories,
                                  rate limit, generation time)
        <slug>.headlines.json     surviving headlines of one source

    Writes are atomic and last-write-wins.
    """

    def __init__(self, cache_dir: Path) -> None:
        """Initialize the cache.

        Args:
            cache_dir: Directory holding the cache files.
        """
        self._cache_dir = cache_dir
        self._writer = AtomicWriter(cache_dir)
        self._log = logger.bind(component="cache", cache_dir=str(cache_dir))

    @property
    def cache_dir(self) -> Path:
        """Get the cache directory."""
        return self._cache_dir

    @property
    def feed_path(self) -> Path:
        """Get the path of the combined feed file."""
        return self._cache_dir / FEED_FILE_NAME

    def source_path(self, slug: str) -> Path:
        """Get the path of one source's headline file.

        Args:
            slug: Source slug.

        Returns:
            Path of <slug>.headlines.json.
        """
        return self._cache_dir / f"{slug}{SOURCE_FILE_SUFFIX}"

    def load_cached_feed(self) -> Feed | None:
        """Load the last saved feed.

        Returns:
            The cached Feed, None when no feed was saved yet.

        Raises:
            CacheError: If the file cannot be read or decoded.
        """
        path = self.feed_path
        if not path.exists():
            self._log.debug("cache_miss", path=str(path))
            return None

        try:
            feed = Feed.model_validate_json(path.read_bytes())
        except OSError as e:
            msg = f"Cannot read cached feed: {e}"
            raise CacheError(msg, path=str(path)) from e
        except ValidationError as e:
            msg = f"Cached feed is corrupt: {e.error_count()} validation errors"
            raise CacheError(msg, path=str(path)) from e

        self._log.info(
            "cache_loaded",
            headlines=len(feed.headlines),
            categories=len(feed.categories),
        )
        return feed

    def load_source_headlines(self, slug: str) -> list[Headline] | None:
        """Load one source's saved headlines.

        Args:
            slug: Source slug.

        Returns:
            Headlines, None when the source was never saved.

        Raises:
            CacheError: If the file cannot be read or decoded.
        """
        path = self.source_path(slug)
        if not path.exists():
            return None
        try:
            return _HEADLINE_LIST.validate_json(path.read_bytes())
        except OSError as e:
            msg = f"Cannot read cached headlines: {e}"
            raise CacheError(msg, path=str(path)) from e
        except ValidationError as e:
            msg = f"Cached headlines are corrupt: {e.error_count()} validation errors"
            raise CacheError(msg, path=str(path)) from e

    def save_feed(self, feed: Feed) -> WrittenFile:
        """Persist a feed, replacing the previous one.

        Args:
            feed: Feed to save.

        Returns:
            Information about the written file.

        Raises:
            CacheError: If the feed cannot be written.
        """
        written = self._write(self.feed_path, feed.model_dump(mode="json"))
        self._log.info(
            "feed_saved",
            path=written.path,
            headlines=len(feed.headlines),
            bytes=written.bytes_written,
        )
        return written

    def save_source_headlines(
        self, slug: str, headlines: list[Headline]
    ) -> WrittenFile:
        """Persist the surviving headlines of one source.

        Args:
            slug: Source slug.
            headlines: Headlines in insertion order.

        Returns:
            Information about the written file.

        Raises:
            CacheError: If the headlines cannot be written.
        """
        written = self._write(
            self.source_path(slug), _HEADLINE_LIST.dump_python(headlines, mode="json")
        )
        self._log.debug(
            "source_headlines_saved",
            slug=slug,
            headlines=len(headlines),
            bytes=written.bytes_written,
        )
        return written

    def _write(self, path: Path, document: object) -> WrittenFile:
        content = json.dumps(document, indent=JSON_INDENT, ensure_ascii=False) + "\n"
        try:
            return self._writer.write(path, content)
        except OSError as e:
            self._log.error("cache_write_failed", path=str(path), error=str(e))
            msg = f"Cannot write cache file: {e}"
            raise CacheError(msg, path=str(path)) from e
