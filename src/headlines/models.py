"""Data models for raw posts, headlines and feeds."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.headlines.errors import MalformedInputError


def _get_mapping(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = payload.get(key)
    return value if isinstance(value, Mapping) else {}


def _get_list(payload: Mapping[str, Any], key: str) -> list[Any]:
    value = payload.get(key)
    return value if isinstance(value, list) else []


def _get_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    return value if isinstance(value, str) else ""


def _get_int(payload: Mapping[str, Any], key: str) -> int:
    value = payload.get(key)
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return 0
    return 0


class RateLimitSnapshot(BaseModel):
    """Remaining/limit counters reported by the fetch collaborator.

    Both counters are None when the upstream state could not be read.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    remaining: int | None = None
    limit: int | None = None

    @classmethod
    def unknown(cls) -> "RateLimitSnapshot":
        """Create a snapshot for an unreadable rate-limit state."""
        return cls()

    @property
    def is_known(self) -> bool:
        """Check if both counters were reported."""
        return self.remaining is not None and self.limit is not None

    @property
    def is_exhausted(self) -> bool:
        """Check if the reported budget is used up."""
        return self.remaining is not None and self.remaining <= 0


class RawPost(BaseModel):
    """A single post as delivered by the fetch collaborator.

    Attributes:
        author_name: Display name of the posting account.
        author_photo: Avatar URL of the posting account.
        link_urls: Expanded link URLs in post order.
        media_urls: Attached media URLs in post order.
        text: Free-text body.
        created_at: Creation timestamp as reported upstream.
        retweet_count: Share count.
        favorite_count: Like count.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    author_name: str = ""
    author_photo: str = ""
    link_urls: list[str] = Field(default_factory=list)
    media_urls: list[str] = Field(default_factory=list)
    text: str = ""
    created_at: str = ""
    retweet_count: int = 0
    favorite_count: int = 0

    @classmethod
    def from_tweet(
        cls, payload: object, source_id: str | None = None
    ) -> "RawPost":
        """Build a RawPost from an upstream status payload.

        Missing or mistyped nested fields fall back to empty strings and
        zero counts.

        Args:
            payload: Decoded status object.
            source_id: Source identifier for error reporting.

        Returns:
            RawPost with every field populated.

        Raises:
            MalformedInputError: If the payload is not a mapping.
        """
        if not isinstance(payload, Mapping):
            msg = f"Expected a status object, got {type(payload).__name__}"
            raise MalformedInputError(msg, source_id=source_id)

        user = _get_mapping(payload, "user")
        entities = _get_mapping(payload, "entities")
        extended = _get_mapping(payload, "extended_entities")

        link_urls = [
            _get_str(url, "expanded_url")
            for url in _get_list(entities, "urls")
            if isinstance(url, Mapping)
        ]
        media_urls = [
            _get_str(media, "media_url")
            for media in _get_list(extended, "media")
            if isinstance(media, Mapping)
        ]

        text = _get_str(payload, "full_text") or _get_str(payload, "text")

        return cls(
            author_name=_get_str(user, "name"),
            author_photo=_get_str(user, "profile_image_url"),
            link_urls=[u for u in link_urls if u],
            media_urls=[u for u in media_urls if u],
            text=text,
            created_at=_get_str(payload, "created_at"),
            retweet_count=_get_int(payload, "retweet_count"),
            favorite_count=_get_int(payload, "favorite_count"),
        )


class Headline(BaseModel):
    """Normalized, classified and scored representation of one post.

    Field names match the published feed JSON.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    source_name: str = ""
    source_photo: str = ""
    article_link: str = ""
    article_photo: str = ""
    article_description: str = ""
    date: str = ""
    timestamp: int = 0
    score: int | None = None
    category: str
    category_badge: str
    tags: str = ""

    @property
    def tag_list(self) -> list[str]:
        """Get tags as a list in match order."""
        return [t for t in self.tags.split(",") if t]


class Feed(BaseModel):
    """Ranked, bounded output of one pipeline run.

    Attributes:
        headlines: Global ordered headline list.
        categories: Category name to ordered headline list.
        rate_limit: Last observed rate-limit snapshot.
        generated_at: When the feed was built.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    headlines: list[Headline] = Field(default_factory=list)
    categories: dict[str, list[Headline]] = Field(default_factory=dict)
    rate_limit: RateLimitSnapshot = Field(default_factory=RateLimitSnapshot)
    generated_at: datetime | None = None

    def category(self, name: str) -> list[Headline]:
        """Get the headlines of one category.

        Args:
            name: Category name.

        Returns:
            Headlines for the category, empty if unknown.
        """
        return list(self.categories.get(name, []))

    @property
    def total_category_headlines(self) -> int:
        """Get the number of headlines across all category lists."""
        return sum(len(v) for v in self.categories.values())


class SourceFetchResult(BaseModel):
    """Posts and rate-limit state returned for one source.

    Posts are either RawPost instances or decoded upstream status objects;
    the Aggregator normalizes the latter.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    posts: list[Any] = Field(default_factory=list)
    rate_limit: RateLimitSnapshot = Field(default_factory=RateLimitSnapshot)
