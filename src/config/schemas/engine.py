"""Engine configuration schema (root of the headlines config file)."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.config.constants import DEFAULT_CATEGORY, DEFAULT_FEED_CAP
from src.config.schemas.base import ScoringStrategy, SortMode
from src.config.schemas.sources import SourceConfig, validate_pattern


# Legacy sort names used by older config files
_SORT_ALIASES: dict[str, SortMode] = {
    "top20": SortMode.TOP_SCORE,
    "latest20": SortMode.LATEST,
}


class CategoryRule(BaseModel):
    """Pattern-to-category classification rule.

    Attributes:
        category: Category name assigned on match.
        search_pattern: Case-insensitive pattern tested against descriptions.
        badge: Badge label shown with the category.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    category: Annotated[str, Field(min_length=1, max_length=100)]
    search_pattern: Annotated[str, Field(min_length=1)]
    badge: Annotated[str, Field(min_length=1, max_length=100)]

    @field_validator("category")
    @classmethod
    def validate_category_name(cls, v: str) -> str:
        """Category names are joined with commas in tags, so commas are not allowed."""
        if "," in v:
            msg = "Category names must not contain commas"
            raise ValueError(msg)
        return v

    @field_validator("search_pattern")
    @classmethod
    def validate_search_pattern(cls, v: str) -> str:
        """Validate that search_pattern is a valid regex."""
        return validate_pattern(v)


class ScoringConfig(BaseModel):
    """Scoring configuration.

    Attributes:
        strategy: Recency weighting policy.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy: ScoringStrategy = ScoringStrategy.REVERSE_AGE


class EngineConfig(BaseModel):
    """Root configuration for the headline engine.

    Attributes:
        version: Schema version.
        sort: Ranking mode applied to every output list.
        cap: Maximum length of the global and category feeds.
        scoring: Scoring configuration.
        categories: Ordered category rules; the last match wins.
        sources: Ordered list sources.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: Annotated[str, Field(pattern=r"^\d+\.\d+$")] = "1.0"
    sort: SortMode = SortMode.TOP_SCORE
    cap: Annotated[int, Field(ge=1, le=1000)] = DEFAULT_FEED_CAP
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    categories: list[CategoryRule] = Field(default_factory=list)
    sources: Annotated[list[SourceConfig], Field(min_length=1)]

    @field_validator("sort", mode="before")
    @classmethod
    def resolve_sort_alias(cls, v: object) -> object:
        """Accept the legacy top20/latest20 names."""
        if isinstance(v, str) and v in _SORT_ALIASES:
            return _SORT_ALIASES[v]
        return v

    @model_validator(mode="after")
    def validate_unique_sources(self) -> "EngineConfig":
        """Ensure source identifiers and slugs are unique."""
        ids = [s.id for s in self.sources]
        duplicates = sorted({id_ for id_ in ids if ids.count(id_) > 1})
        if duplicates:
            msg = f"Duplicate sources found: {duplicates}"
            raise ValueError(msg)

        # Per-source cache files are named after the slug alone
        slugs = [s.slug for s in self.sources]
        shared = sorted({slug for slug in slugs if slugs.count(slug) > 1})
        if shared:
            msg = f"Duplicate slugs found: {shared}"
            raise ValueError(msg)
        return self

    @property
    def category_names(self) -> list[str]:
        """Get every category name, default category first, without duplicates."""
        names = [DEFAULT_CATEGORY]
        for rule in self.categories:
            if rule.category not in names:
                names.append(rule.category)
        return names

    def get_enabled_sources(self) -> list[SourceConfig]:
        """Get enabled sources in configured order.

        Returns:
            List of enabled source configurations.
        """
        return [s for s in self.sources if s.enabled]

    def get_source_by_id(self, source_id: str) -> SourceConfig | None:
        """Get a source configuration by identifier.

        Args:
            source_id: Identifier in owner/slug form.

        Returns:
            SourceConfig if found, None otherwise.
        """
        for source in self.sources:
            if source.id == source_id:
                return source
        return None
