"""Source configuration schema."""

import re
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.config.schemas.base import DefaultPolicy, RuleAction, RuleTarget


# Short form accepted for the source_name target
_SOURCE_TARGET_ALIASES = {"source", "source_name"}


def validate_pattern(v: str) -> str:
    """Ensure a configured pattern compiles as a regular expression."""
    try:
        re.compile(v)
    except re.error as e:
        msg = f"Invalid regex pattern: {e}"
        raise ValueError(msg) from e
    return v


class CustomRule(BaseModel):
    """Per-source override rule affecting inclusion.

    Attributes:
        where: Headline field the pattern is tested against.
        contains: Case-insensitive pattern searched for in that field.
        action: What a match does to the running inclusion decision.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    where: RuleTarget = RuleTarget.ARTICLE_DESCRIPTION
    contains: Annotated[str, Field(min_length=1)]
    action: RuleAction

    @field_validator("where", mode="before")
    @classmethod
    def resolve_target(cls, v: object) -> object:
        """Resolve "source" and "source_name" to the author name target."""
        if isinstance(v, RuleTarget):
            return v
        if isinstance(v, str) and v.strip().lower() in _SOURCE_TARGET_ALIASES:
            return RuleTarget.SOURCE_NAME
        return RuleTarget.ARTICLE_DESCRIPTION

    @field_validator("contains")
    @classmethod
    def validate_contains(cls, v: str) -> str:
        """Validate that contains is a valid regex."""
        return validate_pattern(v)


class SourceRules(BaseModel):
    """Inclusion rules for a source.

    Attributes:
        default: Starting inclusion decision.
        custom: Ordered custom rules; the last match wins.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    default: DefaultPolicy = DefaultPolicy.INCLUDE_ALL
    custom: list[CustomRule] = Field(default_factory=list)


class SourceConfig(BaseModel):
    """Configuration for a single list source.

    Attributes:
        owner_screen_name: Account that owns the list.
        slug: List slug.
        enabled: Whether the source is polled.
        rules: Inclusion rules for posts from this source.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    owner_screen_name: Annotated[
        str, Field(min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_]+$")
    ]
    slug: Annotated[
        str, Field(min_length=1, max_length=100, pattern=r"^[A-Za-z0-9_-]+$")
    ]
    enabled: bool = True
    rules: SourceRules = Field(default_factory=SourceRules)

    @property
    def id(self) -> str:
        """Get the unique source identifier."""
        return f"{self.owner_screen_name}/{self.slug}"

    @property
    def default_policy(self) -> DefaultPolicy:
        """Get the default inclusion policy."""
        return self.rules.default

    @property
    def custom_rules(self) -> list[CustomRule]:
        """Get the ordered custom rules."""
        return list(self.rules.custom)
