"""Category classification and per-source inclusion rules.

Category rules are evaluated in declared order and the last match sets the
category and badge, while every matched category name is collected as a tag.
Custom rules are evaluated the same way against the running inclusion
decision. Mandatory rules run last and cannot be overridden.
"""

import re
from dataclasses import dataclass, field
from enum import Enum

from src.config.schemas.base import DefaultPolicy, RuleAction, RuleTarget
from src.config.schemas.engine import CategoryRule
from src.config.schemas.sources import CustomRule, SourceConfig
from src.headlines.constants import DEFAULT_BADGE, DEFAULT_CATEGORY
from src.headlines.models import Headline


class ExclusionReason(str, Enum):
    """Why a headline was left out of the feed."""

    DEFAULT_POLICY = "default_policy"
    CUSTOM_RULE = "custom_rule"
    MISSING_DESCRIPTION = "missing_description"
    MISSING_LINK = "missing_link"
    MISSING_PHOTO = "missing_photo"


@dataclass(frozen=True)
class Classification:
    """Result of classifying a description.

    Attributes:
        category: Category of the last matching rule, or the default.
        badge: Badge of the last matching rule, or the default.
        tags: Matched category names in first-seen order.
    """

    category: str = DEFAULT_CATEGORY
    badge: str = DEFAULT_BADGE
    tags: tuple[str, ...] = ()

    @property
    def tags_text(self) -> str:
        """Get tags joined with commas."""
        return ",".join(self.tags)


@dataclass(frozen=True)
class InclusionDecision:
    """Outcome of the inclusion rules for one headline.

    Attributes:
        include: Whether the headline goes into the feed.
        reason: Why it was excluded, None when included.
        matched_rules: Indexes of custom rules that matched.
    """

    include: bool
    reason: ExclusionReason | None = None
    matched_rules: tuple[int, ...] = ()


@dataclass
class CompiledCategoryRule:
    """A category rule with its pre-compiled pattern."""

    config: CategoryRule
    pattern: re.Pattern[str]


@dataclass
class CompiledCustomRule:
    """A custom rule with its pre-compiled pattern."""

    config: CustomRule
    pattern: re.Pattern[str]


class CategoryClassifier:
    """Classifies descriptions against ordered category rules.

    Pre-compiles every pattern on initialization so that repeated
    classification over many posts does not recompile.
    """

    def __init__(self, rules: list[CategoryRule]) -> None:
        """Initialize the classifier.

        Args:
            rules: Ordered category rules.
        """
        self._rules = [
            CompiledCategoryRule(
                config=rule,
                pattern=re.compile(rule.search_pattern, re.IGNORECASE),
            )
            for rule in rules
        ]

    @property
    def rule_count(self) -> int:
        """Get number of configured category rules."""
        return len(self._rules)

    def classify(self, description: str) -> Classification:
        """Classify a description.

        Args:
            description: Cleaned post description.

        Returns:
            Classification with category, badge and tags.
        """
        category = DEFAULT_CATEGORY
        badge = DEFAULT_BADGE
        tags: list[str] = []

        for compiled in self._rules:
            if not compiled.pattern.search(description):
                continue
            category = compiled.config.category
            badge = compiled.config.badge
            if compiled.config.category not in tags:
                tags.append(compiled.config.category)

        return Classification(category=category, badge=badge, tags=tuple(tags))


@dataclass
class SourceRuleSet:
    """Pre-compiled inclusion rules for one source."""

    default: DefaultPolicy
    rules: list[CompiledCustomRule] = field(default_factory=list)

    @classmethod
    def from_source(cls, source: SourceConfig) -> "SourceRuleSet":
        """Compile the custom rules of a source.

        Args:
            source: Source configuration.

        Returns:
            SourceRuleSet ready for evaluation.
        """
        return cls(
            default=source.default_policy,
            rules=[
                CompiledCustomRule(
                    config=rule,
                    pattern=re.compile(rule.contains, re.IGNORECASE),
                )
                for rule in source.custom_rules
            ],
        )

    def evaluate(self, headline: Headline) -> InclusionDecision:
        """Run default policy, custom rules and mandatory rules.

        Every matching custom rule overwrites the running decision; there is
        no short-circuit. Mandatory rules are applied after custom rules.

        Args:
            headline: Candidate headline.

        Returns:
            InclusionDecision for the headline.
        """
        include = self.default != DefaultPolicy.EXCLUDE_ALL
        decided_by_rule = False
        matched: list[int] = []

        for index, compiled in enumerate(self.rules):
            if compiled.config.where == RuleTarget.SOURCE_NAME:
                value = headline.source_name
            else:
                value = headline.article_description
            if not compiled.pattern.search(value):
                continue
            matched.append(index)
            decided_by_rule = True
            include = compiled.config.action == RuleAction.FORCE_INCLUDE

        mandatory = _mandatory_exclusion(headline)
        if mandatory is not None:
            return InclusionDecision(
                include=False, reason=mandatory, matched_rules=tuple(matched)
            )

        if include:
            return InclusionDecision(include=True, matched_rules=tuple(matched))

        reason = (
            ExclusionReason.CUSTOM_RULE
            if decided_by_rule
            else ExclusionReason.DEFAULT_POLICY
        )
        return InclusionDecision(
            include=False, reason=reason, matched_rules=tuple(matched)
        )


def _mandatory_exclusion(headline: Headline) -> ExclusionReason | None:
    if not headline.article_description:
        return ExclusionReason.MISSING_DESCRIPTION
    if not headline.article_link:
        return ExclusionReason.MISSING_LINK
    if not headline.article_photo:
        return ExclusionReason.MISSING_PHOTO
    return None


def classify(description: str, category_rules: list[CategoryRule]) -> Classification:
    """Classify a description against ordered category rules.

    Args:
        description: Cleaned post description.
        category_rules: Ordered category rules.

    Returns:
        Classification with category, badge and tags.
    """
    return CategoryClassifier(category_rules).classify(description)


def should_include(headline: Headline, source: SourceConfig) -> bool:
    """Decide whether a headline from a source belongs in the feed.

    Args:
        headline: Candidate headline.
        source: Source the headline came from.

    Returns:
        True if the headline passes custom and mandatory rules.
    """
    return SourceRuleSet.from_source(source).evaluate(headline).include
