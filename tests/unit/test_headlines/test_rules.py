"""Unit tests for category classification and inclusion rules."""

from src.config.schemas.base import DefaultPolicy, RuleAction, RuleTarget
from src.config.schemas.engine import CategoryRule
from src.config.schemas.sources import CustomRule, SourceConfig, SourceRules
from src.headlines.models import Headline
from src.headlines.rules import (
    CategoryClassifier,
    ExclusionReason,
    SourceRuleSet,
    classify,
    should_include,
)


def _make_rule(category: str, pattern: str, badge: str | None = None) -> CategoryRule:
    """Create a test CategoryRule."""
    return CategoryRule(
        category=category,
        search_pattern=pattern,
        badge=badge or f"{category.lower()}_badge",
    )


def _make_source(
    default: DefaultPolicy = DefaultPolicy.INCLUDE_ALL,
    custom: list[CustomRule] | None = None,
) -> SourceConfig:
    """Create a test SourceConfig."""
    return SourceConfig(
        owner_screen_name="owner",
        slug="list",
        rules=SourceRules(default=default, custom=custom or []),
    )


def _make_custom(
    contains: str,
    action: RuleAction,
    where: str = "article_description",
) -> CustomRule:
    """Create a test CustomRule."""
    return CustomRule.model_validate(
        {"where": where, "contains": contains, "action": action.value}
    )


def _make_headline(
    description: str = "Senate passes budget",
    source_name: str = "Reporter",
    link: str = "https://news.example.com/story",
    photo: str = "https://img.example.com/photo.jpg",
) -> Headline:
    """Create a test Headline."""
    return Headline(
        source_name=source_name,
        article_link=link,
        article_photo=photo,
        article_description=description,
        category="News",
        category_badge="default_badge",
    )


class TestClassify:
    """Tests for category classification."""

    def test_no_match_uses_default_category(self) -> None:
        """Nothing matched gives the News category with no tags."""
        result = classify("Weather is nice", [_make_rule("Politics", "senate")])

        assert result.category == "News"
        assert result.badge == "default_badge"
        assert result.tags_text == ""

    def test_last_match_wins_and_tags_keep_order(self) -> None:
        """A later matching rule overwrites category and badge."""
        rules = [
            _make_rule("Politics", "election"),
            _make_rule("Economy", "budget"),
        ]

        result = classify("Election fight over the budget", rules)

        assert result.category == "Economy"
        assert result.badge == "economy_badge"
        assert result.tags_text == "Politics,Economy"

    def test_non_matching_rule_between_matches_is_ignored(self) -> None:
        """Only matching rules contribute tags."""
        rules = [
            _make_rule("Politics", "election"),
            _make_rule("Sports", "football"),
            _make_rule("Economy", "budget"),
        ]

        result = classify("election budget", rules)

        assert result.category == "Economy"
        assert result.tags == ("Politics", "Economy")

    def test_tags_have_no_duplicates(self) -> None:
        """Two rules for the same category tag it once."""
        rules = [
            _make_rule("Politics", "election"),
            _make_rule("Politics", "senate", badge="senate_badge"),
        ]

        result = classify("Senate election", rules)

        assert result.category == "Politics"
        assert result.badge == "senate_badge"
        assert result.tags_text == "Politics"

    def test_match_is_case_insensitive(self) -> None:
        """Patterns match regardless of case."""
        result = classify("SENATE votes", [_make_rule("Politics", "senate")])
        assert result.category == "Politics"

    def test_classifier_reports_rule_count(self) -> None:
        """The classifier compiles every rule."""
        classifier = CategoryClassifier([_make_rule("A", "a"), _make_rule("B", "b")])
        assert classifier.rule_count == 2


class TestShouldInclude:
    """Tests for per-source inclusion rules."""

    def test_include_all_without_rules(self) -> None:
        """The include-all default keeps a complete headline."""
        assert should_include(_make_headline(), _make_source())

    def test_exclude_all_without_rules(self) -> None:
        """The exclude-all default drops everything."""
        source = _make_source(default=DefaultPolicy.EXCLUDE_ALL)
        assert not should_include(_make_headline(), source)

    def test_force_include_overrides_exclude_all(self) -> None:
        """A matching force include rule admits the headline."""
        source = _make_source(
            default=DefaultPolicy.EXCLUDE_ALL,
            custom=[_make_custom("senate", RuleAction.FORCE_INCLUDE)],
        )
        assert should_include(_make_headline(), source)

    def test_later_force_exclude_wins(self) -> None:
        """The last matching rule sets the decision."""
        source = _make_source(
            default=DefaultPolicy.EXCLUDE_ALL,
            custom=[
                _make_custom("senate", RuleAction.FORCE_INCLUDE),
                _make_custom("budget", RuleAction.FORCE_EXCLUDE),
            ],
        )
        assert not should_include(_make_headline(), source)

    def test_non_matching_rule_does_not_change_decision(self) -> None:
        """Rules that do not match leave the running decision alone."""
        source = _make_source(
            custom=[_make_custom("football", RuleAction.FORCE_EXCLUDE)],
        )
        assert should_include(_make_headline(), source)

    def test_source_target_tests_source_name(self) -> None:
        """The "source" shorthand tests the author name, not the description."""
        source = _make_source(
            custom=[_make_custom("deals", RuleAction.FORCE_EXCLUDE, where="source")],
        )

        assert not should_include(_make_headline(source_name="Daily Deals"), source)
        assert should_include(
            _make_headline(description="Great deals today", source_name="Reporter"),
            source,
        )

    def test_unknown_target_falls_back_to_description(self) -> None:
        """Any other target literal tests the description."""
        rule = _make_custom("budget", RuleAction.FORCE_EXCLUDE, where="headline")
        assert rule.where == RuleTarget.ARTICLE_DESCRIPTION
        assert not should_include(_make_headline(), _make_source(custom=[rule]))

    def test_mandatory_rules_override_force_include(self) -> None:
        """Missing description, link or photo always excludes."""
        source = _make_source(
            custom=[_make_custom(".*", RuleAction.FORCE_INCLUDE, where="source")],
        )

        assert not should_include(_make_headline(description=""), source)
        assert not should_include(_make_headline(link=""), source)
        assert not should_include(_make_headline(photo=""), source)


class TestSourceRuleSet:
    """Tests for exclusion reasons reported by SourceRuleSet."""

    def test_default_policy_reason(self) -> None:
        """Exclusion by the default policy is reported as such."""
        rule_set = SourceRuleSet.from_source(
            _make_source(default=DefaultPolicy.EXCLUDE_ALL)
        )

        decision = rule_set.evaluate(_make_headline())

        assert not decision.include
        assert decision.reason == ExclusionReason.DEFAULT_POLICY

    def test_custom_rule_reason_and_matches(self) -> None:
        """Exclusion by a custom rule lists the matched rule indexes."""
        rule_set = SourceRuleSet.from_source(
            _make_source(
                custom=[
                    _make_custom("football", RuleAction.FORCE_INCLUDE),
                    _make_custom("budget", RuleAction.FORCE_EXCLUDE),
                ]
            )
        )

        decision = rule_set.evaluate(_make_headline())

        assert decision.reason == ExclusionReason.CUSTOM_RULE
        assert decision.matched_rules == (1,)

    def test_mandatory_reason_order(self) -> None:
        """A missing description is reported before a missing link."""
        rule_set = SourceRuleSet.from_source(_make_source())

        decision = rule_set.evaluate(_make_headline(description="", link=""))

        assert decision.reason == ExclusionReason.MISSING_DESCRIPTION
