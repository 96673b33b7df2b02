"""Maps raw posts into normalized headlines."""

from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

from src.config.schemas.engine import CategoryRule
from src.config.schemas.sources import SourceConfig
from src.headlines.constants import (
    AMPERSAND_REPLACEMENT,
    ESCAPED_AMPERSAND,
    POST_TIMESTAMP_FORMAT,
    URL_PATTERN,
)
from src.headlines.models import Headline, RawPost
from src.headlines.rules import (
    CategoryClassifier,
    ExclusionReason,
    SourceRuleSet,
)
from src.headlines.scorer import HeadlineScorer


def clean_description(text: str) -> str:
    """Strip URLs and escaped ampersands from a post body.

    Args:
        text: Raw post body.

    Returns:
        Description text, empty if nothing but links remained.
    """
    without_urls = URL_PATTERN.sub("", text)
    return without_urls.replace(ESCAPED_AMPERSAND, AMPERSAND_REPLACEMENT).strip()


def parse_post_timestamp(value: str) -> datetime | None:
    """Parse an upstream creation timestamp.

    Accepts the upstream "Wed Oct 10 20:19:24 +0000 2018" form, ISO 8601
    and RFC 2822. Naive values are taken as UTC.

    Args:
        value: Timestamp string.

    Returns:
        Timezone-aware datetime, None if the value is not a timestamp.
    """
    value = value.strip()
    if not value:
        return None

    parsed: datetime | None = None
    try:
        parsed = datetime.strptime(value, POST_TIMESTAMP_FORMAT)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            try:
                parsed = parsedate_to_datetime(value)
            except (TypeError, ValueError, IndexError, OverflowError):
                return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def to_epoch_millis(value: datetime | None) -> int:
    """Convert a datetime to milliseconds since the epoch (0 when unknown)."""
    if value is None:
        return 0
    return int(value.timestamp() * 1000)


@dataclass(frozen=True)
class BuildResult:
    """Outcome of building one headline.

    Attributes:
        headline: The built headline, None when excluded.
        exclusion_reason: Why the headline was excluded.
    """

    headline: Headline | None
    exclusion_reason: ExclusionReason | None = None

    @property
    def excluded(self) -> bool:
        """Check if the post was excluded."""
        return self.headline is None


class HeadlineBuilder:
    """Builds headlines for one source.

    Holds the compiled category and inclusion rules plus the run's scorer,
    so that building is a pure mapping from RawPost to Headline.
    """

    def __init__(
        self,
        source: SourceConfig,
        classifier: CategoryClassifier,
        scorer: HeadlineScorer,
    ) -> None:
        """Initialize the builder.

        Args:
            source: Source the posts come from.
            classifier: Compiled category rules.
            scorer: Scorer bound to the run's reference time.
        """
        self._source = source
        self._classifier = classifier
        self._scorer = scorer
        self._rule_set = SourceRuleSet.from_source(source)

    @property
    def source(self) -> SourceConfig:
        """Get the source configuration."""
        return self._source

    def build(self, post: RawPost) -> BuildResult:
        """Build a headline from a raw post.

        Exclusion is an expected outcome, not an error.

        Args:
            post: Raw post.

        Returns:
            BuildResult with the headline or the exclusion reason.
        """
        description = clean_description(post.text)
        posted_at = parse_post_timestamp(post.created_at)
        classification = self._classifier.classify(description)

        headline = Headline(
            source_name=post.author_name,
            source_photo=post.author_photo,
            article_link=post.link_urls[0] if post.link_urls else "",
            article_photo=post.media_urls[0] if post.media_urls else "",
            article_description=description,
            date=post.created_at,
            timestamp=to_epoch_millis(posted_at),
            score=self._scorer.score(
                posted_at, post.retweet_count, post.favorite_count
            ),
            category=classification.category,
            category_badge=classification.badge,
            tags=classification.tags_text,
        )

        decision = self._rule_set.evaluate(headline)
        if not decision.include:
            return BuildResult(headline=None, exclusion_reason=decision.reason)
        return BuildResult(headline=headline)


def build_headline(
    post: RawPost,
    source: SourceConfig,
    category_rules: list[CategoryRule],
    now: datetime | None = None,
    scorer: HeadlineScorer | None = None,
) -> Headline | None:
    """Pure function API for building one headline.

    Args:
        post: Raw post.
        source: Source the post came from.
        category_rules: Ordered category rules.
        now: Reference time for scoring.
        scorer: Optional scorer; overrides now when given.

    Returns:
        Headline, or None when the post is excluded.
    """
    builder = HeadlineBuilder(
        source=source,
        classifier=CategoryClassifier(category_rules),
        scorer=scorer or HeadlineScorer(now=now),
    )
    return builder.build(post).headline
