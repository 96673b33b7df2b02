"""Unit tests for the PipelineController."""

import threading
from collections.abc import Callable

import pytest

from src.config.schemas.base import SortMode
from src.config.schemas.engine import CategoryRule, EngineConfig
from src.config.schemas.sources import SourceConfig
from src.headlines.metrics import PipelineMetrics
from src.headlines.models import Feed, RateLimitSnapshot, SourceFetchResult
from src.pipeline.controller import PipelineController
from src.pipeline.errors import (
    FetchError,
    FetchErrorClass,
    PipelineFailedError,
    RateLimitExhaustedError,
)
from src.pipeline.state_machine import ControllerState, SourceState
from tests.helpers.time import FIXED_NOW
from tests.helpers.tweets import make_tweet


Outcome = SourceFetchResult | Exception


class _FakeFetcher:
    """Returns or raises a preset outcome per source id."""

    def __init__(
        self,
        outcomes: dict[str, Outcome],
        on_fetch: Callable[[SourceConfig], None] | None = None,
    ) -> None:
        self._outcomes = outcomes
        self._on_fetch = on_fetch
        self._lock = threading.Lock()
        self.calls: list[str] = []

    def fetch_source(self, source: SourceConfig) -> SourceFetchResult:
        with self._lock:
            self.calls.append(source.id)
        if self._on_fetch:
            self._on_fetch(source)
        outcome = self._outcomes[source.id]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _make_config(
    slugs: list[str],
    disabled: set[str] | None = None,
    sort: SortMode = SortMode.TOP_SCORE,
    cap: int = 20,
) -> EngineConfig:
    """Create an EngineConfig with one source per slug."""
    disabled = disabled or set()
    return EngineConfig(
        sort=sort,
        cap=cap,
        categories=[
            CategoryRule(
                category="Politics", search_pattern="senate", badge="politics_badge"
            ),
        ],
        sources=[
            SourceConfig(
                owner_screen_name="owner", slug=slug, enabled=slug not in disabled
            )
            for slug in slugs
        ],
    )


def _make_result(
    author: str, count: int = 2, remaining: int = 100
) -> SourceFetchResult:
    """Create a fetch result with distinct posts from one author."""
    return SourceFetchResult(
        posts=[
            make_tweet(text=f"{author} story {i}", author=author, retweets=i * 10)
            for i in range(count)
        ],
        rate_limit=RateLimitSnapshot(remaining=remaining, limit=900),
    )


class TestPipelineRun:
    """Tests for a full controller run."""

    def test_successful_run_publishes_feed(self) -> None:
        """All sources succeed and the feed is published."""
        config = _make_config(["a", "b"])
        fetcher = _FakeFetcher(
            {"owner/a": _make_result("A"), "owner/b": _make_result("B")}
        )
        controller = PipelineController(config, fetcher)

        result = controller.run(run_id="run-1", now=FIXED_NOW)

        assert result.run_id == "run-1"
        assert result.sources_succeeded == 2
        assert result.sources_failed == 0
        assert result.warnings == []
        assert len(result.feed.headlines) == 4
        assert controller.current_feed is result.feed
        assert controller.state == ControllerState.IDLE
        assert fetcher.calls == ["owner/a", "owner/b"]

    def test_failed_source_is_isolated(self) -> None:
        """One failing source yields one warning and partial results."""
        config = _make_config(["a", "b", "c"])
        fetcher = _FakeFetcher(
            {
                "owner/a": _make_result("A"),
                "owner/b": FetchError("owner/b", "boom", FetchErrorClass.HTTP_5XX),
                "owner/c": _make_result("C"),
            }
        )

        result = PipelineController(config, fetcher).run(now=FIXED_NOW)

        assert {h.source_name for h in result.feed.headlines} == {"A", "C"}
        assert len(result.warnings) == 1
        assert result.warnings[0].source_id == "owner/b"
        assert result.warnings[0].error_class == FetchErrorClass.HTTP_5XX
        assert result.source_results["owner/b"].state == SourceState.SOURCE_FAILED
        assert set(result.source_headlines) == {"a", "c"}

    def test_unexpected_exception_becomes_unknown_warning(self) -> None:
        """Exceptions outside the fetch taxonomy are isolated too."""
        config = _make_config(["a", "b"])
        fetcher = _FakeFetcher(
            {"owner/a": RuntimeError("bug"), "owner/b": _make_result("B")}
        )

        result = PipelineController(config, fetcher).run(now=FIXED_NOW)

        assert result.warnings[0].error_class == FetchErrorClass.UNKNOWN
        assert "bug" in result.warnings[0].message

    def test_failure_rate_limit_is_recorded(self) -> None:
        """The snapshot from a failing last source overwrites the earlier one."""
        config = _make_config(["a", "b"])
        exhausted = RateLimitSnapshot(remaining=0, limit=900)
        fetcher = _FakeFetcher(
            {
                "owner/a": _make_result("A", remaining=10),
                "owner/b": RateLimitExhaustedError("owner/b", rate_limit=exhausted),
            }
        )

        result = PipelineController(config, fetcher).run(now=FIXED_NOW)

        assert result.feed.rate_limit == exhausted
        assert result.warnings[0].rate_limit == exhausted

    def test_overflowing_timestamp_does_not_abort_run(self) -> None:
        """A post with an out-of-range date is kept without recency credit."""
        config = _make_config(["a", "b"])
        bad_date = "Mon, 1 Jan 2020 99999999999999999999:00:00 +0000"
        fetcher = _FakeFetcher(
            {
                "owner/a": _make_result("A", count=1),
                "owner/b": SourceFetchResult(
                    posts=[make_tweet(text="Odd date", created_at=bad_date)],
                    rate_limit=RateLimitSnapshot(remaining=5, limit=900),
                ),
            }
        )

        result = PipelineController(config, fetcher).run(now=FIXED_NOW)

        assert result.sources_succeeded == 2
        assert result.warnings == []
        odd = next(
            h for h in result.feed.headlines if h.article_description == "Odd date"
        )
        assert odd.timestamp == 0
        assert odd.score == 0

    def test_disabled_sources_are_skipped(self) -> None:
        """Disabled sources are neither fetched nor reported."""
        config = _make_config(["a", "b"], disabled={"b"})
        fetcher = _FakeFetcher({"owner/a": _make_result("A")})

        result = PipelineController(config, fetcher).run(now=FIXED_NOW)

        assert fetcher.calls == ["owner/a"]
        assert result.warnings == []
        assert "owner/b" not in result.source_results

    def test_ranking_applies_cap(self) -> None:
        """The configured cap bounds the global list."""
        config = _make_config(["a"], cap=3)
        fetcher = _FakeFetcher({"owner/a": _make_result("A", count=5)})

        result = PipelineController(config, fetcher).run(now=FIXED_NOW)

        assert len(result.feed.headlines) == 3
        assert [h.score for h in result.feed.headlines] == [204, 203, 202]

    def test_categories_always_include_news(self) -> None:
        """Every configured category plus News is present."""
        config = _make_config(["a"])
        fetcher = _FakeFetcher({"owner/a": _make_result("A")})

        feed = PipelineController(config, fetcher).run(now=FIXED_NOW).feed

        assert list(feed.categories) == ["News", "Politics"]
        assert feed.categories["Politics"] == []

    def test_metrics_recorded(self) -> None:
        """Runs and per-source failures are counted."""
        config = _make_config(["a", "b"])
        fetcher = _FakeFetcher(
            {
                "owner/a": _make_result("A"),
                "owner/b": RateLimitExhaustedError("owner/b"),
            }
        )

        PipelineController(config, fetcher).run(now=FIXED_NOW)

        metrics = PipelineMetrics.get_instance()
        assert metrics.runs_total == 1
        assert metrics.failures_by_source_error[("owner/b", "RATE_LIMITED")] == 1


class TestPipelineFailure:
    """Tests for runs where no source succeeds."""

    def test_all_sources_failed_raises(self) -> None:
        """Zero successful sources is a pipeline-level failure."""
        config = _make_config(["a", "b"])
        fetcher = _FakeFetcher(
            {
                "owner/a": RateLimitExhaustedError("owner/a"),
                "owner/b": FetchError("owner/b", "down"),
            }
        )
        controller = PipelineController(config, fetcher)

        with pytest.raises(PipelineFailedError) as exc_info:
            controller.run(run_id="run-x", now=FIXED_NOW)

        assert [w.source_id for w in exc_info.value.warnings] == [
            "owner/a",
            "owner/b",
        ]
        assert exc_info.value.run_id == "run-x"
        assert controller.state == ControllerState.IDLE
        assert PipelineMetrics.get_instance().runs_failed == 1

    def test_previous_feed_survives_failure(self) -> None:
        """A failed run leaves the published feed untouched."""
        config = _make_config(["a"])
        cached = Feed(categories={"News": []})
        fetcher = _FakeFetcher({"owner/a": FetchError("owner/a", "down")})
        controller = PipelineController(config, fetcher, initial_feed=cached)

        with pytest.raises(PipelineFailedError):
            controller.run(now=FIXED_NOW)

        assert controller.current_feed is cached


class TestFeedPublication:
    """Tests for atomic publication of the feed."""

    def test_initial_feed_served_until_run_completes(self) -> None:
        """Readers see the cached feed while a run is in progress."""
        config = _make_config(["a"])
        cached = Feed(categories={"News": []})
        seen: list[Feed | None] = []
        controller: PipelineController

        def observe(_source: SourceConfig) -> None:
            seen.append(controller.current_feed)

        fetcher = _FakeFetcher({"owner/a": _make_result("A")}, on_fetch=observe)
        controller = PipelineController(config, fetcher, initial_feed=cached)

        result = controller.run(now=FIXED_NOW)

        assert seen == [cached]
        assert controller.current_feed is result.feed

    def test_no_feed_before_first_run(self) -> None:
        """Without a cached feed nothing is published yet."""
        controller = PipelineController(_make_config(["a"]), _FakeFetcher({}))
        assert controller.current_feed is None


class TestParallelFetch:
    """Tests for bounded parallel fetching."""

    def test_parallel_output_matches_sequential(self) -> None:
        """Aggregation order follows configuration, not completion order."""
        config = _make_config(["a", "b", "c"], sort=SortMode.NONE)
        outcomes: dict[str, Outcome] = {
            "owner/a": _make_result("A"),
            "owner/b": FetchError("owner/b", "down"),
            "owner/c": _make_result("C"),
        }

        sequential = PipelineController(config, _FakeFetcher(outcomes)).run(
            now=FIXED_NOW
        )
        parallel = PipelineController(
            config, _FakeFetcher(outcomes), max_workers=3
        ).run(now=FIXED_NOW)

        assert parallel.feed.headlines == sequential.feed.headlines
        assert parallel.feed.categories == sequential.feed.categories
        assert parallel.warnings == sequential.warnings
