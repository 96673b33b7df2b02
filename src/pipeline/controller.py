"""Pipeline controller: one full fetch, aggregate and rank pass."""

import threading
import time
import uuid
from collections.abc import Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog

from src.config.schemas.engine import EngineConfig
from src.config.schemas.sources import SourceConfig
from src.headlines.aggregator import HeadlineAggregator
from src.headlines.metrics import PipelineMetrics
from src.headlines.models import Feed, Headline, SourceFetchResult
from src.headlines.ranker import FeedRanker
from src.headlines.scorer import HeadlineScorer
from src.pipeline.errors import (
    FetchError,
    FetchErrorClass,
    PipelineFailedError,
    SourceWarning,
)
from src.pipeline.protocols import SourceFetcher
from src.pipeline.state_machine import (
    ControllerState,
    ControllerStateMachine,
    SourceState,
    SourceStateMachine,
)


logger = structlog.get_logger()

FetchOutcome = SourceFetchResult | FetchError


@dataclass
class SourceRunResult:
    """Result of processing a single source."""

    source_id: str
    slug: str
    state: SourceState
    headlines: list[Headline] = field(default_factory=list)
    warning: SourceWarning | None = None
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        """Check if the source was fetched and aggregated."""
        return self.state == SourceState.SOURCE_DONE


@dataclass
class PipelineResult:
    """Result of a successful pipeline run."""

    run_id: str
    feed: Feed
    started_at: datetime
    finished_at: datetime
    source_results: dict[str, SourceRunResult] = field(default_factory=dict)

    @property
    def warnings(self) -> list[SourceWarning]:
        """Get one warning per failed source, in configured order."""
        return [r.warning for r in self.source_results.values() if r.warning]

    @property
    def source_headlines(self) -> dict[str, list[Headline]]:
        """Get surviving headlines keyed by source slug."""
        return {
            r.slug: r.headlines for r in self.source_results.values() if r.success
        }

    @property
    def sources_succeeded(self) -> int:
        """Get the number of sources that succeeded."""
        return sum(1 for r in self.source_results.values() if r.success)

    @property
    def sources_failed(self) -> int:
        """Get the number of sources that failed."""
        return sum(1 for r in self.source_results.values() if not r.success)

    @property
    def duration_ms(self) -> float:
        """Get total duration in milliseconds."""
        return (self.finished_at - self.started_at).total_seconds() * 1000


class PipelineController:
    """Orchestrates fetch, aggregation and ranking for every source.

    Provides:
    - Failure isolation (one source failing doesn't stop others)
    - Optional parallel fetching with a bounded worker pool
    - Aggregation in the calling thread, in configured source order
    - Atomic publication of the finished Feed

    The published feed is the only state shared across runs. Readers see
    either the previous feed or the new one, never a partial one.
    """

    def __init__(
        self,
        config: EngineConfig,
        fetcher: SourceFetcher,
        max_workers: int = 1,
        initial_feed: Feed | None = None,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            config: Validated engine configuration.
            fetcher: Fetch collaborator.
            max_workers: Maximum parallel fetches (1 fetches sequentially).
            initial_feed: Feed to serve until the first run completes,
                typically loaded from the cache.
            metrics: Optional metrics instance.
        """
        self._config = config
        self._fetcher = fetcher
        self._max_workers = max(1, max_workers)
        self._metrics = metrics or PipelineMetrics.get_instance()
        self._state_machine = ControllerStateMachine()
        self._state_lock = threading.Lock()
        self._feed_lock = threading.Lock()
        self._current_feed = initial_feed

    @property
    def state(self) -> ControllerState:
        """Get the controller state."""
        with self._state_lock:
            return self._state_machine.state

    @property
    def current_feed(self) -> Feed | None:
        """Get the last published feed, None before the first run."""
        with self._feed_lock:
            return self._current_feed

    def run(
        self,
        run_id: str | None = None,
        now: datetime | None = None,
    ) -> PipelineResult:
        """Run one full pass over every enabled source.

        Args:
            run_id: Unique run identifier (generated when omitted).
            now: Reference time for scoring (defaults to now).

        Returns:
            PipelineResult with the published feed and per-source warnings.

        Raises:
            PipelineFailedError: If no source succeeded.
            ControllerStateTransitionError: If a run is already in progress.
        """
        run_id = run_id or str(uuid.uuid4())
        with self._state_lock:
            self._state_machine.to_running(run_id)
        try:
            return self._run(run_id, now or datetime.now(UTC))
        finally:
            with self._state_lock:
                self._state_machine.to_idle(run_id)

    def _run(self, run_id: str, now: datetime) -> PipelineResult:
        started_at = datetime.now(UTC)
        log = logger.bind(component="controller", run_id=run_id)

        sources = self._config.get_enabled_sources()
        log.info(
            "pipeline_started",
            source_count=len(self._config.sources),
            enabled_count=len(sources),
            max_workers=self._max_workers,
        )

        aggregator = HeadlineAggregator(
            category_rules=self._config.categories,
            run_id=run_id,
            scorer=HeadlineScorer(strategy=self._config.scoring.strategy, now=now),
            category_names=self._config.category_names,
            metrics=self._metrics,
        )

        source_results: dict[str, SourceRunResult] = {}
        for source, machine, outcome, fetch_ms in self._fetch_all(sources, run_id):
            start_ns = time.perf_counter_ns()
            source_log = log.bind(source_id=source.id)

            if isinstance(outcome, FetchError):
                machine.to_failed()
                aggregator.record_rate_limit(outcome.rate_limit)
                self._metrics.record_source_failure(
                    source.id, outcome.error_class.value
                )
                self._metrics.record_duration(source.id, fetch_ms)
                source_log.warning(
                    "source_failed",
                    error_class=outcome.error_class.value,
                    error=outcome.message,
                    duration_ms=round(fetch_ms, 2),
                )
                source_results[source.id] = SourceRunResult(
                    source_id=source.id,
                    slug=source.slug,
                    state=machine.state,
                    warning=SourceWarning.from_error(outcome),
                    duration_ms=fetch_ms,
                )
                continue

            machine.to_building()
            headlines = aggregator.add_source(source, outcome)
            machine.to_done()

            duration_ms = fetch_ms + (time.perf_counter_ns() - start_ns) / 1_000_000
            self._metrics.record_duration(source.id, duration_ms)
            source_log.info(
                "source_complete",
                headlines=len(headlines),
                duration_ms=round(duration_ms, 2),
            )
            source_results[source.id] = SourceRunResult(
                source_id=source.id,
                slug=source.slug,
                state=machine.state,
                headlines=headlines,
                duration_ms=duration_ms,
            )

        succeeded = sum(1 for r in source_results.values() if r.success)
        if succeeded == 0:
            warnings = [r.warning for r in source_results.values() if r.warning]
            self._metrics.record_run(failed=True)
            log.error(
                "pipeline_failed",
                sources_failed=len(warnings),
                failed_sources=[w.source_id for w in warnings],
            )
            raise PipelineFailedError(warnings, run_id=run_id)

        state = aggregator.state
        ranker = FeedRanker(
            mode=self._config.sort,
            cap=self._config.cap,
            run_id=run_id,
            metrics=self._metrics,
        )
        feed = ranker.build_feed(
            state.headlines, state.categories, state.rate_limit, generated_at=now
        )

        with self._feed_lock:
            self._current_feed = feed

        self._metrics.record_run(failed=False)
        finished_at = datetime.now(UTC)
        result = PipelineResult(
            run_id=run_id,
            feed=feed,
            started_at=started_at,
            finished_at=finished_at,
            source_results=source_results,
        )
        log.info(
            "pipeline_complete",
            duration_ms=round(result.duration_ms, 2),
            headlines=len(feed.headlines),
            sources_succeeded=result.sources_succeeded,
            sources_failed=result.sources_failed,
            rate_limit_remaining=feed.rate_limit.remaining,
        )
        return result

    def _fetch_all(
        self, sources: list[SourceConfig], run_id: str
    ) -> Iterator[tuple[SourceConfig, SourceStateMachine, FetchOutcome, float]]:
        """Yield fetch outcomes in configured source order.

        Sequential mode fetches each source only when the previous one has
        been consumed. Parallel mode submits every fetch up front and waits
        on the futures in order.
        """
        machines = [SourceStateMachine(s.id, run_id) for s in sources]

        if self._max_workers <= 1:
            for source, machine in zip(sources, machines, strict=True):
                outcome, fetch_ms = self._fetch_one(source, machine)
                yield source, machine, outcome, fetch_ms
            return

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures: list[Future[tuple[FetchOutcome, float]]] = [
                executor.submit(self._fetch_one, source, machine)
                for source, machine in zip(sources, machines, strict=True)
            ]
            for source, machine, future in zip(sources, machines, futures, strict=True):
                outcome, fetch_ms = future.result()
                yield source, machine, outcome, fetch_ms

    def _fetch_one(
        self, source: SourceConfig, machine: SourceStateMachine
    ) -> tuple[FetchOutcome, float]:
        """Fetch one source, converting any failure into a FetchError."""
        start_ns = time.perf_counter_ns()
        machine.to_fetching()
        try:
            outcome: FetchOutcome = self._fetcher.fetch_source(source)
        except FetchError as e:
            outcome = e
        except Exception as e:  # noqa: BLE001
            outcome = FetchError(
                source_id=source.id,
                message=f"Execution error: {e}",
                error_class=FetchErrorClass.UNKNOWN,
            )
        return outcome, (time.perf_counter_ns() - start_ns) / 1_000_000
