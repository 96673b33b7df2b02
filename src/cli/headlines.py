"""CLI commands for the headline feed."""

import json
import sys
import uuid
from pathlib import Path

import click
import structlog
import yaml
from pydantic import ValidationError

from src.cache import JsonFeedCache
from src.config.constants import COMPONENT_CLI
from src.config.error_hints import format_validation_error
from src.config.loader import ConfigLoader
from src.config.schemas.engine import EngineConfig
from src.config.state_machine import ConfigState
from src.fetch import FetchConfig, TwitterListFetcher
from src.headlines.metrics import PipelineMetrics
from src.headlines.models import Feed
from src.observability.logging import (
    bind_run_context,
    configure_logging,
    level_for_verbosity,
)
from src.pipeline import (
    CacheError,
    FeedCache,
    PipelineController,
    PipelineFailedError,
    PipelineResult,
)
from src.settings import AppSettings, get_settings


logger = structlog.get_logger()


def _echo_json(document: object) -> None:
    click.echo(json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False))


def _load_configuration(
    config_path: Path, run_id: str, log: structlog.typing.FilteringBoundLogger
) -> EngineConfig:
    """Load and validate configuration, exit on failure.

    Args:
        config_path: Engine configuration file.
        run_id: Run identifier.
        log: Logger instance.

    Returns:
        Validated engine configuration.
    """
    loader = ConfigLoader(run_id=run_id)

    try:
        config = loader.load(config_path)
    except (ValidationError, FileNotFoundError, yaml.YAMLError) as e:
        log.warning(
            "config_load_failed",
            error=str(e),
            validation_errors=loader.validation_errors,
        )

        click.echo("Configuration validation failed:", err=True)
        for error in loader.validation_errors:
            formatted = format_validation_error(
                location=error["loc"],
                message=error["msg"],
                error_type=error.get("type", "unknown"),
                include_hint=True,
            )
            click.echo(f"  - {formatted}", err=True)
        sys.exit(1)

    if loader.state != ConfigState.READY:
        log.error("unexpected_state", state=loader.state.name)
        sys.exit(1)

    log.info(
        "config_validated",
        sources_count=len(config.sources),
        categories=config.category_names,
        config_checksum=loader.file_checksum,
    )
    return config


def _build_fetcher(settings: AppSettings, run_id: str) -> TwitterListFetcher:
    """Create the fetch collaborator, exit when no credentials are set."""
    if not settings.has_credentials or settings.twitter_bearer_token is None:
        click.echo("Error: TWITTER_BEARER_TOKEN is not set", err=True)
        sys.exit(1)
    return TwitterListFetcher(
        bearer_token=settings.twitter_bearer_token,
        config=FetchConfig(base_url=settings.twitter_api_base_url),
        run_id=run_id,
    )


def _load_initial_feed(
    cache: FeedCache, log: structlog.typing.FilteringBoundLogger
) -> Feed | None:
    """Load the cached feed to serve until the run completes."""
    try:
        return cache.load_cached_feed()
    except CacheError as e:
        log.warning("cached_feed_unusable", path=e.path, error=e.message)
        return None


def _save_result(
    cache: FeedCache,
    result: PipelineResult,
    log: structlog.typing.FilteringBoundLogger,
) -> None:
    """Persist per-source snapshots and the combined feed, exit on failure."""
    try:
        for slug, headlines in result.source_headlines.items():
            cache.save_source_headlines(slug, headlines)
        cache.save_feed(result.feed)
    except CacheError as e:
        log.error("cache_save_failed", path=e.path, error=e.message)
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)


def _summarize(result: PipelineResult) -> dict[str, object]:
    """Build the run summary printed on stdout."""
    feed = result.feed
    return {
        "run_id": result.run_id,
        "duration_ms": round(result.duration_ms, 2),
        "sources_succeeded": result.sources_succeeded,
        "sources_failed": result.sources_failed,
        "headlines": len(feed.headlines),
        "categories": {name: len(items) for name, items in feed.categories.items()},
        "category_headlines": feed.total_category_headlines,
        "rate_limit": feed.rate_limit.model_dump(),
        "warnings": [w.model_dump(mode="json") for w in result.warnings],
        "metrics": PipelineMetrics.get_instance().to_dict(),
    }


@click.group()
@click.version_option(version="0.1.0")
def cli() -> None:
    """Headline feed CLI."""


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to the engine configuration file (default: $HEADLINES_CONFIG).",
)
@click.option(
    "--cache-dir",
    "cache_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for cached feed files (default: $HEADLINES_CACHE_DIR).",
)
@click.option(
    "--max-workers",
    type=click.IntRange(min=1),
    default=1,
    help="Maximum parallel list fetches (default: 1, sequential).",
)
@click.option(
    "--json-logs/--console-logs",
    default=True,
    help="Use JSON format for logs (default: JSON).",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase log verbosity (-v info, -vv debug).",
)
def run(
    config_path: Path | None,
    cache_dir: Path | None,
    max_workers: int,
    json_logs: bool,
    verbose: int,
) -> None:
    """Fetch every source, rebuild the feed and update the cache.

    The cached feed stays in place when no source can be fetched.
    """
    run_id = str(uuid.uuid4())
    configure_logging(level=level_for_verbosity(verbose), json_format=json_logs)
    bind_run_context(run_id, command="run")

    settings = get_settings()
    config_path = config_path or settings.headlines_config
    cache = JsonFeedCache(cache_dir or settings.headlines_cache_dir)

    log = logger.bind(run_id=run_id, component=COMPONENT_CLI, command="run")
    log.info(
        "headlines_run_started",
        config_path=str(config_path),
        cache_dir=str(cache.cache_dir),
        max_workers=max_workers,
    )

    config = _load_configuration(config_path, run_id, log)
    controller = PipelineController(
        config=config,
        fetcher=_build_fetcher(settings, run_id),
        max_workers=max_workers,
        initial_feed=_load_initial_feed(cache, log),
    )

    try:
        result = controller.run(run_id=run_id)
    except PipelineFailedError as e:
        click.echo(f"Error: {e}", err=True)
        _echo_json(
            {
                "run_id": run_id,
                "warnings": [w.model_dump(mode="json") for w in e.warnings],
            }
        )
        sys.exit(1)

    _save_result(cache, result, log)
    _echo_json(_summarize(result))


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to the engine configuration file (default: $HEADLINES_CONFIG).",
)
def validate(config_path: Path | None) -> None:
    """Validate the engine configuration without fetching anything."""
    run_id = str(uuid.uuid4())
    configure_logging(level=level_for_verbosity(0), json_format=False)
    bind_run_context(run_id, command="validate")

    config_path = config_path or get_settings().headlines_config
    loader = ConfigLoader(run_id=run_id)

    try:
        config = loader.load(config_path)
    except (ValidationError, FileNotFoundError, yaml.YAMLError):
        click.echo("Configuration validation failed:", err=True)
        for error in loader.validation_errors:
            formatted = format_validation_error(
                location=error["loc"],
                message=error["msg"],
                error_type=error.get("type", "unknown"),
                include_hint=True,
            )
            click.echo(f"  - {formatted}", err=True)
        sys.exit(1)

    click.echo("Configuration is valid!")
    click.echo(
        f"  Sources: {len(config.sources)} "
        f"({len(config.get_enabled_sources())} enabled)"
    )
    click.echo(f"  Categories: {', '.join(config.category_names)}")
    click.echo(f"  Sort: {config.sort.value} (cap {config.cap})")
    click.echo(f"  Scoring: {config.scoring.strategy.value}")
    click.echo(f"  Checksum: {loader.file_checksum}")


@cli.command()
@click.option(
    "--cache-dir",
    "cache_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for cached feed files (default: $HEADLINES_CACHE_DIR).",
)
@click.option(
    "--category",
    default=None,
    help="Print only this category's headlines.",
)
def show(cache_dir: Path | None, category: str | None) -> None:
    """Print the cached feed as JSON."""
    configure_logging(level=level_for_verbosity(0), json_format=False)
    cache = JsonFeedCache(cache_dir or get_settings().headlines_cache_dir)

    try:
        feed = cache.load_cached_feed()
    except CacheError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    if feed is None:
        click.echo(f"No cached feed in {cache.cache_dir}", err=True)
        sys.exit(1)

    if category is None:
        _echo_json(feed.model_dump(mode="json"))
        return

    if category not in feed.categories:
        known = ", ".join(feed.categories)
        click.echo(f"Unknown category '{category}'. Known: {known}", err=True)
        sys.exit(1)
    _echo_json([h.model_dump(mode="json") for h in feed.category(category)])


@cli.command("rate-limit")
def rate_limit() -> None:
    """Print the current list timeline rate-limit snapshot."""
    run_id = str(uuid.uuid4())
    configure_logging(level=level_for_verbosity(0), json_format=False)
    bind_run_context(run_id, command="rate-limit")

    fetcher = _build_fetcher(get_settings(), run_id)
    _echo_json(fetcher.get_rate_limit().model_dump())


if __name__ == "__main__":
    cli()
