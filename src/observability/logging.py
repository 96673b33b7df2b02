"""Structured logging configuration."""

import logging
import sys
from typing import TextIO

import structlog


def level_for_verbosity(verbose: int) -> int:
    """Map a -v count to a logging level.

    Args:
        verbose: Number of -v flags given.

    Returns:
        WARNING for 0, INFO for 1, DEBUG for 2 or more.
    """
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structured logging for the application.

    Log events go to ``output`` (stderr by default) so that command output
    on stdout stays machine readable.

    Args:
        level: Logging level (default: INFO).
        output: Output stream (default: stderr).
        json_format: Whether to use JSON format (default: True).
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=output.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=False,
    )

    # httpx logs every request at INFO through the standard library
    logging.basicConfig(format="%(message)s", stream=output, level=level)
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def bind_run_context(run_id: str, **context: str) -> None:
    """Bind run context to all subsequent log messages.

    Args:
        run_id: Unique run identifier.
        **context: Extra fields such as the command name.
    """
    structlog.contextvars.bind_contextvars(run_id=run_id, **context)


def clear_run_context() -> None:
    """Clear all bound run context from log messages."""
    structlog.contextvars.clear_contextvars()
