"""Shared pytest fixtures."""

from collections.abc import Iterator

import pytest

from src.headlines.metrics import PipelineMetrics


@pytest.fixture(autouse=True)
def reset_pipeline_metrics() -> Iterator[None]:
    """Give every test a fresh metrics singleton."""
    PipelineMetrics.reset()
    yield
    PipelineMetrics.reset()
