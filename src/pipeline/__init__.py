"""Pipeline controller and the contracts of its external collaborators."""

from src.pipeline.controller import PipelineController, PipelineResult, SourceRunResult
from src.pipeline.errors import (
    CacheError,
    FetchError,
    FetchErrorClass,
    PipelineFailedError,
    RateLimitExhaustedError,
    SourceWarning,
)
from src.pipeline.protocols import FeedCache, SourceFetcher
from src.pipeline.state_machine import (
    ControllerState,
    ControllerStateMachine,
    ControllerStateTransitionError,
    SourceState,
    SourceStateMachine,
    SourceStateTransitionError,
)


__all__ = [
    "CacheError",
    "ControllerState",
    "ControllerStateMachine",
    "ControllerStateTransitionError",
    "FeedCache",
    "FetchError",
    "FetchErrorClass",
    "PipelineController",
    "PipelineFailedError",
    "PipelineResult",
    "RateLimitExhaustedError",
    "SourceFetcher",
    "SourceRunResult",
    "SourceState",
    "SourceStateMachine",
    "SourceStateTransitionError",
    "SourceWarning",
]
