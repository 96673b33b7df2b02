"""Configuration loading and validation module."""

from src.config.loader import ConfigLoader
from src.config.schemas.engine import EngineConfig
from src.config.state_machine import ConfigState, ConfigStateError


__all__ = [
    "ConfigLoader",
    "ConfigState",
    "ConfigStateError",
    "EngineConfig",
]
