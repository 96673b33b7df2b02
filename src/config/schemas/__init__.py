"""Configuration schema definitions."""

from src.config.schemas.base import (
    DefaultPolicy,
    RuleAction,
    RuleTarget,
    ScoringStrategy,
    SortMode,
)
from src.config.schemas.engine import CategoryRule, EngineConfig, ScoringConfig
from src.config.schemas.sources import CustomRule, SourceConfig, SourceRules


__all__ = [
    "CategoryRule",
    "CustomRule",
    "DefaultPolicy",
    "EngineConfig",
    "RuleAction",
    "RuleTarget",
    "ScoringConfig",
    "ScoringStrategy",
    "SortMode",
    "SourceConfig",
    "SourceRules",
]
