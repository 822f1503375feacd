# vocfeat/config/__init__.py

"""
Configuration management for vocfeat.

This package validates analysis settings with Pydantic and merges optional
TOML files over the built-in defaults, providing a unified configuration
object.
"""

from .models import VocfeatConfig, AnalysisConfig, ConditioningConfig, PitchConfig, LoggingConfig
from .loaders import load_configuration, build_configuration, deep_merge_dicts

__all__ = [
    "VocfeatConfig",
    "AnalysisConfig",
    "ConditioningConfig",
    "PitchConfig",
    "LoggingConfig",
    "load_configuration",
    "build_configuration",
    "deep_merge_dicts",
]
