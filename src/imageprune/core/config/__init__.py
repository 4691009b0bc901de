"""
Configuration Management Package

Provides Pydantic-based configuration models and management for ImagePrune.
"""

from imageprune.core.config.models import (
    AppConfig, InventoryConfig, FilterConfig, PruneConfig, LoggingConfig, OutputConfig
)
from imageprune.core.config.manager import ConfigManager

__all__ = [
    "AppConfig",
    "InventoryConfig",
    "FilterConfig",
    "PruneConfig",
    "LoggingConfig",
    "OutputConfig",
    "ConfigManager",
]
