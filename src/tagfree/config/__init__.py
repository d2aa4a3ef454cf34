"""Configuration management for tagfree."""

from __future__ import annotations

from .constants import *  # noqa: F403, F401
from .manager import ConfigManager, ProcessingOptions, with_config_overrides
from .settings import TagfreeConfig, get_config

__all__ = [
    "ConfigManager",
    "ProcessingOptions",
    "TagfreeConfig",
    "get_config",
    "with_config_overrides",
]
