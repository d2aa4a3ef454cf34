"""Configuration access with temporary overrides."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..core.audit import TECHNICAL_TAGS
from ..core.pipeline import PipelineSettings
from .settings import TagfreeConfig
from .settings import get_config as _get_global_config

if TYPE_CHECKING:
    from pathlib import Path

LOG = logging.getLogger(__name__)


@dataclass
class ProcessingOptions:
    """Processing options that can override configuration."""

    workers: int | None = None
    timeout: float | None = None
    mirror: bool | None = None


class ConfigManager:
    """Configuration manager with context support."""

    def __init__(self, config_path: Path | None = None) -> None:
        """
        Initialize configuration manager.

        Args:
            config_path: Optional path to config file

        """
        self._config = TagfreeConfig.load_from_file(config_path) if config_path else _get_global_config()
        self._overrides: dict[str, Any] = {}
        self._context_stack: list[dict[str, Any]] = []

    @property
    def config(self) -> TagfreeConfig:
        """Get the base configuration."""
        return self._config

    def get_value(self, key_path: str, default: object = None) -> Any:
        """Get configuration value with override support."""
        if key_path in self._overrides:
            return self._overrides[key_path]

        try:
            value: Any = self._config
            for part in key_path.split("."):
                value = getattr(value, part)
        except AttributeError:
            return default
        else:
            return value

    def pipeline_settings(self, *, show_progress: bool = True) -> PipelineSettings:
        """Build run settings from the configuration and active overrides."""
        extra_tags = self.get_value("audit.extra_technical_tags", []) or []
        return PipelineSettings(
            formats=self._config.format_catalogue(),
            source_extensions=tuple(self.get_value("sources.extensions", [".mp3"])),
            mirror_sources=bool(self.get_value("sources.mirror", True)),
            workers=self.get_value("global_.workers"),
            ffmpeg=self.get_value("global_.ffmpeg", "ffmpeg"),
            ffprobe=self.get_value("global_.ffprobe", "ffprobe"),
            timeout=self.get_value("global_.timeout"),
            max_reason_length=self.get_value("output.max_reason_length", 4000),
            manifest_name=self.get_value("output.manifest_name", "manifest.json"),
            technical_tags=TECHNICAL_TAGS | {tag.lower() for tag in extra_tags},
            show_progress=show_progress,
        )

    def set_override(self, key_path: str, value: object) -> None:
        """Set a temporary configuration override."""
        self._overrides[key_path] = value

    def push_context(self, overrides: dict[str, Any]) -> None:
        """Push a new configuration context."""
        self._context_stack.append(self._overrides.copy())
        self._overrides.update(overrides)

    def pop_context(self) -> None:
        """Pop the current configuration context."""
        if self._context_stack:
            self._overrides = self._context_stack.pop()

    def apply_processing_options(self, options: ProcessingOptions) -> None:
        """Apply processing options as configuration overrides."""
        overrides: dict[str, Any] = {}

        if options.workers is not None:
            overrides["global_.workers"] = options.workers
        if options.timeout is not None:
            overrides["global_.timeout"] = options.timeout
        if options.mirror is not None:
            overrides["sources.mirror"] = options.mirror

        for key, value in overrides.items():
            self.set_override(key, value)


class ConfigContext:
    """Context manager for temporary configuration changes."""

    def __init__(self, config_manager: ConfigManager, overrides: dict[str, Any]) -> None:
        self.config_manager = config_manager
        self.overrides = overrides

    def __enter__(self) -> ConfigManager:
        """Enter the configuration context."""
        self.config_manager.push_context(self.overrides)
        return self.config_manager

    def __exit__(self, _exc_type: object, _exc_val: object, _exc_tb: object) -> None:
        """Exit the configuration context."""
        self.config_manager.pop_context()


def with_config_overrides(config_manager: ConfigManager, **overrides: object) -> ConfigContext:
    """Create a context with configuration overrides."""
    return ConfigContext(config_manager, overrides)
