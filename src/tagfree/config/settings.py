"""Configuration management for tagfree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..core.formats import DEFAULT_FORMATS, FormatSpec, build_catalogue, template_args
from .constants import DEFAULT_CONFIG_NAME, DEFAULT_MANIFEST_NAME, DEFAULT_MAX_REASON_LENGTH

LOG = logging.getLogger(__name__)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class _ConfigSingleton:
    """Configuration singleton holder."""

    _instance: TagfreeConfig | None = None

    @classmethod
    def get_instance(cls) -> TagfreeConfig:
        """Get the configuration instance."""
        if cls._instance is None:
            config_path = Path.cwd() / DEFAULT_CONFIG_NAME
            if config_path.exists():
                cls._instance = TagfreeConfig.load_from_file(config_path)
            else:
                cls._instance = TagfreeConfig()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the configuration instance."""
        cls._instance = None


_config_singleton = _ConfigSingleton()


@dataclass
class GlobalConfig:
    """Global settings."""

    log_level: str = "WARNING"
    workers: int | None = None
    ffmpeg: str = "ffmpeg"
    ffprobe: str = "ffprobe"
    timeout: float | None = None


@dataclass
class SourceConfig:
    """Which input files are picked up and whether they are mirrored."""

    extensions: list[str] = field(default_factory=lambda: [".mp3"])
    mirror: bool = True


@dataclass
class OutputConfig:
    """Manifest settings."""

    manifest_name: str = DEFAULT_MANIFEST_NAME
    max_reason_length: int = DEFAULT_MAX_REASON_LENGTH


@dataclass
class AuditConfig:
    """Tag audit settings."""

    extra_technical_tags: list[str] = field(default_factory=list)


@dataclass
class TagfreeConfig:
    """Main configuration class."""

    global_: GlobalConfig = field(default_factory=GlobalConfig)
    sources: SourceConfig = field(default_factory=SourceConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    audit: AuditConfig = field(default_factory=AuditConfig)
    formats: dict[str, FormatSpec] = field(default_factory=dict)

    @classmethod
    def load_from_file(cls, config_path: Path) -> TagfreeConfig:
        """Load configuration from YAML file."""
        try:
            with config_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            LOG.warning("Failed to load config from %s: %s", config_path, e)
            return cls()

        if not isinstance(data, dict):
            LOG.warning("Ignoring config %s: top level must be a mapping", config_path)
            return cls()
        return cls._from_dict(data)

    def format_catalogue(self) -> list[FormatSpec]:
        """Built-in formats merged with configured ones."""
        return build_catalogue(self.formats)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> TagfreeConfig:
        """Create config from dictionary."""
        return cls(
            global_=cls._parse_global_config(data.get("global") or {}),
            sources=cls._parse_source_config(data.get("sources") or {}),
            output=cls._parse_output_config(data.get("output") or {}),
            audit=cls._parse_audit_config(data.get("audit") or {}),
            formats=cls._parse_formats(data.get("formats") or {}),
        )

    @classmethod
    def _parse_global_config(cls, global_data: dict[str, Any]) -> GlobalConfig:
        """Parse global configuration."""
        log_level = str(global_data.get("log_level", "WARNING")).upper()
        if log_level not in VALID_LOG_LEVELS:
            LOG.warning("Invalid log level '%s'. Using 'WARNING'.", log_level)
            log_level = "WARNING"

        workers = global_data.get("workers")
        if workers is not None and (not isinstance(workers, int) or workers < 1):
            LOG.warning("Invalid worker count '%s'. Using automatic detection.", workers)
            workers = None

        timeout = global_data.get("timeout")
        if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
            LOG.warning("Invalid timeout '%s'. Conversions will not time out.", timeout)
            timeout = None

        return GlobalConfig(
            log_level=log_level,
            workers=workers,
            ffmpeg=str(global_data.get("ffmpeg", "ffmpeg")),
            ffprobe=str(global_data.get("ffprobe", "ffprobe")),
            timeout=timeout,
        )

    @classmethod
    def _parse_source_config(cls, source_data: dict[str, Any]) -> SourceConfig:
        """Parse source configuration."""
        extensions = source_data.get("extensions", [".mp3"])
        if isinstance(extensions, str):
            extensions = [extensions]
        return SourceConfig(
            extensions=[str(ext) for ext in extensions],
            mirror=bool(source_data.get("mirror", True)),
        )

    @classmethod
    def _parse_output_config(cls, output_data: dict[str, Any]) -> OutputConfig:
        """Parse output configuration."""
        max_reason_length = output_data.get("max_reason_length", DEFAULT_MAX_REASON_LENGTH)
        if not isinstance(max_reason_length, int) or max_reason_length < 0:
            LOG.warning("Invalid max_reason_length '%s'. Using %d.", max_reason_length, DEFAULT_MAX_REASON_LENGTH)
            max_reason_length = DEFAULT_MAX_REASON_LENGTH
        return OutputConfig(
            manifest_name=str(output_data.get("manifest_name", DEFAULT_MANIFEST_NAME)),
            max_reason_length=max_reason_length,
        )

    @classmethod
    def _parse_audit_config(cls, audit_data: dict[str, Any]) -> AuditConfig:
        """Parse tag audit configuration."""
        extra = audit_data.get("extra_technical_tags") or []
        if isinstance(extra, str):
            extra = [extra]
        return AuditConfig(extra_technical_tags=[str(tag).lower() for tag in extra])

    @classmethod
    def _parse_formats(cls, formats_data: dict[str, Any]) -> dict[str, FormatSpec]:
        """Parse configured target formats."""
        builtin = {spec.key: spec for spec in DEFAULT_FORMATS}
        formats = {}
        for name, format_data in formats_data.items():
            key = str(name).strip().lower()
            if not isinstance(format_data, dict) or "encoders" not in format_data:
                LOG.warning("Incomplete format data for '%s': missing encoders", key)
                continue

            encoders = format_data["encoders"]
            if isinstance(encoders, str):
                encoders = [encoders]
            base = builtin.get(key)
            codec_args = format_data.get("codec_args")
            if isinstance(codec_args, str):
                codec_args = codec_args.split()
            if codec_args is None and base is None:
                codec_args = ["-c:a", "{encoder}"]

            try:
                build_args = (
                    template_args([str(arg) for arg in codec_args]) if codec_args is not None else base.build_args
                )
                formats[key] = FormatSpec(
                    key=key,
                    ext=str(format_data.get("ext", base.ext if base else key)).lstrip("."),
                    encoders=tuple(str(encoder) for encoder in encoders),
                    build_args=build_args,
                    container_extras=tuple(
                        str(arg)
                        for arg in format_data.get("container_extras", base.container_extras if base else ())
                    ),
                    mime_type=str(
                        format_data.get("mime_type", base.mime_type if base else "application/octet-stream")
                    ),
                )
            except (TypeError, ValueError) as e:
                LOG.warning("Failed to load format '%s': %s", key, e)

        return formats


def get_config() -> TagfreeConfig:
    """Get the global configuration instance."""
    return _config_singleton.get_instance()
