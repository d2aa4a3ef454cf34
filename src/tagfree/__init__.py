"""tagfree - batch conversion of audio files into tag-free target formats."""

from __future__ import annotations

__version__ = "0.1.0"
__description__ = "Convert audio files into many formats with all metadata stripped"

# Public API exports
from .config import ConfigManager, TagfreeConfig, get_config
from .core import (
    DEFAULT_FORMATS,
    CapabilityError,
    EncoderProbe,
    EnumerationError,
    FFmpegError,
    FormatSelectionError,
    FormatSpec,
    Manifest,
    OutputStatus,
    PipelineResult,
    PipelineSettings,
    PreconditionError,
    ProcessingError,
    SubprocessRunner,
    TagAuditor,
    list_sources,
    run_pipeline,
)

__all__ = [
    # Configuration
    "ConfigManager",
    "TagfreeConfig",
    "get_config",
    # Pipeline
    "DEFAULT_FORMATS",
    "EncoderProbe",
    "FormatSpec",
    "Manifest",
    "PipelineResult",
    "PipelineSettings",
    "SubprocessRunner",
    "TagAuditor",
    "list_sources",
    "run_pipeline",
    # Enums
    "OutputStatus",
    # Exceptions
    "CapabilityError",
    "EnumerationError",
    "FFmpegError",
    "FormatSelectionError",
    "PreconditionError",
    "ProcessingError",
]
