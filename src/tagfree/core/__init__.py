"""Core conversion pipeline: probing, enumeration, conversion, audit and manifest."""

from .audit import TECHNICAL_TAGS, TagAuditor, has_residual_tags
from .base import (
    CapabilityError,
    CopyRecord,
    CopyStatus,
    EnumerationError,
    FileRecord,
    FormatSelectionError,
    OutputRecord,
    OutputStatus,
    PreconditionError,
    ProcessingError,
)
from .converter import ConversionTask, Converter, build_conversion_command
from .ffmpeg import EncoderProbe, FFmpegError, discover_encoders
from .file_manager import FileManager
from .formats import DEFAULT_FORMATS, FormatSpec, ResolvedFormat, resolve_formats, select_formats
from .manifest import Manifest, ManifestBuilder, write_manifest
from .pipeline import PipelineResult, PipelineSettings, run_pipeline
from .runner import CommandResult, CommandRunner, SubprocessRunner
from .sources import list_sources

__all__ = [
    "DEFAULT_FORMATS",
    "TECHNICAL_TAGS",
    "CapabilityError",
    "CommandResult",
    "CommandRunner",
    "ConversionTask",
    "Converter",
    "CopyRecord",
    "CopyStatus",
    "EncoderProbe",
    "EnumerationError",
    "FFmpegError",
    "FileManager",
    "FileRecord",
    "FormatSelectionError",
    "FormatSpec",
    "Manifest",
    "ManifestBuilder",
    "OutputRecord",
    "OutputStatus",
    "PipelineResult",
    "PipelineSettings",
    "PreconditionError",
    "ProcessingError",
    "ResolvedFormat",
    "SubprocessRunner",
    "TagAuditor",
    "build_conversion_command",
    "discover_encoders",
    "has_residual_tags",
    "list_sources",
    "resolve_formats",
    "run_pipeline",
    "select_formats",
    "write_manifest",
]
