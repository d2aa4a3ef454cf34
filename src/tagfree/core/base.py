"""Result records and error types shared by the conversion pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

LOG = logging.getLogger(__name__)


class OutputStatus(Enum):
    """Terminal status of one (source, format) conversion."""

    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


class CopyStatus(Enum):
    """Outcome of mirroring a source file into the output tree."""

    OK = "ok"
    FAILED = "failed"


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` down to at most ``limit`` characters."""
    if limit < 0:
        return text
    return text[:limit]


@dataclass
class OutputRecord:
    """Result of converting one source file into one target format."""

    format: str
    status: OutputStatus
    path: str = ""
    reason: str | None = None
    had_tags: bool | None = None
    encoder: str | None = None
    mime_type: str | None = None
    duration: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Return the manifest representation of this output."""
        data: dict[str, Any] = {
            "format": self.format,
            "path": self.path,
            "status": self.status.value,
        }
        if self.mime_type is not None:
            data["mime_type"] = self.mime_type
        if self.encoder is not None:
            data["encoder"] = self.encoder
        if self.status is OutputStatus.OK:
            data["had_tags"] = bool(self.had_tags)
        elif self.reason is not None:
            data["reason"] = self.reason
        return data


@dataclass
class CopyRecord:
    """Mirrored copy of a source file."""

    path: str
    status: CopyStatus
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the manifest representation of this copy."""
        data: dict[str, Any] = {"path": self.path, "status": self.status.value}
        if self.reason is not None:
            data["reason"] = self.reason
        return data


@dataclass
class FileRecord:
    """All outcomes for a single source file."""

    source: str
    copy: CopyRecord | None = None
    outputs: list[OutputRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the manifest representation of this file."""
        return {
            "source": self.source,
            "copy": self.copy.to_dict() if self.copy else None,
            "outputs": [output.to_dict() for output in self.outputs],
        }


class ProcessingError(Exception):
    """Base exception for pipeline errors."""

    def __init__(
        self,
        message: str,
        file_path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.file_path = file_path
        self.cause = cause


class PreconditionError(ProcessingError):
    """A run-level requirement is not met; nothing has been converted."""


class CapabilityError(PreconditionError):
    """The encoder binary could not report its encoders."""


class FormatSelectionError(PreconditionError):
    """None of the requested target formats is known."""


class EnumerationError(ProcessingError):
    """The source root could not be scanned."""
