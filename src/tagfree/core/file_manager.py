"""Output tree management: mirrored source copies and destination paths."""

from __future__ import annotations

import logging
import shutil
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .base import CopyRecord, CopyStatus, ProcessingError, truncate

LOG = logging.getLogger(__name__)


@dataclass
class FileOperation:
    """A single file operation performed during the run."""

    operation_type: str
    source_path: Path
    target_path: Path | None = None
    success: bool = False
    timestamp: float = 0.0

    def __post_init__(self) -> None:
        """Set timestamp if not provided."""
        if self.timestamp == 0.0:
            self.timestamp = time.time()


class FileManager:
    """Maps sources into the output tree and mirrors originals."""

    def __init__(self, input_root: Path, output_root: Path, max_reason_length: int = 4000) -> None:
        self.input_root = Path(input_root)
        self.output_root = Path(output_root)
        self.max_reason_length = max_reason_length
        self.session_operations: list[FileOperation] = []
        self._lock = threading.Lock()

    def relative_path(self, source: Path) -> Path:
        """Path of ``source`` relative to the input root."""
        try:
            return Path(source).relative_to(self.input_root)
        except ValueError as e:
            msg = f"Source {source} is outside input root {self.input_root}"
            raise ProcessingError(msg, file_path=Path(source), cause=e) from e

    def output_dir_for(self, source: Path) -> Path:
        """Directory in the output tree that mirrors ``source``'s directory."""
        return self.output_root / self.relative_path(source).parent

    def destination_for(self, source: Path, ext: str, *, keep_suffix: bool = False) -> Path:
        """
        Destination path for ``source`` converted to extension ``ext``.

        ``sub/a.mp3`` becomes ``sub/a.flac``, or ``sub/a.mp3.flac`` with
        ``keep_suffix`` for when another output already claims the short name.
        """
        name = Path(source).name if keep_suffix else Path(source).stem
        return self.output_dir_for(source) / f"{name}.{ext}"

    def mirror_target(self, source: Path) -> Path:
        """Where :meth:`mirror` copies ``source`` to."""
        return self.output_dir_for(source) / Path(source).name

    def _track(self, operation: FileOperation) -> None:
        with self._lock:
            self.session_operations.append(operation)

    def mirror(self, source: Path) -> CopyRecord:
        """Copy ``source`` unchanged into the output tree."""
        target = self.mirror_target(source)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except (OSError, shutil.Error) as e:
            LOG.warning("Failed to mirror %s: %s", source, e)
            self._track(FileOperation("mirror", Path(source), target, success=False))
            return CopyRecord(
                path=str(target),
                status=CopyStatus.FAILED,
                reason=truncate(str(e), self.max_reason_length),
            )

        LOG.debug("Mirrored %s -> %s", source, target)
        self._track(FileOperation("mirror", Path(source), target, success=True))
        return CopyRecord(path=str(target), status=CopyStatus.OK)

    def get_session_summary(self) -> dict[str, Any]:
        """Get summary of file operations in this session."""
        with self._lock:
            operations = list(self.session_operations)
        successful_ops = [op for op in operations if op.success]

        return {
            "total_operations": len(operations),
            "successful_operations": len(successful_ops),
            "failed_operations": len(operations) - len(successful_ops),
            "operations": operations,
        }
