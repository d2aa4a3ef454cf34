"""Run manifest accumulation and serialisation."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from .base import FileRecord, OutputRecord, OutputStatus

if TYPE_CHECKING:
    from pathlib import Path

LOG = logging.getLogger(__name__)


@dataclass
class Manifest:
    """Every file processed in a run plus summary counters."""

    files: list[FileRecord] = field(default_factory=list)
    ok: int = 0
    skipped: int = 0
    failed: int = 0
    tag_warning: bool = False
    generated_at: str = ""

    @property
    def outputs(self) -> list[OutputRecord]:
        """All output records, flattened in file order."""
        return [output for record in self.files for output in record.outputs]

    def summary(self) -> dict[str, Any]:
        """Summary counters and the residual-tag warning."""
        return {
            "ok": self.ok,
            "skipped": self.skipped,
            "failed": self.failed,
            "tag_warning": self.tag_warning,
        }

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-serialisable form of the manifest."""
        return {
            "generated_at": self.generated_at,
            "summary": self.summary(),
            "files": [record.to_dict() for record in self.files],
        }


class ManifestBuilder:
    """Thread-safe, append-only collector of file records."""

    def __init__(self) -> None:
        self._records: list[FileRecord] = []
        self._lock = threading.Lock()

    def record(self, file_record: FileRecord) -> None:
        """Append a finished file record."""
        with self._lock:
            self._records.append(file_record)

    def finalize(self) -> Manifest:
        """Fold all records into a :class:`Manifest`."""
        with self._lock:
            files = list(self._records)

        counts = dict.fromkeys(OutputStatus, 0)
        tag_warning = False
        for record in files:
            for output in record.outputs:
                counts[output.status] += 1
                if output.status is OutputStatus.OK and output.had_tags:
                    tag_warning = True

        return Manifest(
            files=files,
            ok=counts[OutputStatus.OK],
            skipped=counts[OutputStatus.SKIPPED],
            failed=counts[OutputStatus.FAILED],
            tag_warning=tag_warning,
            generated_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )


def write_manifest(manifest: Manifest, path: Path) -> Path:
    """Write ``manifest`` as indented JSON to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(manifest.to_dict(), f, indent=2)
        f.write("\n")
    LOG.info("Wrote manifest with %d files to %s", len(manifest.files), path)
    return path
