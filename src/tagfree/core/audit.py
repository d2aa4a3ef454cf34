"""Post-conversion check for leftover metadata."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .runner import CommandRunner

LOG = logging.getLogger(__name__)

# Keys written by the muxer/encoder itself rather than by a user
TECHNICAL_TAGS = frozenset(
    {
        "major_brand",
        "minor_version",
        "compatible_brands",
        "encoder",
        "encoded_by",
        "creation_time",
        "date",
        "language",
        "handler_name",
    }
)
PROBE_TIMEOUT = 30


def _tag_keys(section: Any) -> list[str]:
    if not isinstance(section, dict):
        return []
    tags = section.get("tags")
    if not isinstance(tags, dict):
        return []
    return [str(key) for key in tags]


class TagAuditor:
    """Inspect produced files with ``ffprobe`` for non-technical tags."""

    def __init__(
        self,
        runner: CommandRunner,
        ffprobe: str = "ffprobe",
        technical_tags: Iterable[str] = TECHNICAL_TAGS,
        timeout: float | None = PROBE_TIMEOUT,
    ) -> None:
        self.runner = runner
        self.ffprobe = ffprobe
        self.technical_tags = frozenset(tag.lower() for tag in technical_tags)
        self.timeout = timeout

    def _probe_tags(self, file_path: Path) -> dict[str, Any] | None:
        command = [
            self.ffprobe,
            "-v",
            "quiet",
            "-show_entries",
            "format_tags:stream_tags",
            "-of",
            "json",
            str(file_path),
        ]
        result = self.runner.run(command, timeout=self.timeout)
        if not result.ok:
            LOG.debug("ffprobe failed for %s (exit code %d)", file_path, result.returncode)
            return None

        try:
            data = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            LOG.debug("Invalid JSON from ffprobe for %s: %s", file_path, e)
            return None
        return data if isinstance(data, dict) else None

    def residual_tags(self, file_path: Path) -> list[str]:
        """
        Return tag keys in ``file_path`` that are not on the technical allow-list.

        Both container-level and stream-level tags are checked and the key
        comparison is case-insensitive. Inspection failures yield an empty
        list.
        """
        data = self._probe_tags(Path(file_path))
        if data is None:
            return []

        keys = _tag_keys(data.get("format"))
        streams = data.get("streams")
        if isinstance(streams, list):
            for stream in streams:
                keys.extend(_tag_keys(stream))

        residual = []
        for key in keys:
            if key.lower() not in self.technical_tags and key not in residual:
                residual.append(key)
        return residual

    def has_residual_tags(self, file_path: Path) -> bool:
        """Whether ``file_path`` still carries user metadata (fail-open)."""
        residual = self.residual_tags(file_path)
        if residual:
            LOG.warning("Residual tags in %s: %s", file_path, ", ".join(residual))
        return bool(residual)


def has_residual_tags(file_path: Path, runner: CommandRunner, ffprobe: str = "ffprobe") -> bool:
    """Audit one file with the default allow-list."""
    return TagAuditor(runner, ffprobe).has_residual_tags(file_path)
