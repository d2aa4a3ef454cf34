"""Tag-stripping conversion of one source file into one target format."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .base import OutputRecord, OutputStatus, truncate

if TYPE_CHECKING:
    from .audit import TagAuditor
    from .formats import FormatSpec
    from .runner import CommandRunner

LOG = logging.getLogger(__name__)

DEFAULT_MAX_REASON_LENGTH = 4000


@dataclass(frozen=True)
class ConversionTask:
    """One (source, format) pair ready to be converted."""

    source: Path
    spec: FormatSpec
    encoder: str
    destination: Path


def build_conversion_command(
    input_file: Path,
    output_file: Path,
    encoder: str,
    spec: FormatSpec,
    ffmpeg: str = "ffmpeg",
) -> list[str]:
    """
    Build the ffmpeg command converting ``input_file`` without any metadata.

    Only the first audio stream is kept; cover art, container/stream tags
    and chapters are dropped.
    """
    cmd = [
        ffmpeg,
        "-y",
        "-hide_banner",
        "-loglevel",
        "error",
        "-i",
        str(input_file),
        "-map",
        "0:a:0",
        "-vn",
        "-map_metadata",
        "-1",
        "-map_chapters",
        "-1",
    ]
    cmd.extend(spec.codec_args(encoder))
    cmd.extend(spec.container_extras)
    cmd.append(str(output_file))
    return cmd


class Converter:
    """Run ffmpeg for a conversion task and classify the outcome."""

    def __init__(
        self,
        runner: CommandRunner,
        auditor: TagAuditor,
        *,
        ffmpeg: str = "ffmpeg",
        max_reason_length: int = DEFAULT_MAX_REASON_LENGTH,
        timeout: float | None = None,
    ) -> None:
        self.runner = runner
        self.auditor = auditor
        self.ffmpeg = ffmpeg
        self.max_reason_length = max_reason_length
        self.timeout = timeout

    def convert(self, task: ConversionTask) -> OutputRecord:
        """Convert ``task.source`` and audit the result."""
        start_time = time.time()
        destination = str(task.destination)

        try:
            task.destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return OutputRecord(
                format=task.spec.key,
                status=OutputStatus.FAILED,
                path=destination,
                reason=truncate(f"Cannot create output directory: {e}", self.max_reason_length),
                encoder=task.encoder,
                mime_type=task.spec.mime_type,
            )

        command = build_conversion_command(task.source, task.destination, task.encoder, task.spec, self.ffmpeg)
        result = self.runner.run(command, timeout=self.timeout)
        processing_time = time.time() - start_time

        if not result.ok:
            reason = result.stderr.strip() or "ffmpeg failed"
            LOG.warning("Conversion of %s to %s failed (exit code %d)", task.source, task.spec.key, result.returncode)
            return OutputRecord(
                format=task.spec.key,
                status=OutputStatus.FAILED,
                path=destination,
                reason=truncate(reason, self.max_reason_length),
                encoder=task.encoder,
                mime_type=task.spec.mime_type,
                duration=processing_time,
            )

        had_tags = self.auditor.has_residual_tags(task.destination)
        LOG.debug("Converted %s -> %s in %.2fs", task.source, destination, processing_time)
        return OutputRecord(
            format=task.spec.key,
            status=OutputStatus.OK,
            path=destination,
            had_tags=had_tags,
            encoder=task.encoder,
            mime_type=task.spec.mime_type,
            duration=time.time() - start_time,
        )
