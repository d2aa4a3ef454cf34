"""FFmpeg integration: encoder discovery and error types."""

from __future__ import annotations

import logging
import re
import shutil
import threading
from typing import TYPE_CHECKING

from .base import CapabilityError, ProcessingError

if TYPE_CHECKING:
    from pathlib import Path

    from .runner import CommandRunner

LOG = logging.getLogger(__name__)

# "<flags> <identifier> <description>", flags start with A, V or S
ENCODER_LINE_RE = re.compile(r"^[AVS]\S*\s+(\S+)\s")
ENCODER_LIST_TIMEOUT = 30


class FFmpegError(ProcessingError):
    """FFmpeg-specific error."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        return_code: int | None = None,
        stderr: str | None = None,
        file_path: Path | None = None,
    ) -> None:
        """Initialize FFmpeg error with detailed context."""
        super().__init__(message, file_path=file_path)
        self.command = command
        self.return_code = return_code
        self.stderr = stderr


def check_availability(*executables: str) -> list[str]:
    """Return the executables that cannot be found on PATH."""
    return [exe for exe in executables if not shutil.which(exe)]


def parse_encoder_listing(output: str) -> frozenset[str]:
    """Extract encoder identifiers from ``ffmpeg -encoders`` output."""
    encoders = set()
    for line in output.splitlines():
        match = ENCODER_LINE_RE.match(line.strip())
        if match and match.group(1) != "=":
            encoders.add(match.group(1))
    return frozenset(encoders)


class EncoderProbe:
    """Ask the encoder binary which encoders it supports, at most once."""

    def __init__(self, runner: CommandRunner, ffmpeg: str = "ffmpeg") -> None:
        self.runner = runner
        self.ffmpeg = ffmpeg
        self._encoders: frozenset[str] | None = None
        self._lock = threading.Lock()

    def discover(self) -> frozenset[str]:
        """
        Return the set of encoder identifiers supported by ``ffmpeg``.

        The first call spawns ``ffmpeg -hide_banner -encoders``; later calls
        return the cached set.

        Raises:
            CapabilityError: if the listing command fails to run or exits nonzero

        """
        with self._lock:
            if self._encoders is not None:
                return self._encoders

            command = [self.ffmpeg, "-hide_banner", "-encoders"]
            result = self.runner.run(command, timeout=ENCODER_LIST_TIMEOUT)
            if not result.ok:
                msg = f"Failed to list encoders from {self.ffmpeg} (exit code {result.returncode})"
                if result.stderr.strip():
                    msg += f": {result.stderr.strip()}"
                LOG.error(msg)
                cause = FFmpegError(msg, command=command, return_code=result.returncode, stderr=result.stderr)
                raise CapabilityError(msg, cause=cause)

            self._encoders = parse_encoder_listing(result.stdout)
            LOG.debug("Found %d available encoders", len(self._encoders))
            return self._encoders


def discover_encoders(runner: CommandRunner, ffmpeg: str = "ffmpeg") -> frozenset[str]:
    """Probe ``ffmpeg`` once for its encoder list."""
    return EncoderProbe(runner, ffmpeg).discover()
