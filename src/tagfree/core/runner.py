"""Narrow boundary for running external binaries."""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

LOG = logging.getLogger(__name__)

# Exit code reported when the binary could not be started at all
SPAWN_FAILURE_CODE = 127
# Exit code reported when the binary was killed after a timeout
TIMEOUT_CODE = 124


@dataclass(frozen=True)
class CommandResult:
    """Exit code and captured output of one external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        """Whether the command exited with status zero."""
        return self.returncode == 0


class CommandRunner(Protocol):
    """Anything that can run a binary and capture its exit code and output."""

    def run(self, command: Sequence[str], timeout: float | None = None) -> CommandResult:
        """Run ``command`` to completion."""
        ...


class SubprocessRunner:
    """Run commands with :func:`subprocess.run`, never raising on failure."""

    def run(self, command: Sequence[str], timeout: float | None = None) -> CommandResult:
        """Run ``command`` and fold spawn failures and timeouts into the result."""
        LOG.debug("Running command: %s", " ".join(command))
        start_time = time.time()

        try:
            result = subprocess.run(  # noqa: S603
                list(command),
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
                encoding="utf-8",
                errors="replace",
            )
        except subprocess.TimeoutExpired as e:
            LOG.warning("Command timed out after %ss: %s", timeout, command[0])
            stderr = e.stderr if isinstance(e.stderr, str) else ""
            return CommandResult(
                returncode=TIMEOUT_CODE,
                stderr=stderr or f"{command[0]} timed out after {timeout}s",
                timed_out=True,
            )
        except OSError as e:
            LOG.warning("Failed to start %s: %s", command[0], e)
            return CommandResult(returncode=SPAWN_FAILURE_CODE, stderr=str(e))
        else:
            LOG.debug("Command exited with %d in %.2fs", result.returncode, time.time() - start_time)
            return CommandResult(
                returncode=result.returncode,
                stdout=result.stdout or "",
                stderr=result.stderr or "",
            )
