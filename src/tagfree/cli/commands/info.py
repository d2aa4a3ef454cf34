"""Informational CLI commands: encoder and format listings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...core import CapabilityError, EncoderProbe, SubprocessRunner, resolve_formats
from ...core.ffmpeg import check_availability

if TYPE_CHECKING:
    import argparse

    from ...config import ConfigManager
    from ...core.runner import CommandRunner

LOG = logging.getLogger(__name__)


class InfoCommands:
    """Handlers for ``encoders`` and ``formats``."""

    def __init__(self, config_manager: ConfigManager, runner: CommandRunner | None = None) -> None:
        """Initialize info commands handler."""
        self.config_manager = config_manager
        self.runner = runner

    def add_subcommands(self, subparsers: argparse._SubParsersAction) -> None:
        """Register the informational commands."""
        subparsers.add_parser("encoders", help="List encoders supported by the installed ffmpeg")
        subparsers.add_parser("formats", help="Show target formats and the encoder each would use")

    def handle_command(self, args: argparse.Namespace) -> int:
        """Handle info command execution."""
        if args.command == "encoders":
            return self._handle_encoders(args)
        if args.command == "formats":
            return self._handle_formats(args)
        LOG.error("Unknown info command: %s", args.command)
        return 1

    def _probe(self) -> frozenset[str] | None:
        ffmpeg = self.config_manager.get_value("global_.ffmpeg", "ffmpeg")
        missing = check_availability(ffmpeg)
        if missing and self.runner is None:
            LOG.error("Missing executables: %s", ", ".join(missing))
            return None

        try:
            return EncoderProbe(self.runner or SubprocessRunner(), ffmpeg).discover()
        except CapabilityError as e:
            LOG.error("%s", e)  # noqa: TRY400
            return None

    def _handle_encoders(self, _args: argparse.Namespace) -> int:
        """Print every encoder identifier, one per line."""
        encoders = self._probe()
        if encoders is None:
            return 1

        for encoder in sorted(encoders):
            print(encoder)
        return 0

    def _handle_formats(self, _args: argparse.Namespace) -> int:
        """Print the format catalogue with the encoder chosen for each."""
        encoders = self._probe()
        if encoders is None:
            return 1

        print(f"{'FORMAT':<8} {'EXT':<6} {'ENCODER':<14} CANDIDATES")
        for item in resolve_formats(self.config_manager.config.format_catalogue(), encoders):
            chosen = item.encoder or "-"
            print(f"{item.spec.key:<8} {item.spec.ext:<6} {chosen:<14} {', '.join(item.tried)}")
        return 0
