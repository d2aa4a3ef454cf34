"""Conversion CLI command."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ...core import EnumerationError, PreconditionError, run_pipeline
from ..failure_table import print_failure_table

if TYPE_CHECKING:
    import argparse

    from ...config import ConfigManager
    from ...core.runner import CommandRunner

LOG = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        msg = f"must be at least 1, got {value}"
        raise ValueError(msg)
    return number


class ConvertCommands:
    """Handler for the ``convert`` command."""

    def __init__(self, config_manager: ConfigManager, runner: CommandRunner | None = None) -> None:
        """Initialize the convert command handler."""
        self.config_manager = config_manager
        self.runner = runner

    def add_subcommands(self, subparsers: argparse._SubParsersAction) -> None:
        """Register the ``convert`` command."""
        convert_parser = subparsers.add_parser("convert", help="Convert a directory of audio files")
        convert_parser.add_argument("input_dir", type=Path, help="Directory with source audio files")
        convert_parser.add_argument("output_dir", type=Path, help="Directory for converted files and manifest")
        convert_parser.add_argument(
            "formats",
            nargs="?",
            default="",
            help="Comma-separated target format keys (default: all known formats)",
        )
        convert_parser.add_argument("--workers", "-w", type=_positive_int, help="Number of parallel conversions")
        convert_parser.add_argument("--timeout", type=float, help="Per-conversion timeout in seconds")
        convert_parser.add_argument(
            "--no-mirror",
            action="store_true",
            help="Don't copy the source files into the output directory",
        )
        convert_parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar")

    def handle_command(self, args: argparse.Namespace) -> int:
        """Run the conversion and print the summary."""
        settings = self.config_manager.pipeline_settings(show_progress=not getattr(args, "no_progress", False))

        try:
            result = run_pipeline(
                args.input_dir,
                args.output_dir,
                args.formats,
                runner=self.runner,
                settings=settings,
            )
        except (PreconditionError, EnumerationError) as e:
            LOG.error("%s", e)  # noqa: TRY400
            return 1

        manifest = result.manifest
        if not result.sources_found:
            print(f"No source files found in: {args.input_dir}")
            print(f"Empty manifest: {result.manifest_path}")
            return 0

        print(f"Done. Manifest: {result.manifest_path}")
        print(f"OK: {manifest.ok}, Skipped: {manifest.skipped}, Failed: {manifest.failed}")

        failed = [output for output in manifest.outputs if output.status.value == "failed"]
        if failed:
            print_failure_table(failed)

        if manifest.tag_warning:
            LOG.warning("Some outputs still carry non-technical tags")
            print("⚠️  Some generated outputs appear to contain non-technical tags; review manifest.")

        return 0
