"""Main CLI interface for tagfree."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ..config import ConfigManager, ProcessingOptions, with_config_overrides
from ..config.constants import EXIT_INTERRUPTED, VERBOSE_LOGGING_THRESHOLD
from .commands import ConvertCommands, InfoCommands


class TagfreeCLI:
    """Main CLI interface."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_manager = ConfigManager(config_path)
        self.convert_commands = ConvertCommands(self.config_manager)
        self.info_commands = InfoCommands(self.config_manager)

    @staticmethod
    def setup_logging(verbosity: int, default_level: str = "WARNING") -> None:
        """Setup logging based on verbosity level, falling back to the configured level."""
        level_map = {
            0: getattr(logging, default_level, logging.WARNING),
            1: logging.INFO,
            2: logging.DEBUG,
        }

        level = level_map.get(verbosity, logging.DEBUG)
        log_format = (
            "%(levelname)s: %(name)s: %(message)s"
            if verbosity >= VERBOSE_LOGGING_THRESHOLD
            else "%(levelname)s: %(message)s"
        )

        logging.basicConfig(level=level, format=log_format, handlers=[logging.StreamHandler(sys.stderr)], force=True)

        # Subprocess command lines are only interesting at debug level
        if verbosity < VERBOSE_LOGGING_THRESHOLD:
            logging.getLogger("tagfree.core.runner").setLevel(logging.WARNING)

    def build_parser(self) -> argparse.ArgumentParser:
        """Build the argument parser."""
        parser = argparse.ArgumentParser(
            prog="tagfree",
            description="Convert audio files into many formats with all metadata stripped",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Convert every .mp3 under ./in into all known formats
  tagfree convert ./in ./test-dir

  # Only a few formats, four conversions at a time
  tagfree convert ./in ./test-dir flac,ogg,m4a --workers 4

  # Show which encoders the installed ffmpeg provides
  tagfree encoders
            """,
        )

        parser.add_argument(
            "-v",
            "--verbose",
            action="count",
            default=0,
            help="Increase verbosity (-v for info, -vv for debug)",
        )
        parser.add_argument("--config", type=Path, help="Path to configuration file")

        subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")
        self.convert_commands.add_subcommands(subparsers)
        self.info_commands.add_subcommands(subparsers)

        return parser

    @staticmethod
    def create_processing_options(args: argparse.Namespace) -> ProcessingOptions:
        """Create processing options from CLI arguments."""
        return ProcessingOptions(
            workers=getattr(args, "workers", None),
            timeout=getattr(args, "timeout", None),
            mirror=False if getattr(args, "no_mirror", False) else None,
        )

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parser = self.build_parser()
        parsed_args = parser.parse_args(args)

        if getattr(parsed_args, "config", None):
            self.config_manager = ConfigManager(parsed_args.config)
            self.convert_commands.config_manager = self.config_manager
            self.info_commands.config_manager = self.config_manager

        self.setup_logging(parsed_args.verbose, self.config_manager.get_value("global_.log_level", "WARNING"))

        processing_options = self.create_processing_options(parsed_args)

        try:
            with with_config_overrides(self.config_manager) as config_mgr:
                config_mgr.apply_processing_options(processing_options)

                if parsed_args.command == "convert":
                    return self.convert_commands.handle_command(parsed_args)
                if parsed_args.command in {"encoders", "formats"}:
                    return self.info_commands.handle_command(parsed_args)
                parser.error(f"Unknown command: {parsed_args.command}")

        except KeyboardInterrupt:
            logging.getLogger(__name__).info("Operation cancelled by user")
            return EXIT_INTERRUPTED

        return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    cli = TagfreeCLI()
    return cli.run(argv)


if __name__ == "__main__":
    sys.exit(main())
