"""CLI module for tagfree."""

from .commands import ConvertCommands, InfoCommands
from .failure_table import print_failure_table
from .main import TagfreeCLI, main

__all__ = [
    "ConvertCommands",
    "InfoCommands",
    "TagfreeCLI",
    "main",
    "print_failure_table",
]
