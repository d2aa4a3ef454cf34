"""CLI command modules."""

from .convert import ConvertCommands
from .info import InfoCommands

__all__ = ["ConvertCommands", "InfoCommands"]
