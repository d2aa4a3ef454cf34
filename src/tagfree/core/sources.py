"""Source file discovery."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from .base import EnumerationError

if TYPE_CHECKING:
    from collections.abc import Iterable

LOG = logging.getLogger(__name__)

DEFAULT_SOURCE_EXTENSIONS = (".mp3",)


def _normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    normalized = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        normalized.add(ext if ext.startswith(".") else f".{ext}")
    return frozenset(normalized)


def list_sources(root: Path, extensions: Iterable[str] = DEFAULT_SOURCE_EXTENSIONS) -> list[Path]:
    """
    Recursively list source files under ``root``.

    Hidden files and directories (leading dot) and symlinks are ignored,
    the extension match is case-insensitive and the result is sorted so
    repeated runs see the same order.

    Args:
        root: Directory to scan
        extensions: Accepted file extensions, with or without the leading dot

    Returns:
        Sorted list of matching file paths (possibly empty)

    Raises:
        EnumerationError: if ``root`` or one of its subdirectories cannot be read

    """
    root = Path(root)
    accepted = _normalize_extensions(extensions)
    results: list[Path] = []

    def walk(directory: Path) -> None:
        try:
            with os.scandir(directory) as entries:
                children = list(entries)
        except OSError as e:
            msg = f"Cannot read source directory {directory}: {e}"
            raise EnumerationError(msg, file_path=directory, cause=e) from e

        for entry in children:
            if entry.name.startswith("."):
                continue
            path = directory / entry.name
            if entry.is_dir(follow_symlinks=False):
                walk(path)
            elif entry.is_file(follow_symlinks=False) and path.suffix.lower() in accepted:
                results.append(path)

    LOG.info("Scanning directory: %s", root)
    walk(root)
    results.sort(key=str)
    LOG.info("Found %d source files", len(results))
    return results
