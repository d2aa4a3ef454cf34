"""Output tree mapping and source mirroring."""

from pathlib import Path
from unittest.mock import patch

import pytest

from tagfree.core.base import CopyStatus, ProcessingError
from tagfree.core.file_manager import FileManager


def test_destination_mirrors_relative_directory(tmp_path) -> None:
    manager = FileManager(tmp_path / "in", tmp_path / "out")

    assert manager.destination_for(tmp_path / "in" / "sub" / "a.mp3", "flac") == tmp_path / "out" / "sub" / "a.flac"


def test_source_outside_input_root(tmp_path) -> None:
    manager = FileManager(tmp_path / "in", tmp_path / "out")

    with pytest.raises(ProcessingError):
        manager.relative_path(Path("/elsewhere/a.mp3"))


def test_mirror_copies_bytes(source_tree, tmp_path) -> None:
    manager = FileManager(source_tree, tmp_path / "out")

    record = manager.mirror(source_tree / "sub" / "a.MP3")

    assert record.status is CopyStatus.OK
    assert Path(record.path).read_bytes() == (source_tree / "sub" / "a.MP3").read_bytes()
    assert manager.get_session_summary()["successful_operations"] == 1


def test_mirror_failure_is_recorded(source_tree, tmp_path) -> None:
    manager = FileManager(source_tree, tmp_path / "out", max_reason_length=10)

    with patch("tagfree.core.file_manager.shutil.copyfile", side_effect=PermissionError("denied " * 10)):
        record = manager.mirror(source_tree / "b.mp3")

    assert record.status is CopyStatus.FAILED
    assert record.reason == "denied den"
    assert record.to_dict()["status"] == "failed"
    assert manager.get_session_summary()["failed_operations"] == 1
