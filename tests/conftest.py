"""Shared fixtures: a fake command runner standing in for ffmpeg/ffprobe."""

import pytest

from tagfree.config.settings import _ConfigSingleton
from tagfree.core.pipeline import PipelineSettings
from tests.fakes import FakeRunner


@pytest.fixture
def fake_runner():
    """A runner with flac, pcm, aac and opus encoders available."""
    return FakeRunner()


@pytest.fixture
def settings():
    """Sequential, quiet pipeline settings."""
    return PipelineSettings(workers=1, show_progress=False)


@pytest.fixture
def source_tree(tmp_path):
    """An input tree with two sources, a hidden file and a non-mp3."""
    root = tmp_path / "in"
    (root / "sub").mkdir(parents=True)
    (root / ".hidden").mkdir()
    (root / "b.mp3").write_bytes(b"ID3 b")
    (root / "sub" / "a.MP3").write_bytes(b"ID3 a")
    (root / ".hidden" / "c.mp3").write_bytes(b"ID3 c")
    (root / ".dot.mp3").write_bytes(b"ID3 dot")
    (root / "notes.txt").write_text("not audio")
    return root


@pytest.fixture(autouse=True)
def reset_config_singleton():
    """Keep the global configuration from leaking between tests."""
    _ConfigSingleton.reset()
    yield
    _ConfigSingleton.reset()
