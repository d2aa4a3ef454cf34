"""Encoder discovery and the subprocess runner."""

import subprocess
from unittest.mock import Mock, patch

import pytest

from tagfree.core.base import CapabilityError, PreconditionError
from tagfree.core.ffmpeg import EncoderProbe, FFmpegError, discover_encoders, parse_encoder_listing
from tagfree.core.runner import SPAWN_FAILURE_CODE, TIMEOUT_CODE, CommandResult, SubprocessRunner
from tests.fakes import ENCODER_LISTING, FakeRunner


def test_parse_encoder_listing_extracts_identifiers() -> None:
    encoders = parse_encoder_listing(ENCODER_LISTING)

    assert {"aac", "flac", "pcm_s16le", "pcm_s16be", "libopus", "libx264", "srt"} <= encoders
    assert "=" not in encoders
    assert "Encoders:" not in encoders
    assert "------" not in encoders


def test_parse_encoder_listing_ignores_non_matching_lines() -> None:
    output = "ffmpeg version 6.0\n  built with gcc\n A....D libvorbis   libvorbis\n"

    assert parse_encoder_listing(output) == frozenset({"libvorbis"})


def test_probe_is_memoised() -> None:
    runner = FakeRunner()
    probe = EncoderProbe(runner)

    first = probe.discover()
    second = probe.discover()

    assert first is second
    assert len(runner.calls) == 1
    assert runner.calls[0] == ["ffmpeg", "-hide_banner", "-encoders"]


def test_probe_uses_configured_binary() -> None:
    runner = Mock()
    runner.run.return_value = CommandResult(0, stdout=" A....D flac  FLAC\n")

    assert discover_encoders(runner, "/opt/ffmpeg/bin/ffmpeg") == frozenset({"flac"})
    assert runner.run.call_args.args[0][0] == "/opt/ffmpeg/bin/ffmpeg"


def test_probe_failure_is_fatal() -> None:
    runner = FakeRunner(listing_code=1)

    with pytest.raises(CapabilityError) as excinfo:
        EncoderProbe(runner).discover()

    assert isinstance(excinfo.value, PreconditionError)
    assert isinstance(excinfo.value.cause, FFmpegError)
    assert excinfo.value.cause.command == ["ffmpeg", "-hide_banner", "-encoders"]
    assert excinfo.value.cause.return_code == 1


def test_probe_failure_is_not_cached() -> None:
    runner = FakeRunner(listing_code=1)
    probe = EncoderProbe(runner)

    with pytest.raises(CapabilityError):
        probe.discover()
    runner.listing_code = 0

    assert "flac" in probe.discover()


def test_subprocess_runner_captures_output() -> None:
    completed = subprocess.CompletedProcess(["ffmpeg"], 1, stdout="out", stderr="boom")
    with patch("tagfree.core.runner.subprocess.run", return_value=completed) as mock_run:
        result = SubprocessRunner().run(["ffmpeg", "-version"], timeout=5)

    assert result == CommandResult(1, stdout="out", stderr="boom")
    assert not result.ok
    assert mock_run.call_args.kwargs["timeout"] == 5
    assert mock_run.call_args.kwargs["check"] is False


def test_subprocess_runner_folds_timeout_into_result() -> None:
    with patch("tagfree.core.runner.subprocess.run", side_effect=subprocess.TimeoutExpired(["ffmpeg"], 10)):
        result = SubprocessRunner().run(["ffmpeg", "-i", "a.mp3", "a.flac"], timeout=10)

    assert result.returncode == TIMEOUT_CODE
    assert result.timed_out
    assert "timed out" in result.stderr


def test_subprocess_runner_folds_missing_binary_into_result() -> None:
    with patch("tagfree.core.runner.subprocess.run", side_effect=FileNotFoundError("No such file: 'ffmpeg'")):
        result = SubprocessRunner().run(["ffmpeg", "-encoders"])

    assert result.returncode == SPAWN_FAILURE_CODE
    assert "No such file" in result.stderr


def test_missing_binary_makes_probe_fail() -> None:
    with (
        patch("tagfree.core.runner.subprocess.run", side_effect=FileNotFoundError("ffmpeg")),
        pytest.raises(CapabilityError),
    ):
        discover_encoders(SubprocessRunner())
