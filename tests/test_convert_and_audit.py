"""Conversion executor, tag auditor and manifest builder."""

import json
from pathlib import Path

from tagfree.core.audit import TagAuditor, has_residual_tags
from tagfree.core.base import FileRecord, OutputRecord, OutputStatus
from tagfree.core.converter import ConversionTask, Converter, build_conversion_command
from tagfree.core.formats import DEFAULT_FORMATS
from tagfree.core.manifest import ManifestBuilder, write_manifest
from tagfree.core.runner import TIMEOUT_CODE, CommandResult
from tests.fakes import FakeRunner

FORMATS = {spec.key: spec for spec in DEFAULT_FORMATS}


def _task(tmp_path: Path, key: str, encoder: str) -> ConversionTask:
    source = tmp_path / "a.mp3"
    source.write_bytes(b"ID3")
    return ConversionTask(source, FORMATS[key], encoder, tmp_path / "out" / f"a.{FORMATS[key].ext}")


def test_build_conversion_command_full_layout() -> None:
    cmd = build_conversion_command(Path("in.mp3"), Path("out.ogg"), "libvorbis", FORMATS["ogg"])

    assert cmd == [
        "ffmpeg", "-y", "-hide_banner", "-loglevel", "error",
        "-i", "in.mp3",
        "-map", "0:a:0", "-vn",
        "-map_metadata", "-1", "-map_chapters", "-1",
        "-c:a", "libvorbis", "-qscale:a", "5",
        "out.ogg",
    ]  # fmt: skip


def test_convert_success_is_audited(tmp_path) -> None:
    runner = FakeRunner()
    converter = Converter(runner, TagAuditor(runner))

    record = converter.convert(_task(tmp_path, "flac", "flac"))

    assert record.status is OutputStatus.OK
    assert record.had_tags is False
    assert record.encoder == "flac"
    assert record.mime_type == "audio/flac"
    assert Path(record.path).exists()
    assert runner.calls_for("ffprobe")[0][-1] == record.path


def test_convert_failure_uses_stderr(tmp_path) -> None:
    runner = FakeRunner(fail={"flac": (1, "  Invalid data found when processing input\n")})
    converter = Converter(runner, TagAuditor(runner))

    record = converter.convert(_task(tmp_path, "flac", "flac"))

    assert record.status is OutputStatus.FAILED
    assert record.reason == "Invalid data found when processing input"
    assert record.to_dict()["mime_type"] == "audio/flac"
    assert record.had_tags is None
    assert runner.calls_for("ffprobe") == []


def test_convert_failure_without_stderr(tmp_path) -> None:
    runner = FakeRunner(fail={"wav": (69, "")})
    record = Converter(runner, TagAuditor(runner)).convert(_task(tmp_path, "wav", "pcm_s16le"))

    assert record.reason == "ffmpeg failed"


def test_convert_failure_reason_is_bounded(tmp_path) -> None:
    runner = FakeRunner(fail={"wav": (1, "e" * 50)})
    converter = Converter(runner, TagAuditor(runner), max_reason_length=20)

    record = converter.convert(_task(tmp_path, "wav", "pcm_s16le"))

    assert record.reason == "e" * 20


def test_convert_timeout_is_failed(tmp_path) -> None:
    class TimeoutRunner(FakeRunner):
        def run(self, command, timeout=None):
            self.calls.append(list(command))
            return CommandResult(TIMEOUT_CODE, stderr="ffmpeg timed out after 1s", timed_out=True)

    runner = TimeoutRunner()
    record = Converter(runner, TagAuditor(runner), timeout=1).convert(_task(tmp_path, "flac", "flac"))

    assert record.status is OutputStatus.FAILED
    assert "timed out" in record.reason


def test_audit_clean_output() -> None:
    assert has_residual_tags(Path("x.flac"), FakeRunner()) is False


def test_audit_detects_format_and_stream_tags() -> None:
    probe = json.dumps(
        {
            "streams": [{"tags": {"language": "eng", "ARTIST": "Someone"}}],
            "format": {"tags": {"title": "Song", "major_brand": "isom"}},
        }
    )
    auditor = TagAuditor(FakeRunner(probe_output=probe))

    assert auditor.residual_tags(Path("x.m4a")) == ["title", "ARTIST"]
    assert auditor.has_residual_tags(Path("x.m4a")) is True


def test_audit_is_case_insensitive() -> None:
    probe = json.dumps({"format": {"tags": {"Creation_Time": "2024", "HANDLER_NAME": "SoundHandler"}}})

    assert TagAuditor(FakeRunner(probe_output=probe)).has_residual_tags(Path("x.m4a")) is False


def test_audit_extra_technical_tags() -> None:
    probe = json.dumps({"format": {"tags": {"vendor_id": "[0][0][0][0]"}}})
    runner = FakeRunner(probe_output=probe)

    assert TagAuditor(runner).has_residual_tags(Path("x.m4a")) is True
    assert TagAuditor(runner, technical_tags={"VENDOR_ID"}).has_residual_tags(Path("x.m4a")) is False


def test_audit_fails_open() -> None:
    assert TagAuditor(FakeRunner(probe_code=1)).has_residual_tags(Path("x.ogg")) is False
    assert TagAuditor(FakeRunner(probe_output="not json")).has_residual_tags(Path("x.ogg")) is False
    assert TagAuditor(FakeRunner(probe_output="")).has_residual_tags(Path("x.ogg")) is False
    assert TagAuditor(FakeRunner(probe_output="[1, 2]")).has_residual_tags(Path("x.ogg")) is False
    odd = json.dumps({"format": {"tags": ["title"]}, "streams": "none"})
    assert TagAuditor(FakeRunner(probe_output=odd)).has_residual_tags(Path("x.ogg")) is False


def test_audit_command() -> None:
    runner = FakeRunner()
    TagAuditor(runner, ffprobe="ffprobe").has_residual_tags(Path("x.flac"))

    assert runner.calls == [
        ["ffprobe", "-v", "quiet", "-show_entries", "format_tags:stream_tags", "-of", "json", "x.flac"]
    ]


def test_manifest_builder_counts_and_warning(tmp_path) -> None:
    builder = ManifestBuilder()
    builder.record(
        FileRecord(
            source="a.mp3",
            outputs=[
                OutputRecord("flac", OutputStatus.OK, "a.flac", had_tags=False),
                OutputRecord("ogg", OutputStatus.SKIPPED, reason="No supported encoder found (tried: libvorbis)"),
                OutputRecord("wav", OutputStatus.FAILED, "a.wav", reason="boom"),
            ],
        )
    )
    builder.record(FileRecord(source="b.mp3", outputs=[OutputRecord("flac", OutputStatus.OK, "b.flac", had_tags=True)]))

    manifest = builder.finalize()

    assert (manifest.ok, manifest.skipped, manifest.failed) == (2, 1, 1)
    assert manifest.tag_warning is True
    assert [record.source for record in manifest.files] == ["a.mp3", "b.mp3"]

    path = write_manifest(manifest, tmp_path / "nested" / "manifest.json")
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["summary"] == {"ok": 2, "skipped": 1, "failed": 1, "tag_warning": True}
    assert data["files"][0]["outputs"][2] == {"format": "wav", "path": "a.wav", "status": "failed", "reason": "boom"}


def test_failed_output_with_tags_does_not_warn() -> None:
    builder = ManifestBuilder()
    builder.record(FileRecord(source="a.mp3", outputs=[OutputRecord("flac", OutputStatus.FAILED, had_tags=True)]))

    assert builder.finalize().tag_warning is False
