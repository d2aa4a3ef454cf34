"""Batch conversion of a source tree into tag-free target formats."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from tqdm import tqdm

from .audit import TECHNICAL_TAGS, TagAuditor
from .base import CopyRecord, FileRecord, OutputRecord, OutputStatus, truncate
from .converter import DEFAULT_MAX_REASON_LENGTH, ConversionTask, Converter
from .ffmpeg import EncoderProbe
from .file_manager import FileManager
from .formats import DEFAULT_FORMATS, FormatSpec, ResolvedFormat, resolve_formats, select_formats
from .manifest import Manifest, ManifestBuilder, write_manifest
from .runner import CommandRunner, SubprocessRunner
from .sources import DEFAULT_SOURCE_EXTENSIONS, list_sources
from .workers import check_cpu_pressure, get_worker_count

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

LOG = logging.getLogger(__name__)

CPU_CHECK_INTERVAL = 5


@dataclass
class PipelineSettings:
    """Everything a run needs besides its input and output directories."""

    formats: Sequence[FormatSpec] = DEFAULT_FORMATS
    source_extensions: Sequence[str] = DEFAULT_SOURCE_EXTENSIONS
    mirror_sources: bool = True
    workers: int | None = None
    ffmpeg: str = "ffmpeg"
    ffprobe: str = "ffprobe"
    timeout: float | None = None
    max_reason_length: int = DEFAULT_MAX_REASON_LENGTH
    manifest_name: str = "manifest.json"
    technical_tags: frozenset[str] = TECHNICAL_TAGS
    show_progress: bool = True


@dataclass
class PipelineResult:
    """Outcome of a whole run."""

    manifest: Manifest
    manifest_path: Path
    sources_found: bool
    resolved: list[ResolvedFormat] = field(default_factory=list)


@dataclass
class _Job:
    file_index: int
    format_index: int | None
    format_key: str
    run: Callable[[], OutputRecord | CopyRecord]
    label: str


def run_pipeline(
    input_dir: Path,
    output_dir: Path,
    formats: str | Iterable[str] | None = None,
    *,
    runner: CommandRunner | None = None,
    settings: PipelineSettings | None = None,
    capabilities: frozenset[str] | None = None,
) -> PipelineResult:
    """
    Convert every source under ``input_dir`` into the requested formats.

    Args:
        input_dir: Root of the source tree
        output_dir: Root of the output tree; the manifest is written here
        formats: Format keys (comma-separated string or iterable); empty means all
        runner: Executes external binaries, defaults to :class:`SubprocessRunner`
        settings: Run settings, defaults to :class:`PipelineSettings`
        capabilities: Pre-discovered encoder set; probed from ffmpeg when omitted

    Returns:
        The finalized manifest and where it was written

    Raises:
        FormatSelectionError: if no known target format was requested
        CapabilityError: if the encoder list cannot be obtained
        EnumerationError: if the input tree cannot be read

    """
    runner = runner or SubprocessRunner()
    settings = settings or PipelineSettings()
    input_dir = Path(input_dir)
    output_dir = Path(output_dir)

    selected = select_formats(formats, settings.formats)
    if capabilities is None:
        capabilities = EncoderProbe(runner, settings.ffmpeg).discover()
    sources = list_sources(input_dir, settings.source_extensions)

    output_dir.mkdir(parents=True, exist_ok=True)
    manifest_path = output_dir / settings.manifest_name
    resolved = resolve_formats(selected, capabilities)

    if not sources:
        LOG.info("No source files found in %s", input_dir)
        manifest = ManifestBuilder().finalize()
        write_manifest(manifest, manifest_path)
        return PipelineResult(manifest, manifest_path, sources_found=False, resolved=resolved)

    file_manager = FileManager(input_dir, output_dir, settings.max_reason_length)
    auditor = TagAuditor(runner, settings.ffprobe, settings.technical_tags)
    converter = Converter(
        runner,
        auditor,
        ffmpeg=settings.ffmpeg,
        max_reason_length=settings.max_reason_length,
        timeout=settings.timeout,
    )

    records = [FileRecord(source=str(source)) for source in sources]
    outputs: list[list[OutputRecord | None]] = [[None] * len(resolved) for _ in sources]
    jobs = _plan_jobs(sources, resolved, outputs, file_manager, converter, mirror=settings.mirror_sources)

    workers = get_worker_count(settings.workers)
    LOG.info("Converting %d files into %d formats with %d workers", len(sources), len(resolved), workers)
    _run_jobs(jobs, records, outputs, workers, settings)

    builder = ManifestBuilder()
    for record, file_outputs in zip(records, outputs):
        record.outputs = [output for output in file_outputs if output is not None]
        builder.record(record)

    manifest = builder.finalize()
    write_manifest(manifest, manifest_path)

    summary = file_manager.get_session_summary()
    LOG.info(
        "Processing complete: %d ok, %d skipped, %d failed, %d of %d mirror copies succeeded",
        manifest.ok,
        manifest.skipped,
        manifest.failed,
        summary["successful_operations"],
        summary["total_operations"],
    )
    return PipelineResult(manifest, manifest_path, sources_found=True, resolved=resolved)


def _plan_jobs(
    sources: list[Path],
    resolved: list[ResolvedFormat],
    outputs: list[list[OutputRecord | None]],
    file_manager: FileManager,
    converter: Converter,
    *,
    mirror: bool,
) -> list[_Job]:
    """Fill in skipped outputs and return the work that needs a subprocess."""
    jobs: list[_Job] = []
    # Mirror copies keep their names; conversions must not land on them
    claimed: set[Path] = {file_manager.mirror_target(source) for source in sources} if mirror else set()

    for file_index, source in enumerate(sources):
        if mirror:
            jobs.append(_Job(file_index, None, "", lambda src=source: file_manager.mirror(src), source.name))

        for format_index, item in enumerate(resolved):
            if not item.available:
                outputs[file_index][format_index] = OutputRecord(
                    format=item.spec.key,
                    status=OutputStatus.SKIPPED,
                    reason=item.skip_reason,
                )
                continue

            destination = _claim_destination(file_manager, source, item.spec.ext, claimed)
            if destination is None:
                path = file_manager.destination_for(source, item.spec.ext)
                reason = f"Output path clashes with another output: {path}"
                LOG.warning("%s (source %s)", reason, source)
                outputs[file_index][format_index] = OutputRecord(
                    format=item.spec.key,
                    status=OutputStatus.FAILED,
                    path=str(path),
                    reason=truncate(reason, file_manager.max_reason_length),
                    encoder=item.encoder,
                    mime_type=item.spec.mime_type,
                )
                continue

            task = ConversionTask(
                source=source,
                spec=item.spec,
                encoder=item.encoder,
                destination=destination,
            )
            jobs.append(
                _Job(
                    file_index,
                    format_index,
                    item.spec.key,
                    lambda t=task: converter.convert(t),
                    task.destination.name,
                )
            )
    return jobs


def _claim_destination(file_manager: FileManager, source: Path, ext: str, claimed: set[Path]) -> Path | None:
    """Reserve an unused output path for ``source``, falling back to keeping its suffix."""
    for keep_suffix in (False, True):
        candidate = file_manager.destination_for(source, ext, keep_suffix=keep_suffix)
        if candidate not in claimed:
            claimed.add(candidate)
            return candidate
    return None


def _store(
    job: _Job,
    result: OutputRecord | CopyRecord,
    records: list[FileRecord],
    outputs: list[list[OutputRecord | None]],
) -> None:
    if job.format_index is None:
        records[job.file_index].copy = result
    else:
        outputs[job.file_index][job.format_index] = result


def _run_jobs(
    jobs: list[_Job],
    records: list[FileRecord],
    outputs: list[list[OutputRecord | None]],
    workers: int,
    settings: PipelineSettings,
) -> None:
    """Execute jobs, storing each result at its (file, format) slot."""
    progress_bar = tqdm(
        total=len(jobs),
        desc="Converting",
        unit="task",
        disable=not settings.show_progress,
        bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}]",
    )

    try:
        if workers == 1:
            for job in jobs:
                progress_bar.set_description(f"Converting {job.label}")
                _store(job, _run_one(job, records, settings), records, outputs)
                progress_bar.update(1)
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                future_to_job = {executor.submit(_run_one, job, records, settings): job for job in jobs}

                completed_count = 0
                for future in as_completed(future_to_job):
                    job = future_to_job[future]
                    _store(job, future.result(), records, outputs)
                    progress_bar.set_description(f"Done {job.label}")
                    progress_bar.update(1)
                    completed_count += 1
                    if completed_count % CPU_CHECK_INTERVAL == 0:
                        check_cpu_pressure()
    finally:
        progress_bar.close()


def _run_one(job: _Job, records: list[FileRecord], settings: PipelineSettings) -> OutputRecord | CopyRecord:
    """Run a job; anything it raises becomes a failed output for that pair."""
    try:
        return job.run()
    except Exception as e:
        if job.format_index is None:
            raise
        LOG.exception("Error converting %s to %s", records[job.file_index].source, job.format_key)
        return OutputRecord(
            format=job.format_key,
            status=OutputStatus.FAILED,
            reason=truncate(f"Unexpected error: {e}", settings.max_reason_length),
        )
