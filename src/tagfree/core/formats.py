"""Target format catalogue and encoder resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .base import FormatSelectionError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

LOG = logging.getLogger(__name__)

ENCODER_PLACEHOLDER = "{encoder}"


def _codec_args(*extra: str) -> Callable[[str], list[str]]:
    """Build an argument rule of the form ``-c:a <encoder> <extra...>``."""

    def build(encoder: str) -> list[str]:
        return ["-c:a", encoder, *extra]

    return build


def template_args(template: Sequence[str]) -> Callable[[str], list[str]]:
    """Build an argument rule from a token list containing ``{encoder}``."""
    tokens = list(template)

    def build(encoder: str) -> list[str]:
        return [token.replace(ENCODER_PLACEHOLDER, encoder) for token in tokens]

    return build


@dataclass(frozen=True)
class FormatSpec:
    """Static description of one target output format."""

    key: str
    ext: str
    encoders: tuple[str, ...]
    build_args: Callable[[str], list[str]] = field(compare=False, repr=False)
    container_extras: tuple[str, ...] = ()
    mime_type: str = "application/octet-stream"

    def codec_args(self, encoder: str) -> list[str]:
        """Codec-specific arguments for the chosen encoder."""
        return list(self.build_args(encoder))


@dataclass(frozen=True)
class ResolvedFormat:
    """A format paired with the encoder chosen for this run."""

    spec: FormatSpec
    encoder: str | None
    tried: tuple[str, ...] = ()

    @property
    def available(self) -> bool:
        """Whether one of the preferred encoders is installed."""
        return self.encoder is not None

    @property
    def skip_reason(self) -> str:
        """Diagnostic text for outputs of an unavailable format."""
        return f"No supported encoder found (tried: {', '.join(self.tried)})"


DEFAULT_FORMATS: tuple[FormatSpec, ...] = (
    # Lossless / uncompressed
    FormatSpec("flac", "flac", ("flac",), _codec_args("-compression_level", "5"), mime_type="audio/flac"),
    FormatSpec("wav", "wav", ("pcm_s16le",), _codec_args(), mime_type="audio/wav"),
    FormatSpec("aiff", "aiff", ("pcm_s16be",), _codec_args(), mime_type="audio/aiff"),
    # Often missing from packaged ffmpeg builds
    FormatSpec(
        "wv", "wv", ("libwavpack", "wavpack"), _codec_args("-compression_level", "3"), mime_type="audio/wavpack"
    ),
    # Lossy
    FormatSpec("ogg", "ogg", ("libvorbis", "vorbis"), _codec_args("-qscale:a", "5"), mime_type="audio/ogg"),
    FormatSpec("opus", "opus", ("libopus", "opus"), _codec_args("-b:a", "128k"), mime_type="audio/opus"),
    FormatSpec("spx", "spx", ("libspeex",), _codec_args("-q:a", "6"), mime_type="audio/ogg"),
    FormatSpec("aac", "aac", ("libfdk_aac", "aac"), _codec_args("-b:a", "192k"), mime_type="audio/aac"),
    FormatSpec(
        "m4a",
        "m4a",
        ("libfdk_aac", "aac"),
        _codec_args("-b:a", "192k"),
        container_extras=("-movflags", "+faststart", "-f", "mp4"),
        mime_type="audio/mp4",
    ),
)


def parse_format_keys(raw: str | Iterable[str] | None) -> list[str]:
    """Split a comma-separated key list (or iterable of keys) into normalized keys."""
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    keys: list[str] = []
    for part in parts:
        key = part.strip().lower()
        if key and key not in keys:
            keys.append(key)
    return keys


def select_formats(requested: Iterable[str] | None, all_formats: Sequence[FormatSpec]) -> list[FormatSpec]:
    """
    Pick the formats to produce, in catalogue order.

    An empty request selects every known format. Unknown keys are ignored
    with a warning.

    Raises:
        FormatSelectionError: if no known format remains

    """
    keys = parse_format_keys(requested)
    if not keys:
        selected = list(all_formats)
    else:
        known = {spec.key for spec in all_formats}
        unknown = [key for key in keys if key not in known]
        if unknown:
            LOG.warning("Ignoring unknown format keys: %s", ", ".join(unknown))
        selected = [spec for spec in all_formats if spec.key in keys]

    if not selected:
        msg = "No valid target formats selected."
        raise FormatSelectionError(msg)
    return selected


def resolve_format(spec: FormatSpec, capabilities: frozenset[str] | set[str]) -> ResolvedFormat:
    """Choose the first preferred encoder that ``capabilities`` contains."""
    for encoder in spec.encoders:
        if encoder in capabilities:
            return ResolvedFormat(spec=spec, encoder=encoder, tried=spec.encoders)
    return ResolvedFormat(spec=spec, encoder=None, tried=spec.encoders)


def resolve_formats(
    specs: Sequence[FormatSpec], capabilities: frozenset[str] | set[str]
) -> list[ResolvedFormat]:
    """Resolve every selected format once for the whole run."""
    resolved = [resolve_format(spec, capabilities) for spec in specs]
    for item in resolved:
        if item.available:
            LOG.info("Format %s: using encoder %s", item.spec.key, item.encoder)
        else:
            LOG.warning("Format %s unavailable: %s", item.spec.key, item.skip_reason)
    return resolved


def build_catalogue(overrides: Mapping[str, FormatSpec] | None = None) -> list[FormatSpec]:
    """Return the built-in formats with configured formats replacing or extending them."""
    catalogue = {spec.key: spec for spec in DEFAULT_FORMATS}
    if overrides:
        catalogue.update(overrides)
    return list(catalogue.values())
