from __future__ import annotations

import re

from .models import SubtitleArtifact, SubtitleFormat

VTT_HEADER_PREFIXES = ("WEBVTT", "Kind:", "Language:")

_INDEX_RE = re.compile(r"^\d+$")
# SRT uses a comma before the milliseconds, WebVTT a dot and optional cue settings.
_TIMING_RE = re.compile(r"^\d{2}:\d{2}:\d{2}[,.]\d{3} --> \d{2}:\d{2}:\d{2}[,.]\d{3}(?:\s+.*)?$")


def strip_vtt_header(lines: list[str]) -> list[str]:
    return [line for line in lines if not line.startswith(VTT_HEADER_PREFIXES)]


def is_cue_noise(line: str) -> bool:
    """True for subtitle index lines, timing lines and blank lines."""
    if not line.strip():
        return True
    return bool(_INDEX_RE.match(line) or _TIMING_RE.match(line))


def normalize_text(raw_text: str, fmt: SubtitleFormat = SubtitleFormat.SRT) -> str:
    lines = raw_text.splitlines()
    if fmt is SubtitleFormat.VTT:
        lines = strip_vtt_header(lines)
    return "\n".join(line for line in lines if not is_cue_noise(line))


def normalize(artifact: SubtitleArtifact) -> str:
    return normalize_text(artifact.raw_text, artifact.format)
