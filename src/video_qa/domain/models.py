from __future__ import annotations

import time
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path


class SubtitleFormat(StrEnum):
    SRT = "srt"
    VTT = "vtt"

    @classmethod
    def from_path(cls, path: Path) -> "SubtitleFormat":
        return cls(path.suffix.lstrip(".").lower())


@dataclass(slots=True, frozen=True)
class UrlReference:
    url: str


@dataclass(slots=True, frozen=True)
class BytesReference:
    data: bytes
    suffix: str = ".mp4"


VideoReference = UrlReference | BytesReference


@dataclass(slots=True)
class SubtitleArtifact:
    format: SubtitleFormat
    raw_text: str


@dataclass(slots=True)
class AudioArtifact:
    data: bytes
    encoding: str = "pcm-wav"


@dataclass(slots=True)
class IngestionResult:
    transcript: str
    timestamp: int


@dataclass(slots=True)
class Question:
    text: str
    timestamp_sec: int

    @classmethod
    def asked(cls, text: str, timestamp_sec: int | None = None) -> "Question":
        """Question anchored at ``timestamp_sec``; the current Unix time when omitted."""
        return cls(text=text, timestamp_sec=int(time.time()) if timestamp_sec is None else timestamp_sec)


@dataclass(slots=True)
class Answer:
    text: str
