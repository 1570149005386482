import asyncio
from pathlib import Path

import pytest

from video_qa.application.ingestion import IngestionService
from video_qa.domain.errors import ArtifactMissing, IngestionFailed
from video_qa.domain.models import BytesReference, SubtitleArtifact, SubtitleFormat, UrlReference
from video_qa.infrastructure.storage.scratch import ScratchDirectory
from video_qa.infrastructure.storage.transcript_store import TranscriptStore
from video_qa.utils.logger import get_logger

SRT = "1\n00:00:00,000 --> 00:00:02,000\nfirst line\n\n2\n00:00:02,000 --> 00:00:04,000\nsecond line\n"


class DummySubtitleAcquirer:
    def __init__(self, artifact=None, error=None) -> None:
        self.artifact = artifact
        self.error = error

    async def acquire(self, ref, suffix=None):
        if self.error:
            raise self.error
        return self.artifact


class DummyAudioAcquirer:
    def __init__(self, text: str) -> None:
        self.text = text

    async def acquire(self, ref, suffix=None):
        return self.text


def _service(tmp_path: Path, subtitle=None, audio=None, normalize_audio=False):
    store = TranscriptStore()
    service = IngestionService(
        scratch=ScratchDirectory(tmp_path),
        subtitle_acquirer=subtitle or DummySubtitleAcquirer(),
        audio_acquirer=audio or DummyAudioAcquirer(""),
        store=store,
        logger=get_logger(),
        normalize_audio=normalize_audio,
    )
    return service, store


def test_url_ingestion_normalizes_and_stores(tmp_path: Path):
    artifact = SubtitleArtifact(format=SubtitleFormat.SRT, raw_text=SRT)
    service, store = _service(tmp_path, subtitle=DummySubtitleAcquirer(artifact))

    result = asyncio.run(service.ingest(UrlReference("https://youtu.be/abc")))

    assert result.transcript == "first line\nsecond line"
    assert store.get() == result.transcript
    assert result.timestamp > 0


def test_failed_ingestion_wraps_cause_and_keeps_previous_transcript(tmp_path: Path):
    service, store = _service(tmp_path, subtitle=DummySubtitleAcquirer(error=ArtifactMissing("none")))
    store.set("previous")

    with pytest.raises(IngestionFailed) as excinfo:
        asyncio.run(service.ingest(UrlReference("https://youtu.be/none")))

    assert isinstance(excinfo.value.cause, ArtifactMissing)
    assert "Subtitle artifact missing" in excinfo.value.summary
    assert store.get() == "previous"


def test_audio_transcript_bypasses_normalizer_by_default(tmp_path: Path):
    service, store = _service(tmp_path, audio=DummyAudioAcquirer("12\nspoken words\n\n"))
    result = asyncio.run(service.ingest(BytesReference(b"video")))
    assert result.transcript == "12\nspoken words\n\n"
    assert store.get() == "12\nspoken words\n\n"


def test_audio_transcript_can_be_normalized(tmp_path: Path):
    service, store = _service(tmp_path, audio=DummyAudioAcquirer("12\nspoken words\n\n"), normalize_audio=True)
    result = asyncio.run(service.ingest(BytesReference(b"video")))
    assert result.transcript == "spoken words"


def test_unknown_reference_type_is_rejected(tmp_path: Path):
    service, _ = _service(tmp_path)
    with pytest.raises(TypeError):
        asyncio.run(service.ingest("https://youtu.be/abc"))
