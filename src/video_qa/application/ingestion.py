from __future__ import annotations

from video_qa.domain.errors import IngestionFailed, VideoQAError
from video_qa.domain.models import BytesReference, IngestionResult, UrlReference, VideoReference
from video_qa.domain.normalizer import normalize, normalize_text
from video_qa.infrastructure.acquirer.audio import FFmpegAudioAcquirer
from video_qa.infrastructure.acquirer.subtitles import YtDlpSubtitleAcquirer
from video_qa.infrastructure.storage.scratch import ScratchDirectory
from video_qa.infrastructure.storage.transcript_store import TranscriptStore


class IngestionService:
    """Runs the acquirer matching a video reference and publishes the transcript.

    The store is written only after a successful ingestion. Acquirer failures
    are re-raised as IngestionFailed with the acquirer error attached.
    """

    def __init__(
        self,
        scratch: ScratchDirectory,
        subtitle_acquirer: YtDlpSubtitleAcquirer,
        audio_acquirer: FFmpegAudioAcquirer,
        store: TranscriptStore,
        logger,
        normalize_audio: bool = False,
    ) -> None:
        self.scratch = scratch
        self.subtitle_acquirer = subtitle_acquirer
        self.audio_acquirer = audio_acquirer
        self.store = store
        self.logger = logger
        self.normalize_audio = normalize_audio

    async def ingest(self, ref: VideoReference) -> IngestionResult:
        if isinstance(ref, UrlReference):
            return await self.ingest_url(ref)
        if isinstance(ref, BytesReference):
            return await self.ingest_upload(ref)
        raise TypeError(f"Unsupported video reference: {type(ref).__name__}")

    async def ingest_url(self, ref: UrlReference) -> IngestionResult:
        suffix = self.scratch.new_suffix()
        self.logger.info("ingest.url.started", url=ref.url, suffix=suffix)
        try:
            artifact = await self.subtitle_acquirer.acquire(ref, suffix=suffix)
        except (VideoQAError, OSError) as exc:
            self.logger.exception("ingest.url.failed", url=ref.url, error=str(exc))
            raise IngestionFailed(exc) from exc

        transcript = normalize(artifact)
        return self._publish(transcript, suffix, source="subtitles")

    async def ingest_upload(self, ref: BytesReference) -> IngestionResult:
        suffix = self.scratch.new_suffix()
        self.logger.info("ingest.upload.started", size=len(ref.data), suffix=suffix)
        try:
            transcript = await self.audio_acquirer.acquire(ref, suffix=suffix)
        except (VideoQAError, OSError) as exc:
            self.logger.exception("ingest.upload.failed", error=str(exc))
            raise IngestionFailed(exc) from exc

        if self.normalize_audio:
            transcript = normalize_text(transcript)
        return self._publish(transcript, suffix, source="audio")

    def _publish(self, transcript: str, suffix: int, source: str) -> IngestionResult:
        self.store.set(transcript)
        self.logger.info("ingest.completed", source=source, suffix=suffix, chars=len(transcript))
        return IngestionResult(transcript=transcript, timestamp=suffix)
