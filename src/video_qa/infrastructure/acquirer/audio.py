from __future__ import annotations

import base64

from video_qa.domain.models import AudioArtifact, BytesReference
from video_qa.domain.protocols import SpeechRecognizer
from video_qa.infrastructure.storage.scratch import ScratchDirectory
from video_qa.utils.config import TranscodeConfig
from video_qa.utils.media import extract_audio


class FFmpegAudioAcquirer:
    """Uploaded video -> WAV -> base64 -> speech recognizer.

    Returns the recognizer's raw text; it is not subtitle-formatted, so it
    does not go through the subtitle normalizer here.
    """

    def __init__(
        self,
        scratch: ScratchDirectory,
        recognizer: SpeechRecognizer,
        config: TranscodeConfig,
        logger,
    ) -> None:
        self.scratch = scratch
        self.recognizer = recognizer
        self.config = config
        self.logger = logger

    async def acquire(self, ref: BytesReference, suffix: int | None = None) -> str:
        self.scratch.ensure()
        suffix = suffix if suffix is not None else self.scratch.new_suffix()
        video_path = self.scratch.video_path(suffix, ref.suffix)
        audio_path = self.scratch.audio_path(suffix)

        try:
            await self.scratch.write_bytes(video_path, ref.data)
            await extract_audio(
                video_path,
                audio_path,
                tool=self.config.tool,
                audio_bitrate=self.config.audio_bitrate,
                channels=self.config.channels,
                sample_rate=self.config.sample_rate,
            )
            artifact = AudioArtifact(data=await self.scratch.read_bytes(audio_path))
        finally:
            self.scratch.discard(video_path, audio_path)

        encoded = base64.b64encode(artifact.data).decode("ascii")
        self.logger.info("audio.encoded", wav_bytes=len(artifact.data), suffix=suffix)
        return await self.recognizer.recognize(encoded)
