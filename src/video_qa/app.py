from __future__ import annotations

import errno
import socket
import sys
from dataclasses import dataclass
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from video_qa.application.answering import QuestionAnswerer
from video_qa.application.ingestion import IngestionService
from video_qa.application.rate_limit import SlidingWindowRateLimiter
from video_qa.domain.prompt import PromptSynthesizer
from video_qa.infrastructure.acquirer.audio import FFmpegAudioAcquirer
from video_qa.infrastructure.acquirer.subtitles import YtDlpSubtitleAcquirer
from video_qa.infrastructure.llm.huggingface_client import HuggingFaceAnswerModel
from video_qa.infrastructure.storage.scratch import ScratchDirectory
from video_qa.infrastructure.storage.transcript_store import TranscriptStore
from video_qa.infrastructure.transcriber.speech_client import SpeechEndpointClient
from video_qa.utils.config import Settings, load_settings
from video_qa.utils.logger import configure_logger, get_logger
from video_qa.web.server import create_app

ROOT_DIR = Path(__file__).resolve().parents[2]


@dataclass(slots=True)
class Services:
    settings: Settings
    store: TranscriptStore
    ingestion: IngestionService
    answerer: QuestionAnswerer
    limiter: SlidingWindowRateLimiter
    logger: object


def build_services(root_dir: Path = ROOT_DIR, settings: Settings | None = None) -> Services:
    load_dotenv(root_dir / ".env")
    settings = settings or load_settings(root_dir)
    configure_logger(settings.log_level)
    logger = get_logger()

    store = TranscriptStore()
    scratch = ScratchDirectory(settings.scratch_dir, logger=logger)

    subtitle_acquirer = YtDlpSubtitleAcquirer(scratch=scratch, config=settings.subtitles, logger=logger)
    audio_acquirer = FFmpegAudioAcquirer(
        scratch=scratch,
        recognizer=SpeechEndpointClient(
            endpoint=settings.transcription.endpoint,
            timeout_sec=settings.transcription.timeout_sec,
        ),
        config=settings.transcode,
        logger=logger,
    )
    ingestion = IngestionService(
        scratch=scratch,
        subtitle_acquirer=subtitle_acquirer,
        audio_acquirer=audio_acquirer,
        store=store,
        logger=logger,
        normalize_audio=settings.transcription.normalize_output,
    )

    if settings.prompt_path.exists():
        synthesizer = PromptSynthesizer.from_file(
            settings.prompt_path, max_transcript_chars=settings.llm.max_transcript_chars
        )
    else:
        logger.warning("prompt.template_missing", path=str(settings.prompt_path))
        synthesizer = PromptSynthesizer(max_transcript_chars=settings.llm.max_transcript_chars)

    answer_model = HuggingFaceAnswerModel(
        api_token=settings.llm.api_token,
        model=settings.llm.model,
        base_url=settings.llm.base_url,
        max_length=settings.llm.max_length,
        temperature=settings.llm.temperature,
        top_p=settings.llm.top_p,
        do_sample=settings.llm.do_sample,
        timeout_sec=settings.llm.timeout_sec,
    )
    if not settings.llm.api_token:
        logger.warning("llm.token_missing", hint="set HF_TOKEN in .env")

    return Services(
        settings=settings,
        store=store,
        ingestion=ingestion,
        answerer=QuestionAnswerer(store=store, synthesizer=synthesizer, model=answer_model, logger=logger),
        limiter=SlidingWindowRateLimiter(
            max_requests=settings.rate_limit.max_requests,
            window_sec=settings.rate_limit.window_sec,
        ),
        logger=logger,
    )


def ensure_port_available(host: str, port: int) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError as exc:
            if exc.errno == errno.EADDRINUSE:
                raise RuntimeError(
                    f"Port {port} is already in use. Please stop any other processes using this port."
                ) from exc
            raise


def serve(services: Services) -> None:
    host = services.settings.server.host
    port = services.settings.server.port
    try:
        ensure_port_available(host, port)
    except (RuntimeError, OSError) as exc:
        services.logger.error("server.startup_failed", port=port, error=str(exc))
        sys.exit(1)

    services.logger.info("server.started", host=host, port=port)
    uvicorn.run(create_app(services), host=host, port=port, log_level=services.settings.log_level.lower())


def main() -> None:
    serve(build_services(ROOT_DIR))


if __name__ == "__main__":
    main()
