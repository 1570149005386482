import base64
from pathlib import Path

from fastapi.testclient import TestClient

from video_qa.app import Services
from video_qa.application.answering import QuestionAnswerer
from video_qa.application.ingestion import IngestionService
from video_qa.application.rate_limit import SlidingWindowRateLimiter
from video_qa.domain.errors import ApiError, ArtifactMissing
from video_qa.domain.models import SubtitleArtifact, SubtitleFormat
from video_qa.domain.prompt import PromptSynthesizer
from video_qa.infrastructure.storage.scratch import ScratchDirectory
from video_qa.infrastructure.storage.transcript_store import TranscriptStore
from video_qa.utils.config import (
    LLMConfig,
    RateLimitConfig,
    ServerConfig,
    Settings,
    SubtitleToolConfig,
    TranscodeConfig,
    TranscriptionConfig,
)
from video_qa.utils.logger import get_logger
from video_qa.web.server import create_app

SRT = "1\n00:00:00,000 --> 00:00:02,000\nWelcome to the show\n\n2\n00:00:02,000 --> 00:00:04,000\nToday: volcanoes\n"


class DummySubtitleAcquirer:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.urls: list[str] = []

    async def acquire(self, ref, suffix=None):
        self.urls.append(ref.url)
        if self.error:
            raise self.error
        return SubtitleArtifact(format=SubtitleFormat.SRT, raw_text=SRT)


class DummyAudioAcquirer:
    def __init__(self) -> None:
        self.payloads: list[bytes] = []

    async def acquire(self, ref, suffix=None):
        self.payloads.append(ref.data)
        return "spoken transcript"


class DummyModel:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return "  Volcanoes erupt.  "


def _settings(tmp_path: Path) -> Settings:
    return Settings(
        server=ServerConfig("127.0.0.1", 3001, []),
        subtitles=SubtitleToolConfig(),
        transcode=TranscodeConfig(),
        transcription=TranscriptionConfig("http://localhost:3000/transcribe"),
        llm=LLMConfig("https://example.invalid", "m", "", 1000, 0.7, 0.9, True),
        rate_limit=RateLimitConfig(),
        scratch_dir=tmp_path,
        prompt_path=tmp_path / "missing.md",
        root_dir=tmp_path,
    )


def _client(tmp_path: Path, subtitle=None, model=None):
    logger = get_logger()
    store = TranscriptStore()
    audio = DummyAudioAcquirer()
    model = model or DummyModel()
    services = Services(
        settings=_settings(tmp_path),
        store=store,
        ingestion=IngestionService(
            scratch=ScratchDirectory(tmp_path),
            subtitle_acquirer=subtitle or DummySubtitleAcquirer(),
            audio_acquirer=audio,
            store=store,
            logger=logger,
        ),
        answerer=QuestionAnswerer(store, PromptSynthesizer(), model, logger),
        limiter=SlidingWindowRateLimiter(max_requests=3, window_sec=60),
        logger=logger,
    )
    return TestClient(create_app(services)), services, audio, model


def test_health(tmp_path: Path):
    client, *_ = _client(tmp_path)
    res = client.get("/")
    assert res.status_code == 200
    assert res.text == "Server is running!"


def test_upload_url_returns_clean_transcript(tmp_path: Path):
    client, services, *_ = _client(tmp_path)
    res = client.post("/upload-url", json={"videoURL": "https://youtu.be/abc"})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["transcript"] == "Welcome to the show\nToday: volcanoes"
    assert "-->" not in body["transcript"]
    assert not any(line.isdigit() for line in body["transcript"].splitlines())
    assert services.store.get() == body["transcript"]


def test_upload_url_without_subtitles_reports_artifact_absence(tmp_path: Path):
    client, *_ = _client(tmp_path, subtitle=DummySubtitleAcquirer(error=ArtifactMissing("No subtitle file found")))
    res = client.post("/upload-url", json={"videoURL": "https://youtu.be/none"})
    assert res.status_code == 500
    body = res.json()
    assert "artifact missing" in body["error"].lower()
    assert body["details"] == "No subtitle file found"


def test_upload_url_requires_url(tmp_path: Path):
    client, *_ = _client(tmp_path)
    res = client.post("/upload-url", json={})
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid request", "details": "Video URL is required"}


def test_malformed_json_is_a_400(tmp_path: Path):
    client, *_ = _client(tmp_path)
    res = client.post("/upload-url", content=b"{not json", headers={"Content-Type": "application/json"})
    assert res.status_code == 400
    assert res.json()["error"] == "Invalid request"


def test_upload_video_decodes_base64(tmp_path: Path):
    client, services, audio, _ = _client(tmp_path)
    encoded = base64.b64encode(b"fake mp4 bytes").decode()
    res = client.post("/upload-video", json={"video": f"data:video/mp4;base64,{encoded}"})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["transcript"] == "spoken transcript"
    assert isinstance(body["timestamp"], int)
    assert audio.payloads == [b"fake mp4 bytes"]
    assert services.store.get() == "spoken transcript"


def test_upload_video_rejects_non_base64(tmp_path: Path):
    client, *_ = _client(tmp_path)
    res = client.post("/upload-video", json={"video": "%%%"})
    assert res.status_code == 400


def test_ask_answers_then_rate_limits(tmp_path: Path):
    client, services, _, model = _client(tmp_path)
    services.store.set("volcano transcript")

    for _ in range(3):
        res = client.post("/ask", json={"question": "What erupts?", "timestamp": 30})
        assert res.status_code == 200
        assert res.json() == {"answer": "Volcanoes erupt."}
    assert "volcano transcript" in model.prompts[0]
    assert "At around 30 seconds" in model.prompts[0]

    res = client.post("/ask", json={"question": "Again?"})
    assert res.status_code == 429
    assert res.json()["error"] == "Too many requests"
    assert int(res.headers["Retry-After"]) > 0


def test_ask_before_ingestion_completes(tmp_path: Path):
    client, _, _, model = _client(tmp_path)
    res = client.post("/ask", json={"question": "Anything?"})
    assert res.status_code == 200
    assert res.json() == {"answer": "Volcanoes erupt."}
    assert '""' in model.prompts[0]


def test_ask_requires_question(tmp_path: Path):
    client, *_ = _client(tmp_path)
    res = client.post("/ask", json={"timestamp": 3})
    assert res.status_code == 400
    assert res.json()["details"] == "Question is required"


def test_ask_reports_model_failure(tmp_path: Path):
    client, *_ = _client(tmp_path, model=DummyModel(error=ApiError("Hugging Face HTTP 503: loading", 503)))
    res = client.post("/ask", json={"question": "q"})
    assert res.status_code == 500
    assert res.json() == {"error": "Failed to get answer", "details": "Hugging Face HTTP 503: loading"}


def test_transcribe_echoes_forwarded_transcript(tmp_path: Path):
    client, *_ = _client(tmp_path)
    res = client.post("/transcribe", json={"transcript": "what did she say"})
    assert res.json() == {"transcript": "what did she say"}


def test_transcribe_audio_is_acknowledged(tmp_path: Path):
    client, *_ = _client(tmp_path)
    res = client.post("/transcribe", json={"audio": base64.b64encode(b"RIFF").decode()})
    assert res.status_code == 200
    assert res.json() == {"transcript": "Transcription completed successfully"}


def test_transcribe_requires_audio(tmp_path: Path):
    client, *_ = _client(tmp_path)
    res = client.post("/transcribe", json={})
    assert res.status_code == 400


def test_upload_url_rejects_option_like_values(tmp_path: Path):
    subtitle = DummySubtitleAcquirer()
    client, *_ = _client(tmp_path, subtitle=subtitle)
    res = client.post("/upload-url", json={"videoURL": "--batch-file=/etc/passwd"})
    assert res.status_code == 400
    assert subtitle.urls == []
