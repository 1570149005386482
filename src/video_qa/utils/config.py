from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True)
class ServerConfig:
    host: str
    port: int
    cors_origins: list[str] = field(default_factory=list)


@dataclass(slots=True)
class SubtitleToolConfig:
    tool: str = "yt-dlp"
    language: str = "en"
    format: str = "srt"


@dataclass(slots=True)
class TranscodeConfig:
    tool: str = "ffmpeg"
    audio_bitrate: str = "160k"
    channels: int = 2
    sample_rate: int = 44100


@dataclass(slots=True)
class TranscriptionConfig:
    endpoint: str
    timeout_sec: int = 120
    normalize_output: bool = False
    placeholder_text: str = "Transcription completed successfully"


@dataclass(slots=True)
class LLMConfig:
    base_url: str
    model: str
    api_token: str
    max_length: int
    temperature: float
    top_p: float
    do_sample: bool
    timeout_sec: int = 90
    max_transcript_chars: int = 0


@dataclass(slots=True)
class RateLimitConfig:
    max_requests: int = 3
    window_sec: int = 60


@dataclass(slots=True)
class Settings:
    server: ServerConfig
    subtitles: SubtitleToolConfig
    transcode: TranscodeConfig
    transcription: TranscriptionConfig
    llm: LLMConfig
    rate_limit: RateLimitConfig
    scratch_dir: Path
    prompt_path: Path
    root_dir: Path
    log_level: str = "INFO"


def load_settings(root_dir: Path) -> Settings:
    config_path = root_dir / "config" / "default.toml"
    with config_path.open("rb") as fh:
        raw = tomllib.load(fh)

    server = raw["server"]
    subs = raw.get("subtitles", {})
    transcode = raw.get("transcode", {})
    trans = raw["transcription"]
    llm = raw["llm"]
    limit = raw.get("rate_limit", {})

    scratch_dir = Path(os.getenv("VIDEO_QA_SCRATCH_DIR", raw.get("scratch", {}).get("dir", "downloads")))
    if not scratch_dir.is_absolute():
        scratch_dir = root_dir / scratch_dir

    return Settings(
        server=ServerConfig(
            host=str(server.get("host", "0.0.0.0")),
            port=int(os.getenv("PORT", server.get("port", 3001))),
            cors_origins=[str(o) for o in server.get("cors_origins", [])],
        ),
        subtitles=SubtitleToolConfig(
            tool=str(subs.get("tool", "yt-dlp")),
            language=str(subs.get("language", "en")),
            format=str(subs.get("format", "srt")),
        ),
        transcode=TranscodeConfig(
            tool=str(transcode.get("tool", "ffmpeg")),
            audio_bitrate=str(transcode.get("audio_bitrate", "160k")),
            channels=int(transcode.get("channels", 2)),
            sample_rate=int(transcode.get("sample_rate", 44100)),
        ),
        transcription=TranscriptionConfig(
            endpoint=os.getenv("TRANSCRIBE_ENDPOINT", str(trans["endpoint"])),
            timeout_sec=int(trans.get("timeout_sec", 120)),
            normalize_output=bool(trans.get("normalize_output", False)),
            placeholder_text=str(trans.get("placeholder_text", "Transcription completed successfully")),
        ),
        llm=LLMConfig(
            base_url=str(llm["base_url"]).rstrip("/"),
            model=os.getenv("HF_MODEL_ID", str(llm["model"])),
            api_token=os.getenv("HF_TOKEN", ""),
            max_length=int(llm["max_length"]),
            temperature=float(llm["temperature"]),
            top_p=float(llm["top_p"]),
            do_sample=bool(llm["do_sample"]),
            timeout_sec=int(llm.get("timeout_sec", 90)),
            max_transcript_chars=max(0, int(llm.get("max_transcript_chars", 0))),
        ),
        rate_limit=RateLimitConfig(
            max_requests=max(1, int(limit.get("max_requests", 3))),
            window_sec=max(1, int(limit.get("window_sec", 60))),
        ),
        scratch_dir=scratch_dir,
        prompt_path=root_dir / str(raw.get("prompt", {}).get("template", "prompts/answer_question.md")),
        root_dir=root_dir,
        log_level=os.getenv("LOG_LEVEL", str(raw.get("logging", {}).get("level", "INFO"))).upper(),
    )
