from __future__ import annotations

import base64
import binascii

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from video_qa.domain.errors import InvalidRequestError, RateLimitExceeded, VideoQAError
from video_qa.domain.models import BytesReference, Question, UrlReference


class UploadUrlRequest(BaseModel):
    videoURL: str | None = None


class UploadVideoRequest(BaseModel):
    video: str | None = None


class AskRequest(BaseModel):
    question: str | None = None
    timestamp: int | None = None


class TranscribeRequest(BaseModel):
    audio: str | None = None
    transcript: str | None = None


def error_payload(error: str, details: str) -> dict[str, str]:
    return {"error": error, "details": details}


def status_for(exc: VideoQAError) -> int:
    if isinstance(exc, InvalidRequestError):
        return 400
    if isinstance(exc, RateLimitExceeded):
        return 429
    return 500


def decode_base64(value: str, field: str) -> bytes:
    # Browsers often send data URLs ("data:video/mp4;base64,...").
    if value.startswith("data:") and "," in value:
        value = value.split(",", 1)[1]
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidRequestError(f"{field} must be base64 encoded") from exc


def create_app(services) -> FastAPI:
    app = FastAPI(title="video-qa")
    app.state.services = services
    logger = services.logger
    settings = services.settings

    if settings.server.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.server.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Last-Request"],
            expose_headers=["Content-Length"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        client = request.client.host if request.client else ""
        logger.info("http.request", method=request.method, path=request.url.path, client=client)
        return await call_next(request)

    @app.exception_handler(VideoQAError)
    async def handle_domain_error(request: Request, exc: VideoQAError) -> JSONResponse:
        status = status_for(exc)
        headers = {"Retry-After": str(exc.retry_after_sec)} if isinstance(exc, RateLimitExceeded) else None
        if status >= 500:
            logger.warning("http.failed", path=request.url.path, error=exc.summary, details=exc.details)
        return JSONResponse(error_payload(exc.summary, exc.details), status_code=status, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_bad_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(error_payload("Invalid request", str(exc.errors())), status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("http.unexpected_error", path=request.url.path)
        return JSONResponse(
            error_payload("Internal server error", str(exc) or "An unexpected error occurred"),
            status_code=500,
        )

    @app.get("/", response_class=PlainTextResponse)
    async def health() -> str:
        return "Server is running!"

    @app.post("/upload-url")
    async def upload_url(body: UploadUrlRequest) -> dict:
        if not body.videoURL:
            raise InvalidRequestError("Video URL is required")
        if body.videoURL.lstrip().startswith("-"):
            raise InvalidRequestError("Video URL must not start with '-'")
        result = await services.ingestion.ingest(UrlReference(body.videoURL))
        return {"transcript": result.transcript, "success": True}

    @app.post("/upload-video")
    async def upload_video(body: UploadVideoRequest) -> dict:
        if not body.video:
            raise InvalidRequestError("Video is required")
        data = decode_base64(body.video, "video")
        result = await services.ingestion.ingest(BytesReference(data))
        return {"success": True, "transcript": result.transcript, "timestamp": result.timestamp}

    @app.post("/ask")
    async def ask(request: Request, body: AskRequest) -> dict:
        services.limiter.hit(request.client.host if request.client else "unknown")
        if not body.question:
            raise InvalidRequestError("Question is required")
        answer = await services.answerer.ask(Question.asked(body.question, body.timestamp))
        return {"answer": answer.text}

    @app.post("/transcribe")
    async def transcribe(body: TranscribeRequest) -> dict:
        if body.transcript is not None:
            logger.info("transcribe.forwarded", chars=len(body.transcript))
            return {"transcript": body.transcript}
        if not body.audio:
            raise InvalidRequestError("Audio data is required")
        audio = decode_base64(body.audio, "audio")
        logger.info("transcribe.audio_received", bytes=len(audio))
        return {"transcript": settings.transcription.placeholder_text}

    return app
