from __future__ import annotations


class VideoQAError(RuntimeError):
    """Base class for request-scoped failures.

    ``summary`` is the short text shown in the ``error`` field of a failure
    payload; ``details`` carries the underlying message.
    """

    summary = "Request failed"

    @property
    def details(self) -> str:
        return str(self)


class ArtifactMissing(VideoQAError):
    summary = "Subtitle artifact missing"


class ArtifactIOError(VideoQAError):
    summary = "Scratch file I/O failed"


class TranscriptionFailed(VideoQAError):
    summary = "Transcription failed"


class ApiError(VideoQAError):
    summary = "Failed to get answer"

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class InvalidRequestError(VideoQAError):
    summary = "Invalid request"


class IngestionFailed(VideoQAError):
    """Outward-facing wrapper for any acquirer failure; the cause is kept on ``cause``."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(str(cause))
        self.cause = cause

    @property
    def summary(self) -> str:  # type: ignore[override]
        reason = getattr(self.cause, "summary", type(self.cause).__name__)
        return f"Failed to process video: {reason}"


class RateLimitExceeded(VideoQAError):
    summary = "Too many requests"

    def __init__(self, retry_after_sec: int) -> None:
        super().__init__(f"Please wait {retry_after_sec} seconds before asking again")
        self.retry_after_sec = retry_after_sec
