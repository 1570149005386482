from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from typing import Any

from video_qa.domain.errors import TranscriptionFailed


class SpeechEndpointClient:
    """Posts base64 WAV audio to the speech-recognition endpoint and reads back ``transcript``."""

    def __init__(self, endpoint: str, timeout_sec: int = 120) -> None:
        self.endpoint = endpoint
        self.timeout_sec = timeout_sec

    async def recognize(self, audio_base64: str) -> str:
        payload = await asyncio.to_thread(self._post_json, {"audio": audio_base64})
        return self._parse_transcript(payload)

    def _post_json(self, payload: dict[str, Any]) -> Any:
        req = urllib.request.Request(
            self.endpoint,
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_sec) as res:
                body = res.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            raise TranscriptionFailed(f"Speech endpoint HTTP {exc.code}: {exc.reason}") from exc
        except (urllib.error.URLError, TimeoutError) as exc:
            raise TranscriptionFailed(f"Speech endpoint request failed: {exc}") from exc

        try:
            return json.loads(body)
        except json.JSONDecodeError as exc:
            raise TranscriptionFailed("Speech endpoint response was not valid JSON") from exc

    def _parse_transcript(self, payload: Any) -> str:
        if not isinstance(payload, dict):
            raise TranscriptionFailed("Speech endpoint response must be a JSON object")
        transcript = payload.get("transcript")
        if not isinstance(transcript, str):
            raise TranscriptionFailed("Speech endpoint response has no transcript string")
        return transcript
