from __future__ import annotations

from typing import Protocol


class SpeechRecognizer(Protocol):
    async def recognize(self, audio_base64: str) -> str:
        """Return the text recognized from a base64-encoded WAV."""


class AnswerModel(Protocol):
    async def generate(self, prompt: str) -> str:
        """Return the first generated continuation for the prompt."""
