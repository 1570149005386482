from __future__ import annotations

from pathlib import Path
from string import Template

DEFAULT_TEMPLATE = """\
You're an assistant helping analyze video content. Based on this transcript:

"$transcript"

At around $timestamp seconds, answer the user's question: "$question"
"""


class PromptSynthesizer:
    """Builds the single instruction block sent to the answer model.

    The transcript is embedded verbatim. ``max_transcript_chars`` caps it
    when positive; 0 leaves it untouched.
    """

    def __init__(self, template: str = DEFAULT_TEMPLATE, max_transcript_chars: int = 0) -> None:
        self.template = Template(template)
        self.max_transcript_chars = max(0, max_transcript_chars)

    @classmethod
    def from_file(cls, path: Path, max_transcript_chars: int = 0) -> "PromptSynthesizer":
        return cls(path.read_text(encoding="utf-8"), max_transcript_chars=max_transcript_chars)

    def build(self, transcript: str, timestamp_sec: int, question: str) -> str:
        if self.max_transcript_chars and len(transcript) > self.max_transcript_chars:
            transcript = transcript[: self.max_transcript_chars]
        return self.template.safe_substitute(
            transcript=transcript,
            timestamp=timestamp_sec,
            question=question,
        )
