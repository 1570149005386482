from __future__ import annotations


class TranscriptStore:
    """Holds the most recently ingested transcript.

    One slot, last write wins. Concurrent ingestions race: whichever write
    lands last becomes current, regardless of the order requests arrived in.
    """

    def __init__(self) -> None:
        self._text = ""

    def set(self, text: str) -> None:
        self._text = text

    def get(self) -> str:
        return self._text
