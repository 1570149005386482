from __future__ import annotations

import asyncio
import threading
from pathlib import Path

from video_qa.domain.errors import ArtifactIOError
from video_qa.utils.logger import get_logger
from video_qa.utils.paths import ensure_dir, timestamp_suffix

SUBTITLE_SUFFIXES = (".srt", ".vtt")


class ScratchDirectory:
    """Request-transient files for the acquirers.

    Every request gets its own millisecond suffix so concurrent ingestions
    never share a path. Cleanup is best-effort: failures are logged only.
    """

    def __init__(self, root: Path, logger=None) -> None:
        self.root = root
        self.logger = logger or get_logger()
        self._lock = threading.Lock()
        self._last_suffix = 0

    def ensure(self) -> Path:
        return ensure_dir(self.root)

    def new_suffix(self) -> int:
        with self._lock:
            suffix = max(timestamp_suffix(), self._last_suffix + 1)
            self._last_suffix = suffix
            return suffix

    def subtitle_path(self, suffix: int) -> Path:
        return self.root / f"subtitle_{suffix}.srt"

    def video_path(self, suffix: int, ext: str = ".mp4") -> Path:
        return self.root / f"video_{suffix}{ext}"

    def audio_path(self, suffix: int) -> Path:
        return self.root / f"audio_{suffix}.wav"

    def own_files(self, stem: str) -> list[Path]:
        """Files written for one request: ``<stem>.<anything>``, sorted by name."""
        if not self.root.is_dir():
            return []
        prefix = f"{stem}."
        return sorted(p for p in self.root.iterdir() if p.is_file() and p.name.startswith(prefix))

    def find_subtitle(self, stem: str) -> Path | None:
        """First .srt/.vtt file belonging to ``stem``; files of other requests are never considered."""
        for path in self.own_files(stem):
            if path.suffix.lower() in SUBTITLE_SUFFIXES:
                return path
        return None

    async def read_text(self, path: Path) -> str:
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ArtifactIOError(f"Could not read {path.name}: {exc}") from exc

    async def read_bytes(self, path: Path) -> bytes:
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise ArtifactIOError(f"Could not read {path.name}: {exc}") from exc

    async def write_bytes(self, path: Path, data: bytes) -> None:
        try:
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as exc:
            raise ArtifactIOError(f"Could not write {path.name}: {exc}") from exc

    def discard(self, *paths: Path) -> None:
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                self.logger.warning("scratch.cleanup_failed", path=str(path), error=str(exc))
            else:
                self.logger.info("scratch.cleaned", path=str(path))
