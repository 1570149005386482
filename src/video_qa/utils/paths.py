from __future__ import annotations

import time
from pathlib import Path


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def timestamp_suffix() -> int:
    """Millisecond wall-clock suffix used to keep scratch names unique per request."""
    return time.time_ns() // 1_000_000
