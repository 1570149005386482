from __future__ import annotations

import math
import time

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from video_qa.domain.errors import RateLimitExceeded


class SlidingWindowRateLimiter:
    """At most ``max_requests`` per identity in any ``window_sec`` span.

    Backed by a moving-window limiter on in-memory storage, which expires
    idle identities on its own. Rejections are immediate and carry a
    retry-after hint; nothing is queued.
    """

    def __init__(self, max_requests: int = 3, window_sec: int = 60, namespace: str = "ask") -> None:
        self.item = RateLimitItemPerSecond(max_requests, window_sec, namespace=namespace)
        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)

    def hit(self, identity: str) -> None:
        if self.limiter.hit(self.item, identity):
            return
        reset_time = self.limiter.get_window_stats(self.item, identity).reset_time
        raise RateLimitExceeded(max(1, math.ceil(reset_time - time.time())))

    def remaining(self, identity: str) -> int:
        return self.limiter.get_window_stats(self.item, identity).remaining

    def reset(self) -> None:
        self.storage.reset()
