"""
In-memory fixed-window rate limiter.

Counts requests per identity (usually the client IP). State lives on the
instance, so a different backing store can be swapped in through the
`get_rate_limiter` dependency without touching the handlers.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import structlog

from config import settings

logger = structlog.get_logger()

MAX_TRACKED_IDENTITIES = 10000


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """
    Allows `limit` requests per identity in each `window_seconds` window.

    Example:
        >>> limiter = RateLimiter(limit=2, window_seconds=60)
        >>> limiter.check("1.2.3.4"), limiter.check("1.2.3.4"), limiter.check("1.2.3.4")
        (True, True, False)
    """

    def __init__(
        self,
        limit: Optional[int] = None,
        window_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit if limit is not None else settings.RATE_LIMIT_REQUESTS
        self.window_seconds = window_seconds if window_seconds is not None else settings.RATE_LIMIT_WINDOW_SECONDS
        self._clock = clock
        self._windows: Dict[str, _Window] = {}

    def check(self, identity: str) -> bool:
        """Record a request for identity and return whether it is allowed."""
        now = self._clock()
        window = self._windows.get(identity)

        if window is None and len(self._windows) >= MAX_TRACKED_IDENTITIES:
            self.prune()

        if window is None or now > window.reset_at:
            self._windows[identity] = _Window(count=1, reset_at=now + self.window_seconds)
            return True

        if window.count >= self.limit:
            logger.warning("rate_limit_exceeded", identity=identity, limit=self.limit)
            return False

        window.count += 1
        return True

    def prune(self) -> int:
        """Drop expired windows. Returns the number removed."""
        now = self._clock()
        expired = [key for key, window in self._windows.items() if now > window.reset_at]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)


# Process-wide instance served by the get_rate_limiter dependency
download_rate_limiter = RateLimiter()
