"""Sliding-window rate limiting for provider API calls."""

import asyncio
import time
from collections import deque
from typing import Any

import structlog

logger = structlog.get_logger()

# Extra wait past the oldest timestamp's expiry to absorb clock jitter
ADMISSION_BUFFER_SECONDS = 0.05


class SlidingWindowRateLimiter:
    """Admit at most ``max_requests`` calls in any trailing ``window_seconds``.

    Waiters queue on a single asyncio lock, which wakes them in FIFO order,
    so concurrent callers are admitted first-come and none is starved.
    """

    def __init__(self, max_requests: int, window_seconds: float, name: str = "provider"):
        """Initialize rate limiter.

        Args:
            max_requests: Requests admitted per window
            window_seconds: Length of the trailing window
            name: Provider name for logging
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.name = name
        self.logger = logger.bind(component="rate_limiter", provider=name)
        self._timestamps: deque[float] = deque()
        self._lock = asyncio.Lock()
        self.total_waits = 0

    def _evict(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.window_seconds:
            self._timestamps.popleft()

    async def acquire(self) -> None:
        """Block until one more request fits in the window, then record it."""
        async with self._lock:
            while True:
                now = time.monotonic()
                self._evict(now)

                if len(self._timestamps) < self.max_requests:
                    self._timestamps.append(now)
                    return

                oldest = self._timestamps[0]
                wait = self.window_seconds - (now - oldest) + ADMISSION_BUFFER_SECONDS
                self.total_waits += 1
                self.logger.debug(
                    "Rate limit window full, waiting",
                    wait_seconds=round(wait, 3),
                    in_window=len(self._timestamps),
                )
                await asyncio.sleep(wait)

    @property
    def remaining(self) -> int:
        """Requests that could be admitted right now."""
        now = time.monotonic()
        active = sum(1 for t in self._timestamps if now - t < self.window_seconds)
        return max(0, self.max_requests - active)

    @property
    def limit(self) -> int:
        return self.max_requests

    def get_status(self) -> dict[str, Any]:
        """Get current limiter status."""
        return {
            "name": self.name,
            "limit": self.max_requests,
            "window_seconds": self.window_seconds,
            "remaining": self.remaining,
            "total_waits": self.total_waits,
        }
