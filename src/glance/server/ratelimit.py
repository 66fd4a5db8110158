"""Fixed-window request counting per client."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after_s: float


@dataclass(slots=True)
class _Window:
    started: float
    count: int


class FixedWindowRateLimiter:
    """Counts requests per key in fixed windows.

    Increments happen under a lock so concurrent requests from one client
    can never both take the last slot.
    """

    def __init__(
        self,
        *,
        window_ms: int,
        max_requests: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if window_ms < 1 or max_requests < 1:
            raise ValueError("window_ms and max_requests must be >= 1")
        self._window_s = window_ms / 1000
        self._max_requests = max_requests
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = asyncio.Lock()

    async def hit(self, key: str) -> RateLimitDecision:
        async with self._lock:
            now = self._clock()
            self._prune(now)

            window = self._windows.get(key)
            if window is None or now - window.started >= self._window_s:
                window = self._windows[key] = _Window(started=now, count=0)

            reset_after = max(0.0, window.started + self._window_s - now)
            if window.count >= self._max_requests:
                return RateLimitDecision(
                    allowed=False,
                    limit=self._max_requests,
                    remaining=0,
                    reset_after_s=reset_after,
                )

            window.count += 1
            return RateLimitDecision(
                allowed=True,
                limit=self._max_requests,
                remaining=self._max_requests - window.count,
                reset_after_s=reset_after,
            )

    def _prune(self, now: float) -> None:
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started >= self._window_s
        ]
        for key in expired:
            del self._windows[key]
