"""Tests for the fixed-window rate limiter."""

import asyncio

import pytest

from glance.server.ratelimit import FixedWindowRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestFixedWindowRateLimiter:
    async def test_allows_up_to_limit(self):
        limiter = FixedWindowRateLimiter(window_ms=1000, max_requests=2, clock=FakeClock())

        first = await limiter.hit("a")
        second = await limiter.hit("a")
        third = await limiter.hit("a")

        assert first.allowed and second.allowed
        assert second.remaining == 0
        assert not third.allowed
        assert third.limit == 2

    async def test_window_resets(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(window_ms=1000, max_requests=1, clock=clock)

        assert (await limiter.hit("a")).allowed
        clock.now += 0.4
        blocked = await limiter.hit("a")
        assert not blocked.allowed
        assert blocked.reset_after_s == pytest.approx(0.6)

        clock.now += 0.6
        assert (await limiter.hit("a")).allowed

    async def test_keys_are_independent(self):
        limiter = FixedWindowRateLimiter(window_ms=1000, max_requests=1, clock=FakeClock())
        assert (await limiter.hit("a")).allowed
        assert (await limiter.hit("b")).allowed
        assert not (await limiter.hit("a")).allowed

    async def test_concurrent_hits_never_exceed_limit(self):
        limiter = FixedWindowRateLimiter(window_ms=60000, max_requests=5)
        decisions = await asyncio.gather(*(limiter.hit("a") for _ in range(20)))
        assert sum(d.allowed for d in decisions) == 5

    def test_rejects_invalid_settings(self):
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(window_ms=0, max_requests=1)
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(window_ms=1000, max_requests=0)
