"""Tests for the sliding-window rate limiter."""

import asyncio
import time

import pytest

from registrar_migrate.core.rate_limiter import SlidingWindowRateLimiter


class TestSlidingWindowRateLimiter:
    async def test_admits_up_to_limit_without_waiting(self):
        limiter = SlidingWindowRateLimiter(3, 60, name="test")

        start = time.monotonic()
        for _ in range(3):
            await limiter.acquire()

        assert time.monotonic() - start < 0.5
        assert limiter.remaining == 0
        assert limiter.total_waits == 0

    async def test_waits_for_oldest_request_to_expire(self):
        limiter = SlidingWindowRateLimiter(2, 0.2, name="test")

        await limiter.acquire()
        await limiter.acquire()
        start = time.monotonic()
        await limiter.acquire()

        assert time.monotonic() - start >= 0.15
        assert limiter.total_waits >= 1

    async def test_remaining_recovers_after_window(self):
        limiter = SlidingWindowRateLimiter(2, 0.1, name="test")

        await limiter.acquire()
        assert limiter.remaining == 1

        await asyncio.sleep(0.15)
        assert limiter.remaining == 2

    async def test_concurrent_callers_all_admitted(self):
        limiter = SlidingWindowRateLimiter(2, 0.05, name="test")
        admitted: list[int] = []

        async def caller(index: int) -> None:
            await limiter.acquire()
            admitted.append(index)

        await asyncio.wait_for(asyncio.gather(*(caller(i) for i in range(8))), timeout=5)

        assert sorted(admitted) == list(range(8))

    async def test_never_exceeds_budget_in_any_window(self):
        window = 0.2
        limiter = SlidingWindowRateLimiter(3, window, name="test")
        stamps: list[float] = []

        async def caller() -> None:
            await limiter.acquire()
            stamps.append(time.monotonic())

        await asyncio.gather(*(caller() for _ in range(7)))

        for i, stamp in enumerate(stamps):
            in_window = [s for s in stamps[i:] if s - stamp < window]
            assert len(in_window) <= 3

    def test_status(self):
        limiter = SlidingWindowRateLimiter(55, 60, name="GoDaddy")

        status = limiter.get_status()

        assert status["name"] == "GoDaddy"
        assert status["limit"] == 55
        assert status["remaining"] == 55
        assert limiter.limit == 55

    @pytest.mark.parametrize("max_requests, window", [(0, 60), (10, 0), (10, -1)])
    def test_rejects_invalid_parameters(self, max_requests, window):
        with pytest.raises(ValueError):
            SlidingWindowRateLimiter(max_requests, window)
