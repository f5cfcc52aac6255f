"""
Tests for the token bucket rate limiter
"""

import asyncio

import pytest

from llmfuel.utils.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiter:
    """Token bucket behaviour"""

    def test_rejects_invalid_arguments(self):
        """Rate and burst size must be positive"""
        with pytest.raises(ValueError):
            RateLimiter(requests_per_second=0)
        with pytest.raises(ValueError):
            RateLimiter(burst_size=0)

    def test_starts_full(self):
        """A new bucket holds burst_size tokens"""
        limiter = RateLimiter(requests_per_second=2.0, burst_size=5, clock=FakeClock())
        assert limiter.tokens == 5

    @pytest.mark.asyncio
    async def test_burst_then_delay(self):
        """Five acquisitions are immediate, the sixth waits for a refill"""
        limiter = RateLimiter(requests_per_second=20.0, burst_size=5)

        waits = [await limiter.acquire() for _ in range(5)]
        assert waits == [0.0] * 5

        sixth = await limiter.acquire()
        assert sixth > 0
        assert limiter.get_stats()['delayed'] == 1

    @pytest.mark.asyncio
    async def test_refill_is_capped_at_burst_size(self):
        """Elapsed time adds tokens at the configured rate, never above burst size"""
        clock = FakeClock()
        limiter = RateLimiter(requests_per_second=2.0, burst_size=5, clock=clock)

        for _ in range(5):
            await limiter.acquire()
        assert limiter.tokens == pytest.approx(0.0)

        clock.now += 1.0
        assert limiter.tokens == pytest.approx(2.0)

        clock.now += 60.0
        assert limiter.tokens == pytest.approx(5.0)

    @pytest.mark.asyncio
    async def test_concurrent_waiters_are_all_served(self):
        """Waiters never fail, they only wait"""
        limiter = RateLimiter(requests_per_second=50.0, burst_size=2)
        waits = await asyncio.gather(*(limiter.acquire() for _ in range(6)))

        assert len(waits) == 6
        assert sum(1 for w in waits if w > 0) >= 4
        assert limiter.get_stats()['acquired'] == 6
