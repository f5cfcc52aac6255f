import asyncio
import time
import logging
from dataclasses import dataclass
from typing import Callable, Dict

logger = logging.getLogger(__name__)


@dataclass
class BucketStats:
    """Counters for a token bucket"""
    acquired: int = 0
    delayed: int = 0
    total_wait: float = 0.0


class RateLimiter:
    """Token bucket shared by every outbound request

    Holds up to ``burst_size`` tokens and refills at ``requests_per_second``.
    Refill is lazy, computed from elapsed time whenever a token is requested.
    ``acquire()`` never fails, it only waits. Waiters are served in FIFO order
    because they queue on a single asyncio.Lock.
    """

    def __init__(self, requests_per_second: float = 2.0, burst_size: int = 5,
                 clock: Callable[[], float] = time.monotonic):
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        if burst_size < 1:
            raise ValueError("burst_size must be at least 1")

        self.requests_per_second = requests_per_second
        self.burst_size = burst_size
        self._clock = clock
        self._tokens = float(burst_size)
        self._last_refill = clock()
        self._lock = asyncio.Lock()
        self.stats = BucketStats()

    @property
    def tokens(self) -> float:
        """Tokens currently available (after a lazy refill)"""
        self._refill()
        return self._tokens

    def _refill(self):
        now = self._clock()
        elapsed = now - self._last_refill
        if elapsed > 0:
            self._tokens = min(self.burst_size, self._tokens + elapsed * self.requests_per_second)
            self._last_refill = now

    async def acquire(self) -> float:
        """Take one token, waiting for the next refill if the bucket is empty

        Returns:
            Seconds spent waiting (0.0 when a token was available)
        """
        waited = 0.0
        async with self._lock:
            self._refill()
            while self._tokens < 1:
                wait_time = (1 - self._tokens) / self.requests_per_second
                await asyncio.sleep(wait_time)
                waited += wait_time
                self._refill()
            self._tokens -= 1

        self.stats.acquired += 1
        if waited:
            self.stats.delayed += 1
            self.stats.total_wait += waited
            logger.debug(f"Rate limited: waited {waited:.3f}s for a token")
        return waited

    def get_stats(self) -> Dict[str, float]:
        """Get limiter statistics"""
        return {
            'requests_per_second': self.requests_per_second,
            'burst_size': self.burst_size,
            'available_tokens': round(self.tokens, 3),
            'acquired': self.stats.acquired,
            'delayed': self.stats.delayed,
            'total_wait_seconds': round(self.stats.total_wait, 3),
        }
