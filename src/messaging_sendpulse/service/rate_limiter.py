"""
Outbound Rate Limiter

Token bucket shared by every concurrent send in the process.
Capacity bounds bursts; the refill rate bounds sustained throughput.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimiterState:
    """Snapshot of the bucket."""

    tokens_available: float
    capacity: int
    refill_rate_per_second: float
    last_refill_timestamp: float


class RateLimiter:
    """
    Token-bucket rate limiter.

    Token consumption happens under an asyncio.Lock so concurrent
    acquirers never double-spend; waiting happens outside the lock.
    """

    def __init__(
        self,
        capacity: int = 100,
        refill_rate_per_second: float = 80.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        if refill_rate_per_second <= 0:
            raise ValueError("refill_rate_per_second must be > 0")

        self.capacity = capacity
        self.refill_rate = refill_rate_per_second
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._last_refill = clock()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._last_refill
        if elapsed > 0:
            self._tokens = min(float(self.capacity), self._tokens + elapsed * self.refill_rate)
            self._last_refill = now

    def _take(self) -> float:
        """Consume a token if possible; return seconds until the next one otherwise."""
        self._refill()
        if self._tokens >= 1:
            self._tokens -= 1
            return 0.0
        return (1 - self._tokens) / self.refill_rate

    def try_acquire(self) -> bool:
        """Consume a token without waiting."""
        # Synchronous: no await between refill and consume
        return self._take() == 0.0

    async def acquire(self, timeout_ms: float | None = None) -> bool:
        """
        Consume a token, waiting up to timeout_ms for one to refill.

        Args:
            timeout_ms: Maximum wait in milliseconds (None waits indefinitely)

        Returns:
            True if a token was consumed, False on timeout
        """
        deadline = None if timeout_ms is None else self._clock() + timeout_ms / 1000

        while True:
            async with self._lock:
                wait = self._take()
            if wait == 0.0:
                return True

            if deadline is not None:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    return False
                wait = min(wait, remaining)

            await self._sleep(wait)

    def state(self) -> RateLimiterState:
        self._refill()
        return RateLimiterState(
            tokens_available=self._tokens,
            capacity=self.capacity,
            refill_rate_per_second=self.refill_rate,
            last_refill_timestamp=self._last_refill,
        )

    def reset(self) -> None:
        """Refill the bucket to capacity."""
        self._tokens = float(self.capacity)
        self._last_refill = self._clock()
