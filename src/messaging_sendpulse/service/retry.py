"""
Retry Policy

Exponential backoff for transient SendPulse failures.
"""

import random
from dataclasses import dataclass, field

from messaging_sendpulse.providers.base import RETRYABLE_STATUS_CODES


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff configuration.

    max_retries counts retries after the first attempt, so 3 means at most
    4 HTTP calls. Only statuses in retryable_status_codes are retried.
    Delay before retry n (0-based) is min(initial * multiplier^n, max).
    """

    max_retries: int = 3
    initial_delay_ms: int = 1000
    multiplier: float = 2.0
    max_delay_ms: int = 10000
    jitter_ratio: float = 0.0
    retryable_status_codes: frozenset[int] = field(default=RETRYABLE_STATUS_CODES)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def is_retryable(self, status_code: int | None) -> bool:
        return status_code is not None and status_code in self.retryable_status_codes

    def delay_ms(self, attempt: int, retry_after: float | None = None) -> float:
        """
        Delay before the retry that follows `attempt` (0-based).

        Args:
            attempt: Index of the attempt that just failed
            retry_after: Provider Retry-After in seconds, if any

        Returns:
            Delay in milliseconds, capped at max_delay_ms
        """
        delay = self.initial_delay_ms * (self.multiplier ** attempt)

        if retry_after is not None:
            delay = max(delay, retry_after * 1000)

        if self.jitter_ratio > 0:
            delay += delay * random.uniform(-self.jitter_ratio, self.jitter_ratio)

        return max(0.0, min(delay, float(self.max_delay_ms)))


@dataclass
class RetryState:
    """Per-call retry bookkeeping."""

    attempt: int = 0
    next_delay_ms: float = 0.0
