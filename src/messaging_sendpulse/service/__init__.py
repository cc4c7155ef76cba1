"""
SendPulse Service Layer

Dispatch, rate limiting, retry policy and client composition.
"""

from messaging_sendpulse.service.dispatcher import DispatchState, Dispatcher
from messaging_sendpulse.service.messaging import SendPulseMessaging, build_client
from messaging_sendpulse.service.rate_limiter import RateLimiter, RateLimiterState
from messaging_sendpulse.service.retry import RetryPolicy, RetryState

__all__ = [
    "DispatchState",
    "Dispatcher",
    "SendPulseMessaging",
    "build_client",
    "RateLimiter",
    "RateLimiterState",
    "RetryPolicy",
    "RetryState",
]
