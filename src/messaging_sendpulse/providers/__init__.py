"""
SendPulse Providers

Error taxonomy shared by the SendPulse provider and the stub API.
"""

from messaging_sendpulse.providers.base import (
    AuthenticationError,
    ChannelResolutionError,
    ConfigurationError,
    DispatchResult,
    InvalidMessageError,
    PermanentRequestError,
    RateLimitExceeded,
    SendPulseError,
    TransientTransportError,
)

__all__ = [
    "AuthenticationError",
    "ChannelResolutionError",
    "ConfigurationError",
    "DispatchResult",
    "InvalidMessageError",
    "PermanentRequestError",
    "RateLimitExceeded",
    "SendPulseError",
    "TransientTransportError",
]
