"""
SendPulse WhatsApp Messaging

Client for the SendPulse WhatsApp Business API: OAuth token lifecycle,
channel resolution, phone normalization, message building and
rate-limited dispatch with retry/backoff.
"""

from messaging_sendpulse.config import (
    ConfigValidator,
    SendPulseSettings,
    get_settings,
    load_settings,
)
from messaging_sendpulse.contracts import Channel, Contact, SendTarget
from messaging_sendpulse.messages import MessageBuilder, TemplateRegistry
from messaging_sendpulse.providers import (
    AuthenticationError,
    ChannelResolutionError,
    ConfigurationError,
    DispatchResult,
    PermanentRequestError,
    RateLimitExceeded,
    SendPulseError,
    TransientTransportError,
)
from messaging_sendpulse.routing import normalize_phone
from messaging_sendpulse.service import Dispatcher, SendPulseMessaging, build_client

__all__ = [
    "ConfigValidator",
    "SendPulseSettings",
    "get_settings",
    "load_settings",
    "Channel",
    "Contact",
    "SendTarget",
    "MessageBuilder",
    "TemplateRegistry",
    "AuthenticationError",
    "ChannelResolutionError",
    "ConfigurationError",
    "DispatchResult",
    "PermanentRequestError",
    "RateLimitExceeded",
    "SendPulseError",
    "TransientTransportError",
    "normalize_phone",
    "Dispatcher",
    "SendPulseMessaging",
    "build_client",
]
