"""
SendPulse Contracts

Domain models and provider response schemas.
"""

from messaging_sendpulse.contracts.models import AccessToken, Channel, Contact, SendTarget
from messaging_sendpulse.contracts.payloads import (
    BotRecord,
    BotsResponse,
    ContactRecord,
    SendMessageResponse,
    TokenResponse,
)

__all__ = [
    "AccessToken",
    "Channel",
    "Contact",
    "SendTarget",
    "BotRecord",
    "BotsResponse",
    "ContactRecord",
    "SendMessageResponse",
    "TokenResponse",
]
