"""
SendPulse Provider

WhatsApp Business messaging through the SendPulse API.
"""

from messaging_sendpulse.providers.sendpulse.auth import TokenInfo, TokenManager
from messaging_sendpulse.providers.sendpulse.channels import ChannelResolver
from messaging_sendpulse.providers.sendpulse.client import SendPulseHttpClient
from messaging_sendpulse.providers.sendpulse.contacts import ContactCache, ContactDirectory
from messaging_sendpulse.providers.sendpulse.webhook import (
    validate_webhook_request,
    verify_webhook_token,
)

__all__ = [
    "TokenInfo",
    "TokenManager",
    "ChannelResolver",
    "SendPulseHttpClient",
    "ContactCache",
    "ContactDirectory",
    "validate_webhook_request",
    "verify_webhook_token",
]
