"""
Stub Provider

Fake SendPulse API for development and testing.
"""

from messaging_sendpulse.providers.stub.transport import STUB_BOT_ID, StubSendPulseApi

__all__ = ["STUB_BOT_ID", "StubSendPulseApi"]
