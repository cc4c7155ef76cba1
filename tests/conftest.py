"""
Pytest fixtures for SendPulse tests.
"""

import asyncio

import pytest

from messaging_sendpulse.config.settings import SendPulseSettings
from messaging_sendpulse.providers.sendpulse.auth import TokenManager
from messaging_sendpulse.providers.sendpulse.channels import ChannelResolver
from messaging_sendpulse.providers.sendpulse.client import SendPulseHttpClient
from messaging_sendpulse.providers.stub import StubSendPulseApi
from messaging_sendpulse.service.dispatcher import Dispatcher
from messaging_sendpulse.service.rate_limiter import RateLimiter
from messaging_sendpulse.service.retry import RetryPolicy

SENDPULSE_ENV_VARS = (
    "SENDPULSE_APP_ID",
    "SENDPULSE_APP_SECRET",
    "SENDPULSE_WEBHOOK_TOKEN",
    "SENDPULSE_BOT_ID",
    "SENDPULSE_API_TOKEN",
    "SENDPULSE_BOT_PHONE",
    "SENDPULSE_BOT_NAME",
    "SENDPULSE_ENCRYPTION_KEY",
    "SENDPULSE_CLIENT_ID",
    "SENDPULSE_CLIENT_SECRET",
    "ENVIRONMENT",
)


class FakeClock:
    """Manual clock; sleep() advances time instead of waiting."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    """Healthy settings with a static bot id."""
    return SendPulseSettings(
        app_id="app_id_1234567890",
        app_secret="app_secret_abcdefghijklmnop",
        webhook_token="webhook_token_0123456789",
        static_bot_id="bot_123",
        environment="test",
    )


@pytest.fixture
def stub_api():
    return StubSendPulseApi()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove SendPulse variables from the process environment."""
    for name in SENDPULSE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def make_dispatcher(settings, stub_api, clock):
    """
    Factory for a Dispatcher wired to the stub API.

    Backoff waits go through the fake clock, so no test really sleeps.
    """

    def factory(
        static_channel_id: str | None = "bot_123",
        retry_policy: RetryPolicy | None = None,
        rate_limiter: RateLimiter | None = None,
        transport=None,
    ) -> Dispatcher:
        http = SendPulseHttpClient(settings.base_url, transport=transport or stub_api.transport())
        tokens = TokenManager(http, settings.credentials, settings.token_url, clock=clock)
        channels = ChannelResolver(http, tokens, static_channel_id=static_channel_id)
        return Dispatcher(
            http,
            tokens,
            channels,
            rate_limiter=rate_limiter or RateLimiter(capacity=100, refill_rate_per_second=80, clock=clock),
            retry_policy=retry_policy or RetryPolicy(),
            sleep=clock.sleep,
        )

    return factory
