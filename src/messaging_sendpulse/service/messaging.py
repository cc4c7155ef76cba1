"""
SendPulse Messaging Client

Composition root: wires settings into the HTTP client, token manager,
channel resolver, contact directory, rate limiter and dispatcher.
Build one instance at startup and pass it to the code that sends.
"""

import asyncio
import logging
from typing import Any

import httpx

from messaging_sendpulse.config.settings import SendPulseSettings
from messaging_sendpulse.contracts.models import SendTarget
from messaging_sendpulse.messages.builder import ButtonSpec, MessageBuilder, OutboundMessage
from messaging_sendpulse.messages.templates import TemplateRegistry
from messaging_sendpulse.providers.base import DispatchResult, InvalidMessageError
from messaging_sendpulse.providers.sendpulse.auth import TokenManager
from messaging_sendpulse.providers.sendpulse.channels import ChannelResolver
from messaging_sendpulse.providers.sendpulse.client import SendPulseHttpClient
from messaging_sendpulse.providers.sendpulse.contacts import ContactDirectory
from messaging_sendpulse.service.dispatcher import Dispatcher
from messaging_sendpulse.service.rate_limiter import RateLimiter
from messaging_sendpulse.service.retry import RetryPolicy

logger = logging.getLogger(__name__)


class SendPulseMessaging:
    """
    High-level SendPulse WhatsApp client.

    Usage:
        async with build_client(get_settings()) as client:
            result = await client.send_text_message("5533999898026", "Olá!")
    """

    def __init__(
        self,
        settings: SendPulseSettings,
        http: SendPulseHttpClient,
        tokens: TokenManager,
        channels: ChannelResolver,
        contacts: ContactDirectory,
        builder: MessageBuilder,
        dispatcher: Dispatcher,
    ):
        self.settings = settings
        self.http = http
        self.tokens = tokens
        self.channels = channels
        self.contacts = contacts
        self.builder = builder
        self.dispatcher = dispatcher

    async def __aenter__(self) -> "SendPulseMessaging":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.http.close()

    async def send(
        self,
        to: str | SendTarget,
        message: OutboundMessage,
        cancel: asyncio.Event | None = None,
    ) -> DispatchResult:
        return await self.dispatcher.send(_target(to), message, cancel=cancel)

    async def send_text_message(
        self,
        to: str | SendTarget,
        text: str,
        preview_url: bool = False,
        cancel: asyncio.Event | None = None,
    ) -> DispatchResult:
        """Send a free-form text message (inside the conversation window)."""
        try:
            message = self.builder.build_text(text, preview_url=preview_url)
        except InvalidMessageError as e:
            return DispatchResult.from_error(e, attempts=0)
        return await self.send(to, message, cancel=cancel)

    async def send_template_message(
        self,
        to: str | SendTarget,
        template_id: str,
        variables: dict[str, Any] | list[Any] | None = None,
        language: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> DispatchResult:
        """Send an approved template (allowed outside the conversation window)."""
        try:
            message = self.builder.build_template(template_id, variables, language=language)
        except InvalidMessageError as e:
            return DispatchResult.from_error(e, attempts=0)
        return await self.send(to, message, cancel=cancel)

    async def send_interactive_message(
        self,
        to: str | SendTarget,
        body: str,
        buttons: list[ButtonSpec],
        cancel: asyncio.Event | None = None,
    ) -> DispatchResult:
        """Send a quick-reply buttons message (max 3 buttons)."""
        try:
            message = self.builder.build_interactive_buttons(body, buttons)
        except InvalidMessageError as e:
            return DispatchResult.from_error(e, attempts=0)
        return await self.send(to, message, cancel=cancel)

    async def send_image_message(
        self,
        to: str | SendTarget,
        url: str,
        caption: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> DispatchResult:
        try:
            message = self.builder.build_image(url, caption)
        except InvalidMessageError as e:
            return DispatchResult.from_error(e, attempts=0)
        return await self.send(to, message, cancel=cancel)


def _target(to: str | SendTarget) -> SendTarget:
    if isinstance(to, SendTarget):
        return to
    return SendTarget.to_phone(to)


def build_client(
    settings: SendPulseSettings,
    transport: httpx.AsyncBaseTransport | None = None,
    templates: TemplateRegistry | None = None,
    rate_limiter: RateLimiter | None = None,
) -> SendPulseMessaging:
    """
    Build a SendPulseMessaging client from settings.

    Args:
        settings: Validated settings
        transport: Optional httpx transport (e.g. StubSendPulseApi().transport())
        templates: Optional registry of approved templates
        rate_limiter: Optional limiter shared with other clients

    Returns:
        SendPulseMessaging instance (use as an async context manager)
    """
    http = SendPulseHttpClient(
        base_url=settings.base_url,
        timeout=settings.request_timeout,
        transport=transport,
    )
    tokens = TokenManager(
        http,
        credentials=settings.credentials,
        token_url=settings.token_url,
        static_token=settings.static_api_token,
    )
    channels = ChannelResolver(
        http,
        tokens,
        static_channel_id=settings.static_bot_id,
        selector_phone=settings.bot_phone,
        selector_name=settings.bot_name,
        country_code=settings.default_country_code,
    )
    contacts = ContactDirectory(
        http,
        tokens,
        channels,
        country_code=settings.default_country_code,
    )
    builder = MessageBuilder(default_language=settings.template_language, templates=templates)
    if rate_limiter is None:
        rate_limiter = RateLimiter(
            capacity=settings.rate_limit_burst,
            refill_rate_per_second=settings.rate_limit_per_second,
        )
    dispatcher = Dispatcher(
        http,
        tokens,
        channels,
        rate_limiter=rate_limiter,
        retry_policy=RetryPolicy(
            max_retries=settings.max_retry_attempts,
            initial_delay_ms=settings.initial_retry_delay_ms,
            multiplier=settings.backoff_multiplier,
            max_delay_ms=settings.max_retry_delay_ms,
        ),
        rate_limit_timeout_ms=settings.rate_limit_timeout_ms,
        country_code=settings.default_country_code,
    )

    logger.debug(
        "SendPulse client built",
        extra={"base_url": settings.base_url, "static_bot": bool(settings.static_bot_id)},
    )

    return SendPulseMessaging(
        settings=settings,
        http=http,
        tokens=tokens,
        channels=channels,
        contacts=contacts,
        builder=builder,
        dispatcher=dispatcher,
    )
