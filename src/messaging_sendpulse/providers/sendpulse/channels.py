"""
SendPulse Channel Resolver

Resolves the WhatsApp bot (sending channel) used as bot_id in send calls.
A static bot id wins; otherwise bots are discovered through GET /bots.
"""

import asyncio
import logging

from pydantic import ValidationError

from messaging_sendpulse.contracts.models import Channel
from messaging_sendpulse.contracts.payloads import BotsResponse
from messaging_sendpulse.providers.base import ChannelResolutionError, PermanentRequestError
from messaging_sendpulse.providers.sendpulse.auth import TokenManager
from messaging_sendpulse.providers.sendpulse.client import SendPulseHttpClient, raise_for_status
from messaging_sendpulse.routing.phone import normalize_phone

logger = logging.getLogger(__name__)


class ChannelResolver:
    """
    Resolves and caches the sending channel for the process lifetime.

    Selection among discovered channels: a configured phone selector,
    then a name selector, then the first active channel in provider order.
    """

    def __init__(
        self,
        http: SendPulseHttpClient,
        tokens: TokenManager,
        static_channel_id: str | None = None,
        selector_phone: str | None = None,
        selector_name: str | None = None,
        country_code: str = "55",
    ):
        self.http = http
        self.tokens = tokens
        self.static_channel_id = static_channel_id
        self.selector_phone = selector_phone
        self.selector_name = selector_name
        self.country_code = country_code
        self._channel: Channel | None = None
        self._lock = asyncio.Lock()

    async def resolve(self) -> str:
        """Get the channel id to send from."""
        if self.static_channel_id:
            return self.static_channel_id
        return (await self.resolve_channel()).id

    async def resolve_channel(self) -> Channel:
        """
        Get the full channel, discovering it on first use.

        Raises:
            ChannelResolutionError: If no channel exists or the selector matches none
        """
        if self.static_channel_id:
            return Channel(id=self.static_channel_id)

        if self._channel is not None:
            return self._channel

        async with self._lock:
            if self._channel is None:
                channels = await self.list_channels()
                self._channel = self._select(channels)
                logger.info(
                    "SendPulse channel resolved",
                    extra={"channel_id": self._channel.id, "channel_name": self._channel.display_name},
                )
            return self._channel

    async def list_channels(self) -> list[Channel]:
        """List WhatsApp bots in provider order."""
        token = await self.tokens.get_access_token()
        response = await self.http.request("GET", "/bots", access_token=token)

        try:
            data = raise_for_status(response)
        except PermanentRequestError as e:
            raise ChannelResolutionError(
                f"Failed to list SendPulse bots: {e}",
                details={"status_code": e.status_code},
            ) from e

        try:
            bots = BotsResponse.model_validate(data)
        except ValidationError as e:
            raise ChannelResolutionError(
                "Invalid bots response from SendPulse",
                details={"errors": e.errors(include_input=False)},
            ) from e

        return [
            Channel(
                id=bot.id,
                display_name=bot.display_name,
                phone_number=bot.phone,
                active=bot.status in (None, 3),
            )
            for bot in bots.data
        ]

    def reset(self) -> None:
        """Forget the cached channel so the next send re-resolves it."""
        self._channel = None

    def _select(self, channels: list[Channel]) -> Channel:
        if not channels:
            raise ChannelResolutionError(
                "No WhatsApp bots found in SendPulse account. "
                "Configure SENDPULSE_BOT_ID or create a bot."
            )

        if self.selector_phone:
            wanted = normalize_phone(self.selector_phone, self.country_code)
            for channel in channels:
                if normalize_phone(channel.phone_number, self.country_code) == wanted:
                    return channel

        if self.selector_name:
            wanted_name = self.selector_name.strip().lower()
            for channel in channels:
                if channel.display_name.lower() == wanted_name:
                    return channel

        if self.selector_phone or self.selector_name:
            available = ", ".join(f"{c.display_name or c.id} ({c.phone_number})" for c in channels)
            raise ChannelResolutionError(
                f"No SendPulse bot matches the configured selector. Available: {available}",
                details={"phone": self.selector_phone, "name": self.selector_name},
            )

        candidates = [c for c in channels if c.active]
        if not candidates:
            logger.warning("No active SendPulse bot found, using the first listed bot")
            candidates = channels

        if len(candidates) > 1:
            logger.warning(
                f"Multiple SendPulse bots found ({len(candidates)}), using the first one. "
                "Set SENDPULSE_BOT_ID, SENDPULSE_BOT_PHONE or SENDPULSE_BOT_NAME to choose."
            )

        return candidates[0]
