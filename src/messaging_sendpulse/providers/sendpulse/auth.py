"""
SendPulse OAuth Token Manager

Obtains and caches OAuth2 client_credentials tokens. Concurrent callers
that find the cache stale share one in-flight refresh.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import ValidationError

from messaging_sendpulse.config.settings import Credentials
from messaging_sendpulse.contracts.models import AccessToken
from messaging_sendpulse.contracts.payloads import TokenResponse
from messaging_sendpulse.providers.base import AuthenticationError, TransientTransportError
from messaging_sendpulse.providers.sendpulse.client import (
    SendPulseHttpClient,
    classify_error,
    parse_json,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenInfo:
    """Observability view of the cached token (never the token itself)."""

    has_token: bool
    is_valid: bool
    expires_in: int


class TokenManager:
    """
    OAuth2 token cache for the SendPulse API.

    When a static API token is configured it is returned as-is and the
    token endpoint is never called.
    """

    def __init__(
        self,
        http: SendPulseHttpClient,
        credentials: Credentials,
        token_url: str,
        static_token: str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.http = http
        self.credentials = credentials
        self.token_url = token_url
        self.static_token = static_token
        self._clock = clock
        self._token: AccessToken | None = None
        self._inflight: asyncio.Task[AccessToken] | None = None
        self._lock = asyncio.Lock()

    async def get_access_token(self) -> str:
        """
        Get a valid access token, refreshing it if needed.

        Raises:
            AuthenticationError: If the token endpoint rejects the credentials
            TransientTransportError: If the token endpoint is unreachable
        """
        if self.static_token:
            return self.static_token

        token = self._token
        if token is not None and token.is_valid(self._clock()):
            return token.value

        return (await self._refresh(force=False)).value

    async def refresh(self) -> str:
        """Force a new token, joining a refresh already in flight."""
        if self.static_token:
            return self.static_token
        return (await self._refresh(force=True)).value

    def invalidate(self) -> None:
        """Drop the cached token (e.g. after the API answered 401)."""
        if self._token is not None:
            logger.info("SendPulse access token invalidated")
        self._token = None

    def token_info(self) -> TokenInfo:
        if self.static_token:
            return TokenInfo(has_token=True, is_valid=True, expires_in=0)

        token = self._token
        if token is None:
            return TokenInfo(has_token=False, is_valid=False, expires_in=0)

        now = self._clock()
        return TokenInfo(
            has_token=True,
            is_valid=token.is_valid(now),
            expires_in=token.expires_in(now),
        )

    async def _refresh(self, force: bool) -> AccessToken:
        async with self._lock:
            token = self._token
            if not force and token is not None and token.is_valid(self._clock()):
                return token

            if self._inflight is None:
                self._inflight = asyncio.create_task(self._request_token())
            task = self._inflight

        # Shield so a cancelled waiter does not abort the refresh for the others
        return await asyncio.shield(task)

    async def _request_token(self) -> AccessToken:
        try:
            if not self.credentials.app_id or not self.credentials.app_secret:
                raise AuthenticationError("SendPulse OAuth credentials are not configured")

            response = await self.http.request(
                "POST",
                self.token_url,
                json_data={
                    "grant_type": "client_credentials",
                    "client_id": self.credentials.app_id,
                    "client_secret": self.credentials.app_secret,
                },
            )
            data = parse_json(response)

            if not response.is_success:
                error = classify_error(response, data)
                if isinstance(error, TransientTransportError):
                    raise error
                logger.error(
                    "SendPulse authentication failed",
                    extra={"status_code": response.status_code},
                )
                raise AuthenticationError(
                    f"SendPulse authentication failed: {error}",
                    status_code=response.status_code,
                    details=data,
                )

            try:
                payload = TokenResponse.model_validate(data)
            except ValidationError as e:
                raise AuthenticationError(
                    "Invalid token response from SendPulse",
                    status_code=response.status_code,
                    details={"errors": e.errors(include_input=False)},
                ) from e

            token = AccessToken.issue(payload.access_token, payload.expires_in, self._clock())
            self._token = token

            logger.info(
                "SendPulse access token refreshed",
                extra={"expires_in": payload.expires_in},
            )
            return token
        finally:
            self._inflight = None
