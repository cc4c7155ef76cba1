"""
Outbound Message Dispatcher

Sends one message to SendPulse:
1. Ensures a valid access token
2. Resolves the sending channel
3. Normalizes the destination phone
4. Builds the wire payload
5. Acquires a rate-limit slot
6. Issues the HTTP call, classifying the response and retrying per policy

Per-message failures come back as DispatchResult values. Configuration,
authentication (token endpoint) and channel failures are raised.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from pydantic import ValidationError

from messaging_sendpulse.contracts.models import SendTarget
from messaging_sendpulse.contracts.payloads import SendMessageResponse
from messaging_sendpulse.messages.builder import OutboundMessage
from messaging_sendpulse.providers.base import (
    AuthenticationError,
    DispatchResult,
    InvalidMessageError,
    PermanentRequestError,
    RateLimitExceeded,
    TransientTransportError,
    extract_error_message,
)
from messaging_sendpulse.providers.sendpulse.auth import TokenManager
from messaging_sendpulse.providers.sendpulse.channels import ChannelResolver
from messaging_sendpulse.providers.sendpulse.client import (
    SendPulseHttpClient,
    classify_error,
    parse_json,
)
from messaging_sendpulse.routing.phone import mask_phone, normalize_phone
from messaging_sendpulse.service.rate_limiter import RateLimiter
from messaging_sendpulse.service.retry import RetryPolicy, RetryState

logger = logging.getLogger(__name__)

CONVERSATION_WINDOW_EXPIRED = "conversation_window_expired"
CANCELLED = "cancelled"


class DispatchState(str, Enum):
    """States of a single send call."""

    IDLE = "idle"
    AUTH_PENDING = "auth_pending"
    CHANNEL_RESOLVING = "channel_resolving"
    RATE_LIMITED = "rate_limited"
    SENDING = "sending"
    RETRY_SCHEDULED = "retry_scheduled"
    SUCCESS = "success"
    PERMANENT_FAILURE = "permanent_failure"


class Dispatcher:
    """
    Sends messages with rate limiting and retry/backoff.

    The calling coroutine owns the whole retry sequence; there is no
    background worker and no ordering across concurrent sends.
    """

    def __init__(
        self,
        http: SendPulseHttpClient,
        tokens: TokenManager,
        channels: ChannelResolver,
        rate_limiter: RateLimiter,
        retry_policy: RetryPolicy | None = None,
        rate_limit_timeout_ms: float = 5000,
        country_code: str = "55",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.http = http
        self.tokens = tokens
        self.channels = channels
        self.rate_limiter = rate_limiter
        self.retry_policy = retry_policy or RetryPolicy()
        self.rate_limit_timeout_ms = rate_limit_timeout_ms
        self.country_code = country_code
        self._sleep = sleep

    async def send(
        self,
        target: SendTarget,
        message: OutboundMessage,
        cancel: asyncio.Event | None = None,
    ) -> DispatchResult:
        """
        Send a message.

        Args:
            target: Phone number or contact id
            message: Built message (see MessageBuilder)
            cancel: Set to abandon the send before the next attempt

        Returns:
            DispatchResult (never raises for per-message failures)

        Raises:
            AuthenticationError: If the token endpoint rejects the credentials
            ChannelResolutionError: If no sending channel can be resolved
        """
        if target.conversation_open is False and not message.is_template:
            logger.warning(
                "Conversation window expired, only template messages can be sent",
                extra={"target": self._describe(target)},
            )
            return DispatchResult(
                success=False,
                error="24h conversation window expired; send a template message instead",
                error_code=CONVERSATION_WINDOW_EXPIRED,
                retryable=False,
            )

        phone = None
        if target.is_phone:
            phone = normalize_phone(target.phone, self.country_code)
            if not phone:
                return DispatchResult.from_error(
                    InvalidMessageError("Destination phone has no digits"),
                    attempts=0,
                )

        payload = message.to_payload()
        policy = self.retry_policy
        retry = RetryState()
        last_error: TransientTransportError | None = None

        self._transition(DispatchState.IDLE, target)

        while retry.attempt < policy.max_attempts:
            if cancel is not None and cancel.is_set():
                return self._cancelled(retry.attempt)

            retry.attempt += 1

            try:
                return await self._attempt(target, phone, payload, retry.attempt)

            except TransientTransportError as e:
                last_error = e
                if retry.attempt >= policy.max_attempts:
                    break

                retry.next_delay_ms = policy.delay_ms(retry.attempt - 1, e.retry_after)
                self._transition(DispatchState.RETRY_SCHEDULED, target)
                logger.warning(
                    f"SendPulse send failed, retrying in {retry.next_delay_ms:.0f}ms",
                    extra={
                        "target": self._describe(target),
                        "attempt": retry.attempt,
                        "status_code": e.status_code,
                        "error": str(e),
                    },
                )

                if await self._backoff(retry.next_delay_ms, cancel):
                    return self._cancelled(retry.attempt)

            except RateLimitExceeded as e:
                # No request was issued for this attempt
                logger.warning(
                    "Local rate limit slot not granted in time",
                    extra={"target": self._describe(target), "timeout_ms": self.rate_limit_timeout_ms},
                )
                return DispatchResult.from_error(e, attempts=retry.attempt - 1)

            except PermanentRequestError as e:
                self._transition(DispatchState.PERMANENT_FAILURE, target)
                logger.warning(
                    f"SendPulse rejected message: {e}",
                    extra={"target": self._describe(target), "status_code": e.status_code},
                )
                return DispatchResult.from_error(e, attempts=retry.attempt)

        logger.warning(
            f"SendPulse send failed after {retry.attempt} attempts",
            extra={"target": self._describe(target), "error": str(last_error)},
        )
        if last_error is None:
            return DispatchResult(success=False, error="No attempts made", retryable=True)
        return DispatchResult.from_error(last_error, attempts=retry.attempt)

    async def _attempt(
        self,
        target: SendTarget,
        phone: str | None,
        payload: dict[str, Any],
        attempt: int,
    ) -> DispatchResult:
        self._transition(DispatchState.AUTH_PENDING, target)
        token = await self.tokens.get_access_token()

        if phone is not None:
            self._transition(DispatchState.CHANNEL_RESOLVING, target)
            bot_id = await self.channels.resolve()
            path = "/contacts/sendByPhone"
            body = {"bot_id": bot_id, "phone": phone, "message": payload}
        else:
            path = "/contacts/send"
            body = {"contact_id": target.contact_id, "message": payload}

        self._transition(DispatchState.RATE_LIMITED, target)
        if not await self.rate_limiter.acquire(self.rate_limit_timeout_ms):
            raise RateLimitExceeded()

        self._transition(DispatchState.SENDING, target)
        response = await self.http.request("POST", path, access_token=token, json_data=body)
        data = parse_json(response)

        if not response.is_success:
            error = classify_error(response, data, self.retry_policy.is_retryable)
            if isinstance(error, AuthenticationError):
                # Token revoked or expired early: next send re-authenticates
                self.tokens.invalidate()
                raise PermanentRequestError(
                    str(error), status_code=error.status_code, details=data, code="AUTHENTICATION_ERROR"
                )
            raise error

        try:
            parsed = SendMessageResponse.model_validate(data)
        except ValidationError:
            parsed = SendMessageResponse()

        if not parsed.success:
            raise PermanentRequestError(
                extract_error_message(data, "SendPulse rejected the message"),
                status_code=response.status_code,
                details=data,
            )

        self._transition(DispatchState.SUCCESS, target)
        logger.info(
            "Sent message via SendPulse",
            extra={
                "target": self._describe(target),
                "message_type": payload.get("type"),
                "message_id": parsed.message_id,
                "attempt": attempt,
            },
        )
        return DispatchResult(
            success=True,
            provider_message_id=parsed.message_id,
            attempts=attempt,
            status_code=response.status_code,
            raw_response=data,
        )

    async def _backoff(self, delay_ms: float, cancel: asyncio.Event | None) -> bool:
        """Wait before the next attempt. Returns True if cancelled meanwhile."""
        seconds = delay_ms / 1000

        if cancel is None:
            await self._sleep(seconds)
            return False

        sleeper = asyncio.ensure_future(self._sleep(seconds))
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()
        return cancel.is_set()

    def _cancelled(self, attempts: int) -> DispatchResult:
        logger.info("SendPulse send cancelled", extra={"attempts": attempts})
        return DispatchResult(
            success=False,
            error=CANCELLED,
            error_code=CANCELLED,
            retryable=True,
            attempts=attempts,
        )

    def _transition(self, state: DispatchState, target: SendTarget) -> None:
        logger.debug(f"Dispatch state: {state.value}", extra={"target": self._describe(target)})

    @staticmethod
    def _describe(target: SendTarget) -> str:
        if target.is_phone:
            return mask_phone(target.phone)
        return f"contact:{target.contact_id}"
