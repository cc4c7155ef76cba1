"""
SendPulse Provider Base

Error taxonomy and result types shared by every SendPulse component.
Per-message failures travel as DispatchResult values; systemic failures
(configuration, authentication, channel) are raised.
"""

from dataclasses import dataclass, field
from typing import Any

# HTTP status codes that trigger a retry
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class SendPulseError(Exception):
    """Error from the SendPulse integration."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.retryable = retryable
        self.status_code = status_code


class ConfigurationError(SendPulseError):
    """Required configuration is missing or invalid. Fatal at startup."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message, code="CONFIGURATION_ERROR")
        self.errors = errors or []


class AuthenticationError(SendPulseError):
    """The token endpoint rejected the credentials. Never retried."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message,
            code="AUTHENTICATION_ERROR",
            details=details,
            status_code=status_code,
        )


class ChannelResolutionError(SendPulseError):
    """No sending channel is configured or discoverable."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code="CHANNEL_RESOLUTION_ERROR", details=details)


class TransientTransportError(SendPulseError):
    """Timeout, network failure, 429 or 5xx. Retried per policy."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(
            message,
            code="TRANSIENT_TRANSPORT_ERROR",
            details=details,
            retryable=True,
            status_code=status_code,
        )
        self.retry_after = retry_after


class PermanentRequestError(SendPulseError):
    """Any other 4xx. Single attempt, carries the provider's message."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
        code: str = "PERMANENT_REQUEST_ERROR",
    ):
        super().__init__(message, code=code, details=details, status_code=status_code)


class InvalidMessageError(PermanentRequestError):
    """A message payload violates provider limits. Detected before any I/O."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details=details, code="INVALID_MESSAGE")


class RateLimitExceeded(SendPulseError):
    """Local rate limiter could not grant a slot before the timeout."""

    def __init__(self, message: str = "Rate limit exceeded. Please wait and try again."):
        super().__init__(message, code="RATE_LIMIT_EXCEEDED", retryable=True)


@dataclass
class DispatchResult:
    """
    Outcome of a single Dispatcher.send call.

    Never raised; a batch of sends can partially succeed.
    """

    success: bool
    provider_message_id: str | None = None
    error: str | None = None
    error_code: str | None = None
    retryable: bool = False
    attempts: int = 0
    status_code: int | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_error(cls, error: SendPulseError, attempts: int) -> "DispatchResult":
        """Build a failed result from a classified error."""
        return cls(
            success=False,
            error=str(error),
            error_code=error.code,
            retryable=error.retryable,
            attempts=attempts,
            status_code=error.status_code,
            raw_response=error.details,
        )


def is_retryable_status(status_code: int) -> bool:
    """Check whether an HTTP status belongs to the retryable set."""
    return status_code in RETRYABLE_STATUS_CODES


def extract_error_message(response_data: Any, default: str) -> str:
    """
    Pull a readable message out of a SendPulse error body.

    SendPulse uses `message`, `error_description` or an `errors` mapping
    of field -> list of messages depending on the endpoint.
    """
    if not isinstance(response_data, dict):
        return default

    for key in ("message", "error_description", "error"):
        value = response_data.get(key)
        if isinstance(value, str) and value:
            return value

    errors = response_data.get("errors")
    if isinstance(errors, dict) and errors:
        parts = []
        for field_name, messages in errors.items():
            if isinstance(messages, list):
                parts.append(f"{field_name}: {', '.join(str(m) for m in messages)}")
            else:
                parts.append(f"{field_name}: {messages}")
        return "; ".join(parts)

    return default
