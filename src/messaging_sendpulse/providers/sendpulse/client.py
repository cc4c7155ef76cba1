"""
SendPulse HTTP Client

Thin async wrapper around httpx shared by every SendPulse component.
Owns the connection pool and classifies transport failures; callers
decide what a given status code means for their operation.
"""

import logging
from collections.abc import Callable
from typing import Any

import httpx

from messaging_sendpulse.providers.base import (
    AuthenticationError,
    PermanentRequestError,
    SendPulseError,
    TransientTransportError,
    extract_error_message,
    is_retryable_status,
)

logger = logging.getLogger(__name__)


class SendPulseHttpClient:
    """
    HTTP access to the SendPulse WhatsApp API.

    A custom httpx transport can be injected (httpx.MockTransport in tests
    and the CLI stub mode).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        access_token: str | None = None,
        json_data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Issue a request and return the raw response.

        Raises:
            TransientTransportError: On timeout or network failure
        """
        client = await self._get_client()

        headers = {}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        try:
            return await client.request(
                method.upper(),
                self.url(path),
                headers=headers,
                json=json_data,
                params=params,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"SendPulse request timed out: {method.upper()} {path}")
            raise TransientTransportError(
                f"Request timed out after {self.timeout}s",
                details={"path": path, "error": type(e).__name__},
            ) from e
        except httpx.RequestError as e:
            logger.warning(f"SendPulse request failed: {method.upper()} {path}: {type(e).__name__}")
            raise TransientTransportError(
                f"HTTP request failed: {e}",
                details={"path": path, "error": type(e).__name__},
            ) from e


def parse_json(response: httpx.Response) -> dict[str, Any]:
    """Decode a JSON object body; anything else becomes an empty dict."""
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {"data": data}


def classify_error(
    response: httpx.Response,
    data: dict[str, Any],
    is_retryable: Callable[[int], bool] = is_retryable_status,
) -> SendPulseError:
    """
    Map a non-2xx response to the error taxonomy.

    401 -> AuthenticationError, retryable per `is_retryable` ->
    TransientTransportError, anything else -> PermanentRequestError.
    """
    status = response.status_code
    message = extract_error_message(data, f"SendPulse API error: HTTP {status}")

    if status == 401:
        return AuthenticationError(message, status_code=status, details=data)

    if is_retryable(status):
        return TransientTransportError(
            message,
            status_code=status,
            details=data,
            retry_after=parse_retry_after(response.headers.get("Retry-After")),
        )

    return PermanentRequestError(message, status_code=status, details=data)


def raise_for_status(response: httpx.Response) -> dict[str, Any]:
    """Return the decoded body of a 2xx response, raise a classified error otherwise."""
    data = parse_json(response)
    if response.is_success:
        return data
    raise classify_error(response, data)


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        # HTTP-date form is not used by SendPulse
        return None
    return seconds if seconds >= 0 else None
