"""
SendPulse Webhook Verification

Helpers for the inbound webhook path, which shares the webhook token
with this client. Comparisons are constant-time.
"""

import hmac
import logging
from collections.abc import Mapping

logger = logging.getLogger(__name__)


def verify_webhook_token(provided: str | None, expected: str | None) -> bool:
    """
    Compare a received webhook token with the configured one.

    An empty expected or provided token never matches.
    """
    if not provided or not expected:
        return False

    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def validate_webhook_request(request_headers: Mapping[str, str], expected_token: str) -> bool:
    """
    Validate the webhook token from request headers.

    SendPulse can send the token in:
    - Header: "X-Webhook-Token" or "Token"
    - Header: "Authorization: Bearer <token>"
    """
    headers = {k.lower(): v for k, v in request_headers.items()}

    for name in ("x-webhook-token", "token"):
        if verify_webhook_token(headers.get(name), expected_token):
            return True

    auth_header = headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        if verify_webhook_token(auth_header[7:], expected_token):
            return True

    logger.warning("Rejected SendPulse webhook: invalid or missing token")
    return False
