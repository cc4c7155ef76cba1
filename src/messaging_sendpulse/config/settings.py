"""
SendPulse Settings

Environment-driven configuration for the SendPulse WhatsApp client.
Settings are loaded lazily; nothing reads the environment at import time.
"""

import functools
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.sendpulse.com/whatsapp"
DEFAULT_TOKEN_URL = "https://api.sendpulse.com/oauth/access_token"

# Token safety margin: refresh 60s before the provider's expiry
TOKEN_EXPIRY_MARGIN_SECONDS = 60
DEFAULT_TOKEN_EXPIRY_SECONDS = 3600

PRODUCTION_ENVIRONMENTS = frozenset({"production", "prod"})


@dataclass(frozen=True)
class Credentials:
    """
    Provider credentials. Immutable, loaded once at process start.
    """

    app_id: str
    app_secret: str
    webhook_token: str
    static_bot_id: str | None = None


@dataclass(frozen=True)
class SendPulseSettings:
    """
    Full client configuration.

    Attributes:
        app_id: OAuth2 client id (SENDPULSE_APP_ID)
        app_secret: OAuth2 client secret, decrypted if an encryption key is set
        webhook_token: Shared secret for inbound webhook verification
        static_bot_id: Fixed sending channel; discovery is used when empty
        static_api_token: Static bearer token that bypasses OAuth
        bot_phone: Explicit channel selector by phone number
        bot_name: Explicit channel selector by display name
        legacy_client_id: Value of the deprecated SENDPULSE_CLIENT_ID
        legacy_client_secret: Value of the deprecated SENDPULSE_CLIENT_SECRET
        environment: Deployment environment name
        invalid_values: Variables whose value could not be parsed (defaults used)
    """

    app_id: str = ""
    app_secret: str = ""
    webhook_token: str = ""
    static_bot_id: str | None = None
    static_api_token: str | None = None
    bot_phone: str | None = None
    bot_name: str | None = None
    legacy_client_id: str | None = None
    legacy_client_secret: str | None = None
    environment: str = "development"

    base_url: str = DEFAULT_BASE_URL
    token_url: str = DEFAULT_TOKEN_URL
    request_timeout: float = 30.0

    max_retry_attempts: int = 3
    initial_retry_delay_ms: int = 1000
    backoff_multiplier: float = 2.0
    max_retry_delay_ms: int = 10000

    rate_limit_per_second: float = 80.0
    rate_limit_burst: int = 100
    rate_limit_timeout_ms: int = 5000

    default_country_code: str = "55"
    template_language: str = "pt_BR"

    invalid_values: tuple[str, ...] = ()

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in PRODUCTION_ENVIRONMENTS

    @property
    def credentials(self) -> Credentials:
        """Immutable credential view used by the auth layer."""
        return Credentials(
            app_id=self.app_id,
            app_secret=self.app_secret,
            webhook_token=self.webhook_token,
            static_bot_id=self.static_bot_id,
        )


def _optional(environ: Mapping[str, str], name: str) -> str | None:
    value = environ.get(name, "").strip()
    return value or None


def _number(
    environ: Mapping[str, str],
    name: str,
    default: int | float,
    invalid: list[str],
) -> Any:
    """Parse a numeric variable as the type of `default`, recording bad values."""
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return type(default)(raw)
    except ValueError:
        logger.error(f"Invalid value for {name}: {raw!r}, using {default}")
        invalid.append(name)
        return default


def _decrypt_secret(value: str, encryption_key: str | None) -> str:
    """
    Decrypt a Fernet-encrypted secret.

    If no key is configured the value is returned as-is (plaintext mode).
    """
    if not value or not encryption_key:
        return value

    from cryptography.fernet import Fernet, InvalidToken

    try:
        f = Fernet(encryption_key.encode())
        return f.decrypt(value.encode()).decode()
    except (InvalidToken, ValueError) as e:
        # Leave the secret unusable; ConfigValidator reports it as missing
        logger.error(f"Failed to decrypt SENDPULSE_APP_SECRET: {type(e).__name__}")
        return ""


def encrypt_secret(value: str, encryption_key: str) -> str:
    """Encrypt a secret for storage in SENDPULSE_APP_SECRET."""
    from cryptography.fernet import Fernet

    f = Fernet(encryption_key.encode())
    return f.encrypt(value.encode()).decode()


def load_settings(environ: Mapping[str, str] | None = None) -> SendPulseSettings:
    """
    Build settings from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        SendPulseSettings instance
    """
    env = os.environ if environ is None else environ

    encryption_key = _optional(env, "SENDPULSE_ENCRYPTION_KEY")
    app_secret = _decrypt_secret(env.get("SENDPULSE_APP_SECRET", "").strip(), encryption_key)
    invalid: list[str] = []

    return SendPulseSettings(
        app_id=env.get("SENDPULSE_APP_ID", "").strip(),
        app_secret=app_secret,
        webhook_token=env.get("SENDPULSE_WEBHOOK_TOKEN", "").strip(),
        static_bot_id=_optional(env, "SENDPULSE_BOT_ID"),
        static_api_token=_optional(env, "SENDPULSE_API_TOKEN"),
        bot_phone=_optional(env, "SENDPULSE_BOT_PHONE"),
        bot_name=_optional(env, "SENDPULSE_BOT_NAME"),
        legacy_client_id=_optional(env, "SENDPULSE_CLIENT_ID"),
        legacy_client_secret=_optional(env, "SENDPULSE_CLIENT_SECRET"),
        environment=env.get("ENVIRONMENT", "development").strip().lower() or "development",
        base_url=env.get("SENDPULSE_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        token_url=env.get("SENDPULSE_TOKEN_URL", DEFAULT_TOKEN_URL),
        request_timeout=_number(env, "SENDPULSE_REQUEST_TIMEOUT", 30.0, invalid),
        max_retry_attempts=_number(env, "SENDPULSE_MAX_RETRY_ATTEMPTS", 3, invalid),
        initial_retry_delay_ms=_number(env, "SENDPULSE_INITIAL_RETRY_DELAY_MS", 1000, invalid),
        backoff_multiplier=_number(env, "SENDPULSE_BACKOFF_MULTIPLIER", 2.0, invalid),
        max_retry_delay_ms=_number(env, "SENDPULSE_MAX_RETRY_DELAY_MS", 10000, invalid),
        rate_limit_per_second=_number(env, "SENDPULSE_RATE_LIMIT_PER_SECOND", 80.0, invalid),
        rate_limit_burst=_number(env, "SENDPULSE_RATE_LIMIT_BURST", 100, invalid),
        rate_limit_timeout_ms=_number(env, "SENDPULSE_RATE_LIMIT_TIMEOUT_MS", 5000, invalid),
        default_country_code=env.get("SENDPULSE_DEFAULT_COUNTRY_CODE", "55").strip() or "55",
        template_language=env.get("SENDPULSE_TEMPLATE_LANGUAGE", "pt_BR").strip() or "pt_BR",
        invalid_values=tuple(invalid),
    )


@functools.lru_cache()
def get_settings() -> SendPulseSettings:
    """
    Get settings from the process environment (cached).

    Call get_settings.cache_clear() after changing the environment.
    """
    return load_settings()
