"""
SendPulse Configuration Validator

Checks presence and shape of the credentials at startup so the process
fails fast, and maps the result to a tri-state health for observability.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from messaging_sendpulse.config.settings import SendPulseSettings
from messaging_sendpulse.providers.base import ConfigurationError

logger = logging.getLogger(__name__)

REQUIRED_VARIABLES = (
    "SENDPULSE_APP_ID",
    "SENDPULSE_APP_SECRET",
    "SENDPULSE_WEBHOOK_TOKEN",
)

MIN_APP_ID_LENGTH = 10
MIN_APP_SECRET_LENGTH = 20
MIN_WEBHOOK_TOKEN_LENGTH = 16

REDACTED = "[REDACTED]"


class ConfigHealth(str, Enum):
    """Health of the SendPulse configuration."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ValidationResult:
    """Outcome of ConfigValidator.validate()."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    config: dict[str, Any] = field(default_factory=dict)


@dataclass
class ConfigStatus:
    """Health check view of the configuration."""

    configured: bool
    health: ConfigHealth
    details: str


class ConfigValidator:
    """
    Validates SendPulse settings.

    Required: app id, app secret, webhook token. The static bot id is an
    error in production and a warning elsewhere (discovery fallback).
    """

    def __init__(self, settings: SendPulseSettings):
        self.settings = settings

    def validate(self) -> ValidationResult:
        """Validate settings, collecting every error and warning."""
        s = self.settings
        errors: list[str] = []
        warnings: list[str] = []

        if not s.app_id.strip():
            errors.append("SENDPULSE_APP_ID is required but not configured")

        if not s.app_secret.strip():
            errors.append("SENDPULSE_APP_SECRET is required but not configured")

        if not s.webhook_token.strip():
            errors.append("SENDPULSE_WEBHOOK_TOKEN is required but not configured")

        if not s.static_bot_id:
            if s.is_production:
                errors.append("SENDPULSE_BOT_ID is required in production environment")
            else:
                warnings.append(
                    "SENDPULSE_BOT_ID not configured. Will attempt auto-discovery from API."
                )

        if s.static_api_token:
            warnings.append("Using static SENDPULSE_API_TOKEN. OAuth credentials will be ignored.")

        if s.legacy_client_id or s.legacy_client_secret:
            warnings.append(
                "Legacy SENDPULSE_CLIENT_ID/CLIENT_SECRET detected. "
                "Use SENDPULSE_APP_ID/APP_SECRET instead."
            )

        if s.app_id and len(s.app_id) < MIN_APP_ID_LENGTH:
            warnings.append("SENDPULSE_APP_ID seems too short. Verify it is correct.")

        if s.app_secret and len(s.app_secret) < MIN_APP_SECRET_LENGTH:
            warnings.append("SENDPULSE_APP_SECRET seems too short. Verify it is correct.")

        if s.webhook_token and len(s.webhook_token) < MIN_WEBHOOK_TOKEN_LENGTH:
            warnings.append("SENDPULSE_WEBHOOK_TOKEN seems too short. Use a strong random token.")

        for name in s.invalid_values:
            errors.append(f"{name} must be a number")

        if s.request_timeout <= 0:
            errors.append("SENDPULSE_REQUEST_TIMEOUT must be > 0")

        if s.max_retry_attempts < 0:
            errors.append("SENDPULSE_MAX_RETRY_ATTEMPTS must be >= 0")

        if s.rate_limit_per_second <= 0 or s.rate_limit_burst < 1:
            errors.append("SENDPULSE_RATE_LIMIT_PER_SECOND and SENDPULSE_RATE_LIMIT_BURST must be positive")

        return ValidationResult(
            valid=not errors,
            errors=errors,
            warnings=warnings,
            config=self._redacted_config(),
        )

    def require_valid(self) -> ValidationResult:
        """
        Validate and raise if the configuration is unusable.

        Must be called at process startup.

        Raises:
            ConfigurationError: listing every error found
        """
        result = self.validate()

        if not result.valid:
            message = "\n".join(
                [
                    "SendPulse configuration validation failed:",
                    *(f"  - {err}" for err in result.errors),
                    "Required variables: " + ", ".join(REQUIRED_VARIABLES),
                ]
            )
            raise ConfigurationError(message, errors=result.errors)

        for warning in result.warnings:
            logger.warning(f"SendPulse configuration warning: {warning}")

        logger.info("SendPulse configuration validated", extra={"config": result.config})
        return result

    def get_config_status(self) -> ConfigStatus:
        """Map validation to healthy / degraded / unhealthy."""
        result = self.validate()

        if result.valid and not result.warnings:
            return ConfigStatus(
                configured=True,
                health=ConfigHealth.HEALTHY,
                details="SendPulse integration fully configured",
            )

        if result.valid:
            return ConfigStatus(
                configured=True,
                health=ConfigHealth.DEGRADED,
                details=f"Configured with {len(result.warnings)} warning(s)",
            )

        return ConfigStatus(
            configured=False,
            health=ConfigHealth.UNHEALTHY,
            details=f"Configuration errors: {len(result.errors)}",
        )

    def is_configured(self) -> bool:
        """Non-throwing check for conditional feature availability."""
        return self.validate().valid

    def _redacted_config(self) -> dict[str, Any]:
        s = self.settings
        return {
            "app_id": s.app_id or None,
            "app_secret": REDACTED if s.app_secret else None,
            "bot_id": s.static_bot_id,
            "webhook_token": REDACTED if s.webhook_token else None,
            "has_static_token": bool(s.static_api_token),
            "has_oauth_credentials": bool(s.app_id and s.app_secret),
            "environment": s.environment,
        }


def diagnostic_message(result: ValidationResult) -> str:
    """Render remediation guidance for a validation result."""
    if result.valid:
        return "SendPulse integration is properly configured."

    lines = [
        "SendPulse integration is not properly configured.",
        "",
        "Missing configuration:",
    ]

    hints = {
        "SENDPULSE_APP_ID": "Get your App ID from: https://login.sendpulse.com/settings/#api",
        "SENDPULSE_APP_SECRET": "Get your App Secret from: https://login.sendpulse.com/settings/#api",
        "SENDPULSE_BOT_ID": "Find your Bot ID in the SendPulse WhatsApp bot settings",
        "SENDPULSE_WEBHOOK_TOKEN": "Generate a strong random token: `openssl rand -hex 32`",
    }

    for error in result.errors:
        lines.append(f"  - {error}")
        for variable, hint in hints.items():
            if error.startswith(variable):
                lines.append(f"    -> {hint}")

    lines.extend(
        [
            "",
            "Example configuration:",
            "SENDPULSE_APP_ID=your_app_id_here",
            "SENDPULSE_APP_SECRET=your_app_secret_here",
            "SENDPULSE_BOT_ID=your_bot_id_here",
            "SENDPULSE_WEBHOOK_TOKEN=your_webhook_token_here",
        ]
    )
    return "\n".join(lines)
