"""
SendPulse Configuration

Settings loading and startup validation.
"""

from messaging_sendpulse.config.settings import (
    Credentials,
    SendPulseSettings,
    get_settings,
    load_settings,
)
from messaging_sendpulse.config.validator import (
    ConfigHealth,
    ConfigStatus,
    ConfigValidator,
    ValidationResult,
    diagnostic_message,
)

__all__ = [
    "Credentials",
    "SendPulseSettings",
    "get_settings",
    "load_settings",
    "ConfigHealth",
    "ConfigStatus",
    "ConfigValidator",
    "ValidationResult",
    "diagnostic_message",
]
