"""
Tests for settings loading and configuration validation.
"""

import dataclasses

import pytest
from cryptography.fernet import Fernet

from messaging_sendpulse.config.settings import (
    SendPulseSettings,
    encrypt_secret,
    get_settings,
    load_settings,
)
from messaging_sendpulse.config.validator import (
    ConfigHealth,
    ConfigValidator,
    diagnostic_message,
)
from messaging_sendpulse.providers.base import ConfigurationError

VALID_ENV = {
    "SENDPULSE_APP_ID": "app_id_1234567890",
    "SENDPULSE_APP_SECRET": "app_secret_abcdefghijklmnop",
    "SENDPULSE_WEBHOOK_TOKEN": "webhook_token_0123456789",
    "SENDPULSE_BOT_ID": "bot_123",
}


class TestLoadSettings:
    """Tests for environment loading."""

    def test_defaults(self):
        settings = load_settings({})

        assert settings.base_url == "https://api.sendpulse.com/whatsapp"
        assert settings.token_url == "https://api.sendpulse.com/oauth/access_token"
        assert settings.request_timeout == 30.0
        assert settings.max_retry_attempts == 3
        assert settings.initial_retry_delay_ms == 1000
        assert settings.backoff_multiplier == 2.0
        assert settings.max_retry_delay_ms == 10000
        assert settings.rate_limit_per_second == 80.0
        assert settings.rate_limit_burst == 100
        assert settings.template_language == "pt_BR"
        assert settings.default_country_code == "55"
        assert settings.static_bot_id is None
        assert settings.environment == "development"

    def test_values_from_environment(self):
        settings = load_settings(
            {
                **VALID_ENV,
                "SENDPULSE_BOT_PHONE": "5533999990001",
                "SENDPULSE_MAX_RETRY_ATTEMPTS": "5",
                "SENDPULSE_BASE_URL": "https://sandbox.example.com/whatsapp/",
                "ENVIRONMENT": "Production",
            }
        )

        assert settings.app_id == "app_id_1234567890"
        assert settings.static_bot_id == "bot_123"
        assert settings.bot_phone == "5533999990001"
        assert settings.max_retry_attempts == 5
        assert settings.base_url == "https://sandbox.example.com/whatsapp"
        assert settings.is_production is True

    def test_credentials_view(self):
        credentials = load_settings(VALID_ENV).credentials

        assert credentials.app_id == "app_id_1234567890"
        assert credentials.static_bot_id == "bot_123"
        with pytest.raises(dataclasses.FrozenInstanceError):
            credentials.app_id = "other"

    def test_encrypted_secret(self):
        key = Fernet.generate_key().decode()
        env = {
            **VALID_ENV,
            "SENDPULSE_ENCRYPTION_KEY": key,
            "SENDPULSE_APP_SECRET": encrypt_secret("app_secret_abcdefghijklmnop", key),
        }

        assert load_settings(env).app_secret == "app_secret_abcdefghijklmnop"

    def test_undecryptable_secret_is_empty(self):
        env = {
            **VALID_ENV,
            "SENDPULSE_ENCRYPTION_KEY": Fernet.generate_key().decode(),
            "SENDPULSE_APP_SECRET": "not-encrypted",
        }

        settings = load_settings(env)

        assert settings.app_secret == ""
        assert ConfigValidator(settings).validate().valid is False

    def test_get_settings_cached(self, clean_env):
        clean_env.setenv("SENDPULSE_APP_ID", "first_app_id_123")
        get_settings.cache_clear()

        first = get_settings()
        clean_env.setenv("SENDPULSE_APP_ID", "second_app_id_123")

        assert get_settings() is first
        get_settings.cache_clear()
        assert get_settings().app_id == "second_app_id_123"
        get_settings.cache_clear()


class TestConfigValidator:
    """Tests for ConfigValidator.validate."""

    def test_valid(self, settings):
        result = ConfigValidator(settings).validate()

        assert result.valid is True
        assert result.errors == []
        assert result.warnings == []

    def test_empty_app_secret(self, settings):
        """Test an empty app secret is a specific error."""
        result = ConfigValidator(dataclasses.replace(settings, app_secret="")).validate()

        assert result.valid is False
        assert "SENDPULSE_APP_SECRET is required but not configured" in result.errors

    def test_all_required_missing(self):
        result = ConfigValidator(SendPulseSettings()).validate()

        assert len([e for e in result.errors if "required but not configured" in e]) == 3

    def test_missing_bot_id_in_development(self, settings):
        result = ConfigValidator(dataclasses.replace(settings, static_bot_id=None)).validate()

        assert result.valid is True
        assert any("auto-discovery" in w for w in result.warnings)

    def test_missing_bot_id_in_production(self, settings):
        prod = dataclasses.replace(settings, static_bot_id=None, environment="production")

        result = ConfigValidator(prod).validate()

        assert result.valid is False
        assert "SENDPULSE_BOT_ID is required in production environment" in result.errors

    def test_legacy_names_warn(self, settings):
        legacy = dataclasses.replace(settings, legacy_client_id="old_id")

        result = ConfigValidator(legacy).validate()

        assert result.valid is True
        assert any("Legacy" in w for w in result.warnings)

    def test_static_token_warns(self, settings):
        result = ConfigValidator(dataclasses.replace(settings, static_api_token="tok")).validate()

        assert any("SENDPULSE_API_TOKEN" in w for w in result.warnings)

    def test_short_values_warn(self, settings):
        short = dataclasses.replace(settings, app_id="abc", app_secret="short", webhook_token="tiny")

        result = ConfigValidator(short).validate()

        assert result.valid is True
        assert len(result.warnings) == 3

    @pytest.mark.parametrize(
        "field,value",
        [("request_timeout", 0), ("max_retry_attempts", -1), ("rate_limit_per_second", 0)],
    )
    def test_invalid_numbers(self, settings, field, value):
        result = ConfigValidator(dataclasses.replace(settings, **{field: value})).validate()

        assert result.valid is False

    def test_zero_retries_allowed(self, settings):
        result = ConfigValidator(dataclasses.replace(settings, max_retry_attempts=0)).validate()

        assert result.valid is True

    def test_unparseable_numbers_reported(self):
        """Test malformed numeric variables become errors instead of exceptions."""
        settings = load_settings(
            {
                **VALID_ENV,
                "SENDPULSE_MAX_RETRY_ATTEMPTS": "three",
                "SENDPULSE_RATE_LIMIT_PER_SECOND": "fast",
            }
        )

        result = ConfigValidator(settings).validate()

        assert settings.max_retry_attempts == 3
        assert settings.invalid_values == ("SENDPULSE_MAX_RETRY_ATTEMPTS", "SENDPULSE_RATE_LIMIT_PER_SECOND")
        assert result.valid is False
        assert "SENDPULSE_MAX_RETRY_ATTEMPTS must be a number" in result.errors
        assert "SENDPULSE_RATE_LIMIT_PER_SECOND must be a number" in result.errors

    def test_unparseable_numbers_raise_from_require_valid(self):
        settings = load_settings({**VALID_ENV, "SENDPULSE_REQUEST_TIMEOUT": "30s"})

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigValidator(settings).require_valid()

        assert "SENDPULSE_REQUEST_TIMEOUT must be a number" in exc_info.value.errors

    def test_config_redacted(self, settings):
        config = ConfigValidator(settings).validate().config

        assert config["app_secret"] == "[REDACTED]"
        assert config["webhook_token"] == "[REDACTED]"
        assert settings.app_secret not in str(config)


class TestRequireValid:
    """Tests for fail-fast startup validation."""

    def test_raises_with_all_errors(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigValidator(SendPulseSettings()).require_valid()

        assert len(exc_info.value.errors) == 3
        assert "SENDPULSE_APP_ID" in str(exc_info.value)
        assert "SENDPULSE_WEBHOOK_TOKEN" in str(exc_info.value)

    def test_returns_result_when_valid(self, settings):
        assert ConfigValidator(settings).require_valid().valid is True


class TestConfigStatus:
    """Tests for the tri-state health."""

    def test_healthy(self, settings):
        status = ConfigValidator(settings).get_config_status()

        assert status.health == ConfigHealth.HEALTHY
        assert status.configured is True

    def test_degraded(self, settings):
        status = ConfigValidator(dataclasses.replace(settings, static_bot_id=None)).get_config_status()

        assert status.health == ConfigHealth.DEGRADED
        assert status.configured is True

    def test_unhealthy(self):
        status = ConfigValidator(SendPulseSettings()).get_config_status()

        assert status.health == ConfigHealth.UNHEALTHY
        assert status.configured is False


class TestDiagnosticMessage:
    """Tests for remediation output."""

    def test_valid(self, settings):
        message = diagnostic_message(ConfigValidator(settings).validate())

        assert message == "SendPulse integration is properly configured."

    def test_hints_for_missing(self):
        message = diagnostic_message(ConfigValidator(SendPulseSettings()).validate())

        assert "SENDPULSE_APP_ID is required" in message
        assert "openssl rand -hex 32" in message
        assert "Example configuration:" in message
