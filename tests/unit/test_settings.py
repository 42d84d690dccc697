"""Tests for configuration settings."""
import pytest
from pydantic import ValidationError

from flowhub.config.settings import Settings, get_settings, reset_settings


class TestSettings:
    """Test Settings configuration."""

    def test_default_values(self, monkeypatch):
        """Defaults apply when nothing is set."""
        monkeypatch.delenv("FLOWHUB_PROXY_SERVICE_KEY", raising=False)

        settings = Settings()

        # env and log_format are set in conftest.py
        assert settings.env == "test"
        assert settings.log_format == "text"
        assert settings.log_level == "INFO"
        assert settings.max_flow_steps == 1000
        assert settings.http_timeout_s == 30.0
        assert settings.signature_tolerance_s == 300
        assert settings.aws_default_region == "us-east-1"
        assert settings.clockodo_application == "flowhub"
        assert settings.proxy_base_url is None
        assert settings.proxy_service_key is None

    def test_env_prefix(self, monkeypatch):
        """Values come from FLOWHUB_* variables."""
        monkeypatch.setenv("FLOWHUB_MAX_FLOW_STEPS", "50")
        monkeypatch.setenv("FLOWHUB_PROXY_SERVICE_KEY", "service-key")

        settings = Settings()

        assert settings.max_flow_steps == 50
        assert settings.proxy_service_key.get_secret_value() == "service-key"
        assert "service-key" not in repr(settings)

    @pytest.mark.parametrize("field", ["max_flow_steps", "http_timeout_s"])
    def test_limits_must_be_positive(self, field):
        with pytest.raises(ValidationError) as exc_info:
            Settings(**{field: 0})

        assert "must be positive" in str(exc_info.value)

    def test_log_format_normalized(self):
        assert Settings(log_format="JSON").log_format == "json"

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(log_format="xml")

        assert "log_format must be 'json' or 'text'" in str(exc_info.value)


class TestSettingsSingleton:
    """Test the cached settings instance."""

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_reset_settings(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("FLOWHUB_CLOCKODO_APPLICATION", "acme")

        reset_settings()
        second = get_settings()

        assert second is not first
        assert second.clockodo_application == "acme"
