"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from models.config import Settings


def make_settings(**overrides) -> Settings:
    """Build settings without reading any .env file."""
    return Settings(_env_file=None, **overrides)


class TestProviderCredentials:
    """Startup fails fast when the chosen provider cannot work."""

    @pytest.mark.parametrize("key", ["", "   "])
    def test_resend_requires_api_key(self, key) -> None:
        with pytest.raises(ValidationError, match="RESEND_API_KEY"):
            make_settings(EMAIL_PROVIDER="resend", RESEND_API_KEY=key)

    def test_resend_with_api_key(self) -> None:
        config = make_settings(EMAIL_PROVIDER="resend", RESEND_API_KEY="re_123")
        assert config.RESEND_API_KEY == "re_123"

    @pytest.mark.parametrize("provider", ["smtp", "console"])
    def test_other_providers_need_no_resend_key(self, provider) -> None:
        config = make_settings(EMAIL_PROVIDER=provider, RESEND_API_KEY="")
        assert config.EMAIL_PROVIDER == provider

    def test_provider_name_normalized(self) -> None:
        assert make_settings(EMAIL_PROVIDER=" Console ").EMAIL_PROVIDER == "console"

    def test_unknown_provider_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Unknown email provider"):
            make_settings(EMAIL_PROVIDER="pigeon")


class TestDefaults:
    def test_rate_limit_defaults(self, monkeypatch) -> None:
        for name in ("RATE_WINDOW_SECONDS", "RATE_MAX", "RATE_MAX_TRACKED_IPS"):
            monkeypatch.delenv(name, raising=False)

        config = make_settings()

        assert config.RATE_WINDOW_SECONDS == 600
        assert config.RATE_MAX == 5
        assert config.RATE_MAX_TRACKED_IPS == 10_000

    def test_sender_defaults(self, monkeypatch) -> None:
        monkeypatch.delenv("FROM_EMAIL", raising=False)
        monkeypatch.delenv("FROM_NAME", raising=False)

        config = make_settings()

        assert config.FROM_EMAIL == "no-reply@contact.cialfor.com"
        assert config.FROM_NAME == "Cialfor Contact"

    @pytest.mark.parametrize(
        "field", ["RATE_WINDOW_SECONDS", "RATE_MAX", "EMAIL_SEND_TIMEOUT_SECONDS"]
    )
    def test_non_positive_values_rejected(self, field) -> None:
        with pytest.raises(ValidationError):
            make_settings(**{field: 0})


class TestEnvironmentParsing:
    def test_cors_origins_comma_separated(self, monkeypatch) -> None:
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com,")

        config = make_settings()

        assert config.CORS_ORIGINS == ["https://a.example.com", "https://b.example.com"]

    def test_routing_addresses_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("INFO_EMAIL", "hello@example.net")
        monkeypatch.setenv("SALES_EMAIL", "deals@example.net")

        config = make_settings()

        assert config.INFO_EMAIL == "hello@example.net"
        assert config.SALES_EMAIL == "deals@example.net"
