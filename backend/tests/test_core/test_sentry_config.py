"""Tests for Sentry SDK configuration with privacy-conscious settings."""

from typing import Any
from unittest.mock import patch

from core.sentry_config import _before_send, _traces_sampler, init_sentry


class TestBeforeSendPIIScrubbing:
    """Tests for PII scrubbing in _before_send."""

    def test_scrubs_email_and_username(self) -> None:
        event: dict[str, Any] = {
            "user": {"id": "123", "email": "user@example.com", "username": "jane"}
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        assert result["user"] == {"id": "123"}  # type: ignore[typeddict-item]

    def test_anonymizes_ip_address(self) -> None:
        event: dict[str, Any] = {"user": {"ip_address": "192.168.1.100"}}
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        assert result["user"]["ip_address"] == "{{auto}}"  # type: ignore[typeddict-item]

    def test_removes_submission_body(self) -> None:
        """The request body is the contact submission itself."""
        event: dict[str, Any] = {
            "request": {
                "url": "/api/contact",
                "data": {"name": "Jane", "email": "jane@example.com"},
                "cookies": {"session": "x"},
            }
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        assert "data" not in result["request"]  # type: ignore[operator]
        assert "cookies" not in result["request"]  # type: ignore[operator]

    def test_filters_client_address_headers(self) -> None:
        event: dict[str, Any] = {
            "request": {
                "headers": {
                    "X-Forwarded-For": "203.0.113.1",
                    "X-Real-IP": "203.0.113.1",
                    "Content-Type": "application/json",
                }
            }
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        headers = result["request"]["headers"]  # type: ignore[typeddict-item, index]
        assert headers["X-Forwarded-For"] == "[Filtered]"
        assert headers["X-Real-IP"] == "[Filtered]"
        assert headers["Content-Type"] == "application/json"

    def test_handles_bare_event(self) -> None:
        event: dict[str, Any] = {"message": "Test error"}
        assert _before_send(event, {}) == {"message": "Test error"}  # type: ignore[arg-type]


class TestTracesSampler:
    """Tests for dynamic trace sampling."""

    def test_never_samples_health_checks(self) -> None:
        context = {"asgi_scope": {"path": "/api/health"}}
        assert _traces_sampler(context) == 0.0

    def test_default_sampling_rate(self) -> None:
        context = {"asgi_scope": {"path": "/api/contact"}}
        assert _traces_sampler(context) == 0.2

    def test_respects_parent_sampling(self) -> None:
        context = {"parent_sampled": True, "asgi_scope": {"path": "/api/health"}}
        assert _traces_sampler(context) == 1.0

    def test_handles_missing_asgi_scope(self) -> None:
        assert _traces_sampler({}) == 0.2


class TestInitSentry:
    """Tests for Sentry initialization."""

    def test_without_dsn_does_nothing(self) -> None:
        with patch("sentry_sdk.init") as mock_init:
            assert init_sentry("", "production") is False
        mock_init.assert_not_called()

    def test_with_dsn_initializes(self) -> None:
        with patch("sentry_sdk.init") as mock_init:
            assert (
                init_sentry("https://test@o0.ingest.sentry.io/0", "production", "1.2.3")
                is True
            )

        call_kwargs = mock_init.call_args.kwargs
        assert call_kwargs["dsn"] == "https://test@o0.ingest.sentry.io/0"
        assert call_kwargs["environment"] == "production"
        assert call_kwargs["release"] == "1.2.3"
        assert call_kwargs["send_default_pii"] is False
        assert call_kwargs["before_send"] is _before_send

    def test_release_default(self) -> None:
        with patch("sentry_sdk.init") as mock_init:
            init_sentry("https://test@o0.ingest.sentry.io/0", "staging")
        assert mock_init.call_args.kwargs["release"] == "unknown"
