import os
import sys
from typing import Annotated, List

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _should_load_env_file() -> str | None:
    """Determine if .env should be loaded.

    For local development, load `.env` automatically so `RESEND_API_KEY` can be
    provided from `backend/.env` (convenience). The key remains required when
    the Resend provider is selected and must be set in production via
    environment variables.

    Do NOT auto-load `.env` when running under pytest or in CI (so tests
    that validate missing secrets continue to fail fast).
    """
    if any("pytest" in str(x) for x in sys.argv if x):
        return None
    if os.environ.get("CI") in ("1", "true", "True"):
        return None
    return ".env"


class Settings(BaseSettings):
    # Environment configuration
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: 'development', 'staging', 'production' or 'test'",
    )

    CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins (comma-separated in env var)",
    )

    # Performance settings
    SLOW_REQUEST_THRESHOLD: float = Field(
        default=1.0,
        description="Log warning for requests slower than this (seconds)",
    )

    # Email Provider Settings
    EMAIL_PROVIDER: str = Field(
        default="resend",
        description="Email provider: 'resend', 'smtp', 'console'",
    )
    RESEND_API_KEY: str = Field(
        default="",
        description="Resend API key (required when EMAIL_PROVIDER is 'resend')",
    )
    EMAIL_SEND_TIMEOUT_SECONDS: float = Field(
        default=15.0,
        gt=0,
        description="Seconds to wait for the provider before failing the request",
    )

    # Inquiry routing
    INFO_EMAIL: str = Field(
        default="no-reply@contact.cialfor.com",
        description="Mailbox for general and partnership inquiries",
    )
    SALES_EMAIL: str = Field(
        default="no-reply@contact.cialfor.com",
        description="Mailbox for every other inquiry type",
    )
    FROM_EMAIL: str = Field(
        default="no-reply@contact.cialfor.com",
        description="Sender address for forwarded inquiries",
    )
    FROM_NAME: str = Field(
        default="Cialfor Contact",
        description="Sender display name",
    )

    # SMTP (alternative provider)
    SMTP_HOST: str = Field(
        default="localhost",
        description="SMTP server hostname",
    )
    SMTP_PORT: int = Field(
        default=587,
        description="SMTP server port",
    )
    SMTP_USER: str = Field(
        default="",
        description="SMTP username",
    )
    SMTP_PASSWORD: str = Field(
        default="",
        description="SMTP password",
    )
    SMTP_USE_TLS: bool = Field(
        default=True,
        description="Use STARTTLS for SMTP connection (port 587)",
    )
    SMTP_USE_SSL: bool = Field(
        default=False,
        description="Use implicit SSL for SMTP connection (port 465)",
    )

    # Contact form rate limiting (single-process, in-memory)
    RATE_WINDOW_SECONDS: int = Field(
        default=10 * 60,
        gt=0,
        description="Sliding window length for contact submissions per IP",
    )
    RATE_MAX: int = Field(
        default=5,
        gt=0,
        description="Maximum submissions per IP within the window",
    )
    RATE_MAX_TRACKED_IPS: int = Field(
        default=10_000,
        gt=0,
        description="Maximum number of IP addresses kept in memory (LRU eviction)",
    )
    RATE_SWEEP_INTERVAL_SECONDS: float = Field(
        default=300.0,
        ge=0,
        description="Seconds between sweeps of idle rate-limit entries (0 disables)",
    )

    # Monitoring
    LOG_FILE: str | None = Field(
        default=None,
        description="Optional rotating log file (e.g. logs/app.log)",
    )
    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN; error monitoring is disabled when empty",
    )
    SENTRY_RELEASE: str = Field(
        default="unknown",
        description="Release identifier reported to Sentry",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("EMAIL_PROVIDER")
    @classmethod
    def normalize_email_provider(cls, v: str) -> str:
        """Lower-case and validate the provider name."""
        provider = v.strip().lower()
        if provider not in ("resend", "smtp", "console"):
            raise ValueError(f"Unknown email provider '{v}'")
        return provider

    @model_validator(mode="after")
    def require_provider_credentials(self) -> "Settings":
        """Fail at startup instead of on the first submission."""
        if self.EMAIL_PROVIDER == "resend" and not self.RESEND_API_KEY.strip():
            raise ValueError(
                "RESEND_API_KEY must be set when EMAIL_PROVIDER is 'resend'"
            )
        return self

    model_config = SettingsConfigDict(
        env_file=_should_load_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",  # Allow unrelated env vars without validation errors
    )


# Instantiating Settings() raises pydantic.ValidationError when the provider
# credentials are missing, so a misconfigured process never starts serving.
settings = Settings()
