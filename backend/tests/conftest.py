"""
Pytest configuration and fixtures for backend tests.
"""

import os
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment variables before importing config
os.environ["ENVIRONMENT"] = "test"
os.environ["EMAIL_PROVIDER"] = "resend"
os.environ["RESEND_API_KEY"] = "re_test_key_for_testing_only"
os.environ["INFO_EMAIL"] = "info@example.com"
os.environ["SALES_EMAIL"] = "sales@example.com"
os.environ["FROM_EMAIL"] = "no-reply@example.com"
os.environ["FROM_NAME"] = "Example Contact"
os.environ["EMAIL_SEND_TIMEOUT_SECONDS"] = "2"
os.environ["RATE_SWEEP_INTERVAL_SECONDS"] = "0"
os.environ.pop("SENTRY_DSN", None)

from models.config import settings  # noqa: E402
from models.schemas import OutboundEmail  # noqa: E402
from services.contact_service import ContactService, get_contact_service  # noqa: E402
from services.email_service import EmailProvider  # noqa: E402
from services.rate_limit_service import SlidingWindowRateLimiter  # noqa: E402


class FakeClock:
    """Manually advanced clock in seconds."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingProvider(EmailProvider):
    """Email provider that records messages instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[OutboundEmail] = []
        self.error: Exception | None = None

    def send(self, message: OutboundEmail) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append(message)


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock shared by the service under test."""
    return FakeClock()


@pytest.fixture
def provider() -> RecordingProvider:
    """Recording email provider."""
    return RecordingProvider()


@pytest.fixture
def rate_limiter() -> SlidingWindowRateLimiter:
    """Limiter with the production defaults (5 per 10 minutes)."""
    return SlidingWindowRateLimiter(window_seconds=600, max_requests=5)


@pytest.fixture
def contact_service(rate_limiter, provider, clock):
    """Contact service wired to fakes."""
    executor = ThreadPoolExecutor(max_workers=2)
    service = ContactService(
        rate_limiter=rate_limiter,
        provider=provider,
        config=settings,
        clock=clock,
        executor=executor,
    )
    yield service
    executor.shutdown(wait=False)


@pytest.fixture
def client(contact_service):
    """Create a test client with the contact service overridden."""
    from main import app

    app.dependency_overrides[get_contact_service] = lambda: contact_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def valid_payload() -> dict:
    """A complete, legitimate submission."""
    return {
        "name": "Jane Doe",
        "email": "jane@example.org",
        "phone": "+1 555 0100",
        "company": "Acme Corp",
        "inquiryType": "general",
        "message": "Hello,\nWe would like a quote.",
        "threatLevel": "medium",
        "hp_name": "",
    }
