"""Contact form service for handling website inquiries.

This module turns a parsed contact-form payload into exactly one forwarded
email, or into one of the domain exceptions the adapters map to HTTP
responses. The gates run in a fixed order:

1. payload shape (MalformedPayloadException)
2. honeypot (silent success, nothing sent)
3. per-IP rate limit (RateLimitExceededException)
4. required fields (MissingFieldsException)
5. routing, formatting and delivery (EmailDeliveryException on failure)
"""

import html
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from functools import lru_cache
from typing import Any

from loguru import logger
from pydantic import ValidationError

from helpers.ip_utils import anonymize_ip, hash_email_for_logs
from helpers.sanitization import safe_reply_to, sanitize_header_value
from models.config import Settings, settings
from models.exceptions import (
    EmailDeliveryException,
    MalformedPayloadException,
    MissingFieldsException,
    RateLimitExceededException,
)
from models.schemas import InquirySubmission, InquiryType, OutboundEmail
from services.email_service import EmailProvider, get_email_provider
from services.rate_limit_service import SlidingWindowRateLimiter

# Inquiry types handled by the info mailbox; everything else goes to sales.
INFO_INQUIRY_TYPES = frozenset(
    {InquiryType.GENERAL.value, InquiryType.PARTNERSHIP.value}
)

# Attribute name -> name reported to clients, in reporting order.
REQUIRED_FIELDS = {
    "name": "name",
    "email": "email",
    "message": "message",
    "inquiry_type": "inquiryType",
}

PLACEHOLDER = "-"
SUBJECT_PREFIX = "New Contact Inquiry"
SUBJECT_SEPARATOR = " — "


def is_honeypot_triggered(submission: InquirySubmission) -> bool:
    """True when the hidden trap field carries anything but whitespace."""
    return bool(submission.hp_name and submission.hp_name.strip())


def find_missing_fields(submission: InquirySubmission) -> list[str]:
    """Return the client-facing names of required fields that are absent or blank."""
    missing = []
    for attribute, public_name in REQUIRED_FIELDS.items():
        value = getattr(submission, attribute)
        if value is None or not value.strip():
            missing.append(public_name)
    return missing


def choose_recipient(inquiry_type: str | None, info_email: str, sales_email: str) -> str:
    """Map an inquiry type to its mailbox (info for general/partnership, else sales)."""
    if inquiry_type in INFO_INQUIRY_TYPES:
        return info_email
    return sales_email


def _display(value: str | None) -> str:
    if value is None or not value.strip():
        return PLACEHOLDER
    return value


def build_subject(submission: InquirySubmission) -> str:
    """Subject line: fixed prefix, inquiry type and submitter name, header-safe."""
    inquiry_type = sanitize_header_value(submission.inquiry_type)
    name = sanitize_header_value(submission.name)
    return SUBJECT_SEPARATOR.join([SUBJECT_PREFIX, inquiry_type, name])


def build_html_body(submission: InquirySubmission, client_ip: str) -> str:
    """Render the HTML body.

    All user-provided data is HTML-escaped to prevent markup injection;
    newlines in the message become line breaks.
    """
    rows = [
        ("Name", submission.name),
        ("Email", submission.email),
        ("Phone", _display(submission.phone)),
        ("Company", _display(submission.company)),
        ("Inquiry Type", submission.inquiry_type),
        ("Threat Level", _display(submission.threat_level)),
    ]
    fields_html = "\n".join(
        f"<p><strong>{label}:</strong> {html.escape(value or '')}</p>"
        for label, value in rows
    )

    message = (submission.message or "").replace("\r\n", "\n")
    message_html = "<br/>".join(html.escape(line) for line in message.split("\n"))

    return f"""<h2>New Contact Inquiry</h2>
{fields_html}
<hr/>
<p><strong>Message:</strong></p>
<p>{message_html}</p>
<hr/>
<p style="font-size:12px;color:#666">Sent from contact form (IP: {html.escape(client_ip)})</p>
"""


def build_text_body(submission: InquirySubmission, client_ip: str) -> str:
    """Render the plain-text alternative body."""
    return "\n".join(
        [
            f"Name: {submission.name}",
            f"Email: {submission.email}",
            f"Phone: {_display(submission.phone)}",
            f"Company: {_display(submission.company)}",
            f"Inquiry Type: {submission.inquiry_type}",
            f"Threat Level: {_display(submission.threat_level)}",
            "",
            "Message:",
            submission.message or "",
            "",
            "---",
            f"Sent from contact form (IP: {client_ip})",
        ]
    )


class ContactService:
    """Service for handling contact form submissions.

    The rate limiter, email provider and clock are injected so that one
    instance can be shared by every adapter in a process and tests can
    substitute fakes.
    """

    def __init__(
        self,
        rate_limiter: SlidingWindowRateLimiter,
        provider: EmailProvider,
        config: Settings,
        clock: Callable[[], float] = time.monotonic,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.provider = provider
        self.config = config
        self._clock = clock
        self._executor = executor or ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="contact-email"
        )

    @staticmethod
    def parse_submission(payload: Any) -> InquirySubmission:
        """Validate the decoded JSON body shape.

        Raises:
            MalformedPayloadException: If the body is not a JSON object
        """
        if not isinstance(payload, dict):
            raise MalformedPayloadException()
        try:
            return InquirySubmission.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Rejected malformed contact payload: {e.error_count()} error(s)")
            raise MalformedPayloadException() from e

    def route(self, inquiry_type: str | None) -> str:
        """Destination mailbox for an inquiry type."""
        return choose_recipient(
            inquiry_type, self.config.INFO_EMAIL, self.config.SALES_EMAIL
        )

    def build_email(
        self, submission: InquirySubmission, client_ip: str
    ) -> OutboundEmail:
        """Format the forwarded message for a validated submission."""
        reply_to = safe_reply_to(submission.email)
        if reply_to is None:
            logger.warning(
                "Submitter address is not usable as Reply-To; sending without it"
            )

        from_name = sanitize_header_value(self.config.FROM_NAME)
        return OutboundEmail(
            from_address=f"{from_name} <{self.config.FROM_EMAIL}>",
            to=self.route(submission.inquiry_type),
            reply_to=reply_to,
            subject=build_subject(submission),
            html=build_html_body(submission, client_ip),
            text=build_text_body(submission, client_ip),
        )

    def submit(self, payload: Any, client_ip: str) -> None:
        """Process a contact form submission.

        Returns normally both when the inquiry was delivered and when the
        honeypot was tripped; callers answer both with the same success
        acknowledgement.

        Args:
            payload: Decoded JSON request body
            client_ip: Originating client address (rate-limit key, email footer)

        Raises:
            MalformedPayloadException: If the body is not a JSON object
            RateLimitExceededException: If the IP exceeded the submission limit
            MissingFieldsException: If a required field is absent or blank
            EmailDeliveryException: If the provider failed or timed out
        """
        submission = self.parse_submission(payload)
        masked_ip = anonymize_ip(client_ip)

        if is_honeypot_triggered(submission):
            logger.warning(f"Honeypot triggered from IP {masked_ip}")
            return

        now = self._clock()
        if self.rate_limiter.check_and_record(client_ip, now):
            logger.warning(f"Rate limit exceeded for IP {masked_ip}")
            raise RateLimitExceededException(
                retry_after=self.rate_limiter.retry_after(client_ip, now)
            )

        missing = find_missing_fields(submission)
        if missing:
            logger.info(f"Contact submission missing fields: {', '.join(missing)}")
            raise MissingFieldsException(missing)

        message = self.build_email(submission, client_ip)
        self.deliver(message)
        logger.info(
            f"Contact inquiry '{sanitize_header_value(submission.inquiry_type)}' "
            f"forwarded to {message.to} "
            f"(reply-to {hash_email_for_logs(submission.email or '')})"
        )

    def deliver(self, message: OutboundEmail) -> None:
        """Send once through the provider, bounded by the configured timeout.

        No retry is attempted. A send that overruns the timeout keeps its
        worker thread until the provider returns, but the request fails.

        Raises:
            EmailDeliveryException: On any provider error or timeout
        """
        timeout = self.config.EMAIL_SEND_TIMEOUT_SECONDS
        future = self._executor.submit(self.provider.send, message)
        try:
            future.result(timeout=timeout)
        except FutureTimeoutError as e:
            future.cancel()
            logger.error(f"Email provider timed out after {timeout}s sending to {message.to}")
            raise EmailDeliveryException() from e
        except Exception as e:
            logger.opt(exception=e).error(
                f"Failed to send contact email to {message.to}: {e!r}"
            )
            raise EmailDeliveryException() from e

    def close(self) -> None:
        """Release the delivery worker threads."""
        self._executor.shutdown(wait=False)

    def sweep_rate_limits(self) -> int:
        """Drop rate-limit entries for IPs with no submissions left in the window."""
        return self.rate_limiter.sweep(self._clock())


@lru_cache(maxsize=1)
def get_contact_service() -> ContactService:
    """Process-wide contact service built from settings.

    One instance per process keeps a single rate-limit table shared by every
    request (and by warm serverless invocations).
    """
    rate_limiter = SlidingWindowRateLimiter(
        window_seconds=settings.RATE_WINDOW_SECONDS,
        max_requests=settings.RATE_MAX,
        max_tracked_keys=settings.RATE_MAX_TRACKED_IPS,
    )
    return ContactService(
        rate_limiter=rate_limiter,
        provider=get_email_provider(settings),
        config=settings,
    )


def clear_contact_service_cache() -> None:
    """Forget the process-wide service.

    Useful for testing or when configuration changes at runtime.
    """
    get_contact_service.cache_clear()
