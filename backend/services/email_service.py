"""Email providers for forwarding contact inquiries.

This module provides a unified interface for sending emails through various providers.
Supports:
- resend: Resend transactional email API (default)
- smtp: Standard SMTP delivery
- console: Logs emails to console (development)

Providers raise on failure. Callers decide how much of the error is exposed;
the contact service logs it and answers with a generic message.
"""

import re
import smtplib
import ssl
from abc import ABC, abstractmethod
from email.message import EmailMessage

import resend
from loguru import logger

from models.config import Settings
from models.schemas import OutboundEmail


class EmailProvider(ABC):
    """Abstract base class for email providers."""

    @abstractmethod
    def send(self, message: OutboundEmail) -> None:
        """Send an email, raising on any failure."""


class ResendProvider(EmailProvider):
    """Resend API provider."""

    def __init__(self, api_key: str) -> None:
        """Initialize Resend provider with the account API key."""
        if not api_key:
            raise ValueError("Resend API key is required")
        resend.api_key = api_key

    def send(self, message: OutboundEmail) -> None:
        """Send email via the Resend API."""
        params: resend.Emails.SendParams = {
            "from": message.from_address,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        if message.text is not None:
            params["text"] = message.text
        if message.reply_to:
            params["reply_to"] = message.reply_to

        response = resend.Emails.send(params)
        logger.info(f"Resend accepted email to {message.to} (id={response.get('id')})")


class SMTPProvider(EmailProvider):
    """SMTP email provider."""

    def __init__(self, config: Settings) -> None:
        """Initialize SMTP provider with settings."""
        self.host = config.SMTP_HOST
        self.port = config.SMTP_PORT
        self.user = config.SMTP_USER
        self.password = config.SMTP_PASSWORD
        self.use_tls = config.SMTP_USE_TLS
        self.use_ssl = config.SMTP_USE_SSL
        self.timeout = config.EMAIL_SEND_TIMEOUT_SECONDS

    def _build_message(self, message: OutboundEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = message.from_address
        msg["To"] = message.to
        if message.reply_to:
            msg["Reply-To"] = message.reply_to

        msg.set_content(message.text or re.sub(r"<[^>]+>", "", message.html))
        msg.add_alternative(message.html, subtype="html")
        return msg

    def send(self, message: OutboundEmail) -> None:
        """Send email via SMTP.

        Supports both:
        - Implicit SSL (port 465): use SMTP_USE_SSL=true
        - STARTTLS (port 587): use SMTP_USE_TLS=true
        """
        logger.info(
            f"SMTP: Connecting to {self.host}:{self.port} "
            f"(SSL={self.use_ssl}, TLS={self.use_tls}, user={self.user})"
        )
        msg = self._build_message(message)

        if self.use_ssl:
            # Implicit SSL (port 465) - connection is encrypted from start
            server = smtplib.SMTP_SSL(
                self.host,
                self.port,
                timeout=self.timeout,
                context=ssl.create_default_context(),
            )
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)

        with server:
            if self.use_tls and not self.use_ssl:
                # STARTTLS (port 587) - upgrade to TLS after connection
                server.starttls(context=ssl.create_default_context())
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(msg)

        logger.info(f"SMTP: Email sent to {message.to}")


class ConsoleProvider(EmailProvider):
    """Console email provider for development/testing."""

    def send(self, message: OutboundEmail) -> None:
        """Log email to console."""
        clean_html = re.sub(r"<[^>]+>", "", message.html)[:500]
        logger.info(
            f"\n{'=' * 60}\n"
            f"EMAIL (Console Provider - Development Mode)\n"
            f"{'=' * 60}\n"
            f"From: {message.from_address}\n"
            f"To: {message.to}\n"
            f"Reply-To: {message.reply_to or '-'}\n"
            f"Subject: {message.subject}\n"
            f"{'-' * 60}\n"
            f"PLAIN TEXT:\n{message.text or ''}\n"
            f"{'-' * 60}\n"
            f"HTML (preview):\n{clean_html}\n"
            f"{'=' * 60}\n"
        )


def get_email_provider(config: Settings) -> EmailProvider:
    """Build the provider named by ``EMAIL_PROVIDER``."""
    provider_name = config.EMAIL_PROVIDER

    if provider_name == "resend":
        return ResendProvider(config.RESEND_API_KEY)
    elif provider_name == "smtp":
        return SMTPProvider(config)
    elif provider_name == "console":
        return ConsoleProvider()
    else:
        raise ValueError(f"Unknown email provider '{provider_name}'")
