"""
Custom domain exceptions for the inquiry intake service.

These exceptions are raised by the service layer and converted to HTTP responses
by the adapters (centralized exception handlers in main.py for FastAPI, the
event handler in entrypoints/contact_lambda.py for serverless), keeping the
contact service HTTP-agnostic.

Each exception carries the HTTP status and the stable public message that is
safe to return to the caller. Internal detail belongs in the logs only.
"""

from core.correlation import generate_correlation_id, get_correlation_id


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Attributes:
        message: Human-readable error message, safe to return to clients.
        correlation_id: Unique ID for error tracking (auto-generated if not provided).
        status_code: HTTP status the adapters respond with.
    """

    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None, correlation_id: str | None = None):
        self.message = message or self.default_message
        # Use request correlation ID if available, otherwise generate new one
        self.correlation_id = (
            correlation_id or get_correlation_id() or generate_correlation_id()
        )
        super().__init__(self.message)


class MethodNotAllowedException(DomainException):
    """Raised when the endpoint is called with anything other than POST."""

    status_code = 405
    default_message = "Method not allowed"


class MalformedPayloadException(DomainException):
    """Raised when the request body is not a JSON object."""

    status_code = 500
    default_message = "Invalid request body"


class RateLimitExceededException(DomainException):
    """Raised when rate limit is exceeded."""

    status_code = 429
    default_message = "Too many requests"

    def __init__(
        self,
        message: str | None = None,
        retry_after: int | None = None,
    ):
        super().__init__(message)
        self.retry_after = retry_after


class MissingFieldsException(DomainException):
    """Raised when required submission fields are absent or blank."""

    status_code = 400
    default_message = "Missing required fields"

    def __init__(self, missing: list[str], message: str | None = None):
        super().__init__(message)
        self.missing = missing


class EmailDeliveryException(DomainException):
    """Raised when the email provider fails to accept the message.

    The public message is deliberately generic; the provider's own error is
    chained as ``__cause__`` and logged, never returned.
    """

    status_code = 500
    default_message = "Internal error"
