"""
Correlation ID generation and context management.

Every request gets a short ID that appears in each log line and in the
X-Correlation-ID response header, so a caller reporting a generic error can
be matched to the server-side detail.
"""

import re
import uuid
from contextvars import ContextVar

# Context variable for request-scoped correlation ID
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

# Incoming IDs are echoed into a response header; only accept a safe alphabet.
_VALID_INCOMING_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def generate_correlation_id() -> str:
    """
    Generate a short, unique correlation ID.

    Format: 8 hex characters (e.g., "abc123de")

    Returns:
        8-character hexadecimal string.
    """
    return uuid.uuid4().hex[:8]


def resolve_correlation_id(incoming: str | None) -> str:
    """
    Reuse a caller-supplied correlation ID when it is well formed.

    Args:
        incoming: Value of the X-Correlation-ID request header, if any.

    Returns:
        The incoming ID, or a freshly generated one.
    """
    if incoming and _VALID_INCOMING_ID.match(incoming):
        return incoming
    return generate_correlation_id()


def get_correlation_id() -> str:
    """
    Get current request's correlation ID.

    Returns:
        The correlation ID for the current request context, or empty string if not set.
    """
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set correlation ID for current request context."""
    correlation_id_var.set(correlation_id)
