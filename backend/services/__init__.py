"""
Services layer for business logic.

This package contains service modules that encapsulate business logic
separate from the HTTP adapters.
"""

from .contact_service import ContactService
from .email_service import EmailProvider
from .rate_limit_service import SlidingWindowRateLimiter

__all__ = [
    "ContactService",
    "EmailProvider",
    "SlidingWindowRateLimiter",
]
