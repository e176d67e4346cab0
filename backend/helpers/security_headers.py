"""
Security headers for API responses.

The endpoint only ever returns small JSON documents, so the policy is as
strict as it gets: nothing may be loaded, framed or cached. The same header
set is applied by the FastAPI middleware and the serverless adapter.
"""

from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from models.config import settings

BASE_SECURITY_HEADERS = {
    # Prevent MIME type sniffing
    "X-Content-Type-Options": "nosniff",
    # JSON responses are never meant to be framed
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Cache-Control": "no-store, max-age=0",
}

# max-age=31536000 = 1 year
HSTS_HEADER_VALUE = "max-age=31536000; includeSubDomains"


def security_headers(environment: str) -> dict[str, str]:
    """Header set for a response; HSTS is only sent in production."""
    headers = dict(BASE_SECURITY_HEADERS)
    if environment == "production":
        headers["Strict-Transport-Security"] = HSTS_HEADER_VALUE
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds security headers to all responses.

    Headers already set by a handler are left untouched.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Add security headers to the response."""
        response = await call_next(request)

        for name, value in security_headers(settings.ENVIRONMENT).items():
            if name not in response.headers:
                response.headers[name] = value

        return response
