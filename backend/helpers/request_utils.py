"""
Request utilities for extracting client information.

Provides helpers to extract the client IP address from HTTP requests,
handling proxy headers correctly. The header logic works on a plain mapping
so the serverless adapter can share it with the FastAPI one.
"""

from collections.abc import Mapping
from typing import Optional

from fastapi import Request

UNKNOWN_CLIENT_IP = "unknown"


def client_ip_from_headers(
    headers: Mapping[str, str], fallback: Optional[str] = None
) -> str:
    """
    Resolve the client IP from proxy headers.

    Handles common proxy headers in order of precedence:
    1. X-Forwarded-For (standard proxy header, first IP)
    2. X-Real-IP (nginx)
    3. CF-Connecting-IP (Cloudflare)
    4. ``fallback`` (the direct peer address, when known)

    Header names are matched case-insensitively.

    Args:
        headers: Request headers
        fallback: Address to use when no proxy header is present

    Returns:
        Client IP address, or "unknown" if nothing is available
    """
    normalized = {key.lower(): value for key, value in headers.items() if value}

    # Standard proxy header (comma-separated, first is client)
    forwarded_for = normalized.get("x-forwarded-for")
    if forwarded_for:
        first_ip = forwarded_for.split(",")[0].strip()
        if first_ip:
            return first_ip

    # nginx proxy
    real_ip = normalized.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    # Cloudflare
    cf_ip = normalized.get("cf-connecting-ip", "").strip()
    if cf_ip:
        return cf_ip

    if fallback:
        return fallback

    return UNKNOWN_CLIENT_IP


def get_client_ip(request: Request) -> str:
    """
    Extract the client's real IP address from the request.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address or "unknown" if not available
    """
    peer = request.client.host if request.client else None
    return client_ip_from_headers(request.headers, fallback=peer)
