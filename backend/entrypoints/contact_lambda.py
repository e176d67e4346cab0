"""Lambda handler for the contact endpoint behind API Gateway.

Accepts REST API (payload v1, ``httpMethod``) and HTTP API (payload v2,
``requestContext.http.method``) events. The raw body arrives as a string,
optionally base64-encoded, and is decoded here before the shared contact
service takes over; responses use the same status codes and JSON bodies as
the FastAPI app.

The contact service (and its in-memory rate-limit table) lives as long as
the warm execution environment. Each concurrent environment counts
separately.
"""

import base64
import binascii
import json
from typing import Any

from loguru import logger

from core.correlation import resolve_correlation_id, set_correlation_id
from core.logging_config import configure_logging
from core.sentry_config import init_sentry
from helpers.request_utils import client_ip_from_headers
from helpers.security_headers import security_headers
from models.config import Settings, settings
from models.exceptions import (
    DomainException,
    MalformedPayloadException,
    MethodNotAllowedException,
    RateLimitExceededException,
)
from models.schemas import ContactResponse
from services.contact_service import get_contact_service


def bootstrap(config: Settings = settings) -> None:
    """Cold-start setup, matching the FastAPI app."""
    init_sentry(config.SENTRY_DSN, config.ENVIRONMENT, config.SENTRY_RELEASE)
    configure_logging(config.ENVIRONMENT, config.LOG_FILE)


bootstrap()


def _method(event: dict) -> str:
    # HTTP API v2
    method = ((event.get("requestContext") or {}).get("http") or {}).get("method")
    if method:
        return method.upper()
    # REST API fallback
    return (event.get("httpMethod") or "").upper()


def _source_ip(event: dict) -> str | None:
    context = event.get("requestContext") or {}
    return (context.get("http") or {}).get("sourceIp") or (
        context.get("identity") or {}
    ).get("sourceIp")


def _decode_body(event: dict) -> Any:
    """Decode the event body as JSON.

    Raises:
        MalformedPayloadException: If the body is missing, badly encoded or not JSON
    """
    body = event.get("body")
    if body is None:
        raise MalformedPayloadException()
    try:
        if event.get("isBase64Encoded"):
            body = base64.b64decode(body, validate=True).decode("utf-8")
        return json.loads(body)
    except (binascii.Error, ValueError) as e:
        # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors
        logger.warning(f"Contact event body is not valid JSON: {type(e).__name__}")
        raise MalformedPayloadException() from e


def _response(
    status_code: int,
    body: ContactResponse,
    correlation_id: str,
    extra_headers: dict[str, str] | None = None,
) -> dict:
    headers = {
        "Content-Type": "application/json",
        "X-Correlation-ID": correlation_id,
        **security_headers(settings.ENVIRONMENT),
    }
    if extra_headers:
        headers.update(extra_headers)
    return {
        "statusCode": status_code,
        "headers": headers,
        "body": json.dumps(body.to_body()),
    }


def _error_response(exc: DomainException, correlation_id: str) -> dict:
    extra_headers = {}
    if isinstance(exc, MethodNotAllowedException):
        extra_headers["Allow"] = "POST"
    if isinstance(exc, RateLimitExceededException) and exc.retry_after:
        extra_headers["Retry-After"] = str(exc.retry_after)
    return _response(
        exc.status_code,
        ContactResponse(ok=False, error=exc.message),
        correlation_id,
        extra_headers,
    )


def lambda_handler(event: dict, context: Any) -> dict:
    """Handle one API Gateway proxy event."""
    headers = event.get("headers") or {}
    lowered = {key.lower(): value for key, value in headers.items()}
    correlation_id = resolve_correlation_id(lowered.get("x-correlation-id"))
    set_correlation_id(correlation_id)

    try:
        if _method(event) != "POST":
            raise MethodNotAllowedException()

        payload = _decode_body(event)
        client_ip = client_ip_from_headers(headers, fallback=_source_ip(event))
        get_contact_service().submit(payload, client_ip)
    except DomainException as exc:
        if exc.status_code >= 500:
            logger.warning(f"{exc.__class__.__name__}: {exc.message}")
        return _error_response(exc, correlation_id)
    except Exception as exc:
        logger.opt(exception=exc).error(f"Unhandled exception in contact handler: {exc!r}")
        return _response(
            500, ContactResponse(ok=False, error="Internal error"), correlation_id
        )

    return _response(200, ContactResponse(ok=True), correlation_id)
