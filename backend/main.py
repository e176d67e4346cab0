"""FastAPI application for the inquiry intake endpoint."""

import asyncio
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from core.correlation import (
    generate_correlation_id,
    get_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)
from core.logging_config import configure_logging
from core.sentry_config import init_sentry
from helpers.security_headers import SecurityHeadersMiddleware
from models.config import settings
from models.exceptions import (
    DomainException,
    EmailDeliveryException,
    MethodNotAllowedException,
    MissingFieldsException,
    RateLimitExceededException,
)
from models.schemas import ContactResponse
from routers import contact_router
from services.contact_service import clear_contact_service_cache, get_contact_service

# Initialize Sentry BEFORE app creation
init_sentry(settings.SENTRY_DSN, settings.ENVIRONMENT, settings.SENTRY_RELEASE)

# Configure logging with Loguru
configure_logging(settings.ENVIRONMENT, settings.LOG_FILE)


async def _rate_limit_sweep_task(interval_seconds: float) -> None:
    """
    Background task that drops rate-limit entries for idle IPs.

    The LRU cap bounds memory on its own; the sweep keeps the table small
    between bursts.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = get_contact_service().sweep_rate_limits()
            if removed:
                logger.debug(f"Rate-limit sweep removed {removed} idle IP(s)")
        except Exception as e:
            logger.error(f"Rate-limit sweep error: {e!r}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Build the contact service (and its email provider) before serving.
    - Start the periodic rate-limit sweep when enabled.
    - Release the delivery workers on shutdown.
    """
    service = get_contact_service()
    logger.info(
        f"Contact intake ready: provider={settings.EMAIL_PROVIDER}, "
        f"limit={settings.RATE_MAX} per {settings.RATE_WINDOW_SECONDS}s"
    )

    sweep_task = None
    if settings.RATE_SWEEP_INTERVAL_SECONDS > 0:
        sweep_task = asyncio.create_task(
            _rate_limit_sweep_task(settings.RATE_SWEEP_INTERVAL_SECONDS)
        )

    try:
        yield
    finally:
        if sweep_task is not None:
            sweep_task.cancel()
            try:
                await sweep_task
            except asyncio.CancelledError:
                pass
        service.close()
        clear_contact_service_cache()
        logger.info("Contact intake stopped")


app = FastAPI(title="Inquiry Intake API", lifespan=lifespan)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Inject correlation ID into request context and Sentry."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request with correlation ID tracking."""
        correlation_id = resolve_correlation_id(request.headers.get("X-Correlation-ID"))
        set_correlation_id(correlation_id)

        sentry_sdk.set_tag("correlation_id", correlation_id)

        response = await call_next(request)

        response.headers["X-Correlation-ID"] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all incoming requests with performance monitoring."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and log timing information."""
        start_time = time.perf_counter()

        logger.info(f"Request: {request.method} {request.url.path}")

        response = await call_next(request)

        duration = time.perf_counter() - start_time

        logger.info(
            f"Response: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s"
        )

        # Warn on slow requests (configurable threshold)
        if duration > settings.SLOW_REQUEST_THRESHOLD:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {duration:.2f}s (threshold: {settings.SLOW_REQUEST_THRESHOLD}s)"
            )

        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


# Note: Middleware runs in reverse order - security headers should wrap everything
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)

cors_origins = ["*"] if settings.ENVIRONMENT == "development" else settings.CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["POST"],
    allow_headers=["Content-Type", "X-Correlation-ID"],
    expose_headers=["X-Correlation-ID", "Retry-After"],
)


def _error_response(
    exc: DomainException, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ContactResponse(ok=False, error=exc.message).to_body(),
        headers=headers,
    )


# Global unhandled exception handler (returns generic 500 and logs details)
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch all unhandled exceptions with full Sentry capture."""
    correlation_id = get_correlation_id() or generate_correlation_id()

    sentry_sdk.set_tag("correlation_id", correlation_id)
    sentry_sdk.capture_exception(exc)

    logger.opt(exception=exc).error(
        f"Unhandled exception: {exc!r} ({request.method} {request.url.path})"
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ContactResponse(ok=False, error="Internal error").to_body(),
        headers={"X-Correlation-ID": correlation_id},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render routing errors (405, 404) in the contact response shape."""
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        logger.info(f"Method not allowed: {request.method} {request.url.path}")
        return _error_response(MethodNotAllowedException(), headers=exc.headers)

    return JSONResponse(
        status_code=exc.status_code,
        content=ContactResponse(ok=False, error=str(exc.detail)).to_body(),
        headers=exc.headers,
    )


@app.exception_handler(RateLimitExceededException)
async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceededException
) -> JSONResponse:
    """Handle rate limit exceeded exception."""
    headers = {}
    if exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)
    return _error_response(exc, headers=headers)


@app.exception_handler(MissingFieldsException)
async def missing_fields_exception_handler(
    request: Request, exc: MissingFieldsException
) -> JSONResponse:
    """Handle missing required fields (field names stay in the logs)."""
    return _error_response(exc)


@app.exception_handler(EmailDeliveryException)
async def email_delivery_exception_handler(
    request: Request, exc: EmailDeliveryException
) -> JSONResponse:
    """Handle provider failures with Sentry capture and a generic message."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.capture_exception(exc)
    return _error_response(exc)


@app.exception_handler(DomainException)
async def domain_exception_handler(
    request: Request, exc: DomainException
) -> JSONResponse:
    """Handle remaining domain exceptions (malformed payloads, ...)."""
    logger.warning(
        f"{exc.__class__.__name__}: {exc.message} ({request.method} {request.url.path})"
    )
    return _error_response(exc)


app.include_router(contact_router.router, prefix="/api")


@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}
