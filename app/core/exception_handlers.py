"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain, request validation and unexpected) and return consistent JSON
responses with proper HTTP status codes and traceability.

Design:
- AppError subclasses → appropriate HTTP status (400, 401, 429, 500)
- RequestValidationError → 400 with the first field message
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for distributed tracing
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import (
    AppError,
    AuthenticationAppError,
    InternalAppError,
    RateLimitAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)


def _status_for(exc: AppError) -> int:
    """Map a domain error to its HTTP status code."""
    if isinstance(exc, AuthenticationAppError):
        return 401
    if isinstance(exc, RateLimitAppError):
        return 429
    if isinstance(exc, InternalAppError):
        return 500
    return 400


def _rate_limit_headers(exc: RateLimitAppError) -> dict[str, str]:
    """Build Retry-After and X-RateLimit-* headers from error details."""
    if not settings.app.rate_limit_include_headers or not exc.details:
        return {}

    details = exc.details
    headers: dict[str, str] = {}
    if "retry_after" in details:
        headers["Retry-After"] = str(details["retry_after"])
    if "limit" in details:
        headers["X-RateLimit-Limit"] = str(details["limit"])
    if "remaining" in details:
        headers["X-RateLimit-Remaining"] = str(details["remaining"])
    if "reset_at" in details:
        headers["X-RateLimit-Reset"] = str(details["reset_at"])
    return headers


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Routes domain errors to appropriate HTTP status codes:
    - ValidationAppError → 400 Bad Request
    - AuthenticationAppError → 401 Unauthorized
    - RateLimitAppError → 429 Too Many Requests
    - InternalAppError → 500 Internal Server Error

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = _status_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }

    # Internal errors never expose their context to the client
    if exc.details and status_code < 500:
        error_content["details"] = exc.details

    headers = _rate_limit_headers(exc) if isinstance(exc, RateLimitAppError) else {}

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers or None,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Translate FastAPI/Pydantic input validation failures into 400 responses.

    The message of the first failing field is surfaced so clients can show
    it directly (e.g. "Post too long").
    """
    errors = exc.errors()
    first = errors[0] if errors else {}
    # Pydantic prefixes messages raised from custom validators.
    message = str(first.get("msg", "Invalid input")).removeprefix("Value error, ")

    logger.warning(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "error_count": len(errors),
            "fields": [".".join(str(p) for p in e.get("loc", ())) for e in errors],
        },
    )

    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": "bad_request",
                "message": message,
                "request_id": get_request_id(),
                "details": {
                    "field": ".".join(str(p) for p in first.get("loc", ())),
                },
            }
        },
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Downstream failures (database, identity directory, limiter store) land
    here unmodified. Details are logged but never returned to the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Must be called during app initialization, before route registration.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
