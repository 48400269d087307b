"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses → HTTP status derived from the failure kind
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for tracing
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from crpt.core.errors import (
    ApiError,
    AppError,
    ConfigurationError,
    MalformedResponseError,
    PermitCancelledError,
    TransportFailureError,
    ValidationAppError,
)
from crpt.core.logging import get_request_id

logger = logging.getLogger(__name__)


def status_for_error(exc: AppError) -> int:
    """Pick the HTTP status the gateway answers with for an AppError.

    - ValidationAppError → 422
    - ApiError → the upstream 4xx, otherwise 502
    - MalformedResponseError → 502
    - TransportFailureError → 504 on timeout, otherwise 502
    - PermitCancelledError → 503
    - ConfigurationError and anything else → 500
    """
    if isinstance(exc, ValidationAppError):
        return 422
    if isinstance(exc, ApiError):
        return exc.status_code if 400 <= exc.status_code < 500 else 502
    if isinstance(exc, MalformedResponseError):
        return 502
    if isinstance(exc, TransportFailureError):
        return 504 if exc.timed_out else 502
    if isinstance(exc, PermitCancelledError):
        return 503
    if isinstance(exc, ConfigurationError):
        return 500
    return 500


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle client errors with a consistent JSON format.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code and error details.
    """
    status_code = status_for_error(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }

    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure while returning a generic message (no stack traces
    leave the process).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
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
    """Register all exception handlers with the FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> from crpt.core.exception_handlers import setup_exception_handlers
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
