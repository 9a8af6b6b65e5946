"""
Exception Handlers for the FastAPI Application.

Application errors (``AppError`` and subclasses) are rendered with their own
status and a uniform error body. Database integrity violations become 409
conflicts. Anything else falls through to the global handler, which logs the
full context under an error id and returns a generic 500.
"""

import traceback

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from promptatrium.core.database import utc_now
from promptatrium.core.errors import AppError, ConflictError, ValidationError
from promptatrium.core.logging_config import get_logger
from promptatrium.core.monitoring import log_error

logger = get_logger(__name__)


def app_error_response(exc: AppError) -> JSONResponse:
    content = {
        "error": {
            "message": exc.message,
            "type": exc.error_type.value,
            "timestamp": utc_now().isoformat() + "Z",
        }
    }
    headers = {}
    retry_after = exc.metadata.get("retry_after")
    if retry_after is not None:
        content["retryAfter"] = retry_after
        headers["Retry-After"] = str(retry_after)
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers or None)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Render an application error.

    Operational errors (bad input, missing rows, permissions) are expected and
    logged at warning level; non-operational ones at error level.
    """
    if exc.is_operational:
        logger.warning(f"{exc.error_type.value} in {request.method} {request.url.path}: {exc.message}")
    else:
        logger.error(f"{exc.error_type.value} in {request.method} {request.url.path}: {exc.message}", exc_info=exc)
        log_error(exc.error_type.value, exc.message, {"path": request.url.path, "method": request.method})
    return app_error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters are reported as 400 validation errors."""
    errors = jsonable_encoder(exc.errors())
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid request")
    response = app_error_response(ValidationError(message))
    logger.debug(f"Request validation failed for {request.method} {request.url.path}: {errors}")
    return response


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(f"Integrity error in {request.method} {request.url.path}: {exc.orig}")
    return app_error_response(ConflictError("Resource already exists"))


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler to log detailed error information.

    This handler is called for any unhandled exception in the application.
    It logs the full error context and returns a JSON response with an error ID
    that clients can use to reference the error when reporting issues.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with error details and error ID
    """
    # Generate unique error ID for tracking
    error_id = id(exc)

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )
    log_error(type(exc).__name__, str(exc), {"error_id": error_id, "path": request.url.path})

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    This function should be called during application initialization to set up
    all custom exception handlers.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
