"""
Domain error types and their mapping onto the JSON response envelope.

Services raise these; only the handlers registered here know about HTTP
status codes.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Malformed, missing or out-of-enum input."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AppError):
    """Uniqueness violation (email, username)."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(AppError):
    """Missing/invalid/expired token or bad credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class EmailDeliveryError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "Invalid value")
    # pydantic prefixes custom validator messages with "Value error, "
    message = message.removeprefix("Value error, ")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI, expose_errors: bool = False) -> None:
    """Map domain errors, request validation and stray exceptions onto the envelope."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(_first_validation_message(exc)),
        )

    @app.exception_handler(HTTPException)
    async def handle_http_exception(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(
                "Something went wrong!",
                error=str(exc) if expose_errors else "Internal Server Error",
            ),
        )
