"""
Handlers for expected errors.

Maps :class:`~approv.core.errors.AppError`, request validation failures,
SQLAlchemy errors and unmatched routes onto the JSON error envelope.
"""

import re

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from approv.core.errors import AppError, RateLimitError
from approv.core.logging_config import get_logger

from .responses import error_response

logger = get_logger(__name__)

_UNIQUE_MARKERS = ("unique", "duplicate key")
_FOREIGN_KEY_MARKERS = ("foreign key",)
_CONSTRAINT_TARGET = re.compile(r'(?:constraint "([^"]+)"|UNIQUE constraint failed: ([\w.,\s]+))', re.IGNORECASE)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an :class:`AppError` with its own status and code."""
    log = logger.warning if exc.is_operational else logger.error
    log(
        f"{exc.code} in {request.method} {request.url.path}: {exc.message}",
        extra={"code": exc.code, "status_code": exc.status_code, "path": request.url.path},
    )
    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after)}
    return error_response(request, exc.status_code, exc.code, exc.message, exc.details, headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as ``{field path: message}`` details."""
    details: dict[str, str] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "header")]
        details[".".join(location) or "body"] = error.get("msg", "Invalid value")
    logger.debug(f"Request validation failed for {request.method} {request.url.path}: {details}")
    return error_response(request, 400, "VALIDATION_ERROR", "Invalid request data", details)


def _constraint_target(message: str) -> str:
    match = _CONSTRAINT_TARGET.search(message)
    if not match:
        return "value"
    target = match.group(1) or match.group(2) or "value"
    return target.strip()


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Map database errors to client or server errors."""
    if isinstance(exc, IntegrityError):
        message = str(exc.orig).lower() if exc.orig is not None else str(exc).lower()
        if any(marker in message for marker in _UNIQUE_MARKERS):
            target = _constraint_target(str(exc.orig))
            logger.warning(f"Unique constraint violation on {target} in {request.url.path}")
            return error_response(request, 409, "DUPLICATE_ENTRY", f"A record with this {target} already exists")
        if any(marker in message for marker in _FOREIGN_KEY_MARKERS):
            logger.warning(f"Foreign key violation in {request.url.path}")
            return error_response(request, 400, "INVALID_REFERENCE", "Referenced record does not exist")

    if isinstance(exc, NoResultFound):
        return error_response(request, 404, "NOT_FOUND", "Record not found")

    logger.error(f"Database error in {request.method} {request.url.path}: {exc}", exc_info=True)
    return error_response(request, 500, "DATABASE_ERROR", "A database error occurred")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors; unmatched routes get a descriptive 404."""
    if exc.status_code == 404 and exc.detail == "Not Found":
        return error_response(request, 404, "NOT_FOUND", f"Route {request.method} {request.url.path} not found")
    if exc.status_code == 405:
        return error_response(request, 405, "METHOD_NOT_ALLOWED", f"Method {request.method} not allowed")
    return error_response(
        request,
        exc.status_code,
        "HTTP_ERROR",
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )
