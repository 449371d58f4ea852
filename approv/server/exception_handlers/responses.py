"""
Error response envelope.

Builds ``{"success": false, "error": {...}}`` bodies shared by all handlers.
"""

from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from approv.server.core.config import settings


def get_request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id")


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    """
    Build the JSON error envelope.

    In production ``details`` are only returned for validation errors.

    Args:
        request: Request being answered
        status_code: HTTP status
        code: Machine readable error code
        message: Human readable message
        details: Optional structured details
        headers: Extra response headers
        **extra: Additional fields merged into the ``error`` object

    Returns:
        JSONResponse carrying the envelope
    """
    error: dict[str, Any] = {"code": code, "message": message}
    if details and (not settings.is_production or code == "VALIDATION_ERROR"):
        error["details"] = details
    request_id = get_request_id(request)
    if request_id:
        error["requestId"] = request_id
    error.update(extra)
    return JSONResponse(status_code=status_code, content={"success": False, "error": error}, headers=headers)
