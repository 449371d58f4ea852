"""
Application error hierarchy.

Every error raised on purpose by Approv derives from :class:`AppError`. Each
subclass fixes an HTTP status and a machine readable ``code``; the exception
handlers in ``approv.server.exception_handlers`` turn them into the JSON error
envelope.
"""

from __future__ import annotations

from typing import Any, Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
        is_operational: bool = True,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        self.is_operational = is_operational

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code}, code={self.code!r}, message={self.message!r})"


class ValidationError(AppError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None, code: str = "VALIDATION_ERROR") -> None:
        super().__init__(400, code, message, details)


class AuthenticationError(AppError):
    def __init__(self, message: str = "Authentication required", code: str = "AUTHENTICATION_REQUIRED") -> None:
        super().__init__(401, code, message)


class AuthorizationError(AppError):
    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(403, "PERMISSION_DENIED", message)


class NotFoundError(AppError):
    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(404, "NOT_FOUND", f"{resource} not found")
        self.resource = resource


class ConflictError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(409, "CONFLICT", message)


class RateLimitError(AppError):
    def __init__(
        self,
        retry_after: int = 60,
        message: str = "Too many requests",
        code: str = "RATE_LIMIT_EXCEEDED",
    ) -> None:
        super().__init__(429, code, message, {"retryAfter": retry_after})
        self.retry_after = retry_after


class ExternalServiceError(AppError):
    def __init__(self, service: str, message: Optional[str] = None) -> None:
        super().__init__(
            502,
            "EXTERNAL_SERVICE_ERROR",
            message or f"External service error: {service}",
            {"service": service},
        )
        self.service = service
