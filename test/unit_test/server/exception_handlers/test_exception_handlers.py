"""
Unit tests for server exception handlers.

Tests cover the JSON error envelope for application errors, validation
failures, database errors, unknown routes and unhandled exceptions.
"""

import json
from unittest.mock import MagicMock, Mock, patch

import pytest
from fastapi import Request
from sqlalchemy.exc import IntegrityError, NoResultFound, OperationalError

from approv.core.errors import ConflictError, ExternalServiceError, NotFoundError, RateLimitError
from approv.server.exception_handlers.app_error_handler import (
    app_error_handler,
    sqlalchemy_exception_handler,
)
from approv.server.exception_handlers.global_handler import global_exception_handler


def body(response) -> dict:
    return json.loads(response.body)


@pytest.fixture
def mock_request():
    """Create a mock request object."""
    request = Mock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/projects/"
    request.headers = {}
    request.state = MagicMock()
    request.state.request_id = "req-1"
    request.client = Mock()
    request.client.host = "127.0.0.1"
    return request


class TestAppErrorHandler:
    @pytest.mark.asyncio
    async def test_not_found(self, mock_request):
        response = await app_error_handler(mock_request, NotFoundError("Project"))

        assert response.status_code == 404
        assert body(response) == {
            "success": False,
            "error": {"code": "NOT_FOUND", "message": "Project not found", "requestId": "req-1"},
        }

    @pytest.mark.asyncio
    async def test_rate_limit_sets_retry_after(self, mock_request):
        response = await app_error_handler(mock_request, RateLimitError(retry_after=42))

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"
        assert body(response)["error"]["details"] == {"retryAfter": 42}

    @pytest.mark.asyncio
    async def test_details_hidden_in_production(self, mock_request):
        with patch("approv.server.exception_handlers.responses.settings") as mock_settings:
            mock_settings.is_production = True
            response = await app_error_handler(mock_request, ExternalServiceError("Resend"))

        assert response.status_code == 502
        assert "details" not in body(response)["error"]

    @pytest.mark.asyncio
    async def test_conflict(self, mock_request):
        response = await app_error_handler(mock_request, ConflictError("Project reference already exists"))
        assert response.status_code == 409
        assert body(response)["error"]["code"] == "CONFLICT"


class TestSqlAlchemyHandler:
    """Test database error mapping."""

    @pytest.mark.asyncio
    async def test_unique_violation(self, mock_request):
        exc = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: clients.email"))
        response = await sqlalchemy_exception_handler(mock_request, exc)

        assert response.status_code == 409
        error = body(response)["error"]
        assert error["code"] == "DUPLICATE_ENTRY"
        assert error["message"] == "A record with this clients.email already exists"

    @pytest.mark.asyncio
    async def test_foreign_key_violation(self, mock_request):
        exc = IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))
        response = await sqlalchemy_exception_handler(mock_request, exc)

        assert response.status_code == 400
        assert body(response)["error"]["code"] == "INVALID_REFERENCE"

    @pytest.mark.asyncio
    async def test_no_result(self, mock_request):
        response = await sqlalchemy_exception_handler(mock_request, NoResultFound())
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_other_database_errors(self, mock_request):
        with patch("approv.server.exception_handlers.app_error_handler.logger"):
            response = await sqlalchemy_exception_handler(
                mock_request, OperationalError("SELECT 1", {}, Exception("connection refused"))
            )
        assert response.status_code == 500
        assert body(response)["error"] == {
            "code": "DATABASE_ERROR",
            "message": "A database error occurred",
            "requestId": "req-1",
        }


class TestGlobalExceptionHandler:
    """Test suite for global exception handler."""

    @pytest.mark.asyncio
    async def test_exception_handler_logs_error(self, mock_request):
        """Test that exception handler logs errors."""
        exc = ValueError("Test error")

        with (
            patch("approv.server.exception_handlers.global_handler.logger") as mock_logger,
            patch("approv.server.exception_handlers.global_handler.log_error") as mock_log_error,
        ):
            response = await global_exception_handler(mock_request, exc)

        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args[1]["extra"]["error_type"] == "ValueError"
        mock_log_error.assert_called_once()
        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_error_body_has_error_id(self, mock_request):
        exc = RuntimeError("secret internals")
        with patch("approv.server.exception_handlers.global_handler.logger"):
            response = await global_exception_handler(mock_request, exc)

        error = body(response)["error"]
        assert error["code"] == "INTERNAL_ERROR"
        assert error["message"] == "An unexpected error occurred"
        assert error["errorId"] == str(id(exc))
        assert "secret internals" not in response.body.decode()


class TestHandlersOnTheApp:
    """Test the envelope produced through the application."""

    async def test_unknown_route(self, client):
        response = await client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Route GET /api/nothing-here not found"
        assert response.json()["success"] is False

    async def test_validation_error(self, client, owner_headers):
        response = await client.post("/api/clients", json={"firstName": "Ann"}, headers=owner_headers)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["message"] == "Invalid request data"
        assert "email" in error["details"]

    async def test_authentication_required(self, client, csrf_token):
        response = await client.get("/api/projects")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"
