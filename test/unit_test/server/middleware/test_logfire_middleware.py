"""
Unit tests for Logfire middleware.

This test suite covers:
- Request/response processing
- Performance metrics collection
- Error handling and exception tracking
- Slow request detection
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import Request
from starlette.responses import Response

from approv.server.middleware.logfire_middleware import LogfireMiddleware


@pytest.fixture
def mock_request():
    request = AsyncMock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/projects/"
    request.state = MagicMock()
    return request


class TestLogfireMiddlewareDispatch:
    """Test LogfireMiddleware.dispatch method."""

    @pytest.mark.asyncio
    async def test_middleware_processes_successful_request(self, mock_request):
        """Test that middleware processes successful requests."""

        async def call_next(request):
            return Response(content="ok", status_code=200)

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch("approv.server.middleware.logfire_middleware.log_api_request") as mock_log:
            response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 200
        kwargs = mock_log.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["path"] == "/api/projects/"
        assert kwargs["status_code"] == 200
        assert kwargs["duration_ms"] >= 0

    @pytest.mark.asyncio
    async def test_middleware_adds_process_time_header(self, mock_request):
        """Test that the response carries X-Process-Time."""

        async def call_next(request):
            return Response(content="ok", status_code=201)

        with patch("approv.server.middleware.logfire_middleware.log_api_request"):
            response = await LogfireMiddleware(app=AsyncMock()).dispatch(mock_request, call_next)

        assert float(response.headers["X-Process-Time"]) >= 0

    @pytest.mark.asyncio
    async def test_middleware_logs_and_reraises_exceptions(self, mock_request):
        """Test that failures are recorded as 500 and propagated."""

        async def call_next(request):
            raise ValueError("boom")

        middleware = LogfireMiddleware(app=AsyncMock())

        with (
            patch("approv.server.middleware.logfire_middleware.log_api_request") as mock_log,
            patch("approv.server.middleware.logfire_middleware.logger") as mock_logger,
        ):
            with pytest.raises(ValueError, match="boom"):
                await middleware.dispatch(mock_request, call_next)

        assert mock_log.call_args.kwargs["status_code"] == 500
        mock_logger.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_slow_requests_are_warned(self, mock_request):
        """Test that requests above the slow threshold log a warning."""

        async def call_next(request):
            return Response(content="ok", status_code=200)

        middleware = LogfireMiddleware(app=AsyncMock())

        with (
            patch("approv.server.middleware.logfire_middleware.log_api_request"),
            patch("approv.server.middleware.logfire_middleware.logger") as mock_logger,
            patch("approv.server.middleware.logfire_middleware.time") as mock_time,
        ):
            mock_time.time.side_effect = [0.0, 2.5]
            await middleware.dispatch(mock_request, call_next)

        mock_logger.warning.assert_called_once()
        assert "Slow API request" in mock_logger.warning.call_args[0][0]

    @pytest.mark.asyncio
    async def test_server_errors_are_logged_as_errors(self, mock_request):
        async def call_next(request):
            return Response(content="bad", status_code=503)

        with (
            patch("approv.server.middleware.logfire_middleware.log_api_request"),
            patch("approv.server.middleware.logfire_middleware.logger") as mock_logger,
        ):
            await LogfireMiddleware(app=AsyncMock()).dispatch(mock_request, call_next)

        mock_logger.error.assert_called_once()
