"""
Unit tests for the Logfire monitoring module.

This test suite covers:
- Logfire initialization with various configurations
- Instrumentation feature flags
- Audit, request and error events
- Graceful degradation when Logfire fails
"""

from unittest.mock import MagicMock, patch

import pytest

from approv.core import monitoring


@pytest.fixture
def mock_logfire():
    with patch.object(monitoring, "logfire") as mocked:
        yield mocked


class TestInitializeLogfire:
    """Test Logfire initialization."""

    def test_disabled_by_default(self, mock_logfire):
        with patch.object(monitoring, "LOGFIRE_ENABLED", False):
            assert monitoring.initialize_logfire() is False
        mock_logfire.configure.assert_not_called()

    def test_enabled_without_token_does_nothing(self, mock_logfire):
        with patch.object(monitoring, "LOGFIRE_ENABLED", True), patch.object(monitoring, "LOGFIRE_TOKEN", ""):
            assert monitoring.initialize_logfire() is False
        mock_logfire.configure.assert_not_called()

    def test_configures_and_instruments(self, mock_logfire):
        app = MagicMock()
        with patch.object(monitoring, "LOGFIRE_ENABLED", True), patch.object(monitoring, "LOGFIRE_TOKEN", "tok"):
            assert monitoring.initialize_logfire(app) is True

        mock_logfire.configure.assert_called_once()
        assert mock_logfire.configure.call_args.kwargs["token"] == "tok"
        mock_logfire.instrument_sqlalchemy.assert_called_once()
        mock_logfire.instrument_httpx.assert_called_once()
        mock_logfire.instrument_fastapi.assert_called_once_with(app=app)

    def test_skips_fastapi_without_app(self, mock_logfire):
        with patch.object(monitoring, "LOGFIRE_ENABLED", True), patch.object(monitoring, "LOGFIRE_TOKEN", "tok"):
            assert monitoring.initialize_logfire() is True
        mock_logfire.instrument_fastapi.assert_not_called()

    def test_respects_instrumentation_flags(self, mock_logfire):
        with (
            patch.object(monitoring, "LOGFIRE_ENABLED", True),
            patch.object(monitoring, "LOGFIRE_TOKEN", "tok"),
            patch.object(monitoring, "LOGFIRE_TRACE_SQLALCHEMY", False),
            patch.object(monitoring, "LOGFIRE_TRACE_HTTPX", False),
        ):
            monitoring.initialize_logfire()
        mock_logfire.instrument_sqlalchemy.assert_not_called()
        mock_logfire.instrument_httpx.assert_not_called()

    def test_configure_failure_returns_false(self, mock_logfire):
        mock_logfire.configure.side_effect = RuntimeError("bad token")
        with patch.object(monitoring, "LOGFIRE_ENABLED", True), patch.object(monitoring, "LOGFIRE_TOKEN", "tok"):
            assert monitoring.initialize_logfire() is False

    def test_instrumentation_failure_is_not_fatal(self, mock_logfire):
        mock_logfire.instrument_sqlalchemy.side_effect = RuntimeError("no engine")
        with patch.object(monitoring, "LOGFIRE_ENABLED", True), patch.object(monitoring, "LOGFIRE_TOKEN", "tok"):
            assert monitoring.initialize_logfire() is True
        mock_logfire.instrument_httpx.assert_called_once()


class TestEvents:
    """Test the structured event helpers."""

    def test_log_api_request(self, mock_logfire):
        monitoring.log_api_request("GET", "/api/projects/", 200, 12.5)
        mock_logfire.info.assert_called_once_with(
            "API request completed", method="GET", path="/api/projects/", status_code=200, duration_ms=12.5
        )

    def test_log_audit_event_flattens_metadata(self, mock_logfire):
        monitoring.log_audit_event("approval.approve", "approval", "a1", {"stage": "PLANNING"})
        kwargs = mock_logfire.info.call_args.kwargs
        assert kwargs["action"] == "approval.approve"
        assert kwargs["entity_id"] == "a1"
        assert kwargs["stage"] == "PLANNING"

    def test_log_error_includes_context(self, mock_logfire):
        monitoring.log_error("ValueError", "boom", {"path": "/api/clients/"})
        mock_logfire.error.assert_called_once_with("ValueError: boom", path="/api/clients/")

    @pytest.mark.parametrize(
        "call",
        [
            lambda: monitoring.log_api_request("GET", "/", 200, 1.0),
            lambda: monitoring.log_audit_event("project.created", "project", "p1"),
            lambda: monitoring.log_error("Error", "message"),
        ],
    )
    def test_logfire_failures_are_swallowed(self, mock_logfire, call):
        mock_logfire.info.side_effect = RuntimeError("exporter down")
        mock_logfire.error.side_effect = RuntimeError("exporter down")
        call()
