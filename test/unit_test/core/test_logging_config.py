"""
Unit tests for the logging configuration module.
"""

import logging
from unittest.mock import patch

import pytest

from approv.core import logging_config
from approv.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


class TestFormats:
    """Test format selection."""

    @pytest.mark.parametrize(
        "name, expected",
        [("json", JSON_FORMAT), ("simple", SIMPLE_FORMAT), ("detailed", DETAILED_FORMAT), ("other", DETAILED_FORMAT)],
    )
    def test_resolve_format(self, name, expected):
        assert logging_config._resolve_format(name) == expected


class TestSetupLogging:
    """Test root logger configuration."""

    def test_installs_a_single_console_handler(self):
        setup_logging(log_level="warning", log_format="simple")
        setup_logging(log_level="warning", log_format="simple")

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert handlers[0].level == logging.WARNING
        assert handlers[0].formatter._fmt == SIMPLE_FORMAT

    def test_applies_module_levels(self):
        setup_logging(log_level="INFO")
        for module_name, level in MODULE_LOG_LEVELS.items():
            assert logging.getLogger(module_name).level == logging.getLevelName(level)

    def test_third_party_loggers_are_quieted(self):
        setup_logging()
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("botocore").level == logging.WARNING

    def test_file_logging(self, tmp_path):
        with patch.object(logging_config, "ENABLE_FILE_LOGGING", True), patch.object(
            logging_config, "LOG_FILE_DIR", str(tmp_path)
        ):
            setup_logging(log_level="INFO")

        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].baseFilename == str(tmp_path / "approv.log")
        file_handlers[0].close()

    def test_file_logging_can_be_disabled_per_call(self, tmp_path):
        with patch.object(logging_config, "ENABLE_FILE_LOGGING", True), patch.object(
            logging_config, "LOG_FILE_DIR", str(tmp_path)
        ):
            setup_logging(enable_file=False)

        assert not any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)


def test_get_logger_returns_named_logger():
    logger = get_logger("approv.server.cron.reminders")
    assert logger.name == "approv.server.cron.reminders"
    assert logger is logging.getLogger("approv.server.cron.reminders")
