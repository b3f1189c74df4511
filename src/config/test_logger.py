"""
Unit tests for logger_module.py.

Tests cover:
- Logger initialization and handler attachment
- Console-only logging when no file is given
- Idempotency of initialization
- Context formatting and convenience logging methods
"""

import logging
from unittest.mock import MagicMock, patch

import pytest

import src.config.logger_module
from .logger_module import (
    format_message,
    initialize_logger,
    log_debug,
    log_error,
    log_info,
    log_warning,
)


@pytest.fixture(autouse=True)
def reset_logger():
    """Reset logger state around each test."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)
    src.config.logger_module._logger_initialized = False
    yield
    for handler in root_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)
    src.config.logger_module._logger_initialized = False


def _flush():
    for handler in logging.getLogger().handlers:
        handler.flush()


class TestInitializeLogger:
    """Test cases for initialize_logger function."""

    def test_initialize_logger_default_parameters(self, tmp_path):
        log_file = tmp_path / "logs" / "app.log"

        initialize_logger(log_file=str(log_file))

        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO
        assert len(root_logger.handlers) == 2

        handler_types = [type(h).__name__ for h in root_logger.handlers]
        assert "StreamHandler" in handler_types
        assert "FileHandler" in handler_types
        assert log_file.exists()

    def test_initialize_logger_console_only(self):
        """Without a log file only the console handler is attached."""
        initialize_logger(log_level="DEBUG", log_file=None)

        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 1
        assert not isinstance(root_logger.handlers[0], logging.FileHandler)
        assert root_logger.handlers[0].level == logging.DEBUG

    def test_initialize_logger_invalid_level(self, tmp_path):
        """An unknown level name falls back to INFO."""
        initialize_logger(log_level="INVALID", log_file=str(tmp_path / "test.log"))

        assert logging.getLogger().level == logging.INFO

    def test_initialize_logger_creates_directory(self, tmp_path):
        log_file = tmp_path / "deep" / "nested" / "app.log"

        initialize_logger(log_file=str(log_file))

        assert log_file.exists()

    def test_initialize_logger_idempotency(self, tmp_path):
        log_file = tmp_path / "test.log"

        initialize_logger(log_file=str(log_file))
        initialize_logger(log_file=str(log_file))
        initialize_logger(log_level="DEBUG", log_file=str(log_file))

        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 2
        assert root_logger.level == logging.INFO

    def test_initialize_logger_handler_levels(self, tmp_path):
        initialize_logger(log_level="WARNING", log_file=str(tmp_path / "test.log"))

        handlers = logging.getLogger().handlers
        file_handler = next(h for h in handlers if isinstance(h, logging.FileHandler))
        console_handler = next(h for h in handlers if not isinstance(h, logging.FileHandler))

        assert console_handler.level == logging.WARNING
        assert file_handler.level == logging.DEBUG


class TestFormatMessage:
    """Test cases for context formatting."""

    def test_no_context(self):
        assert format_message("Lookup done", {}) == "Lookup done"

    def test_context_in_insertion_order(self):
        message = format_message("Resolved", {"warehouse_id": 7, "input": "28.6,77.2"})
        assert message == "Resolved [warehouse_id=7, input='28.6,77.2']"


class TestLoggingOutput:
    """Test cases for actual logging output."""

    def test_log_levels_respected(self, tmp_path):
        log_file = tmp_path / "test.log"
        initialize_logger(log_level="WARNING", log_file=str(log_file))

        log_debug("Debug message")
        log_info("Info message")
        log_warning("Warning message", latitude=28.7)
        log_error("Error message", error="timeout")
        _flush()

        log_content = log_file.read_text()
        assert "Debug message" not in log_content
        assert "Info message" not in log_content
        assert "Warning message [latitude=28.7]" in log_content
        assert "Error message [error='timeout']" in log_content

    def test_convenience_methods_before_initialization(self):
        """Convenience methods work without explicit initialization."""
        log_warning("Warning without initialization", key="value")

    @patch('logging.getLogger')
    def test_convenience_methods_call_correct_levels(self, mock_get_logger):
        mock_logger = MagicMock()
        mock_get_logger.return_value = mock_logger

        log_debug("debug message")
        log_info("info message", count=2)
        log_warning("warning message")
        log_error("error message")

        mock_logger.debug.assert_called_once_with("debug message")
        mock_logger.info.assert_called_once_with("info message [count=2]")
        mock_logger.warning.assert_called_once_with("warning message")
        mock_logger.error.assert_called_once_with("error message")

    def test_caplog_sees_context(self, caplog):
        with caplog.at_level(logging.INFO):
            log_info("Geospatial data fetched", warehouse_id=3)

        assert "Geospatial data fetched [warehouse_id=3]" in caplog.text
