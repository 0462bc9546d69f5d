"""Unit tests for logging configuration module.

Tests verify that the logging configuration functions work correctly with different
scenarios including various log levels, formats, and file logging options.
"""

import logging
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from helmsman_ai.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)


def _console_handler() -> logging.Handler:
    root_logger = logging.getLogger()
    handler = next(
        (
            h
            for h in root_logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ),
        None,
    )
    assert handler is not None
    return handler


def _file_handler():
    return next((h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)), None)


class TestSetupLoggingLogLevels:
    """Test setup_logging with different log levels."""

    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("debug", logging.DEBUG),  # Test lowercase
        ],
    )
    def test_setup_logging_with_different_levels(self, log_level, expected_level):
        """Test setup_logging configures correct log level."""
        setup_logging(log_level=log_level, enable_file=False)

        assert _console_handler().level == expected_level

    def test_root_logger_level_is_debug(self):
        """Root logger captures everything; filtering happens at handler level."""
        setup_logging(log_level="WARNING", enable_file=False)

        assert logging.getLogger().level == logging.DEBUG


class TestSetupLoggingFormats:
    """Test setup_logging with different log formats."""

    @pytest.mark.parametrize(
        "log_format,expected_format",
        [
            ("simple", SIMPLE_FORMAT),
            ("detailed", DETAILED_FORMAT),
            ("json", JSON_FORMAT),
            ("unknown", DETAILED_FORMAT),
        ],
    )
    def test_setup_logging_with_different_formats(self, log_format, expected_format):
        """Test setup_logging configures correct format."""
        setup_logging(log_format=log_format, enable_file=False)

        assert _console_handler().formatter._fmt == expected_format

    def test_setup_logging_format_with_timestamp(self):
        setup_logging(log_format="detailed", enable_file=False)

        assert _console_handler().formatter.datefmt == "%Y-%m-%d %H:%M:%S"


class TestSetupLoggingFileHandling:
    """Test setup_logging file logging functionality."""

    def test_file_handler_created_when_enabled(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = Path(tmpdir) / "new_logs"
            with patch("helmsman_ai.core.logging_config.LOG_FILE_DIR", str(log_dir)):
                with patch("helmsman_ai.core.logging_config.ENABLE_FILE_LOGGING", True):
                    setup_logging(log_level="ERROR", enable_file=True)

                    handler = _file_handler()
                    assert handler is not None
                    # File handler should always be DEBUG
                    assert handler.level == logging.DEBUG
                    assert (log_dir / "helmsman_ai.log").exists()

                    logging.getLogger().removeHandler(handler)
                    handler.close()

    def test_file_handler_requires_setting(self):
        with patch("helmsman_ai.core.logging_config.ENABLE_FILE_LOGGING", False):
            setup_logging(enable_file=True)

        assert _file_handler() is None

    def test_file_handler_not_created_when_disabled(self):
        setup_logging(enable_file=False)

        assert _file_handler() is None


class TestSetupLoggingHandlerManagement:
    """Test setup_logging handler management."""

    def test_setup_logging_called_multiple_times(self):
        """Repeated setup replaces handlers instead of stacking them."""
        setup_logging(log_level="INFO", enable_file=False)
        setup_logging(log_level="DEBUG", enable_file=False)
        setup_logging(log_level="WARNING", enable_file=False)

        assert len(logging.getLogger().handlers) == 1
        assert _console_handler().level == logging.WARNING


class TestSetupLoggingModuleSpecificLevels:
    """Test module-specific log level configuration."""

    @pytest.mark.parametrize(
        "module_name,expected_level",
        [
            ("helmsman_ai.agent_core", logging.DEBUG),
            ("helmsman_ai.agent_core.runtime", logging.DEBUG),
            ("helmsman_ai.agent_core.repos", logging.INFO),
            ("helmsman_ai.core", logging.INFO),
            ("langgraph", logging.WARNING),
            ("asyncio", logging.WARNING),
        ],
    )
    def test_module_specific_log_levels(self, module_name, expected_level):
        setup_logging(enable_file=False)

        assert logging.getLogger(module_name).level == expected_level

    def test_all_module_log_levels_configured(self):
        setup_logging(enable_file=False)

        for module_name, expected_level_str in MODULE_LOG_LEVELS.items():
            expected_level = getattr(logging, expected_level_str)
            assert logging.getLogger(module_name).level == expected_level


class TestGetLogger:
    """Test get_logger function."""

    def test_get_logger_returns_logger_instance(self):
        logger = get_logger("test_module")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "test_module"

    def test_get_logger_same_name_returns_same_instance(self):
        assert get_logger("same_module") is get_logger("same_module")

    def test_get_logger_inherits_module_level(self):
        setup_logging(enable_file=False)

        assert get_logger("helmsman_ai.agent_core").level == logging.DEBUG
        assert get_logger("langgraph").level == logging.WARNING
