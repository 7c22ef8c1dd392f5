"""Unit tests for logging configuration module.

Tests verify that the logging configuration functions work correctly with different
scenarios including various log levels, formats, and file logging options.
"""

import logging
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from practiceflow.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)


def _console_handler():
    root_logger = logging.getLogger()
    return next(
        (h for h in root_logger.handlers if type(h) is logging.StreamHandler),
        None,
    )


def _file_handler():
    root_logger = logging.getLogger()
    return next(
        (h for h in root_logger.handlers if isinstance(h, logging.FileHandler)),
        None,
    )


class TestSetupLoggingLogLevels:
    """Test setup_logging with different log levels."""

    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("CRITICAL", logging.CRITICAL),
            ("debug", logging.DEBUG),  # Test lowercase
            ("info", logging.INFO),
        ],
    )
    def test_setup_logging_with_different_levels(self, log_level, expected_level):
        """Test setup_logging configures correct log level."""
        setup_logging(log_level=log_level, enable_file=False)

        console_handler = _console_handler()
        assert console_handler is not None
        assert console_handler.level == expected_level

    def test_setup_logging_root_logger_level_is_debug(self):
        setup_logging(log_level="ERROR", enable_file=False)

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

        console_handler = _console_handler()
        assert console_handler is not None
        assert console_handler.formatter._fmt == expected_format
        assert console_handler.formatter.datefmt == "%Y-%m-%d %H:%M:%S"


class TestSetupLoggingFileHandling:
    """Test setup_logging file logging functionality."""

    def test_setup_logging_with_file_enabled(self):
        """Test setup_logging creates file handler when enabled."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = Path(tmpdir) / "nested" / "logs"
            with (
                patch("practiceflow.core.logging_config.LOG_FILE_DIR", str(log_dir)),
                patch("practiceflow.core.logging_config.ENABLE_FILE_LOGGING", True),
            ):
                setup_logging(log_level="WARNING", enable_file=True)

                file_handler = _file_handler()
                assert file_handler is not None
                assert file_handler.level == logging.DEBUG
                assert log_dir.exists()
                assert Path(file_handler.baseFilename).name == "practiceflow.log"

                file_handler.close()
                logging.getLogger().removeHandler(file_handler)

    def test_setup_logging_with_file_disabled(self):
        with patch("practiceflow.core.logging_config.ENABLE_FILE_LOGGING", True):
            setup_logging(enable_file=False)

        assert _file_handler() is None

    def test_file_logging_needs_environment_switch(self):
        with patch("practiceflow.core.logging_config.ENABLE_FILE_LOGGING", False):
            setup_logging(enable_file=True)

        assert _file_handler() is None


class TestSetupLoggingHandlerManagement:
    """Test handler replacement across calls."""

    def test_setup_logging_removes_existing_handlers(self):
        root_logger = logging.getLogger()
        stale = logging.StreamHandler()
        root_logger.addHandler(stale)

        setup_logging(enable_file=False)

        assert stale not in root_logger.handlers

    def test_setup_logging_called_multiple_times(self):
        setup_logging(log_level="INFO", enable_file=False)
        setup_logging(log_level="DEBUG", enable_file=False)
        setup_logging(log_level="WARNING", enable_file=False)

        console_handlers = [h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler]
        assert len(console_handlers) == 1
        assert console_handlers[0].level == logging.WARNING


class TestSetupLoggingModuleSpecificLevels:
    """Test module-specific log level configuration."""

    @pytest.mark.parametrize(
        "module_name,expected_level",
        [
            ("practiceflow.services", logging.DEBUG),
            ("practiceflow.services.approvals", logging.DEBUG),
            ("practiceflow.core.database", logging.INFO),
            ("practiceflow.server", logging.INFO),
            ("practiceflow.server.api", logging.DEBUG),
            ("sqlalchemy", logging.WARNING),
            ("httpx", logging.WARNING),
            ("asyncio", logging.WARNING),
        ],
    )
    def test_module_specific_log_levels(self, module_name, expected_level):
        """Test module-specific log levels are configured correctly."""
        setup_logging(enable_file=False)

        assert logging.getLogger(module_name).level == expected_level

    def test_all_module_log_levels_configured(self):
        setup_logging(enable_file=False)

        for module_name, expected_level_str in MODULE_LOG_LEVELS.items():
            assert logging.getLogger(module_name).level == getattr(logging, expected_level_str)


class TestGetLogger:
    """Test get_logger function."""

    def test_get_logger_same_name_returns_same_instance(self):
        assert get_logger("practiceflow.services.planner") is get_logger("practiceflow.services.planner")

    def test_get_logger_inherits_module_level(self):
        setup_logging(enable_file=False)

        logger = get_logger("practiceflow.services.opinions.service")

        assert logger.level == logging.NOTSET
        assert logger.getEffectiveLevel() == logging.DEBUG

    def test_logger_with_exception_info(self, caplog):
        setup_logging(log_level="INFO", enable_file=False)
        logger = get_logger("test_exception_logger")
        logging.getLogger().addHandler(caplog.handler)

        try:
            raise ValueError("Test exception")
        except ValueError:
            logger.exception("An error occurred")

        assert "An error occurred" in caplog.text
        assert "ValueError" in caplog.text
