"""Unit tests for logging configuration module.

Tests verify that the logging configuration functions work correctly with different
scenarios including various log levels, formats, and module levels.
"""

import logging

import pytest

from promptatrium.core.logging_config import (
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
        (h for h in root_logger.handlers if isinstance(h, logging.StreamHandler)),
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
            ("debug", logging.DEBUG),  # Test lowercase
        ],
    )
    def test_setup_logging_with_different_levels(self, log_level, expected_level):
        """Test setup_logging configures correct log level."""
        setup_logging(log_level=log_level, enable_file=False)

        console_handler = _console_handler()
        assert console_handler is not None
        assert console_handler.level == expected_level

    def test_root_logger_captures_everything(self):
        setup_logging(log_level="ERROR", enable_file=False)

        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_replaces_existing_handlers(self):
        setup_logging(enable_file=False)
        setup_logging(enable_file=False)

        stream_handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.StreamHandler)]
        assert len(stream_handlers) == 1


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

    def test_setup_logging_format_with_timestamp(self):
        """Test that formatter includes timestamp."""
        setup_logging(log_format="detailed", enable_file=False)

        assert _console_handler().formatter.datefmt == "%Y-%m-%d %H:%M:%S"


class TestModuleLogLevels:
    def test_module_levels_are_applied(self):
        setup_logging(enable_file=False)

        for module_name, module_level in MODULE_LOG_LEVELS.items():
            assert logging.getLogger(module_name).level == logging.getLevelName(module_level)

    def test_noisy_libraries_are_quieted(self):
        assert MODULE_LOG_LEVELS["sqlalchemy.engine"] == "WARNING"
        assert MODULE_LOG_LEVELS["httpx"] == "WARNING"

    def test_get_logger_returns_named_logger(self):
        logger = get_logger("promptatrium.server.services.payouts")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "promptatrium.server.services.payouts"
