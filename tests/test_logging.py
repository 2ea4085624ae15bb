"""
Unit tests for logging utilities.

Tests verify:
- Logging setup and configuration
- Correlation ID handling
- JSON formatting
- Function call decorator behavior for sync and async functions
"""

import json
import logging

import pytest

from staticship.utils.logging import (
    JSONFormatter,
    clear_correlation_id,
    get_correlation_id,
    get_logger,
    log_function_call,
    set_correlation_id,
    setup_logging,
)


def test_setup_logging_configures_root_logger() -> None:
    """Test that setup_logging properly configures the root logger."""
    setup_logging(level="DEBUG")
    root_logger = logging.getLogger()
    assert root_logger.level == logging.DEBUG
    setup_logging(level="INFO")


def test_setup_logging_json(monkeypatch) -> None:
    """Test LOG_FORMAT=json installs the JSON formatter."""
    monkeypatch.setenv("LOG_FORMAT", "json")
    setup_logging()
    try:
        handlers = logging.getLogger().handlers
        assert any(isinstance(h.formatter, JSONFormatter) for h in handlers)
    finally:
        monkeypatch.delenv("LOG_FORMAT")
        setup_logging()


def test_get_logger_returns_logger_instance() -> None:
    """Test that get_logger returns a valid logger instance."""
    logger = get_logger("test_module")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "test_module"


def test_correlation_id_lifecycle() -> None:
    """Test correlation IDs can be set, read and regenerated."""
    set_correlation_id("deploy-123")
    assert get_correlation_id() == "deploy-123"

    clear_correlation_id()
    generated = get_correlation_id()
    assert generated and generated != "deploy-123"
    assert get_correlation_id() == generated


def test_json_formatter_includes_extra_fields() -> None:
    """Test JSON records carry message, correlation ID and extras."""
    set_correlation_id("deploy-json")
    record = logging.LogRecord("staticship.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    record.operation = "Deploy"

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "hello world"
    assert data["level"] == "INFO"
    assert data["correlation_id"] == "deploy-json"
    assert data["extra"] == {"operation": "Deploy"}


def test_log_function_call_decorator_logs_entry_and_exit(caplog) -> None:
    """Test that log_function_call decorator logs function entry and exit."""

    @log_function_call
    def sample_function(x: int, y: int) -> int:
        """Sample function for testing decorator."""
        return x + y

    with caplog.at_level(logging.DEBUG):
        result = sample_function(2, 3)

    assert result == 5
    assert "ENTER sample_function(x=2, y=3)" in caplog.text
    assert "EXIT sample_function -> 5" in caplog.text


def test_log_function_call_decorator_handles_exceptions() -> None:
    """Test that log_function_call decorator properly logs exceptions."""

    @log_function_call
    def failing_function() -> None:
        """Function that raises an exception."""
        raise ValueError("Test exception")

    with pytest.raises(ValueError, match="Test exception"):
        failing_function()


@pytest.mark.asyncio
async def test_log_function_call_supports_coroutines(caplog) -> None:
    """Test the decorator awaits coroutine functions."""

    @log_function_call
    async def async_function(value: str) -> str:
        return value.upper()

    with caplog.at_level(logging.DEBUG):
        result = await async_function("ship")

    assert result == "SHIP"
    assert "EXIT async_function -> 'SHIP'" in caplog.text
