"""
Logging utilities for the staticship client.

Provides structured logging with entry/exit decorators, JSON formatting,
correlation IDs, and consistent formatting across validation, transport and
deploy stages.

Features:
    - Structured JSON logging when LOG_FORMAT=json
    - Correlation ID tracking across a deploy attempt
    - Entry/exit decorators with timing (sync and async callables)
    - Colorized console output for development

Example usage:
    >>> from staticship.utils.logging import get_logger, log_function_call
    >>>
    >>> logger = get_logger(__name__)
    >>>
    >>> @log_function_call
    >>> def collect(paths: list) -> list:
    >>>     logger.info("Collecting files", extra={"count": len(paths)})
    >>>     return paths
"""

import functools
import inspect
import json
import logging
import os
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, TypeVar, cast

import coloredlogs

# Type variable for generic decorator typing
F = TypeVar("F", bound=Callable[..., Any])

# Context variable for correlation ID (task-local under asyncio)
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Global logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else came in through `extra`
_STANDARD_RECORD_KEYS = frozenset(
    [
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "message",
        "asctime",
    ]
)


# ============================================================================
# Correlation ID Management
# ============================================================================

def get_correlation_id() -> str:
    """
    Get current correlation ID or generate a new one.

    Returns:
        Current correlation ID (generates UUID if not set)
    """
    corr_id = _correlation_id.get()
    if corr_id is None:
        corr_id = str(uuid.uuid4())
        _correlation_id.set(corr_id)
    return corr_id


def set_correlation_id(corr_id: str) -> None:
    """
    Set correlation ID for current context.

    Args:
        corr_id: Correlation ID to set

    Example:
        >>> set_correlation_id("deploy-12345")
        >>> # All subsequent logs in this task include this correlation ID
    """
    _correlation_id.set(corr_id)


def clear_correlation_id() -> None:
    """Clear correlation ID for current context."""
    _correlation_id.set(None)


# ============================================================================
# JSON Formatter
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Example output:
        {
            "timestamp": "2026-01-04T10:30:15.123456+00:00",
            "level": "INFO",
            "logger": "staticship.transport.transport",
            "message": "POST https://api.shipstatic.com/deployments",
            "correlation_id": "deploy-12345",
            "extra": {"operation": "Deploy"}
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_KEYS
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO", enable_colors: bool = True) -> None:
    """
    Configure global logging settings.

    Uses JSON logging when the LOG_FORMAT environment variable is "json",
    colorized text through coloredlogs otherwise.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_colors: Whether to enable colorized console output (default: True)

    Example:
        >>> setup_logging(level="DEBUG")
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    json_output = os.getenv("LOG_FORMAT", "text").lower() == "json"

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    if json_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(console_handler)
    elif enable_colors:
        coloredlogs.install(
            level=log_level,
            fmt=LOG_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            logger=root_logger,
        )
    else:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def _format_arguments(func: Callable[..., Any], args: tuple, kwargs: dict) -> str:
    arg_names = func.__code__.co_varnames[: func.__code__.co_argcount]
    args_repr = [f"{name}={value!r}" for name, value in zip(arg_names, args)]
    kwargs_repr = [f"{key}={value!r}" for key, value in kwargs.items()]
    return ", ".join(args_repr + kwargs_repr)


def log_function_call(func: F) -> F:
    """
    Decorator that logs function entry and exit with parameters and return values.

    Works for plain functions and coroutine functions. Entry and exit are
    logged at DEBUG, exceptions at ERROR with traceback; exceptions are
    always re-raised.

    Args:
        func: Function to be decorated

    Returns:
        Wrapped function with logging

    Example:
        >>> @log_function_call
        >>> def validate_files(files, limits):
        >>>     ...
        >>>
        >>> # DEBUG - ENTER validate_files(files=[...], limits=ConfigLimits(...))
        >>> # DEBUG - EXIT validate_files -> ValidationResult(...) (0.00s)
    """
    logger = get_logger(func.__module__)

    def _enter(args: tuple, kwargs: dict) -> datetime:
        logger.debug(
            f"ENTER {func.__name__}({_format_arguments(func, args, kwargs)})",
            extra={
                "function": func.__name__,
                "correlation_id": get_correlation_id(),
                "event": "function_entry",
            },
        )
        return datetime.now()

    def _exit(result: Any, start_time: datetime) -> None:
        execution_time = (datetime.now() - start_time).total_seconds()
        logger.debug(
            f"EXIT {func.__name__} -> {result!r} ({execution_time:.2f}s)",
            extra={
                "function": func.__name__,
                "duration_seconds": execution_time,
                "correlation_id": get_correlation_id(),
                "event": "function_exit",
                "status": "success",
            },
        )

    def _error(error: Exception, start_time: datetime) -> None:
        execution_time = (datetime.now() - start_time).total_seconds()
        logger.error(
            f"ERROR {func.__name__} raised {type(error).__name__}: {error}",
            extra={
                "function": func.__name__,
                "duration_seconds": execution_time,
                "correlation_id": get_correlation_id(),
                "event": "function_error",
                "status": "error",
                "error_type": type(error).__name__,
            },
            exc_info=True,
        )

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = _enter(args, kwargs)
            try:
                result = await func(*args, **kwargs)
            except Exception as error:
                _error(error, start_time)
                raise
            _exit(result, start_time)
            return result

        return cast(F, async_wrapper)

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start_time = _enter(args, kwargs)
        try:
            result = func(*args, **kwargs)
        except Exception as error:
            _error(error, start_time)
            raise
        _exit(result, start_time)
        return result

    return cast(F, wrapper)
