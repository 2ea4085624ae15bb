"""
staticship

Python client for the Ship static-hosting API. Validates a batch of local
files against the platform limits, normalizes their upload paths and deploys
them in a single request, with timeouts, cooperative cancellation and
request lifecycle events.

This package provides modular components for each stage of a deploy:
- collector: Local file discovery and checksums
- validator: All-or-nothing batch validation
- paths: Upload path normalization and junk filtering
- deployer: Deploy orchestration and SPA auto-configuration
- transport: HTTP request lifecycle
- client: The Ship facade
- utils: Logging, configuration and metrics

Example usage:
    >>> from staticship import Ship
    >>> async with Ship(api_key="ship-...") as ship:
    ...     await ship.deploy(["./dist"])
"""

__version__ = "0.1.0"

# Package-level imports
from staticship.client import Ship
from staticship.errors import (
    ApiError,
    AuthenticationError,
    BusinessError,
    CancelledError,
    ConfigError,
    FileError,
    NetworkError,
    ShipError,
    ValidationError,
)
from staticship.types import ConfigLimits, DeployOptions, FileStatus, StaticFile
from staticship.utils.logging import setup_logging

# Initialize default logging configuration
setup_logging()

__all__ = [
    "ApiError",
    "AuthenticationError",
    "BusinessError",
    "CancelledError",
    "ConfigError",
    "ConfigLimits",
    "DeployOptions",
    "FileError",
    "FileStatus",
    "NetworkError",
    "Ship",
    "ShipError",
    "StaticFile",
    "ValidationError",
]
