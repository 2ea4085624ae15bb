"""
Utility modules for the staticship client.

This package provides shared utilities used across all stages:
- logging: Structured logging with entry/exit decorators
- config: Environment configuration
- config_loader: Config file loading and precedence resolution
- platform_config: Process-wide cache of platform upload limits
- metrics: Prometheus instrumentation
"""

from staticship.utils.logging import get_logger, log_function_call

__all__ = ["get_logger", "log_function_call"]
