"""
Utility modules for oss-uploader.

This package provides shared utilities used across all commands:
- logging: Structured logging with entry/exit decorators
- config / config_loader: Configuration loading and validation
- formatting: Byte-size and path display helpers
- metrics: Prometheus upload counters
"""

from oss_uploader.utils.logging import get_logger, log_function_call

__all__ = ["get_logger", "log_function_call"]
