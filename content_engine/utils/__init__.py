"""Utils module for the creator content engine."""

from content_engine.utils.clock import SystemClock
from content_engine.utils.logger import LogContext, get_logger, setup_logging
from content_engine.utils.retry import AppError, ConfigurationError, ErrorHandler

__all__ = [
    "get_logger",
    "setup_logging",
    "LogContext",
    "SystemClock",
    "ErrorHandler",
    "AppError",
    "ConfigurationError",
]
