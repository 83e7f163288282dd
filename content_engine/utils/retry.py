"""
Error taxonomy and categorization helpers.

Core components degrade instead of raising; the ErrorHandler gives every
degraded path a category operators can filter on.
"""

import asyncio

import httpx

# =============================================================================
# Custom Exceptions
# =============================================================================

class AppError(Exception):
    """Base application exception."""
    pass

class ConfigurationError(AppError):
    pass

# =============================================================================
# Error Handler
# =============================================================================

class ErrorHandler:
    """Centralized error categorization."""

    @staticmethod
    def categorize_status(status_code: int) -> str:
        """Categorize a non-2xx HTTP status."""
        if status_code == 429:
            return "RATE_LIMIT_ERROR"
        if status_code in (401, 403):
            return "API_KEY_ERROR"
        if status_code >= 500:
            return "SERVER_ERROR"
        return "HTTP_ERROR"

    @staticmethod
    def categorize_error(error: Exception) -> str:
        """Categorize errors for logging and fallback decisions."""
        if isinstance(error, httpx.HTTPStatusError):
            return ErrorHandler.categorize_status(error.response.status_code)
        if isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException)):
            return "TIMEOUT_ERROR"
        if isinstance(error, (httpx.TransportError, ConnectionError)):
            return "NETWORK_ERROR"
        if isinstance(error, ConfigurationError):
            return "CONFIGURATION_ERROR"
        if isinstance(error, (ValueError, TypeError)):
            return "VALIDATION_ERROR"

        # Check string content
        err_str = str(error).lower()
        if "rate limit" in err_str: return "RATE_LIMIT_ERROR"
        if "timeout" in err_str: return "TIMEOUT_ERROR"
        if "api key" in err_str or "unauthorized" in err_str: return "API_KEY_ERROR"
        if "connection" in err_str: return "NETWORK_ERROR"

        return "UNKNOWN_ERROR"
