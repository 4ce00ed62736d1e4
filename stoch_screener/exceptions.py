"""Custom exceptions for the stochastic screener with enhanced error context"""

from typing import Any


class ScreenerError(Exception):
    """Base exception for screener errors with enhanced context

    Attributes:
        message: Error message
        context: Additional context dictionary (e.g., symbol, attempts)
        original_error: Original exception if wrapped
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None,
                 original_error: Exception | None = None):
        self.message = message
        self.context = context or {}
        self.original_error = original_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context"""
        msg = self.message
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            msg = f"{msg} [{ctx_str}]"
        if self.original_error:
            msg = f"{msg} (caused by: {type(self.original_error).__name__}: {self.original_error})"
        return msg


class DataSourceError(ScreenerError):
    """Market data fetch failed

    Common causes:
    - Network connectivity issues
    - Upstream throttling under parallel load
    - Invalid symbol or no data available
    """
    pass


class FetchTransportError(DataSourceError):
    """Transport-level failure (connection reset, DNS, HTTP 5xx). Retried."""
    pass


class FetchTimeout(FetchTransportError):
    """Request exceeded its fixed timeout. Retried."""
    pass


class UpstreamRateLimited(FetchTransportError):
    """Upstream answered 429. Retried like any other transport failure."""
    pass


class UpstreamError(DataSourceError):
    """Upstream fetch failed for good (retries exhausted or non-retryable status)"""

    def __init__(self, message: str, attempts: int = 1, last_error: Exception | None = None,
                 context: dict[str, Any] | None = None):
        self.attempts = attempts
        self.last_error = last_error
        ctx = {**(context or {}), "attempts": attempts}
        super().__init__(message, context=ctx, original_error=last_error)


class InsufficientData(DataSourceError):
    """Fewer bars than the minimum needed for analysis. Never retried."""
    pass


class IndicatorUnavailable(ScreenerError):
    """Series present but too short for the configured oscillator windows"""
    pass


class ConfigError(ScreenerError):
    """Configuration validation failed

    Common causes:
    - Missing or invalid config.yaml
    - Invalid values (e.g., negative periods, unknown timezone)
    - Environment variables not set
    """
    pass


class ValidationError(ScreenerError):
    """Input validation failed

    Common causes:
    - Invalid ticker symbol format
    - Unknown sector name
    """
    pass


class TelegramError(ScreenerError):
    """Telegram API communication failed

    Common causes:
    - Invalid bot token or chat ID
    - Network connectivity issues
    - Rate limit exceeded (Telegram has strict limits)
    """
    pass


class SystemicError(ScreenerError):
    """Failure that invalidates the whole scan rather than a single symbol.

    Never converted into a per-symbol error result.
    """
    pass


class CacheError(SystemicError):
    """Cache state is corrupt or unusable"""
    pass
