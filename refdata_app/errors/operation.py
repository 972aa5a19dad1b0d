"""
Errors raised by the phases of a market data operation.

A FetchError is the only recoverable kind: the retry executor retries the
underlying failure and raises a FetchError once attempts are exhausted.
"""

from typing import Any, Optional

from .base import MarketDataError


class FetchError(MarketDataError):
    """Fetching data from the upstream source failed."""

    def __init__(self, message: str, data_type: Optional[str] = None,
                 attempts: int = 0, cause: Optional[BaseException] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.data_type = data_type
        self.attempts = attempts
        self.cause = cause
        self.recoverable = True


class UnauthorizedError(FetchError):
    """The upstream source rejected the session credentials."""


class ValidationError(MarketDataError):
    """Fetched payload is incomplete, malformed or stale."""

    def __init__(self, message: str, data_type: Optional[str] = None,
                 symbol: Optional[str] = None, reason: Optional[str] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.data_type = data_type
        self.symbol = symbol
        self.reason = reason or message


class ProcessError(MarketDataError):
    """Transform, persist or publish step failed."""

    def __init__(self, message: str, data_type: Optional[str] = None,
                 symbol: Optional[str] = None, phase: str = "process", **kwargs: Any):
        super().__init__(message, **kwargs)
        self.data_type = data_type
        self.symbol = symbol
        self.phase = phase


class RetryInterrupted(MarketDataError):
    """Cancellation was requested while waiting between retry attempts."""

    def __init__(self, message: str, data_type: Optional[str] = None,
                 attempt: int = 0, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.data_type = data_type
        self.attempt = attempt


class StrategyNotFoundError(MarketDataError):
    """No strategy bundle was registered for a data type."""

    def __init__(self, key: Any, **kwargs: Any):
        super().__init__(f"No strategy registered for {key}", **kwargs)
        self.key = key


class SchedulerError(MarketDataError):
    """The fan-out driver itself failed (not an individual operation)."""

    def __init__(self, message: str, job_name: Optional[str] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.job_name = job_name
