"""
Error classification for the scheduled-operation execution core.

Fetch failures are retried locally; validation, processing and session
failures are not. Nothing escapes an operation or a scheduler tick as an
exception; failures surface through metrics and logs.
"""

from .base import MarketDataError
from .operation import (
    FetchError,
    UnauthorizedError,
    ValidationError,
    ProcessError,
    RetryInterrupted,
    StrategyNotFoundError,
    SchedulerError,
)
from .session import (
    SessionError,
    CookieError,
)

__all__ = [
    "MarketDataError",
    # Operation phases
    "FetchError",
    "UnauthorizedError",
    "ValidationError",
    "ProcessError",
    "RetryInterrupted",
    # Wiring
    "StrategyNotFoundError",
    "SchedulerError",
    # Session lifecycle
    "SessionError",
    "CookieError",
]
