"""Bounded exponential-backoff retries for fallible fetch calls."""

from .executor import RetryExecutor, RetryPolicy

__all__ = ["RetryExecutor", "RetryPolicy"]
