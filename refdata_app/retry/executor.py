"""
Retry executor with exponential backoff.

The backoff wait blocks the calling worker thread. While a worker waits it
cannot pick up other symbols, so pool sizing must account for the longest
backoff sequence.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

import structlog

from ..errors import FetchError, RetryInterrupted
from ..metrics.registry import RETRY_COUNT, TAG_DATA_TYPE, MetricsRegistry

T = TypeVar("T")

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry limits for one call site."""
    max_attempts: int = 3
    base_delay_seconds: float = 1.0
    backoff_factor: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay_seconds < 0:
            raise ValueError(f"base_delay_seconds must be >= 0, got {self.base_delay_seconds}")

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        return self.base_delay_seconds * self.backoff_factor ** (attempt - 1)


class RetryExecutor:
    """Runs an operation up to ``max_attempts`` times with exponential backoff."""

    def __init__(
        self,
        metrics: MetricsRegistry,
        cancel_event: Optional[threading.Event] = None,
        waiter: Optional[Callable[[float], bool]] = None,
    ):
        """
        Args:
            metrics: Registry receiving the per-data-type retry counter
            cancel_event: Event that aborts any pending backoff wait when set
            waiter: Wait function returning True when the wait was interrupted;
                defaults to ``cancel_event.wait``
        """
        self.metrics = metrics
        self.cancel_event = cancel_event or threading.Event()
        self._wait = waiter or self.cancel_event.wait
        self.logger = logger

    def cancel(self) -> None:
        """Interrupt every backoff wait, now and until ``reset()``."""
        self.cancel_event.set()

    def reset(self) -> None:
        self.cancel_event.clear()

    def execute(self, operation: Callable[[], T], data_type: str, policy: RetryPolicy) -> T:
        """Run ``operation`` under ``policy``."""
        return self.execute_with_retry(
            operation,
            data_type,
            max_attempts=policy.max_attempts,
            base_delay_seconds=policy.base_delay_seconds,
            backoff_factor=policy.backoff_factor,
        )

    def execute_with_retry(
        self,
        operation: Callable[[], T],
        data_type: str,
        max_attempts: int,
        base_delay_seconds: float,
        backoff_factor: float = 2.0,
    ) -> T:
        """
        Execute an operation with retry logic.

        Args:
            operation: Zero-argument callable to run
            data_type: Data type tag for metrics and logs
            max_attempts: Total number of attempts (>= 1)
            base_delay_seconds: Delay after the first failure
            backoff_factor: Multiplier applied to the delay after each failure

        Returns:
            The operation's result

        Raises:
            FetchError: All attempts failed; carries the last underlying cause
            RetryInterrupted: Cancellation was signalled during a backoff wait
        """
        policy = RetryPolicy(max_attempts, base_delay_seconds, backoff_factor)
        retry_counter = self.metrics.counter(RETRY_COUNT, {TAG_DATA_TYPE: data_type})
        last_error: Optional[Exception] = None

        for attempt in range(1, policy.max_attempts + 1):
            try:
                return operation()
            except RetryInterrupted:
                raise
            except Exception as e:
                last_error = e
                retry_counter.increment()

                if attempt < policy.max_attempts:
                    delay = policy.delay_for(attempt)
                    self.logger.warning(
                        "Attempt failed, retrying",
                        data_type=data_type,
                        attempt=attempt,
                        max_attempts=policy.max_attempts,
                        retry_in_seconds=delay,
                        error=str(e),
                    )
                    if self._wait(delay):
                        self.logger.warning(
                            "Retry interrupted during backoff",
                            data_type=data_type,
                            attempt=attempt,
                        )
                        raise RetryInterrupted(
                            f"Retry interrupted for {data_type} after attempt {attempt}",
                            data_type=data_type,
                            attempt=attempt,
                        ) from e

        self.logger.error(
            "All attempts failed",
            data_type=data_type,
            attempts=policy.max_attempts,
            error=str(last_error),
        )
        raise FetchError(
            f"Operation failed after {policy.max_attempts} attempts: {last_error}",
            data_type=data_type,
            attempts=policy.max_attempts,
            cause=last_error,
        ) from last_error
