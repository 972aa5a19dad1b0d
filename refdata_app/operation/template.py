"""
Generic market data operation.

One driver runs four injected steps for a symbol:

    fetch (with retry) -> validate -> process -> on_success

Every phase is timed against a per-data-type timer. Any phase failure is
converted into an unsuccessful OperationResult plus a failure metric; no
exception crosses ``run()``.
"""

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Hashable, Optional

import structlog

from ..errors import (
    FetchError,
    MarketDataError,
    ProcessError,
    RetryInterrupted,
    StrategyNotFoundError,
    ValidationError,
)
from ..logging.config import log_phase_failure
from ..metrics.registry import (
    OPERATION_FAILURE_COUNT,
    OPERATION_SUCCESS_COUNT,
    PHASE_TIMER,
    TAG_DATA_TYPE,
    MetricsRegistry,
)
from ..retry.executor import RetryExecutor, RetryPolicy
from ..utils.time import Clock, Stopwatch, utc_now
from .models import OperationResult, data_type_name
from .registry import StrategyBundle, StrategyRegistry

logger = structlog.get_logger(__name__)

SuccessHook = Callable[[str, Any], Any]


class MarketDataOperation:
    """Runs the fetch-validate-process-publish pipeline for one data type."""

    def __init__(
        self,
        data_type: Hashable,
        fetch: Callable[[str], Any],
        registry: StrategyRegistry,
        retry_executor: RetryExecutor,
        metrics: MetricsRegistry,
        retry_policy: Optional[RetryPolicy] = None,
        on_success: Optional[SuccessHook] = None,
        executor: Optional[Executor] = None,
        clock: Clock = utc_now,
    ):
        """
        Args:
            data_type: Registry key of the validator/processor bundle
            fetch: Upstream client call returning the raw payload for a symbol
            registry: Strategy registry holding the bundle for ``data_type``
            retry_executor: Executor wrapping the fetch call
            metrics: Sink for phase timers and success/failure counters
            retry_policy: Fetch retry limits, defaults to RetryPolicy()
            on_success: Side-effect hook called with (symbol, processed result)
            executor: Executor used by ``execute()``; a private pool, released
                by ``close()``, if omitted
            clock: Source of result timestamps
        """
        self.data_type = data_type
        self.data_type_name = data_type_name(data_type)
        self.fetch = fetch
        self.registry = registry
        self.retry_executor = retry_executor
        self.metrics = metrics
        self.retry_policy = retry_policy or RetryPolicy()
        self.on_success = on_success
        self._executor = executor
        self._owns_executor = False
        self._executor_lock = threading.Lock()
        self._clock = clock
        self._tags = {TAG_DATA_TYPE: self.data_type_name}
        self.logger = logger.bind(data_type=self.data_type_name)

    def execute(self, symbol: str) -> "Future[bool]":
        """Run asynchronously; the future resolves to True on success and never fails."""
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix=f"{self.data_type_name}-op"
                )
                self._owns_executor = True
            executor = self._executor
        return executor.submit(lambda: self.run(symbol).succeeded)

    def close(self) -> None:
        """Shut down the private executor created by ``execute()``; injected ones are left alone."""
        with self._executor_lock:
            if not self._owns_executor or self._executor is None:
                return
            executor, self._executor = self._executor, None
            self._owns_executor = False
        executor.shutdown(wait=True)

    def __enter__(self) -> "MarketDataOperation":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def run(self, symbol: str) -> OperationResult:
        """Run every phase for ``symbol`` and return its result."""
        watch = Stopwatch()
        try:
            bundle = self._bundle()
            payload = self._timed("fetch", self._fetch, symbol)
            self._timed("validate", self._validate, bundle, symbol, payload)
            processed = self._timed("process", self._process, bundle, symbol, payload)
            if self.on_success is not None:
                self._timed("on_success", self._handle_success, symbol, processed)
        except MarketDataError as e:
            return self._failure(symbol, e, watch)
        except Exception as e:
            self.logger.exception("Unexpected operation failure", symbol=symbol)
            return self._failure(symbol, e, watch)

        self.metrics.counter(OPERATION_SUCCESS_COUNT, self._tags).increment()
        self.logger.info("Processed market data", symbol=symbol, duration_ms=watch.elapsed_ms)
        return OperationResult(
            data_type_name=self.data_type_name,
            symbol=symbol,
            succeeded=True,
            timestamp=self._clock(),
            duration_ms=watch.elapsed_ms,
        )

    def _bundle(self) -> StrategyBundle:
        try:
            return self.registry.get_or_create(self.data_type)
        except StrategyNotFoundError:
            raise
        except Exception as e:
            raise ProcessError(
                f"Failed to create strategy for {self.data_type_name}: {e}",
                data_type=self.data_type_name,
                phase="strategy",
            ) from e

    def _fetch(self, symbol: str) -> Any:
        payload = self.retry_executor.execute(
            lambda: self.fetch(symbol), self.data_type_name, self.retry_policy
        )
        if payload is None:
            raise FetchError(
                f"No {self.data_type_name} data returned for {symbol}",
                data_type=self.data_type_name,
            )
        return payload

    def _validate(self, bundle: StrategyBundle, symbol: str, payload: Any) -> None:
        try:
            valid = bundle.validator(payload)
        except ValidationError:
            raise
        except Exception as e:
            raise ValidationError(
                f"Validator failed for {self.data_type_name}: {e}",
                data_type=self.data_type_name,
                symbol=symbol,
            ) from e

        if not valid:
            raise ValidationError(
                f"Invalid or stale {self.data_type_name} data",
                data_type=self.data_type_name,
                symbol=symbol,
            )

    def _process(self, bundle: StrategyBundle, symbol: str, payload: Any) -> Any:
        try:
            return bundle.processor(payload)
        except ProcessError:
            raise
        except Exception as e:
            raise ProcessError(
                f"Failed to process {self.data_type_name} data: {e}",
                data_type=self.data_type_name,
                symbol=symbol,
            ) from e

    def _handle_success(self, symbol: str, processed: Any) -> None:
        try:
            self.on_success(symbol, processed)  # type: ignore[misc]
        except Exception as e:
            raise ProcessError(
                f"Success hook failed for {self.data_type_name}: {e}",
                data_type=self.data_type_name,
                symbol=symbol,
                phase="on_success",
            ) from e

    def _timed(self, phase: str, step: Callable[..., Any], *args: Any) -> Any:
        with self.metrics.timer(PHASE_TIMER.format(phase=phase), self._tags).time():
            return step(*args)

    def _failure(self, symbol: str, error: BaseException, watch: Stopwatch) -> OperationResult:
        phase = _phase_of(error)
        log_phase_failure(self.logger, self.data_type_name, symbol, phase, error)
        self.metrics.counter(OPERATION_FAILURE_COUNT, self._tags).increment()
        return OperationResult(
            data_type_name=self.data_type_name,
            symbol=symbol,
            succeeded=False,
            timestamp=self._clock(),
            error_kind=type(error).__name__,
            message=str(error),
            duration_ms=watch.elapsed_ms,
        )


def _phase_of(error: BaseException) -> str:
    if isinstance(error, (FetchError, RetryInterrupted)):
        return "fetch"
    if isinstance(error, ValidationError):
        return "validate"
    if isinstance(error, ProcessError):
        return error.phase
    if isinstance(error, StrategyNotFoundError):
        return "strategy"
    return "unknown"
