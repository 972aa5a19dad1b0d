"""
Scheduled job driver: trading-window gate, per-symbol fan-out and aggregation.

One tick runs through

    IDLE -> GATED -> FANNING_OUT -> AGGREGATING -> IDLE

The driver thread blocks on the join of every submitted unit; the units
themselves run on the shared worker pool. A job succeeds when at least one
symbol succeeded. Per-symbol metrics belong to the operation, job-level
metrics belong here.
"""

import threading
from concurrent.futures import Future, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..collaborators import SymbolSource
from ..errors import SchedulerError
from ..logging.config import get_scheduler_logger, log_gate_decision
from ..metrics.registry import (
    SCHEDULER_EXECUTION_TIME,
    SCHEDULER_FAILURE_COUNT,
    SCHEDULER_SUCCESS_COUNT,
    TAG_OPERATION_TYPE,
    MetricsRegistry,
)
from ..operation.models import OperationResult
from ..operation.template import MarketDataOperation
from ..utils.time import Clock, Stopwatch, utc_now
from .pool import WorkerPool
from .window import TradingWindow

logger = get_scheduler_logger(__name__)

SKIP_OUTSIDE_WINDOW = "outside_trading_window"
SKIP_NO_SYMBOLS = "no_symbols"


class SchedulerState(Enum):
    """Phase of the most recent tick."""
    IDLE = "idle"
    GATED = "gated"
    FANNING_OUT = "fanning_out"
    AGGREGATING = "aggregating"


@dataclass(frozen=True)
class TickResult:
    """Outcome of one scheduler tick."""
    job_name: str
    skipped: bool
    succeeded: bool
    results: tuple[OperationResult, ...] = field(default_factory=tuple)
    duration_ms: int = 0
    skip_reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.succeeded)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if not r.succeeded)


class ScheduledJob:
    """Runs one operation for every symbol of a symbol source on each tick."""

    def __init__(
        self,
        name: str,
        operation: MarketDataOperation,
        symbol_source: SymbolSource,
        trading_window: TradingWindow,
        pool: WorkerPool,
        metrics: MetricsRegistry,
        clock: Clock = utc_now,
    ):
        self.name = name
        self.operation = operation
        self.symbol_source = symbol_source
        self.trading_window = trading_window
        self.pool = pool
        self.metrics = metrics
        self._clock = clock
        self._tags = {TAG_OPERATION_TYPE: name}
        self._state = SchedulerState.IDLE
        self._state_lock = threading.Lock()
        self.logger = logger.bind(job_name=name)

    @property
    def state(self) -> SchedulerState:
        with self._state_lock:
            return self._state

    def _enter(self, state: SchedulerState) -> None:
        with self._state_lock:
            self._state = state

    def initialize(self) -> Optional[TickResult]:
        """Warm start: run one pass immediately if inside the trading window."""
        if not self.trading_window.is_within_trading_window(self._clock()):
            self.logger.info("Outside trading window, skipping warm start")
            return None

        self.logger.info("Inside trading window, running warm start pass")
        return self.tick()

    def tick(self) -> TickResult:
        """Run one gated pass. Never raises."""
        watch = Stopwatch()
        try:
            self._enter(SchedulerState.GATED)
            now = self._clock()
            passed = self.trading_window.is_within_trading_window(now)
            if not passed:
                log_gate_decision(self.logger, self.name, False, "Outside trading window",
                                  self.trading_window.describe(now))
                self._enter(SchedulerState.IDLE)
                return TickResult(self.name, skipped=True, succeeded=False,
                                  skip_reason=SKIP_OUTSIDE_WINDOW)
        except Exception as e:
            return self._driver_failure(e, watch)

        log_gate_decision(self.logger, self.name, True, "Inside trading window")
        return self.process()

    def process(self) -> TickResult:
        """Fan out and aggregate without the trading-window gate. Never raises."""
        watch = Stopwatch()
        try:
            with self.metrics.timer(SCHEDULER_EXECUTION_TIME, self._tags).time():
                return self._run(watch)
        except Exception as e:
            return self._driver_failure(e, watch)
        finally:
            self._enter(SchedulerState.IDLE)

    def _driver_failure(self, cause: Exception, watch: Stopwatch) -> TickResult:
        self._enter(SchedulerState.IDLE)
        error = SchedulerError(f"Job {self.name} failed: {cause}", job_name=self.name)
        self.logger.error("Scheduled job driver failed", error=str(cause),
                          error_kind=type(cause).__name__, exc_info=cause)
        self.metrics.counter(SCHEDULER_FAILURE_COUNT, self._tags).increment()
        return TickResult(self.name, skipped=False, succeeded=False,
                          duration_ms=watch.elapsed_ms, error=error.message)

    def _run(self, watch: Stopwatch) -> TickResult:
        self._enter(SchedulerState.FANNING_OUT)
        symbols = self.symbol_source.find_symbols()
        if not symbols:
            self.logger.info("No symbols to process")
            return TickResult(self.name, skipped=True, succeeded=False,
                              duration_ms=watch.elapsed_ms, skip_reason=SKIP_NO_SYMBOLS)

        self.logger.info("Fanning out symbols", symbol_count=len(symbols))
        futures = {symbol: self.pool.submit(self.operation.run, symbol) for symbol in symbols}
        wait(futures.values())

        self._enter(SchedulerState.AGGREGATING)
        results = tuple(self._collect(symbol, future) for symbol, future in futures.items())
        succeeded = any(r.succeeded for r in results)

        counter = SCHEDULER_SUCCESS_COUNT if succeeded else SCHEDULER_FAILURE_COUNT
        self.metrics.counter(counter, self._tags).increment()

        tick = TickResult(self.name, skipped=False, succeeded=succeeded,
                          results=results, duration_ms=watch.elapsed_ms)
        self.logger.info(
            "Scheduled job completed",
            succeeded=succeeded,
            success_count=tick.success_count,
            failure_count=tick.failure_count,
            duration_ms=tick.duration_ms,
        )
        return tick

    def _collect(self, symbol: str, future: Future) -> OperationResult:
        try:
            return future.result()
        except Exception as e:
            # run() converts every phase failure; this is a driver-level crash
            self.logger.error("Operation unit crashed", symbol=symbol, error=str(e))
            return OperationResult(
                data_type_name=self.operation.data_type_name,
                symbol=symbol,
                succeeded=False,
                timestamp=self._clock(),
                error_kind=type(e).__name__,
                message=str(e),
            )
