"""Tests for the gated fan-out driver."""

import threading
from unittest.mock import Mock

import pytest

from refdata_app.collaborators import StaticSymbolSource
from refdata_app.config.defaults import TradingWindowParams
from refdata_app.metrics.registry import (
    SCHEDULER_EXECUTION_TIME,
    SCHEDULER_FAILURE_COUNT,
    SCHEDULER_SUCCESS_COUNT,
    TAG_OPERATION_TYPE,
)
from refdata_app.operation.template import MarketDataOperation
from refdata_app.scheduler.core import (
    SKIP_NO_SYMBOLS,
    SKIP_OUTSIDE_WINDOW,
    ScheduledJob,
    SchedulerState,
)
from refdata_app.scheduler.pool import WorkerPool
from refdata_app.scheduler.window import TradingWindow

JOB_TAGS = {TAG_OPERATION_TYPE: "stock-price-job"}


@pytest.fixture
def pool():
    pool = WorkerPool(max_workers=4, queue_capacity=8)
    yield pool
    pool.shutdown()


@pytest.fixture
def make_job(strategy_registry, retry_executor, metrics, pool, clock):
    def factory(fetch, symbols="RELIANCE,TCS", symbol_source=None):
        operation = MarketDataOperation(
            "stock-price", fetch, strategy_registry, retry_executor, metrics, clock=clock
        )
        return ScheduledJob(
            name="stock-price-job",
            operation=operation,
            symbol_source=symbol_source or StaticSymbolSource(symbols),
            trading_window=TradingWindow.from_params(TradingWindowParams()),
            pool=pool,
            metrics=metrics,
            clock=clock,
        )
    return factory


class TestTick:
    """Test suite for a single scheduler tick."""

    def test_all_symbols_processed(self, make_job, metrics):
        """Test every symbol gets one operation and the job succeeds."""
        fetch = Mock(side_effect=lambda symbol: {"symbol": symbol})
        job = make_job(fetch, symbols="RELIANCE,TCS,INFY")

        result = job.tick()

        assert result.skipped is False
        assert result.succeeded is True
        assert sorted(r.symbol for r in result.results) == ["INFY", "RELIANCE", "TCS"]
        assert result.success_count == 3
        assert fetch.call_count == 3
        assert metrics.count(SCHEDULER_SUCCESS_COUNT, JOB_TAGS) == 1
        assert metrics.timer(SCHEDULER_EXECUTION_TIME, JOB_TAGS).count == 1

    def test_outside_window_is_noop(self, make_job, metrics, clock):
        """Test ticks outside the window skip without fetching or recording metrics."""
        clock.advance(hours=12)
        fetch = Mock()

        result = make_job(fetch).tick()

        assert result.skipped is True
        assert result.skip_reason == SKIP_OUTSIDE_WINDOW
        fetch.assert_not_called()
        assert metrics.count(SCHEDULER_SUCCESS_COUNT, JOB_TAGS) == 0
        assert metrics.count(SCHEDULER_FAILURE_COUNT, JOB_TAGS) == 0

    def test_empty_symbol_list_is_noop(self, make_job, metrics):
        """Test no symbols means no operations and no job metric."""
        source = Mock()
        source.find_symbols.return_value = []

        result = make_job(Mock(), symbol_source=source).tick()

        assert result.skipped is True
        assert result.skip_reason == SKIP_NO_SYMBOLS
        assert metrics.count(SCHEDULER_SUCCESS_COUNT, JOB_TAGS) == 0
        assert metrics.count(SCHEDULER_FAILURE_COUNT, JOB_TAGS) == 0

    def test_partial_failure_is_job_success(self, make_job, metrics):
        """Test one successful symbol is enough for a successful job."""
        def fetch(symbol):
            if symbol == "TCS":
                raise ConnectionError("timeout")
            return {"symbol": symbol}

        result = make_job(fetch).tick()

        assert result.succeeded is True
        assert result.success_count == 1
        assert result.failure_count == 1
        assert metrics.count(SCHEDULER_SUCCESS_COUNT, JOB_TAGS) == 1
        assert metrics.count(SCHEDULER_FAILURE_COUNT, JOB_TAGS) == 0

    def test_all_failed_is_job_failure(self, make_job, metrics):
        """Test the job fails when every symbol fails."""
        result = make_job(Mock(side_effect=ConnectionError("down"))).tick()

        assert result.succeeded is False
        assert result.failure_count == 2
        assert metrics.count(SCHEDULER_FAILURE_COUNT, JOB_TAGS) == 1

    def test_symbol_source_failure_is_contained(self, make_job, metrics):
        """Test a driver-level exception becomes a job failure, not a crash."""
        source = Mock()
        source.find_symbols.side_effect = RuntimeError("registry unavailable")

        job = make_job(Mock(), symbol_source=source)
        result = job.tick()

        assert result.succeeded is False
        assert "registry unavailable" in result.error
        assert metrics.count(SCHEDULER_FAILURE_COUNT, JOB_TAGS) == 1
        assert job.state is SchedulerState.IDLE

    def test_symbols_run_concurrently(self, make_job):
        """Test units for different symbols overlap on the worker pool."""
        barrier = threading.Barrier(2, timeout=5)

        def fetch(symbol):
            barrier.wait()
            return {"symbol": symbol}

        result = make_job(fetch).tick()

        assert result.success_count == 2

    def test_state_returns_to_idle(self, make_job):
        job = make_job(Mock(return_value={"a": 1}))
        assert job.state is SchedulerState.IDLE
        job.tick()
        assert job.state is SchedulerState.IDLE

    def test_state_is_fanning_out_during_work(self, make_job):
        """Test the job reports FANNING_OUT while units are running."""
        states = []
        job = None

        def fetch(symbol):
            states.append(job.state)
            return {"symbol": symbol}

        job = make_job(fetch, symbols="RELIANCE")
        job.tick()

        assert states == [SchedulerState.FANNING_OUT]


class TestWarmStart:
    """Test suite for the startup pass."""

    def test_runs_inside_window(self, make_job):
        fetch = Mock(return_value={"a": 1})
        result = make_job(fetch).initialize()

        assert result is not None
        assert fetch.call_count == 2

    def test_skipped_outside_window(self, make_job, clock):
        clock.advance(days=3)  # Saturday
        fetch = Mock()

        assert make_job(fetch).initialize() is None
        fetch.assert_not_called()


class TestProcess:
    """Test suite for ungated processing."""

    def test_process_ignores_window(self, make_job, clock):
        clock.advance(hours=12)
        fetch = Mock(return_value={"a": 1})

        result = make_job(fetch).process()

        assert result.succeeded is True
        assert fetch.call_count == 2
