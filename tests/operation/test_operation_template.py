"""Tests for the fetch-validate-process-publish operation driver."""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from refdata_app.metrics.registry import (
    OPERATION_FAILURE_COUNT,
    OPERATION_SUCCESS_COUNT,
    PHASE_TIMER,
    RETRY_COUNT,
    TAG_DATA_TYPE,
)
from refdata_app.operation.models import DataType
from refdata_app.operation.registry import StrategyBundle, StrategyRegistry
from refdata_app.operation.template import MarketDataOperation
from refdata_app.retry.executor import RetryExecutor, RetryPolicy

TAGS = {TAG_DATA_TYPE: "stock-price"}


@pytest.fixture
def validator():
    return Mock(return_value=True)


@pytest.fixture
def processor():
    return Mock(side_effect=lambda payload: {"mapped": payload})


@pytest.fixture
def registry(validator, processor):
    registry = StrategyRegistry()
    registry.register(DataType.STOCK_PRICE, lambda: StrategyBundle(validator, processor))
    return registry


@pytest.fixture
def make_operation(registry, retry_executor, metrics, clock):
    def factory(fetch, on_success=None, data_type=DataType.STOCK_PRICE):
        return MarketDataOperation(
            data_type=data_type,
            fetch=fetch,
            registry=registry,
            retry_executor=retry_executor,
            metrics=metrics,
            retry_policy=RetryPolicy(max_attempts=3, base_delay_seconds=1.0),
            on_success=on_success,
            clock=clock,
        )
    return factory


def _counts(metrics, tags=TAGS):
    return (metrics.count(OPERATION_SUCCESS_COUNT, tags),
            metrics.count(OPERATION_FAILURE_COUNT, tags))


class TestSuccessfulRun:
    """Test suite for the all-phases-succeed path."""

    def test_all_phases_run_in_order(self, make_operation, validator, processor, metrics, clock):
        """Test fetch, validate, process and the hook each run once."""
        fetch = Mock(return_value={"price": 10})
        hook = Mock()

        result = make_operation(fetch, on_success=hook).run("RELIANCE")

        assert result.succeeded is True
        assert result.symbol == "RELIANCE"
        assert result.data_type_name == "stock-price"
        assert result.timestamp == clock.now
        assert result.error_kind is None
        fetch.assert_called_once_with("RELIANCE")
        validator.assert_called_once_with({"price": 10})
        processor.assert_called_once_with({"price": 10})
        hook.assert_called_once_with("RELIANCE", {"mapped": {"price": 10}})

    def test_success_metric_and_phase_timers(self, make_operation, metrics):
        """Test exactly one success increment and one observation per phase timer."""
        make_operation(Mock(return_value={"price": 10}), on_success=Mock()).run("TCS")

        assert _counts(metrics) == (1, 0)
        for phase in ("fetch", "validate", "process", "on_success"):
            assert metrics.timer(PHASE_TIMER.format(phase=phase), TAGS).count == 1

    def test_hook_return_value_ignored(self, make_operation):
        """Test the hook's return value has no effect on the result."""
        result = make_operation(Mock(return_value=1), on_success=Mock(return_value=False)).run("A")
        assert result.succeeded is True

    def test_execute_returns_future(self, make_operation):
        """Test execute resolves to True for a successful run."""
        with make_operation(Mock(return_value={"price": 1})) as operation:
            future = operation.execute("INFY")
            assert future.result(timeout=5) is True


class TestFailedRun:
    """Test suite for phase failures; none of them raise."""

    def test_fetch_exhaustion(self, make_operation, validator, metrics, waiter):
        """Test a fetch failing every attempt yields a FetchError result."""
        fetch = Mock(side_effect=ConnectionError("timeout"))

        result = make_operation(fetch).run("RELIANCE")

        assert result.succeeded is False
        assert result.error_kind == "FetchError"
        assert "timeout" in result.message
        assert fetch.call_count == 3
        assert waiter.delays == [1.0, 2.0]
        validator.assert_not_called()
        assert _counts(metrics) == (0, 1)
        assert metrics.count(RETRY_COUNT, TAGS) == 3

    def test_none_payload_is_fetch_failure(self, make_operation, validator, metrics):
        """Test an empty upstream response fails the fetch phase without retrying."""
        fetch = Mock(return_value=None)

        result = make_operation(fetch).run("RELIANCE")

        assert result.error_kind == "FetchError"
        assert fetch.call_count == 1
        validator.assert_not_called()
        assert _counts(metrics) == (0, 1)

    def test_validation_rejects(self, make_operation, validator, processor, metrics):
        """Test a rejecting validator stops the pipeline without retry."""
        validator.return_value = False
        fetch = Mock(return_value={"price": 1})

        result = make_operation(fetch).run("RELIANCE")

        assert result.error_kind == "ValidationError"
        assert fetch.call_count == 1
        processor.assert_not_called()
        assert _counts(metrics) == (0, 1)

    def test_validator_exception(self, make_operation, validator):
        """Test a validator that raises counts as a validation failure."""
        validator.side_effect = KeyError("lastPrice")

        result = make_operation(Mock(return_value={})).run("RELIANCE")

        assert result.error_kind == "ValidationError"

    def test_process_failure(self, make_operation, processor, metrics):
        """Test a processor failure skips the hook."""
        processor.side_effect = RuntimeError("bus down")
        hook = Mock()

        result = make_operation(Mock(return_value={"price": 1}), on_success=hook).run("RELIANCE")

        assert result.error_kind == "ProcessError"
        hook.assert_not_called()
        assert _counts(metrics) == (0, 1)

    def test_hook_failure_fails_operation(self, make_operation, metrics):
        """Test a raising hook turns the result into a failure."""
        hook = Mock(side_effect=RuntimeError("cache write failed"))

        result = make_operation(Mock(return_value={"price": 1}), on_success=hook).run("RELIANCE")

        assert result.succeeded is False
        assert result.error_kind == "ProcessError"
        assert _counts(metrics) == (0, 1)

    def test_unregistered_data_type(self, make_operation, metrics):
        """Test a missing strategy fails before fetching."""
        fetch = Mock(return_value={"price": 1})

        result = make_operation(fetch, data_type=DataType.ETF).run("NIFTYBEES")

        assert result.error_kind == "StrategyNotFoundError"
        fetch.assert_not_called()
        assert _counts(metrics, {TAG_DATA_TYPE: "etf"}) == (0, 1)

    def test_strategy_factory_failure(self, retry_executor, metrics, clock):
        """Test a factory that raises is reported as a processing failure."""
        registry = StrategyRegistry()
        registry.register("broken", Mock(side_effect=ImportError("missing mapper")))
        operation = MarketDataOperation("broken", Mock(), registry, retry_executor, metrics,
                                        clock=clock)

        result = operation.run("RELIANCE")

        assert result.error_kind == "ProcessError"
        assert "missing mapper" in result.message

    def test_execute_resolves_false_on_failure(self, make_operation):
        """Test the future resolves to False rather than raising."""
        with make_operation(Mock(side_effect=ConnectionError("x"))) as operation:
            future = operation.execute("RELIANCE")
            assert future.result(timeout=5) is False

    def test_interrupted_retry_is_failure(self, registry, metrics, clock):
        """Test a cancelled backoff records a fetch failure instead of raising."""
        executor = RetryExecutor(metrics)
        executor.cancel()
        operation = MarketDataOperation(DataType.STOCK_PRICE, Mock(side_effect=ConnectionError("x")),
                                        registry, executor, metrics, clock=clock)

        result = operation.run("RELIANCE")

        assert result.error_kind == "RetryInterrupted"
        assert _counts(metrics) == (0, 1)


class TestExecutorOwnership:
    """Test suite for the executor behind execute()."""

    def test_close_shuts_down_private_executor(self, make_operation):
        """Test the pool created on first execute() is released by close()."""
        operation = make_operation(Mock(return_value={"price": 1}))
        assert operation.execute("INFY").result(timeout=5) is True
        private = operation._executor

        operation.close()

        assert operation._executor is None
        with pytest.raises(RuntimeError):
            private.submit(lambda: None)

    def test_close_leaves_injected_executor_running(self, registry, retry_executor, metrics, clock):
        with ThreadPoolExecutor(max_workers=1) as injected:
            operation = MarketDataOperation(DataType.STOCK_PRICE, Mock(return_value={"price": 1}),
                                            registry, retry_executor, metrics,
                                            executor=injected, clock=clock)
            operation.close()

            assert operation.execute("TCS").result(timeout=5) is True
            assert injected.submit(lambda: 1).result(timeout=5) == 1

    def test_close_without_execute_is_noop(self, make_operation):
        operation = make_operation(Mock())
        operation.close()
        assert operation._executor is None
