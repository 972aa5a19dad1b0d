"""Pytest configuration and shared fixtures."""

import base64
import json
from datetime import UTC, datetime, timedelta
from typing import Any, Callable

import pytest

from refdata_app.metrics.registry import MetricsRegistry
from refdata_app.operation.registry import StrategyBundle, StrategyRegistry
from refdata_app.retry.executor import RetryExecutor

# Wednesday 2024-01-03 10:00 in Asia/Kolkata
MARKET_OPEN_UTC = datetime(2024, 1, 3, 4, 30, tzinfo=UTC)


class FakeClock:
    """Settable clock for components that take a ``clock`` callable."""

    def __init__(self, now: datetime = MARKET_OPEN_UTC):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingWaiter:
    """Backoff waiter that records requested delays instead of sleeping."""

    def __init__(self, interrupt_on_call: int = 0):
        self.delays: list[float] = []
        self.interrupt_on_call = interrupt_on_call

    def __call__(self, seconds: float) -> bool:
        self.delays.append(seconds)
        return len(self.delays) == self.interrupt_on_call


def make_jwt(claims: dict[str, Any]) -> str:
    """Unsigned three-part JWT carrying ``claims``."""
    def encode(obj: dict[str, Any]) -> str:
        raw = json.dumps(obj).encode()
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")

    return f"{encode({'alg': 'HS256', 'typ': 'JWT'})}.{encode(claims)}.signature"


def make_session_string(now: datetime, jwt_ttl: timedelta = timedelta(hours=2),
                        **overrides: str) -> str:
    """Cookie string with every default required field populated."""
    fields = {
        "AKA_A2": "A",
        "ak_bmsc": "bmsc-token",
        "bm_mi": "mi-token",
        "bm_sv": "sv-token",
        "bm_sz": "sz-token",
        "nsit": "nsit-token",
        "nseappid": make_jwt({"exp": int((now + jwt_ttl).timestamp())}),
    }
    fields.update(overrides)
    return "; ".join(f"{name}={value}" for name, value in fields.items())


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed inside the default trading window."""
    return FakeClock()


@pytest.fixture
def metrics() -> MetricsRegistry:
    """Fresh metrics registry."""
    return MetricsRegistry()


@pytest.fixture
def waiter() -> RecordingWaiter:
    """Non-sleeping backoff waiter."""
    return RecordingWaiter()


@pytest.fixture
def retry_executor(metrics: MetricsRegistry, waiter: RecordingWaiter) -> RetryExecutor:
    """Retry executor that never actually sleeps."""
    return RetryExecutor(metrics, waiter=waiter)


@pytest.fixture
def strategy_registry() -> StrategyRegistry:
    """Registry with an accept-all identity bundle under ``stock-price``."""
    registry = StrategyRegistry()
    registry.register("stock-price", lambda: StrategyBundle(
        validator=lambda payload: True,
        processor=lambda payload: payload,
    ))
    return registry


@pytest.fixture
def valid_session_string(clock: FakeClock) -> str:
    """Session string that passes validation at ``clock.now``."""
    return make_session_string(clock.now)


@pytest.fixture
def session_string_factory() -> Callable[..., str]:
    return make_session_string


@pytest.fixture
def jwt_factory() -> Callable[[dict[str, Any]], str]:
    return make_jwt
