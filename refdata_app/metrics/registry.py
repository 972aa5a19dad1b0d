"""Thread-safe counter and timer registry keyed by metric name and tags."""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional

from ..utils.time import Stopwatch

# Metric names shared by the execution core
OPERATION_SUCCESS_COUNT = "market.data.success.count"
OPERATION_FAILURE_COUNT = "market.data.failure.count"
RETRY_COUNT = "market.data.retry.count"
PHASE_TIMER = "market.data.{phase}.time"
SCHEDULER_SUCCESS_COUNT = "market.data.scheduler.success.count"
SCHEDULER_FAILURE_COUNT = "market.data.scheduler.failure.count"
SCHEDULER_EXECUTION_TIME = "market.data.scheduler.execution.time"
SESSION_REFRESH_COUNT = "market.data.session.refresh.count"
SESSION_REFRESH_FAILURE_COUNT = "market.data.session.refresh.failure.count"

TAG_DATA_TYPE = "data.type"
TAG_OPERATION_TYPE = "operation.type"

MetricKey = tuple[str, tuple[tuple[str, str], ...]]


def _make_key(name: str, tags: Optional[Mapping[str, Any]]) -> MetricKey:
    return name, tuple(sorted((str(k), str(v)) for k, v in (tags or {}).items()))


class Counter:
    """Monotonically increasing count."""

    def __init__(self, name: str, tags: tuple[tuple[str, str], ...]):
        self.name = name
        self.tags = dict(tags)
        self._value = 0
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> None:
        with self._lock:
            self._value += amount

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


@dataclass(frozen=True)
class TimerStats:
    """Aggregated timer observations."""
    count: int
    total_seconds: float
    max_seconds: float

    @property
    def mean_seconds(self) -> float:
        return self.total_seconds / self.count if self.count else 0.0


class Timer:
    """Records durations and keeps count, total and max."""

    def __init__(self, name: str, tags: tuple[tuple[str, str], ...]):
        self.name = name
        self.tags = dict(tags)
        self._count = 0
        self._total = 0.0
        self._max = 0.0
        self._lock = threading.Lock()

    def record(self, seconds: float) -> None:
        with self._lock:
            self._count += 1
            self._total += seconds
            self._max = max(self._max, seconds)

    @contextmanager
    def time(self) -> Iterator[Stopwatch]:
        """Time the enclosed block; the duration is recorded even on error."""
        watch = Stopwatch()
        try:
            yield watch
        finally:
            self.record(watch.elapsed_seconds)

    @property
    def stats(self) -> TimerStats:
        with self._lock:
            return TimerStats(count=self._count, total_seconds=self._total, max_seconds=self._max)

    @property
    def count(self) -> int:
        return self.stats.count


class MetricsRegistry:
    """Creates meters on first use and returns the same meter for the same name and tags."""

    def __init__(self) -> None:
        self._counters: dict[MetricKey, Counter] = {}
        self._timers: dict[MetricKey, Timer] = {}
        self._lock = threading.Lock()

    def counter(self, name: str, tags: Optional[Mapping[str, Any]] = None) -> Counter:
        key = _make_key(name, tags)
        with self._lock:
            meter = self._counters.get(key)
            if meter is None:
                meter = self._counters[key] = Counter(name, key[1])
            return meter

    def timer(self, name: str, tags: Optional[Mapping[str, Any]] = None) -> Timer:
        key = _make_key(name, tags)
        with self._lock:
            meter = self._timers.get(key)
            if meter is None:
                meter = self._timers[key] = Timer(name, key[1])
            return meter

    def count(self, name: str, tags: Optional[Mapping[str, Any]] = None) -> int:
        """Current value of a counter, 0 if it was never incremented."""
        key = _make_key(name, tags)
        with self._lock:
            meter = self._counters.get(key)
        return meter.value if meter is not None else 0

    def snapshot(self) -> dict[str, Any]:
        """Point-in-time copy of every meter for exporters and diagnostics."""
        with self._lock:
            counters = list(self._counters.values())
            timers = list(self._timers.values())

        return {
            "counters": [
                {"name": c.name, "tags": c.tags, "value": c.value} for c in counters
            ],
            "timers": [
                {
                    "name": t.name,
                    "tags": t.tags,
                    "count": t.stats.count,
                    "total_seconds": t.stats.total_seconds,
                    "max_seconds": t.stats.max_seconds,
                }
                for t in timers
            ],
        }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timers.clear()
