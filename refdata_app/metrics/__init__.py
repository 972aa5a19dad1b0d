"""
In-process metrics sink for counters and timers.

Operations and schedulers record counts and durations tagged with
``data.type`` and ``operation.type``; exporters read ``snapshot()``.
"""

from .registry import Counter, MetricsRegistry, Timer

__all__ = [
    "Counter",
    "MetricsRegistry",
    "Timer",
]
