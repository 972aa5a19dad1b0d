"""Trading-window gated scheduling of market data operations."""

from .core import SchedulerState, ScheduledJob, TickResult
from .pool import WorkerPool
from .registry import SchedulerCore
from .trigger import IntervalTrigger
from .window import TradingWindow, weekday_trading_days

__all__ = [
    "IntervalTrigger",
    "ScheduledJob",
    "SchedulerCore",
    "SchedulerState",
    "TickResult",
    "TradingWindow",
    "WorkerPool",
    "weekday_trading_days",
]
