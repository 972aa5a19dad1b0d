"""Trading-calendar window that gates scheduled ticks."""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Callable

from ..config.defaults import TradingWindowParams
from ..utils.time import to_timezone

TradingDayPredicate = Callable[[date], bool]


def weekday_trading_days(day: date) -> bool:
    """Monday through Friday."""
    return day.weekday() < 5


def _parse_clock_time(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


@dataclass(frozen=True)
class TradingWindow:
    """
    Daily time range in a fixed timezone during which jobs may run.

    Both ends are inclusive: a tick at exactly ``start_time`` or
    ``end_time`` runs.
    """
    start_time: time
    end_time: time
    timezone: str
    trading_day_predicate: TradingDayPredicate = field(default=weekday_trading_days)

    @classmethod
    def from_params(cls, params: TradingWindowParams) -> "TradingWindow":
        trading_days = frozenset(params.trading_days)
        return cls(
            start_time=_parse_clock_time(params.start_time),
            end_time=_parse_clock_time(params.end_time),
            timezone=params.timezone,
            trading_day_predicate=lambda day: day.weekday() in trading_days,
        )

    def localize(self, now: datetime) -> datetime:
        """``now`` expressed in the window's timezone."""
        return to_timezone(now, self.timezone)

    def is_within_trading_window(self, now: datetime) -> bool:
        local = self.localize(now)
        if not self.trading_day_predicate(local.date()):
            return False
        return self.start_time <= local.time().replace(tzinfo=None) <= self.end_time

    def describe(self, now: datetime) -> dict[str, str]:
        """Log context for a gate decision."""
        local = self.localize(now)
        return {
            "local_time": local.strftime("%Y-%m-%d %H:%M:%S"),
            "weekday": local.strftime("%A"),
            "window": f"{self.start_time:%H:%M}-{self.end_time:%H:%M} {self.timezone}",
        }
