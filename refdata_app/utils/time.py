"""
Wall-clock helpers shared by the scheduler, operations and session cache.

Components take a ``clock`` callable instead of calling ``datetime.now``
directly, which keeps trading-window and expiry logic testable.
"""

import time
from datetime import UTC, datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current wall-clock time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def to_timezone(moment: datetime, tz_name: str) -> datetime:
    """
    Express a moment in the given IANA timezone.

    Naive datetimes are assumed to already be local to ``tz_name``.

    Args:
        moment: Datetime to convert
        tz_name: IANA timezone name, e.g. "Asia/Kolkata"

    Returns:
        Timezone-aware datetime in ``tz_name``
    """
    zone = ZoneInfo(tz_name)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=zone)
    return moment.astimezone(zone)


def ensure_utc(moment: datetime) -> datetime:
    """Attach UTC to naive datetimes and normalize aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def minutes_between(start: datetime, end: Optional[datetime] = None) -> float:
    """
    Minutes elapsed between two moments.

    Args:
        start: Start timestamp
        end: End timestamp, defaults to now

    Returns:
        Elapsed minutes (negative if ``start`` is in the future)
    """
    if end is None:
        end = utc_now()
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / 60.0


def format_timestamp(moment: datetime) -> str:
    """ISO8601 representation used in published events and logs."""
    return moment.isoformat()


class Stopwatch:
    """Monotonic elapsed-time measurement for phase timers."""

    def __init__(self) -> None:
        self._start = time.perf_counter()

    @property
    def elapsed_seconds(self) -> float:
        return time.perf_counter() - self._start

    @property
    def elapsed_ms(self) -> int:
        return int(self.elapsed_seconds * 1000)
