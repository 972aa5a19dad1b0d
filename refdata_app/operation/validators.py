"""
Reusable payload validators.

A validator is any callable taking the fetched payload and returning a
bool. These building blocks cover the checks the scheduled data types
share: non-empty payloads, required keys and staleness against a max age.
"""

from collections.abc import Mapping, Sized
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

import structlog

from ..utils.time import Clock, minutes_between, utc_now

logger = structlog.get_logger(__name__)


class NonEmptyValidator:
    """Rejects None and empty containers."""

    def __call__(self, payload: Any) -> bool:
        if payload is None:
            logger.warning("Received empty payload")
            return False
        if isinstance(payload, Sized) and len(payload) == 0:
            logger.warning("Received empty payload")
            return False
        return True


class RequiredFieldsValidator:
    """Requires every named key to be present and not None in a mapping payload."""

    def __init__(self, fields: Iterable[str]):
        self.fields = tuple(fields)

    def __call__(self, payload: Any) -> bool:
        if not isinstance(payload, Mapping):
            logger.warning("Payload is not a mapping", payload_type=type(payload).__name__)
            return False

        missing = [f for f in self.fields if payload.get(f) is None]
        if missing:
            logger.warning("Payload missing required fields", missing_fields=missing)
            return False
        return True


class StalenessValidator:
    """
    Rejects payloads whose market timestamp is older than ``max_age_minutes``.

    ``timestamp_of`` extracts the market timestamp; it may return a datetime
    or a string parsed with ``timestamp_format``. Naive timestamps are
    treated as UTC.
    """

    def __init__(
        self,
        timestamp_of: Callable[[Any], Any],
        max_age_minutes: float = 15,
        timestamp_format: Optional[str] = None,
        clock: Clock = utc_now,
    ):
        self.timestamp_of = timestamp_of
        self.max_age_minutes = max_age_minutes
        self.timestamp_format = timestamp_format
        self._clock = clock

    def __call__(self, payload: Any) -> bool:
        try:
            raw = self.timestamp_of(payload)
        except (KeyError, AttributeError, TypeError) as e:
            logger.warning("Payload missing market timestamp", error=str(e))
            return False

        if raw is None:
            logger.warning("Payload missing market timestamp")
            return False

        if isinstance(raw, datetime):
            market_time = raw
        else:
            try:
                market_time = self._parse(str(raw))
            except ValueError as e:
                logger.warning("Failed to parse market timestamp", value=raw, error=str(e))
                return False

        age_minutes = minutes_between(market_time, self._clock())
        if age_minutes > self.max_age_minutes:
            logger.warning("Data is too old", age_minutes=round(age_minutes, 1),
                           max_age_minutes=self.max_age_minutes)
            return False
        return True

    def _parse(self, value: str) -> datetime:
        if self.timestamp_format:
            return datetime.strptime(value, self.timestamp_format)
        return datetime.fromisoformat(value)


class CompositeValidator:
    """Passes only if every inner validator passes; stops at the first failure."""

    def __init__(self, *validators: Callable[[Any], bool]):
        self.validators = validators

    def __call__(self, payload: Any) -> bool:
        return all(validator(payload) for validator in self.validators)
