"""Processor that maps a payload and publishes it downstream."""

from typing import Any, Callable, Optional

import structlog

from ..collaborators import Publisher
from ..errors import ProcessError
from ..utils.time import Clock, utc_now

logger = structlog.get_logger(__name__)


def _identity(payload: Any) -> Any:
    return payload


class PublishingProcessor:
    """Transforms a validated payload and hands it to the publish collaborator."""

    def __init__(
        self,
        event_type: str,
        publisher: Publisher,
        mapper: Optional[Callable[[Any], Any]] = None,
        clock: Clock = utc_now,
    ):
        self.event_type = event_type
        self.publisher = publisher
        self.mapper = mapper or _identity
        self._clock = clock

    def __call__(self, payload: Any) -> Any:
        try:
            mapped = self.mapper(payload)
        except Exception as e:
            raise ProcessError(f"Failed to map {self.event_type} payload: {e}", phase="process") from e

        try:
            self.publisher.publish(self.event_type, mapped, self._clock())
        except Exception as e:
            raise ProcessError(f"Failed to publish {self.event_type} event: {e}", phase="process") from e

        logger.info("Published event", event_type=self.event_type)
        return mapped
