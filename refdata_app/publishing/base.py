"""Base class for event publishers."""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

import structlog

from ..config.publishing import PublisherConfig, PublishMethod
from ..utils.time import format_timestamp


class PublishError(Exception):
    """Raised when an event could not be written to its destination."""
    pass


class BasePublisher(ABC):
    """Wraps payloads in an event envelope and writes them to a destination."""

    def __init__(self, name: str, config: Any, event_types_filter: Optional[list[str]] = None):
        self.name = name
        self.config = config
        self.event_types_filter = event_types_filter
        self.logger = structlog.get_logger(f"publishing.{name}")
        self._lock = threading.Lock()
        self._published_count = 0
        self._skipped_count = 0
        self._error_count = 0

    def publish(self, event_type: str, payload: Any, timestamp: datetime) -> None:
        """
        Publish one event.

        Raises:
            PublishError: The destination rejected the event
        """
        if self.event_types_filter is not None and event_type not in self.event_types_filter:
            with self._lock:
                self._skipped_count += 1
            return

        event = {
            "event_type": event_type,
            "timestamp": format_timestamp(timestamp),
            "payload": payload,
        }

        try:
            self._write(event)
        except Exception as e:
            with self._lock:
                self._error_count += 1
            self.logger.error(
                "Failed to publish event",
                publisher=self.name,
                event_type=event_type,
                error=str(e)
            )
            raise PublishError(f"{self.name} failed to publish {event_type}: {e}") from e

        with self._lock:
            self._published_count += 1

    @abstractmethod
    def _write(self, event: dict[str, Any]) -> None:
        """Write a single event envelope to the destination."""
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the destination is writable."""
        pass

    def get_stats(self) -> dict[str, Any]:
        """Get publishing statistics."""
        with self._lock:
            published, skipped, errors = self._published_count, self._skipped_count, self._error_count
        attempted = published + errors
        return {
            "name": self.name,
            "published_count": published,
            "skipped_count": skipped,
            "error_count": errors,
            "success_rate": published / attempted if attempted > 0 else 0.0,
        }

    def reset_stats(self) -> None:
        """Reset publishing statistics."""
        with self._lock:
            self._published_count = 0
            self._skipped_count = 0
            self._error_count = 0


def create_publisher(publisher_config: PublisherConfig) -> BasePublisher:
    """Instantiate the publisher described by ``publisher_config``."""
    from .file_publisher import FilePublisher
    from .stdout_publisher import StdoutPublisher

    if publisher_config.method is PublishMethod.FILE_OUTPUT:
        return FilePublisher(publisher_config.name, publisher_config.config,
                             publisher_config.event_types_filter)
    return StdoutPublisher(publisher_config.name, publisher_config.config,
                           publisher_config.event_types_filter)
