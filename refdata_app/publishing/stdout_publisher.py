"""Standard output event publisher."""

import json
import sys
from typing import Any, Optional

from ..config.publishing import StdoutPublisherConfig
from ..utils.time import format_timestamp, utc_now
from .base import BasePublisher


class StdoutPublisher(BasePublisher):
    """Prints each event to stdout."""

    def __init__(self, name: str, config: StdoutPublisherConfig,
                 event_types_filter: Optional[list[str]] = None):
        super().__init__(name, config, event_types_filter)
        self.config: StdoutPublisherConfig = config

    def _write(self, event: dict[str, Any]) -> None:
        output = self._format_event(event)
        with self._lock:
            print(output, file=sys.stdout, flush=True)

    def _format_event(self, event: dict[str, Any]) -> str:
        if self.config.format == "pretty":
            return f"[{event['timestamp']}] EVENT: {event['event_type']}"

        if self.config.include_timestamp:
            event = {**event, "stdout_timestamp": format_timestamp(utc_now())}
        return json.dumps(event, default=str)

    def health_check(self) -> bool:
        """Check if stdout is available."""
        try:
            return sys.stdout.writable()
        except (OSError, ValueError):
            return False
