"""JSON-lines file event publisher."""

import fcntl
import json
from pathlib import Path
from typing import Any, Optional

from ..config.publishing import FilePublisherConfig
from .base import BasePublisher


class FilePublisher(BasePublisher):
    """Appends one JSON object per event to a file."""

    def __init__(self, name: str, config: FilePublisherConfig,
                 event_types_filter: Optional[list[str]] = None):
        super().__init__(name, config, event_types_filter)
        self.config: FilePublisherConfig = config
        self.output_path = Path(config.output_path)

        if config.create_dirs:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)

        if not config.append_mode:
            self.output_path.write_text("")

    def _write(self, event: dict[str, Any]) -> None:
        line = json.dumps(event, default=str)

        with self._lock, open(self.output_path, "a") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            f.write(line + "\n")

        self.logger.debug(
            "Event written to file",
            publisher=self.name,
            event_type=event.get("event_type"),
            output_path=str(self.output_path)
        )

    def read_events(self) -> list[dict[str, Any]]:
        """Events written so far, oldest first."""
        if not self.output_path.exists():
            return []
        with open(self.output_path) as f:
            return [json.loads(line) for line in f if line.strip()]

    def health_check(self) -> bool:
        """Check if the output directory is writable."""
        try:
            test_file = self.output_path.parent / ".health_check_test"
            test_file.write_text("test")
            test_file.unlink()
            return True
        except OSError as e:
            self.logger.warning(
                "Health check failed",
                publisher=self.name,
                error=str(e)
            )
            return False
