"""Fixed-interval timer that drives scheduler ticks from a daemon thread."""

import threading
from typing import Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


class IntervalTrigger:
    """Calls ``callback`` every ``interval_seconds`` until stopped."""

    def __init__(self, interval_seconds: float, callback: Callable[[], object], name: str):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {interval_seconds}")
        self.interval_seconds = interval_seconds
        self.callback = callback
        self.name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.fire_count = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=f"trigger-{self.name}", daemon=True)
        self._thread.start()
        logger.info("Trigger started", trigger=self.name, interval_seconds=self.interval_seconds)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Trigger stopped", trigger=self.name, fire_count=self.fire_count)

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.fire_count += 1
            try:
                self.callback()
            except Exception:
                logger.exception("Trigger callback failed", trigger=self.name)
