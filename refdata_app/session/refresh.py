"""Periodic session refresh, independent of data fetch ticks."""

from ..errors import SessionError
from ..logging.config import get_session_logger
from ..metrics.registry import (
    SESSION_REFRESH_COUNT,
    SESSION_REFRESH_FAILURE_COUNT,
    MetricsRegistry,
)
from .manager import SessionManager

logger = get_session_logger(__name__)


class SessionRefreshJob:
    """Keeps the cached session warm so fetchers rarely block on acquisition."""

    def __init__(self, manager: SessionManager, metrics: MetricsRegistry):
        self.manager = manager
        self.metrics = metrics

    def run(self) -> bool:
        """Refresh if needed. Returns True when a new session was stored."""
        refreshed = self.manager.refresh_if_needed(on_failure=self._record_failure)
        if refreshed:
            self.metrics.counter(SESSION_REFRESH_COUNT).increment()
            logger.info("Scheduled session refresh stored a new session")
        return refreshed

    def _record_failure(self, error: SessionError) -> None:
        self.metrics.counter(SESSION_REFRESH_FAILURE_COUNT).increment()
        logger.warning("Scheduled session refresh failed", error_kind=error.kind)
