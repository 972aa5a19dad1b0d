"""Single-entry session cache with write-time TTL and lazy expiry."""

import threading
from datetime import datetime, timedelta
from typing import Optional

from ..logging.config import get_session_logger
from ..utils.time import Clock, utc_now
from .models import Session

SESSION_KEY = "session"

logger = get_session_logger(__name__)


class SessionCache:
    """
    Holds at most one session under a well-known key.

    A read past the TTL behaves as a miss and evicts the entry; there is no
    background sweep. Reads and writes are serialized by a lock, so a reader
    sees either the previous session or the new one.
    """

    def __init__(self, ttl_seconds: float = 3600, clock: Clock = utc_now):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[Session, datetime]] = {}
        self.logger = logger

    def store(self, session: Session) -> None:
        with self._lock:
            self._entries[SESSION_KEY] = (session, self._clock())
        self.logger.info("Updated session in cache", session=session.masked)

    def get(self) -> Optional[Session]:
        with self._lock:
            entry = self._entries.get(SESSION_KEY)
            if entry is None:
                return None

            session, stored_at = entry
            if self._clock() - stored_at >= self.ttl:
                del self._entries[SESSION_KEY]
                expired = True
            else:
                expired = False

        if expired:
            self.logger.info("Cached session passed its TTL", ttl_seconds=self.ttl.total_seconds())
            return None

        self.logger.debug("Retrieved session from cache", session=session.masked)
        return session

    def invalidate(self) -> bool:
        """Drop the cached session. Returns True if one was present."""
        with self._lock:
            entry = self._entries.pop(SESSION_KEY, None)

        if entry is not None:
            self.logger.info("Invalidated cached session", session=entry[0].masked)
        return entry is not None
