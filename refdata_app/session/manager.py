"""
Session lifecycle: acquire, validate, cache, refresh and invalidate.

Concurrent callers that all observe a stale session each acquire a new one;
refreshes are not deduplicated across threads. The cache swap itself is
atomic, so no caller ever reads a partially refreshed session.
"""

from typing import Callable, Optional

from ..collaborators import SessionSource
from ..errors import CookieError, MarketDataError, SessionError
from ..logging.config import get_session_logger
from ..utils.time import Clock, utc_now
from .cache import SessionCache
from .models import Session
from .validator import SessionValidator

logger = get_session_logger(__name__)


class SessionManager:
    """Hands out a valid session, refreshing it from the source when needed."""

    def __init__(
        self,
        source: SessionSource,
        validator: Optional[SessionValidator] = None,
        cache: Optional[SessionCache] = None,
        expiry_threshold_minutes: float = 10,
        clock: Clock = utc_now,
    ):
        self.source = source
        self.validator = validator or SessionValidator()
        self.cache = cache or SessionCache(clock=clock)
        self.expiry_threshold_minutes = expiry_threshold_minutes
        self._clock = clock
        self.logger = logger

    def get_valid_session(self) -> Session:
        """
        Return the cached session, or acquire a new one if refresh is required.

        Raises:
            SessionError: The source failed to produce a session
            CookieError: The freshly acquired session failed validation
        """
        cached = self.cache.get()
        if not self.needs_refresh(cached):
            return cached  # type: ignore[return-value]

        fresh = self.fetch_and_validate()
        self.cache.store(fresh)
        return fresh

    def needs_refresh(self, session: Optional[Session] = None) -> bool:
        return self.validator.needs_refresh(session, self.expiry_threshold_minutes, self._clock())

    def refresh_if_needed(
        self,
        on_failure: Optional[Callable[[SessionError], None]] = None,
    ) -> bool:
        """
        Refresh the cached session if the decision function requires it.

        Args:
            on_failure: Called with the error when a needed refresh fails

        Returns:
            True if a new session was stored, False if none was needed or
            the refresh failed
        """
        if not self.needs_refresh(self.cache.get()):
            self.logger.debug("Session still valid, no refresh needed")
            return False

        try:
            fresh = self.fetch_and_validate()
        except SessionError as e:
            self.logger.error("Session refresh failed", error=str(e), error_kind=e.kind)
            if on_failure is not None:
                on_failure(e)
            return False

        self.cache.store(fresh)
        return True

    def invalidate(self) -> None:
        """Force the next ``get_valid_session()`` call to acquire a new session."""
        if self.cache.invalidate():
            self.logger.info("Session invalidated by caller")

    def fetch_and_validate(self) -> Session:
        """
        Acquire a session from the source and validate every required field.

        The result is not cached here; callers store it only after this
        returns.
        """
        self.logger.info("Acquiring new session")
        try:
            raw_value = self.source.acquire_session()
        except SessionError:
            raise
        except Exception as e:
            raise SessionError(f"Failed to acquire session: {e}") from e

        now = self._clock()
        try:
            session = self.validator.parse(raw_value, acquired_at=now)
            invalid = self.validator.invalid_fields(session, now)
        except MarketDataError:
            raise
        except Exception as e:
            raise CookieError(f"Failed to parse session: {e}") from e

        if invalid:
            for name, reason in sorted(invalid.items()):
                self.logger.warning("Required session field is invalid", field=name, reason=reason)
            raise CookieError(
                "Session validation failed: required fields are invalid or missing",
                invalid_fields=invalid,
            )

        expiring = self.validator.expiring_fields(session, self.expiry_threshold_minutes, now)
        if expiring:
            raise CookieError(
                "Session validation failed: required fields expire within "
                f"{self.expiry_threshold_minutes} minutes",
                invalid_fields={name: "Expiring soon" for name in expiring},
            )

        self.logger.info("Acquired valid session", session=session.masked,
                         fields=len(session.fields))
        return session
