"""Fetch adapter that supplies a valid session to upstream clients."""

from typing import Any, Callable

from ..errors import FetchError, UnauthorizedError
from ..logging.config import get_session_logger
from .manager import SessionManager
from .models import Session

logger = get_session_logger(__name__)


class SessionAwareFetcher:
    """
    Wraps a ``fetch(symbol, session)`` client call.

    An UnauthorizedError from the client invalidates the cached session and
    is re-raised as a FetchError, so the retry executor's next attempt runs
    with a freshly acquired session.
    """

    def __init__(self, manager: SessionManager, fetch: Callable[[str, Session], Any],
                 data_type: str = "unknown"):
        self.manager = manager
        self._fetch = fetch
        self.data_type = data_type

    def __call__(self, symbol: str) -> Any:
        session = self.manager.get_valid_session()
        try:
            return self._fetch(symbol, session)
        except UnauthorizedError as e:
            logger.warning(
                "Upstream rejected session, invalidating",
                data_type=self.data_type,
                symbol=symbol,
                error=str(e),
            )
            self.manager.invalidate()
            raise FetchError(
                f"Unauthorized fetching {self.data_type} for {symbol}",
                data_type=self.data_type,
                cause=e,
            ) from e
