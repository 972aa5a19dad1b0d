"""Session acquisition and validation errors."""

from typing import Any, Optional

from .base import MarketDataError


class SessionError(MarketDataError):
    """A valid session could not be obtained; dependent fetches are blocked."""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.recoverable = True


class CookieError(SessionError):
    """Session cookies are missing, malformed or about to expire."""

    def __init__(self, message: str, invalid_fields: Optional[dict[str, str]] = None,
                 **kwargs: Any):
        super().__init__(message, **kwargs)
        self.invalid_fields = invalid_fields or {}
