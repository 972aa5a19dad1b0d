"""Base exception for market data pipeline failures."""

from typing import Any, Optional


class MarketDataError(Exception):
    """Base class for every failure raised by the pipeline."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.recoverable = False

    @property
    def kind(self) -> str:
        """Short error kind used for logging and operation results."""
        return type(self).__name__
