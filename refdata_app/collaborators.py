"""
Narrow interfaces to the collaborators the execution core depends on.

HTTP clients, scrapers, the instrument registry and the message bus live
outside this package; they are reached only through these protocols.
"""

from datetime import datetime
from typing import Any, Iterable, Protocol, runtime_checkable

import structlog

logger = structlog.get_logger(__name__)


@runtime_checkable
class SymbolSource(Protocol):
    """Instrument or portfolio registry listing the symbols to process."""

    def find_symbols(self) -> list[str]:
        ...


@runtime_checkable
class SessionSource(Protocol):
    """Scraping or authentication client producing a raw session string."""

    def acquire_session(self) -> str:
        ...


@runtime_checkable
class Publisher(Protocol):
    """Message-bus client forwarding processed data downstream."""

    def publish(self, event_type: str, payload: Any, timestamp: datetime) -> None:
        ...


class Fetcher(Protocol):
    """HTTP or scrape client returning the raw payload for one symbol."""

    def __call__(self, symbol: str) -> Any:
        ...


class StaticSymbolSource:
    """Symbol source backed by a fixed, configured list."""

    def __init__(self, symbols: Iterable[str] | str = "RELIANCE"):
        if isinstance(symbols, str):
            symbols = symbols.split(",")
        self._symbols = [s.strip() for s in symbols if s and s.strip()]

    def find_symbols(self) -> list[str]:
        logger.debug("Retrieved symbols for processing", count=len(self._symbols))
        return list(self._symbols)
