"""Operation data types and per-symbol results."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class DataType(str, Enum):
    """Market reference data sets the scheduler knows how to pull."""
    ETF = "etf"
    INDICES = "indices"
    STOCK_INDICES = "stock-indices"
    STOCK_PRICE = "stock-price"
    STOCK_OVERVIEW = "stock-overview"
    BALANCE_SHEET = "balance-sheet"
    CASH_FLOW = "cash-flow"
    PROFIT_AND_LOSS = "profit-and-loss"
    QUARTERLY_FINANCIALS = "quarterly-financials"
    FACTSHEET_DIVIDEND = "factsheet-dividend"
    BOARD_OF_DIRECTORS = "board-of-directors"


def data_type_name(key: Any) -> str:
    """Tag value for a registry key: the enum value, or ``str(key)``."""
    if isinstance(key, Enum):
        return str(key.value)
    return str(key)


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one operation run for one symbol. Never mutated."""
    data_type_name: str
    symbol: str
    succeeded: bool
    timestamp: datetime
    error_kind: Optional[str] = None
    message: Optional[str] = None
    duration_ms: Optional[int] = None
