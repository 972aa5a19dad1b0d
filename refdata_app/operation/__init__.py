"""
Fetch, validate, process and publish pipeline for one symbol.

Per-data-type behaviour is injected as strategies and resolved through the
strategy registry rather than by subclassing.
"""

from .models import DataType, OperationResult, data_type_name
from .registry import StrategyBundle, StrategyRegistry
from .template import MarketDataOperation

__all__ = [
    "DataType",
    "MarketDataOperation",
    "OperationResult",
    "StrategyBundle",
    "StrategyRegistry",
    "data_type_name",
]
