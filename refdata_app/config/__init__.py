"""Configuration management for the market data scheduler."""

from .defaults import DefaultConfig, get_default_config
from .loader import ConfigLoader, build_config
from .validation import ConfigIssue, ConfigValidator

__all__ = [
    "ConfigIssue",
    "ConfigLoader",
    "ConfigValidator",
    "DefaultConfig",
    "build_config",
    "get_default_config",
]
