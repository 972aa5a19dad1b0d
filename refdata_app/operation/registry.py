"""
Registry of per-data-type validator and processor strategies.

Bundles are registered explicitly at startup as factories and built lazily
on first use. Construction is mutually exclusive per key and independent
across keys.
"""

import threading
from dataclasses import dataclass
from typing import Any, Callable, Hashable

import structlog

from ..errors import StrategyNotFoundError
from .models import data_type_name

logger = structlog.get_logger(__name__)

Validator = Callable[[Any], bool]
Processor = Callable[[Any], Any]


@dataclass(frozen=True)
class StrategyBundle:
    """Validator and processor pair for one data type."""
    validator: Validator
    processor: Processor


class StrategyRegistry:
    """Builds each registered bundle exactly once and memoizes it."""

    def __init__(self) -> None:
        self._factories: dict[Hashable, Callable[[], StrategyBundle]] = {}
        self._locks: dict[Hashable, threading.Lock] = {}
        self._bundles: dict[Hashable, StrategyBundle] = {}
        self._registration_lock = threading.Lock()

    def register(self, key: Hashable, factory: Callable[[], StrategyBundle]) -> None:
        """
        Register the factory for a data type.

        Raises:
            ValueError: A factory is already registered for ``key``
        """
        with self._registration_lock:
            if key in self._factories:
                raise ValueError(f"Strategy already registered for {data_type_name(key)}")
            self._locks[key] = threading.Lock()
            self._factories[key] = factory
        logger.info("Registered strategy", data_type=data_type_name(key))

    def get_or_create(self, key: Hashable) -> StrategyBundle:
        """
        Return the bundle for ``key``, constructing it on first access.

        Raises:
            StrategyNotFoundError: Nothing is registered for ``key``
        """
        bundle = self._bundles.get(key)
        if bundle is not None:
            return bundle

        lock = self._locks.get(key)
        if lock is None:
            logger.error("No strategy registered", data_type=data_type_name(key))
            raise StrategyNotFoundError(data_type_name(key))

        with lock:
            bundle = self._bundles.get(key)
            if bundle is None:
                bundle = self._factories[key]()
                self._bundles[key] = bundle
                logger.info("Created strategy bundle", data_type=data_type_name(key))
        return bundle

    def is_registered(self, key: Hashable) -> bool:
        return key in self._factories

    def is_constructed(self, key: Hashable) -> bool:
        return key in self._bundles

    def registered_keys(self) -> list[Hashable]:
        return list(self._factories)
