"""
Main scheduler engine coordinator.

Wires the execution core together from configuration: metrics, strategy
registry, retry executor, worker pool, session manager and the scheduler
core, plus the interval triggers that drive ticks.
"""

from dataclasses import asdict
from typing import Any, Callable, Hashable, Optional

import structlog

from .collaborators import Publisher, SessionSource, StaticSymbolSource, SymbolSource
from .config.defaults import DefaultConfig
from .config.loader import ConfigLoader
from .config.publishing import (
    PublisherConfig,
    get_default_publisher_config,
    publisher_config_from_dict,
)
from .config.validation import ConfigValidator
from .logging.config import configure_logging
from .metrics.registry import MetricsRegistry
from .operation.models import data_type_name
from .operation.processors import PublishingProcessor
from .operation.registry import StrategyBundle, StrategyRegistry
from .operation.template import MarketDataOperation, SuccessHook
from .operation.validators import CompositeValidator, StalenessValidator
from .publishing.base import BasePublisher, create_publisher
from .retry.executor import RetryExecutor, RetryPolicy
from .scheduler.core import ScheduledJob, TickResult
from .scheduler.pool import WorkerPool
from .scheduler.registry import SchedulerCore
from .scheduler.trigger import IntervalTrigger
from .scheduler.window import TradingWindow
from .session.cache import SessionCache
from .session.fetchers import SessionAwareFetcher
from .session.manager import SessionManager
from .session.refresh import SessionRefreshJob
from .session.validator import SessionValidator
from .utils.time import Clock, utc_now

logger = structlog.get_logger(__name__)

SESSION_REFRESH_TRIGGER = "session-refresh"


class SchedulerEngine:
    """
    Main coordinator for scheduled market data collection.

    Lifecycle: register strategies, add jobs, ``start()``, ``stop()``.
    Ticks may also be driven externally through ``schedule_tick``.
    """

    def __init__(
        self,
        config: Optional[DefaultConfig] = None,
        session_source: Optional[SessionSource] = None,
        config_dir: Optional[str] = None,
        clock: Clock = utc_now,
        publisher_config: Optional[PublisherConfig] = None,
        setup_logging: bool = True,
    ) -> None:
        """
        Initialize the scheduler engine.

        Args:
            config: Explicit configuration; loaded from ``config_dir`` if omitted
            session_source: Credential source for jobs that need a session
            config_dir: Directory containing scheduler.yaml
            clock: Wall-clock source for gating and result timestamps
            publisher_config: Default publisher; read from the ``publisher``
                section of scheduler.yaml if omitted
            setup_logging: Configure structlog from ``config.logging``
        """
        self.logger = logger
        self._clock = clock
        self.config_loader = ConfigLoader.create(config_dir)
        self._explicit_config = config is not None
        if config is None:
            config = self._load_config()
        self.config = config

        if setup_logging:
            configure_logging(
                level=config.logging.level,
                format_json=config.logging.format_json,
                include_caller=config.logging.include_caller,
            )

        self.publisher_config = publisher_config or self._load_publisher_config()
        self._publisher: Optional[BasePublisher] = None

        self.metrics = MetricsRegistry()
        self.strategies = StrategyRegistry()
        self.retry_executor = RetryExecutor(self.metrics)
        self.pool = WorkerPool.from_params(config.worker_pool)
        self.core = SchedulerCore()

        self.session_manager: Optional[SessionManager] = None
        self.session_refresh: Optional[SessionRefreshJob] = None
        if session_source is not None:
            self.session_manager = SessionManager(
                source=session_source,
                validator=SessionValidator(
                    required_fields=config.session.required_fields,
                    jwt_fields=config.session.jwt_fields,
                ),
                cache=SessionCache(ttl_seconds=config.session.ttl_seconds, clock=clock),
                expiry_threshold_minutes=config.session.expiry_threshold_minutes,
                clock=clock,
            )
            self.session_refresh = SessionRefreshJob(self.session_manager, self.metrics)

        self._intervals: dict[str, float] = {}
        self._triggers: list[IntervalTrigger] = []
        self._started = False
        self._stopped = False

        self.logger.info(
            "Scheduler engine initialized",
            max_workers=config.worker_pool.max_workers,
            queue_capacity=config.worker_pool.queue_capacity,
            session_enabled=self.session_manager is not None,
        )

    def _load_config(self, job_name: Optional[str] = None) -> DefaultConfig:
        merged = self.config_loader.merge_config(job_name)
        issues = ConfigValidator.validate_config(merged)
        if issues:
            error_msgs = [f"{i.field}: {i.message} (got: {i.value})" for i in issues]
            self.logger.error("Configuration validation failed", job_name=job_name, errors=error_msgs)
            raise ValueError(f"Invalid configuration: {'; '.join(error_msgs)}")
        return self.config_loader.load(job_name)

    def _load_publisher_config(self) -> PublisherConfig:
        section = self.config_loader.load_file().get("publisher")
        if section is None:
            return get_default_publisher_config()
        try:
            return publisher_config_from_dict(section)
        except (ValueError, TypeError) as e:
            self.logger.error("Publisher configuration invalid", error=str(e))
            raise ValueError(f"Invalid publisher configuration: {e}") from e

    @property
    def publisher(self) -> BasePublisher:
        """Configured default publisher, created on first use."""
        if self._publisher is None:
            self._publisher = create_publisher(self.publisher_config)
            self.logger.info("Created default publisher", publisher=self.publisher_config.name,
                             method=self.publisher_config.method.value)
        return self._publisher

    def job_config(self, job_name: str) -> DefaultConfig:
        """Configuration for one job, including its ``jobs.<name>`` overrides."""
        if self._explicit_config:
            return self.config
        return self._load_config(job_name)

    def register_strategy(self, data_type: Hashable, factory: Callable[[], StrategyBundle]) -> None:
        self.strategies.register(data_type, factory)

    def register_publishing_strategy(
        self,
        data_type: Hashable,
        validator: Callable[[Any], bool],
        publisher: Optional[Publisher] = None,
        mapper: Optional[Callable[[Any], Any]] = None,
        timestamp_of: Optional[Callable[[Any], Any]] = None,
        max_age_minutes: Optional[float] = None,
    ) -> None:
        """
        Register a bundle whose processor maps the payload and publishes it.

        Args:
            data_type: Strategy registry key
            validator: Payload validator
            publisher: Destination; the configured default publisher if omitted
            mapper: Payload to event mapping
            timestamp_of: Market timestamp extractor; enables the staleness check
            max_age_minutes: Staleness threshold, defaults to ``validation.max_age_minutes``
        """
        event_type = data_type_name(data_type)
        if publisher is None:
            publisher = self.publisher
        if timestamp_of is not None:
            if max_age_minutes is None:
                max_age_minutes = self.config.validation.max_age_minutes
            validator = CompositeValidator(
                validator,
                StalenessValidator(timestamp_of, max_age_minutes=max_age_minutes, clock=self._clock),
            )
        self.strategies.register(
            data_type,
            lambda: StrategyBundle(
                validator=validator,
                processor=PublishingProcessor(event_type, publisher, mapper=mapper, clock=self._clock),
            ),
        )

    def add_job(
        self,
        name: str,
        data_type: Hashable,
        fetch: Callable[..., Any],
        on_success: Optional[SuccessHook] = None,
        symbol_source: Optional[SymbolSource] = None,
        requires_session: bool = False,
    ) -> ScheduledJob:
        """
        Add a scheduled job running one operation per symbol.

        Args:
            name: Job name, used for timer dispatch and the operation.type tag
            data_type: Strategy registry key for the job's payloads
            fetch: ``fetch(symbol)``, or ``fetch(symbol, session)`` when
                ``requires_session`` is set
            on_success: Hook called with (symbol, processed result)
            symbol_source: Defaults to the configured comma separated symbols
            requires_session: Supply a valid session to every fetch call

        Returns:
            The registered job
        """
        config = self.job_config(name)

        if requires_session:
            if self.session_manager is None:
                raise ValueError(f"Job {name} requires a session but no session source is configured")
            fetch = SessionAwareFetcher(self.session_manager, fetch, data_type_name(data_type))

        operation = MarketDataOperation(
            data_type=data_type,
            fetch=fetch,
            registry=self.strategies,
            retry_executor=self.retry_executor,
            metrics=self.metrics,
            retry_policy=RetryPolicy(**asdict(config.retry)),
            on_success=on_success,
            executor=self.pool,
            clock=self._clock,
        )
        job = ScheduledJob(
            name=name,
            operation=operation,
            symbol_source=symbol_source or StaticSymbolSource(config.scheduler.symbols),
            trading_window=TradingWindow.from_params(config.trading_window),
            pool=self.pool,
            metrics=self.metrics,
            clock=self._clock,
        )
        self.core.register_job(job)
        self._intervals[name] = config.scheduler.interval_seconds

        self.logger.info(
            "Added scheduled job",
            job_name=name,
            data_type=data_type_name(data_type),
            requires_session=requires_session,
            interval_seconds=config.scheduler.interval_seconds,
        )
        return job

    def schedule_tick(self, job_name: str) -> Optional[TickResult]:
        return self.core.schedule_tick(job_name)

    def start(self) -> dict[str, Optional[TickResult]]:
        """
        Warm-start every job (when enabled) and start the interval triggers.

        Returns:
            Warm start results per job; None where the job was outside its window
        """
        if self._started:
            raise RuntimeError("Scheduler engine already started")
        if self._stopped:
            raise RuntimeError("Scheduler engine cannot be restarted after stop")
        self._started = True
        self.retry_executor.reset()

        warm_start: dict[str, Optional[TickResult]] = {}
        if self.config.scheduler.warm_start:
            warm_start = self.core.initialize()

        for job_name in self.core.jobs:
            trigger = IntervalTrigger(
                self._intervals[job_name],
                lambda job_name=job_name: self.core.schedule_tick(job_name),
                name=job_name,
            )
            trigger.start()
            self._triggers.append(trigger)

        refresh_interval = self.config.scheduler.session_refresh_interval_seconds
        if self.session_refresh is not None and refresh_interval > 0:
            trigger = IntervalTrigger(refresh_interval, self.session_refresh.run,
                                      name=SESSION_REFRESH_TRIGGER)
            trigger.start()
            self._triggers.append(trigger)

        self.logger.info("Scheduler engine started", jobs=self.core.jobs,
                         trigger_count=len(self._triggers))
        return warm_start

    def stop(self, wait: bool = True) -> None:
        """Interrupt backoff waits, stop triggers and shut the worker pool down."""
        # Cancel first: trigger threads block in tick() until their units finish backing off
        self.retry_executor.cancel()
        for trigger in self._triggers:
            trigger.stop()
        self._triggers.clear()
        self.pool.shutdown(wait=wait)
        self._started = False
        self._stopped = True
        self.logger.info("Scheduler engine stopped")

    def get_runtime_stats(self) -> dict[str, Any]:
        """Get runtime statistics."""
        return {
            "jobs": self.core.jobs,
            "started": self._started,
            "pending_units": self.pool.pending,
            "constructed_strategies": [
                data_type_name(k) for k in self.strategies.registered_keys()
                if self.strategies.is_constructed(k)
            ],
            "metrics": self.metrics.snapshot(),
            "publisher": self._publisher.get_stats() if self._publisher is not None else None,
        }
