"""Default configuration parameters for the market data scheduler."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TradingWindowParams:
    """Exchange trading session the scheduler gates on."""
    start_time: str = "09:15"                        # Inclusive, HH:MM local time
    end_time: str = "15:30"                          # Inclusive, HH:MM local time
    timezone: str = "Asia/Kolkata"
    trading_days: tuple[int, ...] = (0, 1, 2, 3, 4)  # Monday=0


@dataclass(frozen=True)
class RetryParams:
    """Fetch retry parameters."""
    max_attempts: int = 3
    base_delay_seconds: float = 1.0
    backoff_factor: float = 2.0


@dataclass(frozen=True)
class SessionParams:
    """Upstream session cache and refresh parameters."""
    ttl_seconds: int = 3600
    expiry_threshold_minutes: int = 10               # Refresh when a field expires within this
    required_fields: tuple[str, ...] = (
        "AKA_A2", "ak_bmsc", "bm_mi", "bm_sv", "bm_sz", "nsit", "nseappid",
    )
    jwt_fields: tuple[str, ...] = ("nseappid",)


@dataclass(frozen=True)
class WorkerPoolParams:
    """Shared worker pool parameters."""
    max_workers: int = 10
    queue_capacity: int = 25                         # Pending units before submit blocks
    thread_name_prefix: str = "market-data-"


@dataclass(frozen=True)
class ValidationParams:
    """Payload freshness parameters."""
    max_age_minutes: int = 15


@dataclass(frozen=True)
class SchedulerParams:
    """Tick cadence and symbol selection."""
    interval_seconds: float = 60.0
    warm_start: bool = True                          # Run once at startup if inside the window
    symbols: str = "RELIANCE"                        # Comma separated
    session_refresh_interval_seconds: float = 300.0  # 0 disables the refresh job


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters."""
    level: str = "INFO"
    format_json: bool = False
    include_caller: bool = False


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    trading_window: TradingWindowParams = field(default_factory=TradingWindowParams)
    retry: RetryParams = field(default_factory=RetryParams)
    session: SessionParams = field(default_factory=SessionParams)
    worker_pool: WorkerPoolParams = field(default_factory=WorkerPoolParams)
    validation: ValidationParams = field(default_factory=ValidationParams)
    scheduler: SchedulerParams = field(default_factory=SchedulerParams)
    logging: LoggingParams = field(default_factory=LoggingParams)


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        trading_window=TradingWindowParams(),
        retry=RetryParams(),
        session=SessionParams(),
        worker_pool=WorkerPoolParams(),
        validation=ValidationParams(),
        scheduler=SchedulerParams(),
        logging=LoggingParams(),
    )
