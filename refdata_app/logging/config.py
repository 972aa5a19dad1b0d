"""
Centralized logging configuration for the refdata scheduler.

This module provides standardized logging configuration using structlog
for all components. Scheduler, operation and session code log structured
key-value events through the loggers returned here.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                       structlog.processors.CallsiteParameter.LINENO,
                       structlog.processors.CallsiteParameter.THREAD_NAME]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_scheduler_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for trading-window gating and fan-out decisions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger bound to the scheduler subsystem
    """
    return structlog.get_logger(name, subsystem="scheduler")


def get_session_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for session lifecycle events.

    Session values must be masked before they are passed to this logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger bound to the session subsystem
    """
    return structlog.get_logger(name, subsystem="session")


def log_gate_decision(
    logger: FilteringBoundLogger,
    job_name: str,
    passed: bool,
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a trading-window gate decision with standardized format.

    Args:
        logger: Structlog logger instance
        job_name: Name of the scheduled job being gated
        passed: Whether the tick may proceed
        reason: Detailed reason for the decision
        context: Additional context data
    """
    bound_logger = logger.bind(
        job_name=job_name,
        gate_result="PASS" if passed else "SKIP",
        reason=reason,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if passed:
        bound_logger.debug("Trading window gate passed")
    else:
        bound_logger.info("Trading window gate skipped tick")


def log_phase_failure(
    logger: FilteringBoundLogger,
    data_type: str,
    symbol: str,
    phase: str,
    error: BaseException,
) -> None:
    """
    Log a failed operation phase with standardized format.

    Args:
        logger: Structlog logger instance
        data_type: Data type tag of the operation
        symbol: Symbol the operation ran for
        phase: Phase that failed (fetch, validate, process, on_success)
        error: The failure
    """
    logger.bind(
        data_type=data_type,
        symbol=symbol,
        phase=phase,
        error_kind=type(error).__name__,
    ).warning("Operation phase failed", error=str(error))
