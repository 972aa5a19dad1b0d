"""Configuration validation utilities."""

import re
from dataclasses import dataclass
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_CLOCK_TIME = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class ConfigIssue:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_trading_window_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate trading window parameters."""
        errors = []

        for name in ("start_time", "end_time"):
            if name in params:
                value = params[name]
                if not isinstance(value, str) or not _CLOCK_TIME.match(value):
                    errors.append(ConfigIssue(
                        field=name,
                        message="Must be a HH:MM time",
                        value=value
                    ))

        start, end = params.get("start_time"), params.get("end_time")
        if (isinstance(start, str) and isinstance(end, str)
                and _CLOCK_TIME.match(start) and _CLOCK_TIME.match(end) and start > end):
            errors.append(ConfigIssue(
                field="end_time",
                message="Must not be earlier than start_time",
                value=end
            ))

        if "timezone" in params:
            value = params["timezone"]
            try:
                ZoneInfo(str(value))
            except (ZoneInfoNotFoundError, ValueError):
                errors.append(ConfigIssue(
                    field="timezone",
                    message="Must be an IANA timezone name",
                    value=value
                ))

        if "trading_days" in params:
            value = params["trading_days"]
            if (not isinstance(value, (list, tuple)) or not value
                    or not all(_is_int(d) and 0 <= d <= 6 for d in value)):
                errors.append(ConfigIssue(
                    field="trading_days",
                    message="Must be a non-empty list of weekday numbers (Monday=0)",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_retry_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate retry parameters."""
        errors = []

        if "max_attempts" in params:
            value = params["max_attempts"]
            if not _is_int(value) or value < 1:
                errors.append(ConfigIssue(
                    field="max_attempts",
                    message="Must be an integer >= 1",
                    value=value
                ))

        if "base_delay_seconds" in params:
            value = params["base_delay_seconds"]
            if not _is_number(value) or value < 0:
                errors.append(ConfigIssue(
                    field="base_delay_seconds",
                    message="Must be a non-negative number",
                    value=value
                ))

        if "backoff_factor" in params:
            value = params["backoff_factor"]
            if not _is_number(value) or value < 1:
                errors.append(ConfigIssue(
                    field="backoff_factor",
                    message="Must be a number >= 1",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_session_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate session parameters."""
        errors = []

        for name in ("ttl_seconds", "expiry_threshold_minutes"):
            if name in params:
                value = params[name]
                if not _is_int(value) or value <= 0:
                    errors.append(ConfigIssue(
                        field=name,
                        message="Must be a positive integer",
                        value=value
                    ))

        for name in ("required_fields", "jwt_fields"):
            if name in params:
                value = params[name]
                if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
                    errors.append(ConfigIssue(
                        field=name,
                        message="Must be a list of field names",
                        value=value
                    ))

        required = params.get("required_fields")
        jwt = params.get("jwt_fields")
        if isinstance(required, (list, tuple)) and isinstance(jwt, (list, tuple)):
            missing = [f for f in jwt if f not in required]
            if missing:
                errors.append(ConfigIssue(
                    field="jwt_fields",
                    message="Must be a subset of required_fields",
                    value=missing
                ))

        return errors

    @staticmethod
    def validate_worker_pool_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate worker pool parameters."""
        errors = []

        if "max_workers" in params:
            value = params["max_workers"]
            if not _is_int(value) or value < 1:
                errors.append(ConfigIssue(
                    field="max_workers",
                    message="Must be an integer >= 1",
                    value=value
                ))

        if "queue_capacity" in params:
            value = params["queue_capacity"]
            if not _is_int(value) or value < 0:
                errors.append(ConfigIssue(
                    field="queue_capacity",
                    message="Must be a non-negative integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_validation_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate payload freshness parameters."""
        errors = []

        if "max_age_minutes" in params:
            value = params["max_age_minutes"]
            if not _is_number(value) or value <= 0:
                errors.append(ConfigIssue(
                    field="max_age_minutes",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_scheduler_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate scheduler parameters."""
        errors = []

        if "interval_seconds" in params:
            value = params["interval_seconds"]
            if not _is_number(value) or value <= 0:
                errors.append(ConfigIssue(
                    field="interval_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        if "session_refresh_interval_seconds" in params:
            value = params["session_refresh_interval_seconds"]
            if not _is_number(value) or value < 0:
                errors.append(ConfigIssue(
                    field="session_refresh_interval_seconds",
                    message="Must be a non-negative number (0 disables refresh)",
                    value=value
                ))

        if "warm_start" in params:
            value = params["warm_start"]
            if not isinstance(value, bool):
                errors.append(ConfigIssue(
                    field="warm_start",
                    message="Must be a boolean",
                    value=value
                ))

        if "symbols" in params:
            value = params["symbols"]
            if not isinstance(value, str) or not value.strip():
                errors.append(ConfigIssue(
                    field="symbols",
                    message="Must be a non-empty comma separated string",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate logging parameters."""
        errors = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in _LOG_LEVELS:
                errors.append(ConfigIssue(
                    field="level",
                    message=f"Must be one of {sorted(_LOG_LEVELS)}",
                    value=value
                ))

        for name in ("format_json", "include_caller"):
            if name in params and not isinstance(params[name], bool):
                errors.append(ConfigIssue(
                    field=name,
                    message="Must be a boolean",
                    value=params[name]
                ))

        return errors

    @classmethod
    def validate_config(cls, config: dict[str, Any]) -> list[ConfigIssue]:
        """Validate every section of a merged configuration."""
        validators = {
            "trading_window": cls.validate_trading_window_params,
            "retry": cls.validate_retry_params,
            "session": cls.validate_session_params,
            "worker_pool": cls.validate_worker_pool_params,
            "validation": cls.validate_validation_params,
            "scheduler": cls.validate_scheduler_params,
            "logging": cls.validate_logging_params,
        }

        all_errors = []
        for section, validate in validators.items():
            params = config.get(section)
            if params is None:
                continue
            if not isinstance(params, dict):
                all_errors.append(ConfigIssue(
                    field=section,
                    message="Must be a mapping",
                    value=params
                ))
                continue
            for error in validate(params):
                all_errors.append(ConfigIssue(
                    field=f"{section}.{error.field}",
                    message=error.message,
                    value=error.value
                ))

        return all_errors
