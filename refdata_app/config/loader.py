"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, fields, is_dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from .defaults import (
    DefaultConfig,
    LoggingParams,
    RetryParams,
    SchedulerParams,
    SessionParams,
    TradingWindowParams,
    ValidationParams,
    WorkerPoolParams,
    get_default_config,
)

CONFIG_FILE_NAME = "scheduler.yaml"

_SECTION_TYPES: dict[str, type] = {
    "trading_window": TradingWindowParams,
    "retry": RetryParams,
    "session": SessionParams,
    "worker_pool": WorkerPoolParams,
    "validation": ValidationParams,
    "scheduler": SchedulerParams,
    "logging": LoggingParams,
}


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_file(self) -> dict[str, Any]:
        """Raw contents of ``scheduler.yaml``, empty if the file is absent."""
        config_file = self.config_dir / CONFIG_FILE_NAME

        if not config_file.exists():
            return {}

        with open(config_file) as f:
            return yaml.safe_load(f) or {}

    def load_job_config(self, job_name: str) -> dict[str, Any]:
        """Load job-specific configuration overrides."""
        return self.load_file().get("jobs", {}).get(job_name, {})  # type: ignore[no-any-return]

    def job_names(self) -> list[str]:
        """Jobs that have a section in the config file."""
        return list(self.load_file().get("jobs", {}))

    def merge_config(
        self,
        job_name: Optional[str] = None,
        overrides: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Per-call overrides (highest priority)
        2. Job-specific section ``jobs.<job_name>``
        3. Global file sections, then built-in defaults (lowest priority)
        """
        # Start with global defaults
        config = self._dataclass_to_dict(self.defaults)

        file_config = self.load_file()
        global_config = {k: v for k, v in file_config.items() if k in _SECTION_TYPES}
        config = self._deep_merge(config, global_config)

        # Apply job-specific overrides
        if job_name is not None:
            config = self._deep_merge(config, file_config.get("jobs", {}).get(job_name, {}))

        # Apply per-call overrides
        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load(self, job_name: Optional[str] = None,
             overrides: Optional[dict[str, Any]] = None) -> DefaultConfig:
        """Merged configuration as typed dataclasses."""
        return build_config(self.merge_config(job_name, overrides))

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if is_dataclass(obj):
            result = {}
            for f in fields(obj):
                value = getattr(obj, f.name)
                if is_dataclass(value):
                    result[f.name] = self._dataclass_to_dict(value)
                elif isinstance(value, tuple):
                    result[f.name] = list(value)
                else:
                    result[f.name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def build_config(data: dict[str, Any]) -> DefaultConfig:
    """
    Build typed configuration from a merged dictionary.

    Unknown keys are ignored; lists become tuples.

    Args:
        data: Section name to parameter mapping, as produced by merge_config

    Returns:
        DefaultConfig with every section populated
    """
    sections = {}
    for section, params_type in _SECTION_TYPES.items():
        raw = data.get(section) or {}
        known = {f.name for f in fields(params_type)}
        kwargs = {
            k: tuple(v) if isinstance(v, list) else v
            for k, v in raw.items()
            if k in known
        }
        sections[section] = params_type(**kwargs)
    return DefaultConfig(**sections)
