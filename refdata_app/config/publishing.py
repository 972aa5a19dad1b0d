"""Configuration for downstream event publishers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class PublishMethod(Enum):
    """Supported event publishing methods."""
    FILE_OUTPUT = "file_output"
    STDOUT = "stdout"


@dataclass(frozen=True)
class FilePublisherConfig:
    """Configuration for JSON-lines file publishing."""
    output_path: str
    append_mode: bool = True
    create_dirs: bool = True


@dataclass(frozen=True)
class StdoutPublisherConfig:
    """Configuration for stdout publishing."""
    format: str = "json"  # json, pretty
    include_timestamp: bool = True


@dataclass(frozen=True)
class PublisherConfig:
    """Single publishing destination."""
    name: str
    method: PublishMethod
    config: Any  # FilePublisherConfig | StdoutPublisherConfig
    event_types_filter: Optional[list[str]] = None  # Only publish these event types


def get_default_publisher_config() -> PublisherConfig:
    """Default destination: JSON events on stdout."""
    return PublisherConfig(
        name="stdout",
        method=PublishMethod.STDOUT,
        config=StdoutPublisherConfig(format="json", include_timestamp=True),
    )


def publisher_config_from_dict(data: dict[str, Any]) -> PublisherConfig:
    """Build a PublisherConfig from a ``publisher`` section of the YAML config."""
    method = PublishMethod(data.get("method", PublishMethod.STDOUT.value))
    options = dict(data.get("options", {}))

    if method is PublishMethod.FILE_OUTPUT:
        config: Any = FilePublisherConfig(**options)
    else:
        config = StdoutPublisherConfig(**options)

    return PublisherConfig(
        name=data.get("name", method.value),
        method=method,
        config=config,
        event_types_filter=data.get("event_types_filter"),
    )
