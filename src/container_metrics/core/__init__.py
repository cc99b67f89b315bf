"""Core module - configuration, schemas and errors."""

from __future__ import annotations

from container_metrics.core.config import load_config
from container_metrics.core.errors import (
    ContainerGone,
    InvalidWindow,
    MetricsError,
    SinkDeliveryError,
    StatsTimeout,
    StatsUnavailable,
)
from container_metrics.core.schemas import (
    CollectorConfig,
    SamplingConfig,
    SinkConfig,
    SinkKind,
)

__all__ = [
    "CollectorConfig",
    "ContainerGone",
    "InvalidWindow",
    "load_config",
    "MetricsError",
    "SamplingConfig",
    "SinkConfig",
    "SinkDeliveryError",
    "SinkKind",
    "StatsTimeout",
    "StatsUnavailable",
]
