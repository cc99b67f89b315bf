"""container-metrics - per-container resource rate sampling."""

from __future__ import annotations

from container_metrics.core.errors import (
    ContainerGone,
    InvalidWindow,
    MetricsError,
    SinkDeliveryError,
    StatsTimeout,
    StatsUnavailable,
)
from container_metrics.core.schemas import CollectorConfig, SamplingConfig
from container_metrics.monitoring.lifecycle import ContainerMetric
from container_metrics.monitoring.rates import RateEngine
from container_metrics.monitoring.sample_cycle import SampleCycle

__version__ = "0.1.0"

__all__ = [
    "CollectorConfig",
    "ContainerGone",
    "ContainerMetric",
    "InvalidWindow",
    "MetricsError",
    "RateEngine",
    "SampleCycle",
    "SamplingConfig",
    "SinkDeliveryError",
    "StatsTimeout",
    "StatsUnavailable",
    "__version__",
]
