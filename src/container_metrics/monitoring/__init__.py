"""Monitoring module - per-container resource sampling.

Provides:
- RateEngine: counter deltas to rates
- SampleCycle: one bounded-time fetch, rate and send
- ContainerMetric: a container's metric lifecycle
- DockerStatsSource: StatsSource over the Docker stats API
- NetDevHandle: network counters from /proc/<pid>/net/dev
"""

from __future__ import annotations

from container_metrics.monitoring.base import (
    CounterHandle,
    CounterSnapshot,
    NetworkCounters,
    RateSample,
    RawStats,
    StatsSource,
    matches_vlan,
)
from container_metrics.monitoring.docker_stats_source import DockerStatsSource
from container_metrics.monitoring.lifecycle import ContainerMetric, LifecycleState
from container_metrics.monitoring.net_dev import NetDevHandle, parse_net_dev
from container_metrics.monitoring.rates import RateEngine
from container_metrics.monitoring.registry import ContainerRegistry, InMemoryContainerRegistry
from container_metrics.monitoring.sample_cycle import ContainerMetricState, SampleCycle

__all__ = [
    "ContainerMetric",
    "ContainerMetricState",
    "ContainerRegistry",
    "CounterHandle",
    "CounterSnapshot",
    "DockerStatsSource",
    "InMemoryContainerRegistry",
    "LifecycleState",
    "NetDevHandle",
    "NetworkCounters",
    "RateEngine",
    "RateSample",
    "RawStats",
    "SampleCycle",
    "StatsSource",
    "matches_vlan",
    "parse_net_dev",
]
