"""Exception taxonomy for container metric sampling."""

from __future__ import annotations


class MetricsError(Exception):
    """Base class for all sampling errors."""


class ContainerGone(MetricsError):
    """The container's process (and its counter handle) no longer exists.

    This is the normal way a container's lifecycle ends and is logged as a
    warning, not escalated as a failure.
    """

    def __init__(self, container_id: str) -> None:
        super().__init__(f"container {container_id[:12]} exited")
        self.container_id = container_id


class StatsUnavailable(MetricsError):
    """The stats fetch completed without yielding usable data."""


class StatsTimeout(MetricsError):
    """Neither data nor closure arrived before the force timeout."""


class InvalidWindow(MetricsError, ValueError):
    """Zero or negative elapsed time between two snapshots."""


class SinkDeliveryError(MetricsError):
    """The metric sink rejected or failed to accept a batch."""
