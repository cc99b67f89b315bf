"""Base types and abstract collaborators for container metric sampling.

The sampling core talks to two external collaborators through the abstract
classes defined here, enabling swappable backends (Docker API, fakes in tests):

- StatsSource: produces one raw stats snapshot for a container
- CounterHandle: the container's open counter-source handle (net/dev file)
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Metric key -> unsigned counter value, taken at a single instant.
CounterSnapshot = dict[str, int]
# Derived key -> rate (or absolute gauge for memory keys).
RateSample = dict[str, float]


def matches_vlan(name: str, vlan_prefix: str, default_vlan: str) -> bool:
    """Check whether an interface name (or a key built from it) is reported.

    Empty prefixes never match, otherwise every key would qualify.
    """
    if vlan_prefix and name.startswith(vlan_prefix):
        return True
    return bool(default_vlan) and name.startswith(default_vlan)


def network_key(interface: str, direction: str, name: str) -> str:
    """Build a network counter key, e.g. ``eth0.inbytes``."""
    return f"{interface}.{direction}{name}"


@dataclass
class NetworkCounters:
    """Receive/transmit counters of one network interface."""

    rx_bytes: int = 0
    rx_packets: int = 0
    rx_errors: int = 0
    rx_dropped: int = 0
    tx_bytes: int = 0
    tx_packets: int = 0
    tx_errors: int = 0
    tx_dropped: int = 0

    def to_counters(self, interface: str) -> CounterSnapshot:
        """Flatten into ``<iface>.<in|out><field>`` counter keys."""
        return {
            network_key(interface, "in", "bytes"): self.rx_bytes,
            network_key(interface, "in", "packets"): self.rx_packets,
            network_key(interface, "in", "errs"): self.rx_errors,
            network_key(interface, "in", "drop"): self.rx_dropped,
            network_key(interface, "out", "bytes"): self.tx_bytes,
            network_key(interface, "out", "packets"): self.tx_packets,
            network_key(interface, "out", "errs"): self.tx_errors,
            network_key(interface, "out", "drop"): self.tx_dropped,
        }


@dataclass
class RawStats:
    """One raw stats snapshot as delivered by a StatsSource.

    CPU counters are cumulative nanoseconds and only grow while the
    container lives. Memory values are bytes.
    """

    cpu_user: int = 0
    cpu_system: int = 0
    cpu_total: int = 0
    mem_usage: int = 0
    mem_max_usage: int = 0
    mem_rss: int = 0
    networks: dict[str, NetworkCounters] = field(default_factory=dict)

    @classmethod
    def from_docker(cls, stats: dict[str, Any]) -> RawStats:
        """Decode a Docker Engine stats payload.

        Handles both cgroup v1 (``rss``, ``max_usage``) and cgroup v2
        (``anon``, no max usage) memory layouts.
        """
        cpu_usage = stats.get("cpu_stats", {}).get("cpu_usage", {})
        memory_stats = stats.get("memory_stats", {})
        memory_detail = memory_stats.get("stats", {}) or {}

        networks = {
            name: NetworkCounters(
                rx_bytes=counters.get("rx_bytes", 0),
                rx_packets=counters.get("rx_packets", 0),
                rx_errors=counters.get("rx_errors", 0),
                rx_dropped=counters.get("rx_dropped", 0),
                tx_bytes=counters.get("tx_bytes", 0),
                tx_packets=counters.get("tx_packets", 0),
                tx_errors=counters.get("tx_errors", 0),
                tx_dropped=counters.get("tx_dropped", 0),
            )
            for name, counters in (stats.get("networks") or {}).items()
        }

        return cls(
            cpu_user=cpu_usage.get("usage_in_usermode", 0),
            cpu_system=cpu_usage.get("usage_in_kernelmode", 0),
            cpu_total=cpu_usage.get("total_usage", 0),
            mem_usage=memory_stats.get("usage", 0),
            mem_max_usage=memory_stats.get("max_usage", 0),
            mem_rss=memory_detail.get("rss", memory_detail.get("anon", 0)),
            networks=networks,
        )

    def to_counters(
        self,
        vlan_prefix: str,
        default_vlan: str,
        include_networks: bool = True,
    ) -> CounterSnapshot:
        """Extract the recognized counters into a CounterSnapshot.

        Args:
            vlan_prefix: Interfaces starting with this prefix are kept
            default_vlan: Interface kept in addition to the prefixed ones
            include_networks: Set False when network counters come from elsewhere
        """
        counters: CounterSnapshot = {
            "cpu_user": self.cpu_user,
            "cpu_system": self.cpu_system,
            "cpu_usage": self.cpu_total,
            "mem_usage": self.mem_usage,
            "mem_max_usage": self.mem_max_usage,
            "mem_rss": self.mem_rss,
        }
        if not include_networks:
            return counters
        for interface, net in self.networks.items():
            if matches_vlan(interface, vlan_prefix, default_vlan):
                counters.update(net.to_counters(interface))
        return counters


class StatsSource(ABC):
    """Abstract source of raw container statistics.

    Implementations:
    - DockerStatsSource: Docker Engine stats API
    """

    @abstractmethod
    def fetch(
        self, container_id: str, timeout: float, cancel: threading.Event
    ) -> RawStats | None:
        """Fetch one stats snapshot for a container.

        Blocks until data is available, the source gives up, or ``cancel``
        is set. Must never block forever once ``cancel`` is set.

        Args:
            container_id: Docker container ID (short or full)
            timeout: Source-side timeout in seconds
            cancel: Best-effort abandon signal from the caller

        Returns:
            RawStats, or None if no data was produced
        """
        pass


class CounterHandle(ABC):
    """Open handle to a container's counter source.

    Owned exclusively by one container's metric state and closed exactly
    once when the lifecycle stops.
    """

    @abstractmethod
    def exists(self) -> bool:
        """Check whether the underlying process is still there."""
        pass

    @abstractmethod
    def read_counters(self, vlan_prefix: str, default_vlan: str) -> CounterSnapshot:
        """Read the network counters exposed through the handle."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the handle. Safe to call more than once."""
        pass
