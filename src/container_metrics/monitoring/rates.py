"""Rate computation between two counter snapshots.

Classification rules, applied per key of the current snapshot:
- ``cpu_*``: per-nanosecond rate, reported as ``<key>_rate``
- VLAN / default-VLAN network keys: per-second rate, reported as ``<key>.rate``
- ``mem*``: absolute gauge, reported unchanged under its own key
- anything else: dropped

A counter that went backwards (container restart, wrap) is not reported for
that window; negative rates are never emitted.
"""

from __future__ import annotations

from container_metrics.core.constants import (
    CPU_KEY_PREFIX,
    CPU_RATE_SUFFIX,
    MEMORY_KEY_PREFIX,
    NETWORK_RATE_SUFFIX,
)
from container_metrics.core.errors import InvalidWindow
from container_metrics.monitoring.base import CounterSnapshot, RateSample, matches_vlan

NANOSECONDS_PER_SECOND = 1_000_000_000


class RateEngine:
    """Pure rate computation, parameterized by the reported network interfaces."""

    def __init__(self, vlan_prefix: str, default_vlan: str) -> None:
        self.vlan_prefix = vlan_prefix
        self.default_vlan = default_vlan

    def compute_rates(
        self,
        current: CounterSnapshot,
        previous: CounterSnapshot,
        elapsed_ns: int,
    ) -> RateSample:
        """Compute rates for one sampling window.

        Args:
            current: Counters read at the end of the window
            previous: Counters read at the start of the window
            elapsed_ns: Window length in nanoseconds

        Returns:
            RateSample keyed by derived metric name

        Raises:
            InvalidWindow: If elapsed_ns is zero or negative
        """
        if elapsed_ns <= 0:
            raise InvalidWindow(f"Sampling window must be positive, got {elapsed_ns}ns")

        elapsed_seconds = elapsed_ns / NANOSECONDS_PER_SECOND
        rates: RateSample = {}

        for key, value in current.items():
            if key.startswith(CPU_KEY_PREFIX):
                delta = _counter_delta(key, value, previous)
                if delta is not None:
                    rates[key + CPU_RATE_SUFFIX] = delta / elapsed_ns
            elif matches_vlan(key, self.vlan_prefix, self.default_vlan):
                delta = _counter_delta(key, value, previous)
                if delta is not None:
                    rates[key + NETWORK_RATE_SUFFIX] = delta / elapsed_seconds
            elif key.startswith(MEMORY_KEY_PREFIX):
                rates[key] = float(value)

        return rates


def _counter_delta(key: str, value: int, previous: CounterSnapshot) -> int | None:
    """Delta against the previous window, None if there is no usable baseline."""
    last = previous.get(key)
    if last is None or value < last:
        return None
    return value - last
