"""Shared fakes for the sampling tests."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

import pytest

from container_metrics.core.schemas import SamplingConfig
from container_metrics.monitoring.base import (
    CounterHandle,
    CounterSnapshot,
    NetworkCounters,
    RateSample,
    RawStats,
    StatsSource,
)
from container_metrics.monitoring.sample_cycle import SampleCycle
from container_metrics.sinks.base import MetricSink


# /proc/<pid>/net/dev with a loopback, eth0 and a counter glued to the colon
NET_DEV = """\
Inter-|   Receive                                                |  Transmit
 face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed
    lo:     500       5    0    0    0     0          0         0      500       5    0    0    0     0       0          0
  eth0:    1296      16    1    2    0     0          0         0      980      12    3    4    0     0       0          0
  eth1:2147483648   100    0    0    0     0          0         0       10       1    0    0    0     0       0          0
"""


def make_raw_stats(
    cpu_total: int = 1000,
    cpu_user: int = 600,
    cpu_system: int = 400,
    mem_usage: int = 100 * 1024 * 1024,
    networks: dict[str, NetworkCounters] | None = None,
) -> RawStats:
    """RawStats with sensible defaults."""
    return RawStats(
        cpu_user=cpu_user,
        cpu_system=cpu_system,
        cpu_total=cpu_total,
        mem_usage=mem_usage,
        mem_max_usage=mem_usage * 2,
        mem_rss=mem_usage // 2,
        networks=networks or {},
    )


class FakeStatsSource(StatsSource):
    """Returns queued results in order; the last one repeats.

    A queued exception is raised instead of returned. With ``block`` set,
    fetches wait on ``release`` (or the cancel event) first.
    """

    def __init__(self, results: Iterable[RawStats | Exception | None] = ()) -> None:
        self.results = list(results)
        self.calls = 0
        self.block = False
        self.release = threading.Event()
        self.cancel_events: list[threading.Event] = []
        self.timeouts: list[float] = []

    def fetch(
        self, container_id: str, timeout: float, cancel: threading.Event
    ) -> RawStats | None:
        self.calls += 1
        self.cancel_events.append(cancel)
        self.timeouts.append(timeout)
        if self.block:
            self.release.wait(timeout=5.0)
        if not self.results:
            return None
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class FakeHandle(CounterHandle):
    """Counter handle that disappears after ``gone_after`` existence checks."""

    def __init__(
        self,
        network: CounterSnapshot | None = None,
        gone_after: int | None = None,
    ) -> None:
        self.network = network or {}
        self.gone_after = gone_after
        self.exists_calls = 0
        self.close_calls = 0
        self.read_error: OSError | None = None

    def exists(self) -> bool:
        self.exists_calls += 1
        return self.gone_after is None or self.exists_calls <= self.gone_after

    def read_counters(self, vlan_prefix: str, default_vlan: str) -> CounterSnapshot:
        if self.read_error is not None:
            raise self.read_error
        return dict(self.network)

    def close(self) -> None:
        self.close_calls += 1


class RecordingSink(MetricSink):
    """Keeps every batch; raises ``error`` when set."""

    def __init__(self) -> None:
        self.batches: list[tuple[RateSample, str, str, int, int]] = []
        self.error: Exception | None = None

    def send(
        self,
        values: RateSample,
        endpoint: str,
        tag: str,
        timestamp: int,
        step: int,
    ) -> None:
        self.batches.append((dict(values), endpoint, tag, timestamp, step))
        if self.error is not None:
            raise self.error


class StepClock:
    """Monotonic nanosecond clock that moves ``step_ns`` per call."""

    def __init__(self, start_ns: int = 0, step_ns: int = 1_000_000_000) -> None:
        self.now = start_ns
        self.step_ns = step_ns

    def __call__(self) -> int:
        self.now += self.step_ns
        return self.now


@pytest.fixture
def sampling_config() -> SamplingConfig:
    return SamplingConfig(
        fetch_timeout=0.05, force_timeout=0.2, vlan_prefix="eth", default_vlan="eth0"
    )


@pytest.fixture
def source() -> FakeStatsSource:
    return FakeStatsSource()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def cycle(
    sampling_config: SamplingConfig,
    source: FakeStatsSource,
    sink: RecordingSink,
    clock: StepClock,
) -> SampleCycle:
    return SampleCycle(
        sampling_config,
        source,
        sink,
        step_seconds=60,
        endpoint="host-1",
        tag="service=web",
        clock=clock,
        wall_clock=lambda: 1_700_000_000.5,
    )


@pytest.fixture
def root_logging():
    """Put the root logger back after a test that calls setup_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
