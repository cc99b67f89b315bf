"""One sampling cycle for a container.

A cycle fetches fresh counters from the stats source under a hard deadline,
turns them into rates against the previous window and hands the result to
the metric sink:

1. Check the container's counter handle still exists (else ContainerGone)
2. Race a fetch worker thread against the force timeout
3. Extract CPU, memory and network counters
4. Compute rates against the previous snapshot
5. Send to the sink, then advance the window whatever the sink did
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from container_metrics.core.errors import ContainerGone, StatsTimeout, StatsUnavailable
from container_metrics.core.schemas import SamplingConfig
from container_metrics.monitoring.base import (
    CounterHandle,
    CounterSnapshot,
    RateSample,
    RawStats,
    StatsSource,
)
from container_metrics.monitoring.rates import RateEngine
from container_metrics.sinks.base import MetricSink

logger = logging.getLogger(__name__)


@dataclass
class ContainerMetricState:
    """Per-container sampling state, owned by exactly one lifecycle."""

    handle: CounterHandle
    stop_event: threading.Event = field(default_factory=threading.Event)
    last_snapshot: CounterSnapshot | None = None
    # Monotonic nanoseconds of the last successful read; used for windows.
    last_sample_time: int | None = None
    # Unix seconds of the last successful read; reported to the sink.
    last_timestamp: int | None = None

    @property
    def has_baseline(self) -> bool:
        return self.last_snapshot is not None and self.last_sample_time is not None

    def advance(self, snapshot: CounterSnapshot, sample_time: int, timestamp: int) -> None:
        """Start a new window at ``snapshot``."""
        self.last_snapshot = dict(snapshot)
        self.last_sample_time = sample_time
        self.last_timestamp = timestamp


class SampleCycle:
    """Fetch, rate and send one sample for a container.

    Example:
        ```python
        cycle = SampleCycle(config, DockerStatsSource.from_env(5.0), LoggingSink(),
                            step_seconds=60, endpoint="host-1")
        state = ContainerMetricState(handle=NetDevHandle.open(pid))
        cycle.sample(container_id, state)         # baseline, nothing sent
        rates = cycle.sample(container_id, state)  # rates for the window
        ```
    """

    def __init__(
        self,
        config: SamplingConfig,
        source: StatsSource,
        sink: MetricSink,
        step_seconds: int,
        endpoint: str,
        tag: str = "",
        clock: Callable[[], int] = time.monotonic_ns,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cycle.

        Args:
            config: Shared, read-only sampling settings
            source: Where raw stats come from
            sink: Where computed rates go
            step_seconds: Sampling interval reported with every batch
            endpoint: Reporting host name
            tag: Tags attached to every metric
            clock: Monotonic nanosecond clock for window lengths
            wall_clock: Unix time clock for reported timestamps
        """
        self.config = config
        self.source = source
        self.sink = sink
        self.step_seconds = step_seconds
        self.endpoint = endpoint
        self.tag = tag
        self.rate_engine = RateEngine(config.vlan_prefix, config.default_vlan)
        self._clock = clock
        self._wall_clock = wall_clock

    def sample(self, container_id: str, state: ContainerMetricState) -> RateSample:
        """Run one cycle and advance ``state``.

        The first cycle on a state only records the baseline and returns an
        empty RateSample without calling the sink.

        Raises:
            ContainerGone: The container's process no longer exists
            StatsUnavailable: The fetch produced no data (state untouched)
            StatsTimeout: The fetch missed the force timeout (state untouched)
            InvalidWindow: The clock did not move forward (state untouched)
            Exception: Whatever the sink raised, after the state advanced
        """
        if not state.handle.exists():
            raise ContainerGone(container_id)

        current = self.collect_counters(container_id, state.handle)
        now = self._clock()
        timestamp = int(self._wall_clock())

        if not state.has_baseline:
            state.advance(current, now, timestamp)
            logger.debug(f"Baseline for {container_id[:12]}: {len(current)} counters")
            return {}

        assert state.last_snapshot is not None and state.last_sample_time is not None
        rates = self.rate_engine.compute_rates(
            current, state.last_snapshot, now - state.last_sample_time
        )

        try:
            self.sink.send(rates, self.endpoint, self.tag, timestamp, self.step_seconds)
        finally:
            state.advance(current, now, timestamp)

        logger.debug(f"Sent {len(rates)} metrics for {container_id[:12]}")
        return rates

    def collect_counters(self, container_id: str, handle: CounterHandle) -> CounterSnapshot:
        """Fetch raw stats and extract the counters of interest.

        Network counters come from the handle; the source's own network
        section is used only when the handle reports no interface.
        """
        raw = self.fetch(container_id)

        try:
            network = handle.read_counters(self.config.vlan_prefix, self.config.default_vlan)
        except OSError as e:
            if not handle.exists():
                raise ContainerGone(container_id) from e
            raise StatsUnavailable(
                f"Failed to read network counters for {container_id[:12]}: {e}"
            ) from e

        counters = raw.to_counters(
            self.config.vlan_prefix,
            self.config.default_vlan,
            include_networks=not network,
        )
        counters.update(network)
        return counters

    def fetch(self, container_id: str) -> RawStats:
        """Fetch raw stats, giving up after the force timeout.

        The fetch runs on its own daemon thread. On timeout the worker is
        told to abandon its work and is not waited for; anything it
        produces afterwards lands in a queue nobody reads.

        Raises:
            StatsUnavailable: The worker finished without data
            StatsTimeout: The force timeout elapsed first
        """
        results: queue.Queue[RawStats | None] = queue.Queue(maxsize=1)
        cancel = threading.Event()
        worker = threading.Thread(
            target=self._fetch_worker,
            args=(container_id, cancel, results),
            name=f"stats-{container_id[:12]}",
            daemon=True,
        )
        worker.start()

        try:
            raw = results.get(timeout=self.config.force_timeout)
        except queue.Empty:
            cancel.set()
            raise StatsTimeout(
                f"Get stats timeout for {container_id[:12]} "
                f"after {self.config.force_timeout}s"
            ) from None

        if raw is None:
            raise StatsUnavailable(f"Get stats failed for {container_id[:12]}")
        return raw

    def _fetch_worker(
        self,
        container_id: str,
        cancel: threading.Event,
        results: queue.Queue[RawStats | None],
    ) -> None:
        """Call the source and report its result (or None) exactly once."""
        raw: RawStats | None = None
        try:
            raw = self.source.fetch(container_id, self.config.fetch_timeout, cancel)
        except Exception as e:
            logger.warning(f"Get stats failed for {container_id[:12]}: {e}")

        if cancel.is_set():
            logger.debug(f"Dropping late stats for {container_id[:12]}")
            return
        results.put_nowait(raw)
