"""Metric lifecycle of a single container.

States: UNINITIALIZED -> ACTIVE -> STOPPED (terminal).

The lifecycle owns the container's sampling state and its counter handle,
serializes sample cycles, and tears itself down (removing the container
from the registry it was given) when the container's process disappears.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum
from functools import partial
from pathlib import Path
from types import TracebackType

from container_metrics.core.constants import DEFAULT_MAX_CONSECUTIVE_FAILURES, DEFAULT_PROC_ROOT
from container_metrics.core.errors import (
    ContainerGone,
    SinkDeliveryError,
    StatsTimeout,
    StatsUnavailable,
)
from container_metrics.monitoring.base import CounterHandle, RateSample
from container_metrics.monitoring.net_dev import NetDevHandle
from container_metrics.monitoring.registry import ContainerRegistry
from container_metrics.monitoring.sample_cycle import ContainerMetricState, SampleCycle

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    """Lifecycle states of a container's metrics."""

    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    STOPPED = "stopped"


class ContainerMetric:
    """Metric lifecycle of one container.

    Example:
        ```python
        metric = ContainerMetric(cycle, registry)
        metric.init(container_id, pid)   # opens /proc/<pid>/net/dev, takes baseline
        with metric:
            metric.poll_forever()        # until stopped or the container exits
        ```
    """

    def __init__(
        self,
        cycle: SampleCycle,
        registry: ContainerRegistry,
        proc_root: Path | str = DEFAULT_PROC_ROOT,
        max_consecutive_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES,
        handle_opener: Callable[[int], CounterHandle] | None = None,
    ) -> None:
        """Initialize an (uninitialized) lifecycle.

        Args:
            cycle: Sample cycle shared configuration, source and sink
            registry: Registry the container is removed from on teardown
            proc_root: procfs mount point used to open the counter handle
            max_consecutive_failures: Fetch failures tolerated by poll_forever
            handle_opener: Override for opening the counter handle from a PID
        """
        self.cycle = cycle
        self.registry = registry
        self.max_consecutive_failures = max_consecutive_failures
        self._open_handle = handle_opener or partial(NetDevHandle.open, proc_root=proc_root)

        self.container_id: str | None = None
        self.pid: int | None = None
        self._state: ContainerMetricState | None = None
        self._status = LifecycleState.UNINITIALIZED
        self._stop_event = threading.Event()
        # Reentrant: teardown from inside a cycle calls stop() on the same thread
        self._cycle_lock = threading.RLock()
        self._status_lock = threading.Lock()

    @property
    def status(self) -> LifecycleState:
        return self._status

    @property
    def state(self) -> ContainerMetricState | None:
        """Sampling state while ACTIVE, None otherwise."""
        return self._state

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    def init(self, container_id: str, pid: int) -> None:
        """Open the container's counter handle and establish the baseline.

        If the process is already gone the lifecycle goes straight to
        STOPPED and the container is removed from the registry; this is
        logged, not raised. Errors from the baseline cycle are raised and
        leave the lifecycle UNINITIALIZED so the caller may retry.

        Concurrent calls are serialized: only the first one opens a handle,
        later ones find the lifecycle ACTIVE and return.

        Args:
            container_id: Docker container ID (short or full)
            pid: Host PID of the container's main process
        """
        with self._cycle_lock:
            with self._status_lock:
                status = self._status
            if status is LifecycleState.STOPPED:
                raise RuntimeError(f"Metric lifecycle for {container_id[:12]} already stopped")
            if status is LifecycleState.ACTIVE:
                logger.warning(f"Metric lifecycle for {container_id[:12]} already active")
                return

            self.container_id = container_id
            self.pid = pid

            try:
                handle = self._open_handle(pid)
            except FileNotFoundError:
                logger.warning(f"Container {container_id[:12]} exited (pid {pid} is gone)")
                self._teardown()
                return

            state = ContainerMetricState(handle=handle, stop_event=self._stop_event)
            try:
                self.cycle.sample(container_id, state)
            except ContainerGone:
                handle.close()
                logger.warning(f"Container {container_id[:12]} exited during init")
                self._teardown()
                raise
            except BaseException:
                handle.close()
                raise

            with self._status_lock:
                if self._status is LifecycleState.STOPPED:
                    # stop() won the race while the baseline was being taken
                    handle.close()
                    return
                self._state = state
                self._status = LifecycleState.ACTIVE

        logger.debug(f"Metric lifecycle for {container_id[:12]} is active")

    def sample(self) -> RateSample:
        """Run one sample cycle.

        Raises:
            RuntimeError: If the lifecycle is not ACTIVE
            ContainerGone: After tearing the lifecycle down
            StatsUnavailable, StatsTimeout, InvalidWindow, SinkDeliveryError:
                as raised by the cycle
        """
        with self._cycle_lock:
            state = self._state
            if self._status is not LifecycleState.ACTIVE or state is None:
                raise RuntimeError(f"Metric lifecycle is {self._status.value}, cannot sample")
            assert self.container_id is not None

            try:
                return self.cycle.sample(self.container_id, state)
            except ContainerGone:
                logger.warning(f"Container {self.container_id[:12]} exited")
                self._teardown()
                raise

    def poll_forever(self) -> None:
        """Sample every step until stopped, the container exits, or fetches keep failing.

        Fetch failures are retried on the next tick; more than
        ``max_consecutive_failures`` of them in a row stop the lifecycle.
        Sink failures are logged and do not count as fetch failures.
        """
        failures = 0
        label = self.container_id[:12] if self.container_id else "?"

        while not self._stop_event.wait(self.cycle.step_seconds):
            try:
                self.sample()
            except ContainerGone:
                return
            except (StatsTimeout, StatsUnavailable) as e:
                failures += 1
                logger.warning(
                    f"Sampling {label} failed ({failures}/{self.max_consecutive_failures}): {e}"
                )
                if failures > self.max_consecutive_failures:
                    logger.warning(f"Giving up on container {label}")
                    self.stop()
                    return
                continue
            except SinkDeliveryError as e:
                logger.warning(f"Delivering metrics for {label} failed: {e}")
            except RuntimeError:
                if self._status is LifecycleState.STOPPED:
                    return
                raise
            failures = 0

    def stop(self) -> None:
        """Stop the lifecycle and release the counter handle.

        Safe to call repeatedly and from any thread; only the first call
        has an effect. Waits for an in-flight cycle to finish.
        """
        with self._status_lock:
            if self._status is LifecycleState.STOPPED:
                return
            self._status = LifecycleState.STOPPED
        self._stop_event.set()

        with self._cycle_lock:
            state, self._state = self._state, None
            if state is not None:
                state.handle.close()

        label = self.container_id[:12] if self.container_id else "?"
        logger.debug(f"Metric lifecycle for {label} stopped")

    def _teardown(self) -> None:
        """Forget the container and stop."""
        try:
            if self.container_id is not None:
                self.registry.remove(self.container_id)
        finally:
            self.stop()

    def __enter__(self) -> ContainerMetric:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()
