"""DockerStatsSource - StatsSource implementation using the Docker stats API.

Each fetch issues one non-streamed stats request for the container. The
Docker SDK request cannot be interrupted mid-flight, so cancellation is
honored when the request returns: a cancelled fetch discards its data.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import docker
from docker.errors import APIError, NotFound

from container_metrics.monitoring.base import RawStats, StatsSource

logger = logging.getLogger(__name__)


class DockerStatsSource(StatsSource):
    """StatsSource backed by a Docker daemon.

    Example:
        ```python
        source = DockerStatsSource.from_env(timeout=5.0)
        raw = source.fetch(container_id, timeout=5.0, cancel=threading.Event())
        if raw is not None:
            print(raw.cpu_total, raw.mem_usage)
        ```
    """

    def __init__(self, client: docker.DockerClient) -> None:
        """Initialize the source.

        Args:
            client: Docker client; its request timeout bounds every fetch
        """
        self._client = client

    @classmethod
    def from_env(cls, timeout: float, base_url: str | None = None) -> DockerStatsSource:
        """Build a source from the environment (or an explicit daemon URL).

        Args:
            timeout: Request timeout in seconds applied to every API call
            base_url: Optional daemon URL, e.g. ``unix:///var/run/docker.sock``
        """
        if base_url is not None:
            client = docker.DockerClient(base_url=base_url, timeout=timeout)
        else:
            client = docker.from_env(timeout=timeout)
        return cls(client)

    def is_available(self) -> bool:
        """Check if the Docker daemon answers."""
        try:
            return bool(self._client.ping())
        except Exception:
            return False

    def container_pid(self, container_id: str) -> int | None:
        """Return the host PID of a running container's main process.

        Returns:
            PID, or None if the container is unknown or not running
        """
        try:
            container = self._client.containers.get(container_id)
        except NotFound:
            logger.warning(f"Container {container_id[:12]} not found")
            return None

        pid = container.attrs.get("State", {}).get("Pid", 0)
        return pid or None

    def fetch(
        self, container_id: str, timeout: float, cancel: threading.Event
    ) -> RawStats | None:
        """Fetch one stats snapshot via ``GET /containers/{id}/stats?stream=false``.

        The request timeout is the client's, fixed when the client was built;
        ``timeout`` is only reported when a request fails.
        """
        try:
            stats = self._client.api.stats(container_id, stream=False)
        except NotFound:
            logger.debug(f"Container {container_id[:12]} not found while fetching stats")
            return None
        except APIError as e:
            if "not running" in str(e).lower():
                logger.debug(f"Container {container_id[:12]} is not running")
                return None
            raise

        if cancel.is_set():
            logger.debug(f"Discarding stats for {container_id[:12]}: fetch was abandoned")
            return None

        return self._parse_stats(container_id, stats, timeout)

    def _parse_stats(
        self, container_id: str, stats: dict[str, Any] | None, timeout: float
    ) -> RawStats | None:
        """Parse the Docker stats JSON, None when the daemon returned nothing."""
        if not stats or "cpu_stats" not in stats:
            logger.warning(
                f"Empty stats for {container_id[:12]} (fetch timeout {timeout}s)"
            )
            return None
        return RawStats.from_docker(stats)
