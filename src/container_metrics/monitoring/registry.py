"""Registry of containers that currently have a metric lifecycle.

Lifecycles remove themselves from the registry they were given when their
container exits; the caller owns the registry and decides what else it holds.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class ContainerRegistry(ABC):
    """Collaborator notified when a container's lifecycle tears down."""

    @abstractmethod
    def remove(self, container_id: str) -> None:
        """Forget a container. Removing an unknown id is a no-op."""
        pass


class InMemoryContainerRegistry(ContainerRegistry):
    """Thread-safe in-process registry keyed by container id."""

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}
        self._lock = threading.Lock()

    def add(self, container_id: str, entry: Any) -> None:
        with self._lock:
            self._entries[container_id] = entry

    def get(self, container_id: str) -> Any | None:
        with self._lock:
            return self._entries.get(container_id)

    def remove(self, container_id: str) -> None:
        with self._lock:
            if self._entries.pop(container_id, None) is not None:
                logger.debug(f"Removed container {container_id[:12]} from registry")

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, container_id: object) -> bool:
        with self._lock:
            return container_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
