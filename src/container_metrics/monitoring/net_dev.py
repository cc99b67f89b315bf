"""Network counters read from a container process's ``/proc/<pid>/net/dev``.

The file is opened once when a container's lifecycle starts and re-read on
every sample; procfs regenerates its content on each read from offset 0.

Format:
    Inter-|   Receive                            |  Transmit
     face |bytes    packets errs drop fifo ...   |bytes    packets errs drop ...
        lo:       0       0    0    0    0 ...
      eth0:    1296      16    0    0    0 ...
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO

from container_metrics.core.constants import (
    DEFAULT_PROC_ROOT,
    NET_DEV_FIELDS,
    NET_DEV_TRANSMIT_OFFSET,
)
from container_metrics.monitoring.base import (
    CounterHandle,
    CounterSnapshot,
    matches_vlan,
    network_key,
)

logger = logging.getLogger(__name__)


def net_dev_path(pid: int, proc_root: Path | str = DEFAULT_PROC_ROOT) -> Path:
    """Path of the net/dev file for a process."""
    return Path(proc_root) / str(pid) / "net" / "dev"


def parse_net_dev(content: str, vlan_prefix: str, default_vlan: str) -> CounterSnapshot:
    """Parse net/dev content into ``<iface>.<in|out><field>`` counters.

    Only interfaces matching the VLAN prefix or the default VLAN are kept.
    Malformed lines are skipped.
    """
    counters: CounterSnapshot = {}
    # First two lines are the column headers
    for line in content.splitlines()[2:]:
        # Large counters can run into the colon, e.g. "eth0:1234567"
        interface, sep, rest = line.partition(":")
        if not sep:
            continue
        interface = interface.strip()
        if not matches_vlan(interface, vlan_prefix, default_vlan):
            continue

        values = rest.split()
        if len(values) < NET_DEV_TRANSMIT_OFFSET + len(NET_DEV_FIELDS):
            logger.debug(f"Skipping short net/dev line for {interface}: {line!r}")
            continue
        try:
            parsed = {}
            for i, name in enumerate(NET_DEV_FIELDS):
                parsed[network_key(interface, "in", name)] = int(values[i])
                parsed[network_key(interface, "out", name)] = int(
                    values[NET_DEV_TRANSMIT_OFFSET + i]
                )
        except ValueError:
            logger.debug(f"Skipping unparsable net/dev line for {interface}: {line!r}")
            continue
        counters.update(parsed)

    return counters


class NetDevHandle(CounterHandle):
    """Open ``/proc/<pid>/net/dev`` handle of a container's main process."""

    def __init__(self, path: Path, stream: IO[str]) -> None:
        self._path = path
        self._stream: IO[str] | None = stream

    @classmethod
    def open(cls, pid: int, proc_root: Path | str = DEFAULT_PROC_ROOT) -> NetDevHandle:
        """Open the net/dev file of a process.

        Raises:
            FileNotFoundError: If the process no longer exists
        """
        path = net_dev_path(pid, proc_root)
        return cls(path, open(path, encoding="utf-8"))

    @property
    def path(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._stream is None

    def exists(self) -> bool:
        return self._path.exists()

    def read_counters(self, vlan_prefix: str, default_vlan: str) -> CounterSnapshot:
        if self._stream is None:
            return {}
        self._stream.seek(0)
        return parse_net_dev(self._stream.read(), vlan_prefix, default_vlan)

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.close()
