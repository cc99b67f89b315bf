"""Shared constants for container-metrics.

Centralized constants to avoid duplication and ensure consistency across modules.
"""

from __future__ import annotations

# Counter key prefixes used to classify snapshot keys.
CPU_KEY_PREFIX = "cpu_"
MEMORY_KEY_PREFIX = "mem"

# Suffixes appended to derived rate keys.
CPU_RATE_SUFFIX = "_rate"
NETWORK_RATE_SUFFIX = ".rate"

# Fetch timeouts in seconds. The force timeout must leave room for the
# source's own timeout to win the race on the happy path.
DEFAULT_FETCH_TIMEOUT = 5.0
DEFAULT_FORCE_TIMEOUT = 10.0

# Network interfaces reported for a container.
DEFAULT_VLAN_PREFIX = "eth"
DEFAULT_VLAN = "eth0"

# Column order of the receive/transmit blocks in /proc/<pid>/net/dev that
# we keep (bytes, packets, errs, drop are the first four of each block).
NET_DEV_FIELDS = ("bytes", "packets", "errs", "drop")
NET_DEV_TRANSMIT_OFFSET = 8

DEFAULT_PROC_ROOT = "/proc"

# Sampling step in seconds.
DEFAULT_STEP_SECONDS = 60

# Consecutive fetch failures tolerated by the polling loop before it stops.
DEFAULT_MAX_CONSECUTIVE_FAILURES = 3
