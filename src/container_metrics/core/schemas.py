"""Pydantic schemas for container-metrics.

This module defines the configuration contracts used throughout the collector:
the per-process sampling settings, the sink selection and the top-level
collector configuration loaded from YAML/JSON files.
"""

from __future__ import annotations

import socket
from enum import Enum
from pathlib import Path

import httpx
from pydantic import BaseModel, Field, model_validator

from container_metrics.core.constants import (
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_FORCE_TIMEOUT,
    DEFAULT_MAX_CONSECUTIVE_FAILURES,
    DEFAULT_PROC_ROOT,
    DEFAULT_STEP_SECONDS,
    DEFAULT_VLAN,
    DEFAULT_VLAN_PREFIX,
)


class SinkKind(str, Enum):
    """Supported metric sink backends."""

    LOG = "log"  # Log each batch (debugging)
    JSONL = "jsonl"  # Append open-falcon items to a JSON Lines file
    FALCON = "falcon"  # HTTP push to an open-falcon agent/transfer


class SamplingConfig(BaseModel):
    """Process-wide sampling settings, shared read-only by every container.

    Attributes:
        fetch_timeout: Timeout handed to the stats source for one fetch
        force_timeout: Hard deadline after which a fetch is abandoned
        vlan_prefix: Interfaces whose name starts with this are reported
        default_vlan: Interface always reported (matched as a prefix)
    """

    fetch_timeout: float = Field(
        default=DEFAULT_FETCH_TIMEOUT, gt=0, description="Stats fetch timeout (seconds)"
    )
    force_timeout: float = Field(
        default=DEFAULT_FORCE_TIMEOUT, gt=0, description="Hard fetch deadline (seconds)"
    )
    vlan_prefix: str = Field(default=DEFAULT_VLAN_PREFIX, description="Network interface prefix")
    default_vlan: str = Field(default=DEFAULT_VLAN, description="Default network interface")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_force_timeout(self) -> SamplingConfig:
        """Ensure the force timeout does not undercut the fetch timeout."""
        if self.force_timeout < self.fetch_timeout:
            raise ValueError(
                f"force_timeout ({self.force_timeout}s) must be >= "
                f"fetch_timeout ({self.fetch_timeout}s)"
            )
        return self


class SinkConfig(BaseModel):
    """Metric sink selection."""

    kind: SinkKind = Field(default=SinkKind.LOG)
    path: Path | None = Field(default=None, description="Output file for the jsonl sink")
    url: str | None = Field(default=None, description="Push URL for the falcon sink")
    timeout_seconds: float = Field(default=5.0, gt=0, description="HTTP push timeout")

    @model_validator(mode="after")
    def check_destination(self) -> SinkConfig:
        """Each backend needs its destination."""
        if self.kind == SinkKind.JSONL and self.path is None:
            raise ValueError("jsonl sink requires 'path'")
        if self.kind == SinkKind.FALCON:
            if not self.url:
                raise ValueError("falcon sink requires 'url'")
            try:
                url = httpx.URL(self.url)
            except httpx.InvalidURL as e:
                raise ValueError(f"Invalid falcon push url {self.url!r}: {e}") from e
            if url.scheme not in ("http", "https") or not url.host:
                raise ValueError(f"falcon push url must be an http(s) URL, got {self.url!r}")
        return self


class CollectorConfig(BaseModel):
    """Top-level collector configuration.

    This is the main configuration loaded from YAML/JSON files.
    """

    sampling: SamplingConfig = Field(default_factory=SamplingConfig)
    sink: SinkConfig = Field(default_factory=SinkConfig)
    step_seconds: int = Field(
        default=DEFAULT_STEP_SECONDS, ge=1, le=3600, description="Sampling interval"
    )
    endpoint: str = Field(
        default_factory=socket.gethostname, min_length=1, description="Reporting host name"
    )
    tag: str = Field(default="", description="Tags attached to every metric")
    docker_base_url: str | None = Field(
        default=None, description="Docker daemon URL (defaults to the environment)"
    )
    max_consecutive_failures: int = Field(
        default=DEFAULT_MAX_CONSECUTIVE_FAILURES,
        ge=1,
        description="Fetch failures tolerated in a row before a container is stopped",
    )
    proc_root: Path = Field(default=Path(DEFAULT_PROC_ROOT), description="procfs mount point")
