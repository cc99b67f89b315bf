"""Sinks module - destinations for computed container metrics."""

from __future__ import annotations

from container_metrics.core.schemas import SinkConfig, SinkKind
from container_metrics.sinks.base import LoggingSink, MetricSink, to_falcon_items
from container_metrics.sinks.falcon import FalconPushSink
from container_metrics.sinks.jsonl import JsonLinesSink


def build_sink(config: SinkConfig) -> MetricSink:
    """Create the sink selected by the configuration."""
    if config.kind == SinkKind.JSONL:
        assert config.path is not None  # enforced by SinkConfig
        return JsonLinesSink(config.path)
    if config.kind == SinkKind.FALCON:
        assert config.url is not None  # enforced by SinkConfig
        return FalconPushSink(config.url, timeout=config.timeout_seconds)
    return LoggingSink()


__all__ = [
    "build_sink",
    "FalconPushSink",
    "JsonLinesSink",
    "LoggingSink",
    "MetricSink",
    "to_falcon_items",
]
