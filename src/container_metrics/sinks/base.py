"""Base metric sink abstract class.

All sinks accept a batch of rates tagged with the reporting endpoint, tags,
timestamp and step, in the shape of an open-falcon push. Delivery failures
are raised as SinkDeliveryError so the caller can decide what to do.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from container_metrics.monitoring.base import RateSample

logger = logging.getLogger(__name__)


def to_falcon_items(
    values: RateSample,
    endpoint: str,
    tag: str,
    timestamp: int,
    step: int,
) -> list[dict[str, Any]]:
    """Convert a RateSample into open-falcon metric items.

    Items are ordered by metric name so batches are reproducible.
    """
    return [
        {
            "endpoint": endpoint,
            "metric": metric,
            "value": value,
            "timestamp": timestamp,
            "step": step,
            "counterType": "GAUGE",
            "tags": tag,
        }
        for metric, value in sorted(values.items())
    ]


class MetricSink(ABC):
    """Abstract destination for computed container metrics.

    Implementations:
    - LoggingSink: log each batch
    - JsonLinesSink: append items to a JSON Lines file
    - FalconPushSink: HTTP push to an open-falcon agent
    """

    @abstractmethod
    def send(
        self,
        values: RateSample,
        endpoint: str,
        tag: str,
        timestamp: int,
        step: int,
    ) -> None:
        """Deliver one batch of measurements.

        Args:
            values: Metric name -> value
            endpoint: Reporting host
            tag: Tags attached to every metric
            timestamp: Unix seconds of the sample
            step: Sampling interval in seconds

        Raises:
            SinkDeliveryError: If the batch could not be delivered
        """
        pass

    def close(self) -> None:
        """Release sink resources."""


class LoggingSink(MetricSink):
    """Sink that writes every batch to the log."""

    def send(
        self,
        values: RateSample,
        endpoint: str,
        tag: str,
        timestamp: int,
        step: int,
    ) -> None:
        logger.info(
            f"{endpoint} [{tag}] ts={timestamp} step={step}: "
            + ", ".join(f"{k}={v:.6g}" for k, v in sorted(values.items()))
        )
