"""JSON Lines metric sink."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from container_metrics.core.errors import SinkDeliveryError
from container_metrics.monitoring.base import RateSample
from container_metrics.sinks.base import MetricSink, to_falcon_items

logger = logging.getLogger(__name__)


class JsonLinesSink(MetricSink):
    """Append one open-falcon item per line to a file.

    The file is opened per batch so that external rotation is picked up.
    Writes from concurrent container lifecycles are serialized.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def send(
        self,
        values: RateSample,
        endpoint: str,
        tag: str,
        timestamp: int,
        step: int,
    ) -> None:
        items = to_falcon_items(values, endpoint, tag, timestamp, step)
        if not items:
            return
        lines = "".join(json.dumps(item) + "\n" for item in items)
        try:
            with self._lock, open(self.path, "a", encoding="utf-8") as f:
                f.write(lines)
        except OSError as e:
            raise SinkDeliveryError(f"Failed to write metrics to {self.path}: {e}") from e
        logger.debug(f"Wrote {len(items)} metrics to {self.path}")
