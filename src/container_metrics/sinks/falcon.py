"""HTTP push sink for open-falcon compatible agents.

Posts the batch as a JSON array of items to the agent's push endpoint
(``http://127.0.0.1:1988/v1/push`` on a stock agent).

External dependencies:
    - ``httpx`` for the synchronous HTTP client.
"""

from __future__ import annotations

import logging

import httpx

from container_metrics.core.errors import SinkDeliveryError
from container_metrics.monitoring.base import RateSample
from container_metrics.sinks.base import MetricSink, to_falcon_items

logger = logging.getLogger(__name__)


class FalconPushSink(MetricSink):
    """Push metrics over HTTP.

    A caller-supplied ``httpx.Client`` is used as-is and left open on
    ``close()``; otherwise the sink owns its client.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)

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
        try:
            response = self._client.post(self.url, json=items)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SinkDeliveryError(
                f"Push to {self.url} rejected with HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise SinkDeliveryError(f"Push to {self.url} failed: {e}") from e
        logger.debug(f"Pushed {len(items)} metrics to {self.url}")

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
