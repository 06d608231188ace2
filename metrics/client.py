"""HTTP client for a VictoriaMetrics-compatible split-series store."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

from datastore.errors import UpstreamError
from metrics.exposition import range_selector

logger = logging.getLogger(__name__)

IMPORT_PATH = "/api/v1/import/prometheus"
QUERY_PATH = "/api/v1/query"
HEALTH_PATH = "/health"


@dataclass
class SeriesResult:
    """Samples of one named field for one sensor, keyed by epoch milliseconds.

    ``labels`` is ``None`` when the store returned no series at all.
    """

    values: Dict[int, float] = field(default_factory=dict)
    labels: Optional[Dict[str, str]] = None


def _decode_sample(sample: Any) -> Optional[Tuple[int, float]]:
    if not isinstance(sample, (list, tuple)) or len(sample) < 2:
        return None
    raw_timestamp, raw_value = sample[0], sample[1]
    if isinstance(raw_timestamp, bool) or not isinstance(raw_timestamp, (int, float)):
        return None
    try:
        value = float(raw_value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return round(raw_timestamp * 1000), value


class VictoriaMetricsClient:
    """Thin synchronous wrapper; every call is bounded by one fixed timeout."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def import_samples(self, body: str) -> None:
        self._request(
            "POST",
            IMPORT_PATH,
            content=body.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )

    def query_series(self, series_name: str, sensor_id: str, hours: int) -> SeriesResult:
        response = self._request(
            "GET",
            QUERY_PATH,
            params={"query": range_selector(series_name, sensor_id, hours)},
        )
        payload = self._decode_json(response)
        try:
            series_list = payload["data"]["result"]
        except (KeyError, TypeError) as exc:
            raise UpstreamError(f"Malformed query response for {series_name}.") from exc

        result = SeriesResult()
        skipped = 0
        latest: Optional[int] = None
        # A gateway re-pair starts a new series; fold them all into one mapping.
        # Labels follow the series holding the newest sample, whatever the result order.
        for series in series_list or []:
            labels = series.get("metric") or {}
            labels = {str(name): str(value) for name, value in labels.items()}
            if result.labels is None:
                result.labels = labels
            for sample in series.get("values") or []:
                decoded = _decode_sample(sample)
                if decoded is None:
                    skipped += 1
                    continue
                timestamp, value = decoded
                result.values[timestamp] = value
                if latest is None or timestamp > latest:
                    latest = timestamp
                    result.labels = labels

        if skipped:
            logger.warning(
                "Skipped undecodable samples",
                extra={"metric": series_name, "sensor_id": sensor_id, "point_count": skipped},
            )
        return result

    def label_values(self, label: str) -> List[str]:
        response = self._request("GET", f"/api/v1/label/{label}/values")
        payload = self._decode_json(response)
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            raise UpstreamError(f"Malformed label values response for {label!r}.")
        return [str(item) for item in data]

    def ping(self) -> bool:
        try:
            self._request("GET", HEALTH_PATH)
        except UpstreamError as exc:
            logger.warning(
                "Metrics store ping failed",
                extra={"reason": str(exc), "status_code": exc.status_code},
            )
            return False
        return True

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"{method} {path} failed: {exc}") from exc
        if not response.is_success:
            raise UpstreamError(
                f"{method} {path} returned status {response.status_code}.",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _decode_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"Response from {response.request.url} is not JSON.") from exc
