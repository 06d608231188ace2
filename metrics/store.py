"""Split-series backend: each reading field is its own named series."""

from __future__ import annotations

from typing import Callable, Dict, Optional

from datastore.base import wall_clock_ms
from metrics.client import SeriesResult, VictoriaMetricsClient
from metrics.exposition import FIELD_NAMES, SERIES_NAMES, encode_reading
from models.records import GatewayIdentity, Reading, SensorHistory
from services.merge import MetricMerger


class MetricsReadingStore:
    name = "metrics"

    def __init__(
        self,
        client: VictoriaMetricsClient,
        merger: Optional[MetricMerger] = None,
        clock: Callable[[], int] = wall_clock_ms,
    ) -> None:
        self.client = client
        self.merger = merger or MetricMerger()
        self.clock = clock

    def initialize(self) -> None:
        """Nothing to create: series spring into existence on first import."""

    def record(self, reading: Reading, gateway: GatewayIdentity) -> int:
        timestamp = self.clock()
        self.client.import_samples(encode_reading(reading, gateway, timestamp))
        return timestamp

    def query(self, sensor_id: str, window_hours: int) -> SensorHistory:
        history = SensorHistory(sensor_id=sensor_id)
        if window_hours <= 0:
            return history

        # Any failing field aborts the whole query; nothing partial escapes.
        results: Dict[str, SeriesResult] = {
            field: self.client.query_series(SERIES_NAMES[field], sensor_id, window_hours)
            for field in FIELD_NAMES
        }
        merged = self.merger.merge(results)
        history.gateway = merged.gateway
        history.data_points = merged.data_points
        return history

    def list_sensor_ids(self) -> list[str]:
        return sorted(set(self.client.label_values("sensor_id")))

    def ping(self) -> bool:
        return self.client.ping()

    def close(self) -> None:
        self.client.close()
