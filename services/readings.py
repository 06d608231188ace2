"""Ingest and history orchestration on top of a storage backend."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from datastore.base import ReadingStore
from datastore.errors import StorageError, UpstreamError
from datastore.sql_store import SqlReadingStore, create_sql_engine
from metrics.client import VictoriaMetricsClient
from metrics.store import MetricsReadingStore
from models.records import MAX_WINDOW_HOURS, GatewayIdentity, Reading, SensorHistory
from settings import BACKEND_METRICS, get_settings

logger = logging.getLogger(__name__)


class ReadingService:
    """Coordinates ingest, history queries and health for one store."""

    def __init__(self, store: ReadingStore) -> None:
        self.store = store

    @property
    def backend(self) -> str:
        return self.store.name

    def initialize(self) -> None:
        try:
            self.store.initialize()
        except StorageError as exc:
            logger.error("Storage initialization failed", extra={"reason": str(exc), "backend": self.backend})
            raise

    def record(self, reading: Reading, gateway: GatewayIdentity) -> int:
        """Persist a reading; the timestamp is always assigned here, server-side."""
        context = {
            "sensor_id": reading.sensor_id,
            "gateway_id": gateway.gateway_id,
            "gateway_name": gateway.gateway_name,
        }
        try:
            timestamp = self.store.record(reading, gateway)
        except StorageError as exc:
            self._log_failure("Failed to store reading", exc, context)
            raise
        logger.info(
            "Stored reading (gravity=%.3f tilt=%.2f temp=%.2f)",
            reading.gravity,
            reading.tilt,
            reading.temp,
            extra=context,
        )
        return timestamp

    def history(self, sensor_id: str, window_hours: int) -> SensorHistory:
        if window_hours < 0:
            raise ValueError("hours must not be negative.")
        if window_hours > MAX_WINDOW_HOURS:
            raise ValueError(f"hours must not exceed {MAX_WINDOW_HOURS}.")
        try:
            history = self.store.query(sensor_id, window_hours)
        except StorageError as exc:
            self._log_failure(
                "Failed to query readings",
                exc,
                {"sensor_id": sensor_id, "window_hours": window_hours},
            )
            raise
        logger.debug(
            "Queried readings",
            extra={
                "sensor_id": sensor_id,
                "window_hours": window_hours,
                "point_count": len(history.data_points),
            },
        )
        return history

    def list_sensor_ids(self) -> list[str]:
        try:
            return self.store.list_sensor_ids()
        except StorageError as exc:
            self._log_failure("Failed to list sensors", exc, {})
            raise

    def is_healthy(self) -> bool:
        return self.store.ping()

    def shutdown(self) -> None:
        self.store.close()

    def _log_failure(self, message: str, exc: StorageError, context: dict) -> None:
        extra = dict(context, reason=str(exc), backend=self.backend)
        if isinstance(exc, UpstreamError):
            extra["status_code"] = exc.status_code
        logger.error(message, extra=extra)


def build_store(backend: Optional[str] = None) -> ReadingStore:
    settings = get_settings()
    selected = backend or settings.storage_backend
    if selected == BACKEND_METRICS:
        client = VictoriaMetricsClient(settings.metrics_url, timeout=settings.metrics_timeout)
        return MetricsReadingStore(client)
    return SqlReadingStore(create_sql_engine(settings.database_url))


@lru_cache
def build_default_service(backend: Optional[str] = None) -> ReadingService:
    """Factory that wires the service with the configured backend."""
    return ReadingService(build_store(backend))
