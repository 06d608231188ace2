from __future__ import annotations

import logging

import pytest

from datastore.errors import PersistenceError, UpstreamError
from datastore.sql_store import SqlReadingStore, create_sql_engine
from metrics.store import MetricsReadingStore
from models.records import MAX_WINDOW_HOURS, GatewayIdentity, Reading, SensorHistory
from services.readings import ReadingService, build_default_service, build_store
from settings import get_settings

GATEWAY = GatewayIdentity("gw-1", "Cellar")
READING = Reading(sensor_id="RED", gravity=1.05, tilt=30.0, temp=20.0, volt=3.9, interval=900)


class RecordingStore:
    name = "recording"

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.queries: list[tuple[str, int]] = []

    def initialize(self) -> None:
        return None

    def record(self, reading: Reading, gateway: GatewayIdentity) -> int:
        if self.error:
            raise self.error
        return 1

    def query(self, sensor_id: str, window_hours: int) -> SensorHistory:
        if self.error:
            raise self.error
        self.queries.append((sensor_id, window_hours))
        return SensorHistory(sensor_id=sensor_id)

    def list_sensor_ids(self) -> list[str]:
        return []

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        return None


def test_negative_window_is_rejected_before_storage() -> None:
    store = RecordingStore()
    service = ReadingService(store)

    with pytest.raises(ValueError):
        service.history("RED", -1)

    assert store.queries == []


def test_window_beyond_maximum_is_rejected_before_storage() -> None:
    store = RecordingStore()
    service = ReadingService(store)

    with pytest.raises(ValueError):
        service.history("RED", MAX_WINDOW_HOURS + 1)

    service.history("RED", MAX_WINDOW_HOURS)
    assert store.queries == [("RED", MAX_WINDOW_HOURS)]


def test_record_logs_accepted_reading(caplog) -> None:
    service = ReadingService(RecordingStore())

    with caplog.at_level(logging.INFO):
        service.record(READING, GATEWAY)

    records = [record for record in caplog.records if record.name == "services.readings"]
    assert records
    assert getattr(records[0], "sensor_id", None) == "RED"
    assert getattr(records[0], "gateway_name", None) == "Cellar"


def test_storage_failures_are_logged_and_propagated(caplog) -> None:
    service = ReadingService(RecordingStore(error=UpstreamError("down", status_code=502)))

    with caplog.at_level(logging.ERROR):
        with pytest.raises(UpstreamError):
            service.history("RED", 24)

    errors = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert len(errors) == 1
    assert getattr(errors[0], "status_code", None) == 502
    assert getattr(errors[0], "window_hours", None) == 24


def test_persistence_failure_on_record_propagates_unchanged() -> None:
    error = PersistenceError("constraint")
    service = ReadingService(RecordingStore(error=error))

    with pytest.raises(PersistenceError) as exc_info:
        service.record(READING, GATEWAY)

    assert exc_info.value is error


def test_build_store_selects_backend(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("TILTED_DATABASE_URL", f"sqlite:///{tmp_path / 'select.db'}")
    get_settings.cache_clear()
    try:
        sql_store = build_store("sql")
        metrics_store = build_store("metrics")
        try:
            assert isinstance(sql_store, SqlReadingStore)
            assert isinstance(metrics_store, MetricsReadingStore)
            assert metrics_store.client.base_url == "http://victoriametrics:8428"
        finally:
            sql_store.close()
            metrics_store.close()
    finally:
        get_settings.cache_clear()


def test_default_service_is_cached(monkeypatch) -> None:
    monkeypatch.setenv("TILTED_STORAGE_BACKEND", "metrics")
    get_settings.cache_clear()
    build_default_service.cache_clear()
    try:
        first = build_default_service()
        assert first is build_default_service()
        assert first.backend == "metrics"
    finally:
        build_default_service().shutdown()
        build_default_service.cache_clear()
        get_settings.cache_clear()


def test_sql_service_end_to_end(tmp_path) -> None:
    service = ReadingService(SqlReadingStore(create_sql_engine(f"sqlite:///{tmp_path / 'svc.db'}")))
    service.initialize()

    service.record(READING, GATEWAY)

    assert service.list_sensor_ids() == ["RED"]
    assert service.is_healthy() is True
    assert len(service.history("RED", 1).data_points) == 1
    service.shutdown()
