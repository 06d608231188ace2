"""Get-or-create behavior of the dimension resolver, sequential and concurrent."""

from __future__ import annotations

import itertools
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from datastore.dimensions import DimensionResolver
from datastore.schema import GatewayRow, SensorRow
from datastore.sql_store import SqlReadingStore, create_sql_engine
from models.records import GatewayIdentity, Reading


@pytest.fixture()
def store(tmp_path: Path):
    counter = itertools.count(1_700_000_000_000)
    sql_store = SqlReadingStore(
        create_sql_engine(f"sqlite:///{tmp_path / 'dimensions.db'}"),
        clock=lambda: next(counter),
    )
    sql_store.initialize()
    yield sql_store
    sql_store.close()


def _count(store: SqlReadingStore, model) -> int:
    with store.engine.connect() as connection:
        return connection.execute(select(func.count()).select_from(model)).scalar_one()


def test_resolving_the_same_key_twice_returns_the_same_id(store: SqlReadingStore) -> None:
    sessions = sessionmaker(bind=store.engine)
    with sessions.begin() as session:
        resolver = DimensionResolver(session)
        first_sensor = resolver.resolve_sensor("RED")
        second_sensor = resolver.resolve_sensor("RED")
        first_gateway = resolver.resolve_gateway("gw-1", "Cellar")
        second_gateway = resolver.resolve_gateway("gw-1", "Cellar")

    with sessions.begin() as session:
        resolver = DimensionResolver(session)
        assert resolver.resolve_sensor("RED") == first_sensor
        assert resolver.resolve_gateway("gw-1", "Cellar") == first_gateway

    assert first_sensor == second_sensor
    assert first_gateway == second_gateway
    assert _count(store, SensorRow) == 1
    assert _count(store, GatewayRow) == 1


def test_gateway_identity_includes_the_name(store: SqlReadingStore) -> None:
    sessions = sessionmaker(bind=store.engine)
    with sessions.begin() as session:
        resolver = DimensionResolver(session)
        original = resolver.resolve_gateway("gw-1", "Cellar")
        renamed = resolver.resolve_gateway("gw-1", "Basement")

    assert original != renamed
    assert _count(store, GatewayRow) == 2


def test_uncommitted_resolution_is_rolled_back(store: SqlReadingStore) -> None:
    sessions = sessionmaker(bind=store.engine)
    with sessions() as session:
        DimensionResolver(session).resolve_sensor("GHOST")
        session.rollback()

    assert _count(store, SensorRow) == 0


def test_concurrent_ingests_for_the_same_new_sensor_all_succeed(store: SqlReadingStore) -> None:
    workers = 8
    barrier = threading.Barrier(workers)
    gateway = GatewayIdentity("gw-1", "Cellar")

    def ingest(index: int) -> int:
        barrier.wait(timeout=5)
        reading = Reading(
            sensor_id="PURPLE", gravity=1.0 + index / 1000, tilt=25.0, temp=20.0, volt=4.0, interval=60
        )
        return store.record(reading, gateway)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        timestamps = list(executor.map(ingest, range(workers)))

    assert len(set(timestamps)) == workers
    assert _count(store, SensorRow) == 1
    assert _count(store, GatewayRow) == 1
    assert len(store.query("PURPLE", 1).data_points) == workers


def test_concurrent_ingests_for_distinct_new_sensors(store: SqlReadingStore) -> None:
    barrier = threading.Barrier(2)

    def ingest(sensor_id: str) -> int:
        barrier.wait(timeout=5)
        reading = Reading(sensor_id=sensor_id, gravity=1.040, tilt=40.0, temp=18.0, volt=3.7, interval=900)
        return store.record(reading, GatewayIdentity("gw-1", "Cellar"))

    with ThreadPoolExecutor(max_workers=2) as executor:
        list(executor.map(ingest, ["BLACK", "PINK"]))

    assert store.list_sensor_ids() == ["BLACK", "PINK"]
    assert _count(store, SensorRow) == 2
    assert len(store.query("BLACK", 1).data_points) == 1
    assert len(store.query("PINK", 1).data_points) == 1
