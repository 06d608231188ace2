"""Normalized relational backend: ingest writer and time-range reader."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from sqlalchemy import Engine, create_engine, event, select, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from datastore.base import wall_clock_ms
from datastore.dimensions import DimensionResolver
from datastore.errors import PersistenceError, StorageStartupError
from datastore.schema import Base, GatewayRow, ReadingRow, SensorRow
from models.records import (
    DataPoint,
    GatewayIdentity,
    Reading,
    SensorHistory,
    window_start_ms,
)

logger = logging.getLogger(__name__)

_SQLITE_BUSY_TIMEOUT_SECONDS = 30.0


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_sql_engine(database_url: str) -> Engine:
    """Build an engine; SQLite gets foreign keys and a busy timeout."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True)

    if url.database in (None, "", ":memory:"):
        # One shared connection, otherwise every checkout sees an empty database.
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            url,
            connect_args={
                "check_same_thread": False,
                "timeout": _SQLITE_BUSY_TIMEOUT_SECONDS,
            },
        )
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class SqlReadingStore:
    """Stores readings as fact rows referencing sensor and gateway dimensions."""

    name = "sql"

    def __init__(self, engine: Engine, clock: Callable[[], int] = wall_clock_ms) -> None:
        self.engine = engine
        self.clock = clock
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def initialize(self) -> None:
        """Create the schema, and the SQLite file's directory when needed."""
        try:
            database = self.engine.url.database
            if self.engine.dialect.name == "sqlite" and database not in (None, "", ":memory:"):
                Path(database).parent.mkdir(parents=True, exist_ok=True)
            Base.metadata.create_all(self.engine)
        except (OSError, SQLAlchemyError) as exc:
            raise StorageStartupError(
                f"Could not initialize database at {self.engine.url!r}: {exc}"
            ) from exc

    def record(self, reading: Reading, gateway: GatewayIdentity) -> int:
        timestamp = self.clock()
        try:
            with self._sessions.begin() as session:
                resolver = DimensionResolver(session)
                sensor_ref = resolver.resolve_sensor(reading.sensor_id)
                gateway_ref = resolver.resolve_gateway(gateway.gateway_id, gateway.gateway_name)
                session.add(
                    ReadingRow(
                        timestamp=timestamp,
                        sensor_ref=sensor_ref,
                        gateway_ref=gateway_ref,
                        gravity=reading.gravity,
                        tilt=reading.tilt,
                        temp=reading.temp,
                        volt=reading.volt,
                        interval=reading.interval,
                    )
                )
        except (SQLAlchemyError, OverflowError) as exc:
            raise PersistenceError(
                f"Failed to store reading for sensor {reading.sensor_id!r}."
            ) from exc
        return timestamp

    def query(self, sensor_id: str, window_hours: int) -> SensorHistory:
        history = SensorHistory(sensor_id=sensor_id)
        if window_hours <= 0:
            return history

        boundary = window_start_ms(self.clock(), window_hours)
        statement = (
            select(
                ReadingRow.timestamp,
                ReadingRow.gravity,
                ReadingRow.tilt,
                ReadingRow.temp,
                ReadingRow.volt,
                ReadingRow.interval,
                GatewayRow.gateway_id,
                GatewayRow.gateway_name,
            )
            .join(SensorRow, ReadingRow.sensor_ref == SensorRow.id)
            .join(GatewayRow, ReadingRow.gateway_ref == GatewayRow.id)
            .where(SensorRow.sensor_id == sensor_id, ReadingRow.timestamp >= boundary)
            .order_by(ReadingRow.timestamp)
        )
        try:
            with self._sessions() as session:
                rows = session.execute(statement).all()
        except (SQLAlchemyError, OverflowError) as exc:
            raise PersistenceError(f"Failed to query readings for sensor {sensor_id!r}.") from exc

        for row in rows:
            history.data_points.append(
                DataPoint(
                    timestamp=row.timestamp,
                    gravity=row.gravity,
                    tilt=row.tilt,
                    temp=row.temp,
                    volt=row.volt,
                    interval=row.interval,
                )
            )
            history.gateway = GatewayIdentity(row.gateway_id, row.gateway_name)
        return history

    def list_sensor_ids(self) -> list[str]:
        statement = select(SensorRow.sensor_id).distinct().order_by(SensorRow.sensor_id)
        try:
            with self._sessions() as session:
                return list(session.execute(statement).scalars())
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to list sensors.") from exc

    def ping(self) -> bool:
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning("Database ping failed", extra={"reason": str(exc), "backend": self.name})
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()
