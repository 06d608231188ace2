"""Get-or-create resolution of sensor and gateway natural keys."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Sequence

from sqlalchemy import insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from datastore.errors import PersistenceError
from datastore.schema import Base, GatewayRow, SensorRow

logger = logging.getLogger(__name__)

# Dialects with a native INSERT .. ON CONFLICT DO NOTHING.
_CONFLICT_FREE_INSERTS: Dict[str, Callable[..., Any]] = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class DimensionResolver:
    """Map natural keys to internal ids inside the caller's transaction.

    Nothing here commits: rows created by the resolver live and die with the
    session's enclosing unit of work.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        dialect = session.get_bind().dialect.name
        self._conflict_free_insert = _CONFLICT_FREE_INSERTS.get(dialect)

    def resolve_sensor(self, sensor_id: str) -> int:
        return self._resolve(SensorRow, {"sensor_id": sensor_id})

    def resolve_gateway(self, gateway_id: str, gateway_name: str) -> int:
        return self._resolve(
            GatewayRow, {"gateway_id": gateway_id, "gateway_name": gateway_name}
        )

    def _resolve(self, model: type[Base], key: Dict[str, str]) -> int:
        try:
            identifier = self._lookup(model, key)
            if identifier is not None:
                return identifier

            created = self._insert_if_absent(model, key)
            identifier = self._lookup(model, key)
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"Failed to resolve {model.__tablename__} row for {key!r}."
            ) from exc

        if identifier is None:
            raise PersistenceError(
                f"{model.__tablename__} row for {key!r} vanished after insert."
            )
        if created:
            logger.info(
                "Created %s dimension row",
                model.__tablename__,
                extra={
                    "sensor_id": key.get("sensor_id"),
                    "gateway_id": key.get("gateway_id"),
                    "gateway_name": key.get("gateway_name"),
                },
            )
        return identifier

    def _lookup(self, model: type[Base], key: Dict[str, str]) -> Optional[int]:
        conditions = [getattr(model, column) == value for column, value in key.items()]
        return self.session.execute(
            select(model.id).where(*conditions)  # type: ignore[attr-defined]
        ).scalar_one_or_none()

    def _insert_if_absent(self, model: type[Base], key: Dict[str, str]) -> bool:
        """Insert ``key`` unless a row already holds it; report whether we created it."""
        columns: Sequence[str] = list(key)
        if self._conflict_free_insert is not None:
            statement = (
                self._conflict_free_insert(model)
                .values(**key)
                .on_conflict_do_nothing(index_elements=columns)
            )
            return self.session.execute(statement).rowcount == 1

        # A concurrent writer may commit the same key first; the savepoint
        # keeps the outer unit of work usable for the re-read.
        try:
            with self.session.begin_nested():
                self.session.execute(insert(model).values(**key))
        except IntegrityError:
            return False
        return True
