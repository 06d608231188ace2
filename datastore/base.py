"""Storage contract shared by the relational and split-series backends."""

from __future__ import annotations

import time
from typing import Protocol

from models.records import GatewayIdentity, Reading, SensorHistory


def wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class ReadingStore(Protocol):
    """Protocol for reading storage backends."""

    name: str

    def initialize(self) -> None:
        ...

    def record(self, reading: Reading, gateway: GatewayIdentity) -> int:
        """Persist one reading and return the server-assigned timestamp."""
        ...

    def query(self, sensor_id: str, window_hours: int) -> SensorHistory:
        ...

    def list_sensor_ids(self) -> list[str]:
        ...

    def ping(self) -> bool:
        ...

    def close(self) -> None:
        ...
