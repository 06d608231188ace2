"""Domain models shared across storage backends and services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

MILLIS_PER_HOUR = 60 * 60 * 1000
# Bounds of the integer columns the readings are stored in.
MAX_INTERVAL_SECONDS = 2_147_483_647
MAX_WINDOW_HOURS = 100 * 365 * 24


@dataclass(slots=True)
class Reading:
    """One decoded hydrometer sample as forwarded by a gateway."""

    sensor_id: str
    gravity: float
    tilt: float
    temp: float
    volt: float
    interval: int


@dataclass(frozen=True, slots=True)
class GatewayIdentity:
    """Natural key of a relay gateway; the name is part of the identity."""

    gateway_id: str
    gateway_name: str


@dataclass(slots=True)
class DataPoint:
    """Query-time bundle of every field recorded at one timestamp.

    Fields missing from a reconstructed record keep their zero value.
    """

    timestamp: int
    gravity: float = 0.0
    tilt: float = 0.0
    temp: float = 0.0
    volt: float = 0.0
    interval: int = 0


@dataclass(slots=True)
class SensorHistory:
    sensor_id: str
    gateway: Optional[GatewayIdentity] = None
    data_points: List[DataPoint] = field(default_factory=list)


def window_start_ms(now_ms: int, hours: int) -> int:
    """Oldest timestamp (inclusive) covered by a lookback of ``hours``."""
    return now_ms - hours * MILLIS_PER_HOUR
