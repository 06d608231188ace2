"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models.records import (
    MAX_INTERVAL_SECONDS,
    DataPoint,
    GatewayIdentity,
    Reading,
    SensorHistory,
)


class CamelModel(BaseModel):
    """Serializes with camelCase keys and accepts either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReadingPayload(CamelModel):
    """Decoded hydrometer values as relayed by the gateway."""

    sensor_id: str = Field(..., min_length=1, max_length=128)
    gravity: float = Field(..., allow_inf_nan=False)
    tilt: float = Field(..., allow_inf_nan=False)
    temp: float = Field(..., allow_inf_nan=False)
    volt: float = Field(..., allow_inf_nan=False)
    interval: int = Field(
        ..., ge=0, le=MAX_INTERVAL_SECONDS, description="Sampling interval in seconds."
    )

    def to_reading(self) -> Reading:
        return Reading(
            sensor_id=self.sensor_id,
            gravity=self.gravity,
            tilt=self.tilt,
            temp=self.temp,
            volt=self.volt,
            interval=self.interval,
        )


class ReadingSubmission(CamelModel):
    reading: ReadingPayload
    gateway_id: str = Field(..., min_length=1, max_length=128)
    gateway_name: str = Field(..., max_length=256)

    def gateway(self) -> GatewayIdentity:
        return GatewayIdentity(gateway_id=self.gateway_id, gateway_name=self.gateway_name)


class SubmissionResponse(BaseModel):
    status: str = "success"


class DataPointSchema(CamelModel):
    timestamp: int = Field(..., description="Server-assigned epoch milliseconds.")
    gravity: float = 0.0
    tilt: float = 0.0
    temp: float = 0.0
    volt: float = 0.0
    interval: int = 0

    @classmethod
    def from_point(cls, point: DataPoint) -> "DataPointSchema":
        return cls(
            timestamp=point.timestamp,
            gravity=point.gravity,
            tilt=point.tilt,
            temp=point.temp,
            volt=point.volt,
            interval=point.interval,
        )


class SensorDataResponse(CamelModel):
    """Ordered history for one sensor plus the gateway that relayed it."""

    sensor_id: str
    gateway_id: str = ""
    gateway_name: str = ""
    data_points: List[DataPointSchema] = Field(default_factory=list)

    @classmethod
    def from_history(cls, history: SensorHistory) -> "SensorDataResponse":
        gateway = history.gateway
        return cls(
            sensor_id=history.sensor_id,
            gateway_id=gateway.gateway_id if gateway else "",
            gateway_name=gateway.gateway_name if gateway else "",
            data_points=[DataPointSchema.from_point(point) for point in history.data_points],
        )


class HealthResponse(BaseModel):
    status: str
    backend: str
    time: datetime
