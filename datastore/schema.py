"""Relational schema: two dimension tables and one fact table."""

from __future__ import annotations

from sqlalchemy import BigInteger, Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class SensorRow(Base):
    __tablename__ = "sensors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sensor_id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)


class GatewayRow(Base):
    __tablename__ = "gateways"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    gateway_id: Mapped[str] = mapped_column(String(128), nullable=False)
    gateway_name: Mapped[str] = mapped_column(String(256), nullable=False)

    __table_args__ = (
        UniqueConstraint("gateway_id", "gateway_name", name="uq_gateways_id_name"),
    )


class ReadingRow(Base):
    """One ingested sample, keyed by (timestamp, sensor)."""

    __tablename__ = "readings"

    timestamp: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    sensor_ref: Mapped[int] = mapped_column(
        Integer, ForeignKey("sensors.id"), primary_key=True
    )
    gateway_ref: Mapped[int] = mapped_column(
        Integer, ForeignKey("gateways.id"), nullable=False
    )
    gravity: Mapped[float] = mapped_column(Float, nullable=False)
    tilt: Mapped[float] = mapped_column(Float, nullable=False)
    temp: Mapped[float] = mapped_column(Float, nullable=False)
    volt: Mapped[float] = mapped_column(Float, nullable=False)
    interval: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (Index("ix_readings_sensor_ref", "sensor_ref"),)
