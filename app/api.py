"""HTTP route definitions for the service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import (
    HealthResponse,
    ReadingSubmission,
    SensorDataResponse,
    SubmissionResponse,
)
from datastore.errors import StorageError
from models.records import MAX_WINDOW_HOURS
from services.readings import ReadingService, build_default_service
from settings import get_settings

router = APIRouter()


def get_service() -> ReadingService:
    return build_default_service()


# Storage calls block; plain ``def`` routes run in FastAPI's threadpool.


@router.post(
    "/api/readings",
    response_model=SubmissionResponse,
    summary="Store one reading relayed by a gateway.",
)
def submit_reading(
    submission: ReadingSubmission,
    service: ReadingService = Depends(get_service),
) -> SubmissionResponse:
    try:
        service.record(submission.reading.to_reading(), submission.gateway())
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store reading.",
        ) from exc
    return SubmissionResponse()


@router.get(
    "/api/sensors",
    response_model=List[str],
    summary="List every known sensor identifier in lexicographic order.",
)
def list_sensors(service: ReadingService = Depends(get_service)) -> List[str]:
    try:
        return service.list_sensor_ids()
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list sensors.",
        ) from exc


@router.get(
    "/api/readings/{sensor_id}",
    response_model=SensorDataResponse,
    summary="Fetch a sensor's readings over a lookback window.",
)
def get_sensor_readings(
    sensor_id: str,
    hours: Optional[int] = Query(
        None, ge=0, le=MAX_WINDOW_HOURS, description="Lookback window in hours."
    ),
    service: ReadingService = Depends(get_service),
) -> SensorDataResponse:
    window = hours if hours is not None else get_settings().default_window_hours
    try:
        history = service.history(sensor_id, window)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to query readings for sensor {sensor_id!r}.",
        ) from exc
    return SensorDataResponse.from_history(history)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Report whether the storage backend is reachable.",
)
def healthcheck(service: ReadingService = Depends(get_service)) -> HealthResponse:
    if not service.is_healthy():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Storage backend {service.backend!r} is unreachable.",
        )
    return HealthResponse(status="ok", backend=service.backend, time=datetime.now(timezone.utc))
