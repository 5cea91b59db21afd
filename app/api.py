"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.schemas import DashboardResponse, ReadingOut, ReadingsResponse, StreamReadingIn
from datastore.realtime_db import MockRealtimeDatabase, build_default_database
from services.dashboard import DashboardService, build_default_dashboard
from settings import SOURCE_STREAM, Settings, get_settings

router = APIRouter()


def get_dashboard() -> DashboardService:
    return build_default_dashboard()


def get_stream_database(settings: Settings = Depends(get_settings)) -> MockRealtimeDatabase:
    if settings.source_kind != SOURCE_STREAM:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Push store is disabled while the snapshot source is configured.",
        )
    return build_default_database()


def _reading_path(settings: Settings, reading_key: str) -> str:
    key = reading_key.strip()
    if not key or "/" in key:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Reading key must be a non-empty single path segment.",
        )
    return f"{settings.stream_path}/{key}"


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Latest reading, rolling-window summaries and air-quality status.",
)
async def get_dashboard_state(
    dashboard: DashboardService = Depends(get_dashboard),
) -> DashboardResponse:
    return DashboardResponse.from_snapshot(dashboard.snapshot(), dashboard.window_hours)


@router.get(
    "/readings",
    response_model=ReadingsResponse,
    summary="Raw reading log, limited to the rolling window by default.",
)
async def list_readings(
    windowed: bool = Query(True, description="Only return readings inside the rolling window."),
    dashboard: DashboardService = Depends(get_dashboard),
) -> ReadingsResponse:
    series = dashboard.snapshot().windowed_series if windowed else dashboard.store.get()
    return ReadingsResponse(
        windowed=windowed,
        count=len(series),
        readings=[ReadingOut.from_reading(reading) for reading in series],
    )


@router.put(
    "/stream/readings/{reading_key}",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Write one reading into the push store.",
)
async def put_stream_reading(
    reading_key: str,
    payload: StreamReadingIn,
    settings: Settings = Depends(get_settings),
    database: MockRealtimeDatabase = Depends(get_stream_database),
) -> dict[str, str]:
    database.set(_reading_path(settings, reading_key), payload.to_entry())
    return {"status": "accepted", "key": reading_key}


@router.delete(
    "/stream/readings/{reading_key}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove one reading from the push store.",
)
async def delete_stream_reading(
    reading_key: str,
    settings: Settings = Depends(get_settings),
    database: MockRealtimeDatabase = Depends(get_stream_database),
) -> Response:
    if not database.remove(_reading_path(settings, reading_key)):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Reading {reading_key!r} not found.",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /dashboard for current telemetry."}
