"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import math
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import Reading
from services.aggregator import Summary
from services.classifier import AirQualityStatus, ClassificationResult
from services.dashboard import DashboardSnapshot, SourceStatus


def _finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


class ReadingOut(BaseModel):
    """One row of the raw log table."""

    timestamp: datetime
    temperature: Optional[float] = Field(None, description="Degrees Celsius; null when unparseable.")
    humidity: Optional[float] = Field(None, description="Relative humidity in percent; null when unparseable.")

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingOut":
        return cls(
            timestamp=reading.timestamp,
            temperature=_finite_or_none(reading.temperature),
            humidity=_finite_or_none(reading.humidity),
        )


class SummaryOut(BaseModel):
    """Statistics over the window, rounded to two decimals for display."""

    avg: float
    min: float
    max: float
    count: int = Field(..., ge=0)

    @classmethod
    def from_summary(cls, summary: Summary) -> "SummaryOut":
        return cls(
            avg=round(summary.avg, 2),
            min=round(summary.min, 2),
            max=round(summary.max, 2),
            count=summary.count,
        )


class ClassificationOut(BaseModel):
    status: AirQualityStatus
    color: str

    @classmethod
    def from_result(cls, result: ClassificationResult) -> "ClassificationOut":
        return cls(status=result.status, color=result.color)


class DashboardResponse(BaseModel):
    """Read-only view of the current dashboard state."""

    now: datetime
    status: SourceStatus
    error: Optional[str] = None
    window_hours: float
    latest_reading: Optional[ReadingOut] = None
    classification: Optional[ClassificationOut] = None
    temperature_summary: SummaryOut
    humidity_summary: SummaryOut
    total_readings: int = Field(..., ge=0)
    windowed_series: List[ReadingOut] = Field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: DashboardSnapshot, window_hours: float) -> "DashboardResponse":
        latest = snapshot.latest_reading
        classification = snapshot.classification
        return cls(
            now=snapshot.now,
            status=snapshot.status,
            error=snapshot.error,
            window_hours=window_hours,
            latest_reading=ReadingOut.from_reading(latest) if latest else None,
            classification=ClassificationOut.from_result(classification) if classification else None,
            temperature_summary=SummaryOut.from_summary(snapshot.temperature_summary),
            humidity_summary=SummaryOut.from_summary(snapshot.humidity_summary),
            total_readings=snapshot.total_readings,
            windowed_series=[ReadingOut.from_reading(reading) for reading in snapshot.windowed_series],
        )


class ReadingsResponse(BaseModel):
    windowed: bool
    count: int = Field(..., ge=0)
    readings: List[ReadingOut] = Field(default_factory=list)


class StreamReadingIn(BaseModel):
    """Payload written to the push store for one reading key."""

    temperature: float = Field(..., description="Degrees Celsius.")
    humidity: float = Field(..., description="Relative humidity in percent.")

    def to_entry(self) -> dict[str, float]:
        return {"Temperature": self.temperature, "Humidity": self.humidity}
