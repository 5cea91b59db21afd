"""Three-tier air-quality classification of a temperature/humidity pair."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from models.records import Reading


class AirQualityStatus(str, Enum):
    good = "Good"
    moderate = "Moderate"
    poor = "Poor"


@dataclass(frozen=True)
class ClassificationResult:
    status: AirQualityStatus
    color: str


_COLORS = {
    AirQualityStatus.good: "#c8e6c9",
    AirQualityStatus.moderate: "#fff9c4",
    AirQualityStatus.poor: "#ffcdd2",
}


def _result(status: AirQualityStatus) -> ClassificationResult:
    return ClassificationResult(status=status, color=_COLORS[status])


def classify(temperature: float, humidity: float) -> ClassificationResult:
    """Classify comfort bands, first match wins.

    Good needs both metrics inside their comfort band. Moderate needs either
    metric in its boundary band, whatever the other one does. NaN compares
    false everywhere and therefore lands in Poor.
    """
    if 18 <= temperature <= 28 and 30 <= humidity <= 60:
        return _result(AirQualityStatus.good)
    if (
        16 <= temperature < 18
        or 28 < temperature <= 32
        or 25 <= humidity < 30
        or 60 < humidity <= 70
    ):
        return _result(AirQualityStatus.moderate)
    return _result(AirQualityStatus.poor)


def classify_reading(reading: Optional[Reading]) -> Optional[ClassificationResult]:
    if reading is None:
        return None
    return classify(reading.temperature, reading.humidity)
