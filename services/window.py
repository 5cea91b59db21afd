"""Trailing time-window selection over a reading series."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from models.records import Reading, ReadingSeries

DEFAULT_WINDOW_HOURS = 24.0


def window(
    series: Iterable[Reading],
    now: datetime,
    duration_hours: float = DEFAULT_WINDOW_HOURS,
) -> ReadingSeries:
    """Return the readings stamped strictly after ``now - duration_hours``.

    Relative order is preserved; the series is not re-sorted.
    """
    cutoff = now - timedelta(hours=duration_hours)
    return tuple(reading for reading in series if reading.timestamp > cutoff)
