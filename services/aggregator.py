"""Aggregation logic for telemetry readings."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from models.records import Reading


class Metric(str, Enum):
    """Reading fields that can be summarized."""

    temperature = "temperature"
    humidity = "humidity"


@dataclass(frozen=True)
class Summary:
    """Average, minimum and maximum of one metric over a series."""

    avg: float = 0.0
    min: float = 0.0
    max: float = 0.0
    count: int = 0


EMPTY_SUMMARY = Summary()


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def summarize(self, readings: Iterable[Reading], metric: Metric | str) -> Summary:
        field_name = Metric(metric).value
        count = 0
        total = 0.0
        lowest = math.inf
        highest = -math.inf

        for reading in readings:
            value = getattr(reading, field_name)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                continue
            count += 1
            total += value
            if value < lowest:
                lowest = value
            if value > highest:
                highest = value

        if not count:
            return EMPTY_SUMMARY
        return Summary(avg=total / count, min=lowest, max=highest, count=count)
