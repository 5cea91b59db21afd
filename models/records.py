"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Tuple


@dataclass(frozen=True, slots=True)
class Reading:
    """A single normalized telemetry reading.

    ``timestamp`` is always timezone-aware UTC. A metric that could not be
    parsed is stored as NaN so the other metric of the record still counts.
    """

    timestamp: datetime
    temperature: float
    humidity: float


@dataclass(slots=True)
class RawRecord:
    """A record as delivered by a source, before normalization.

    ``row_number`` is set for tabular snapshots (header row = 1) and ``key``
    for entries pushed to the key-value store.
    """

    timestamp: Any
    temperature: Any
    humidity: Any
    row_number: Optional[int] = None
    key: Optional[str] = None


ReadingSeries = Tuple[Reading, ...]
