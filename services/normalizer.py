"""Conversion of raw source records into canonical readings."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any

from models.records import RawRecord, Reading
from services.errors import MalformedRecordError

_SECONDS_PER_DAY = 86400
# Serial 1 is 1900-01-01. Serial 60 is the 1900-02-29 that spreadsheets
# inherited from Lotus; later serials are one day ahead of the real calendar.
_SERIAL_EPOCH = datetime(1899, 12, 31, tzinfo=timezone.utc)
_PHANTOM_LEAP_DAY = 60
# 9999-12-31, the last day a spreadsheet serial can name.
_MAX_SERIAL = 2958465


def normalize_timestamp(raw: Any) -> datetime:
    """Return the UTC instant identified by ``raw``.

    Numbers (and numeric strings) are spreadsheet serial dates whose wall-clock
    fields are taken as UTC. Other strings are ISO-8601 keys. Anything else, or
    a string that does not parse, raises :class:`MalformedRecordError`.
    """
    if isinstance(raw, datetime):
        return _as_utc(raw)

    serial = _as_serial(raw)
    if serial is not None:
        return serial_to_datetime(serial)

    if not isinstance(raw, str):
        raise MalformedRecordError("invalid timestamp", invalid_value=raw)
    return parse_iso_timestamp(raw)


def serial_to_datetime(serial: float) -> datetime:
    if not math.isfinite(serial) or serial < 0:
        raise MalformedRecordError("invalid timestamp", invalid_value=serial)
    if serial > _MAX_SERIAL:
        raise MalformedRecordError("timestamp outside calendar", invalid_value=serial)

    days = int(serial)
    fraction = _SECONDS_PER_DAY * (serial - days)
    seconds = math.floor(fraction)
    if fraction - seconds > 0.9999:
        seconds += 1
        if seconds == _SECONDS_PER_DAY:
            seconds = 0
            days += 1

    if days == 0 or days == _PHANTOM_LEAP_DAY:
        raise MalformedRecordError("timestamp outside calendar", invalid_value=serial)
    if days > _PHANTOM_LEAP_DAY:
        days -= 1

    try:
        return _SERIAL_EPOCH + timedelta(days=days, seconds=seconds)
    except (OverflowError, ValueError) as exc:
        raise MalformedRecordError("timestamp outside calendar", invalid_value=serial) from exc


def parse_iso_timestamp(value: str) -> datetime:
    candidate = value.strip()
    if not candidate:
        raise MalformedRecordError("missing timestamp", invalid_value=value)

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise MalformedRecordError("invalid timestamp", invalid_value=value) from exc

    return _as_utc(parsed)


def parse_metric(raw: Any) -> float:
    """Return ``raw`` as a float, or NaN when it is missing or non-numeric."""
    if raw is None or isinstance(raw, bool):
        return math.nan
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            return math.nan
    return math.nan


def normalize_record(record: RawRecord) -> Reading:
    timestamp = normalize_timestamp(record.timestamp)
    temperature = parse_metric(record.temperature)
    humidity = parse_metric(record.humidity)
    if math.isnan(temperature) and math.isnan(humidity):
        raise MalformedRecordError(
            "no numeric metrics",
            invalid_value=(record.temperature, record.humidity),
        )
    return Reading(timestamp=timestamp, temperature=temperature, humidity=humidity)


def _as_serial(raw: Any) -> float | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            return None
    return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
