"""Unit tests for timestamp and record normalization."""

from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest

from models.records import RawRecord
from services.errors import MalformedRecordError
from services.normalizer import normalize_record, normalize_timestamp, parse_metric


def _utc(*fields: int) -> datetime:
    return datetime(*fields, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("serial", "expected"),
    [
        (45292, _utc(2024, 1, 1)),
        (45292.5, _utc(2024, 1, 1, 12)),
        ("45292.75", _utc(2024, 1, 1, 18)),
        (45292 + 49530 / 86400, _utc(2024, 1, 1, 13, 45, 30)),
        (1, _utc(1900, 1, 1)),
        (59, _utc(1900, 2, 28)),
        (61, _utc(1900, 3, 1)),
    ],
)
def test_serial_dates_decompose_without_timezone_shift(serial, expected) -> None:
    result = normalize_timestamp(serial)

    assert result == expected
    assert result.utcoffset().total_seconds() == 0


def test_serial_just_before_midnight_rounds_into_next_day() -> None:
    assert normalize_timestamp(45292.99999999) == _utc(2024, 1, 2)


@pytest.mark.parametrize("serial", [0, 60, -1, float("nan"), float("inf"), "nan"])
def test_serials_without_a_calendar_date_are_rejected(serial) -> None:
    with pytest.raises(MalformedRecordError):
        normalize_timestamp(serial)


def test_last_representable_serial_is_the_end_of_year_9999() -> None:
    assert normalize_timestamp(2958465) == _utc(9999, 12, 31)


@pytest.mark.parametrize("serial", [2958465.5, 2958466, 3000000, "99999999", 1e300])
def test_serials_past_the_end_of_the_calendar_are_rejected(serial) -> None:
    with pytest.raises(MalformedRecordError) as excinfo:
        normalize_timestamp(serial)

    assert excinfo.value.reason == "timestamp outside calendar"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-01-01T00:00:00Z", _utc(2024, 1, 1)),
        ("2024-01-01T02:30:00+02:00", _utc(2024, 1, 1, 0, 30)),
        ("2024-01-01 05:00:00", _utc(2024, 1, 1, 5)),
        (datetime(2024, 3, 1, 8, 0), _utc(2024, 3, 1, 8)),
    ],
)
def test_string_keys_parse_to_utc_instants(raw, expected) -> None:
    assert normalize_timestamp(raw) == expected


def test_malformed_string_timestamp_is_rejected() -> None:
    with pytest.raises(MalformedRecordError) as excinfo:
        normalize_timestamp("not-a-timestamp")

    assert excinfo.value.reason == "invalid timestamp"
    assert excinfo.value.invalid_value == "not-a-timestamp"


def test_blank_timestamp_reports_missing() -> None:
    with pytest.raises(MalformedRecordError) as excinfo:
        normalize_timestamp("   ")

    assert excinfo.value.reason == "missing timestamp"


@pytest.mark.parametrize("raw", [True, None, {"seconds": 1}])
def test_non_numeric_non_string_timestamps_are_rejected(raw) -> None:
    with pytest.raises(MalformedRecordError):
        normalize_timestamp(raw)


def test_parse_metric_handles_numbers_strings_and_garbage() -> None:
    assert parse_metric(21) == 21.0
    assert parse_metric(" 40.5 ") == 40.5
    assert math.isnan(parse_metric("warm"))
    assert math.isnan(parse_metric(None))
    assert math.isnan(parse_metric(False))


def test_normalize_record_keeps_the_parseable_metric() -> None:
    reading = normalize_record(
        RawRecord(timestamp="2024-01-01T00:00:00Z", temperature="n/a", humidity="40")
    )

    assert reading.timestamp == _utc(2024, 1, 1)
    assert math.isnan(reading.temperature)
    assert reading.humidity == 40.0


def test_normalize_record_rejects_records_without_metrics() -> None:
    with pytest.raises(MalformedRecordError) as excinfo:
        normalize_record(RawRecord(timestamp=45292, temperature=None, humidity="dry"))

    assert excinfo.value.reason == "no numeric metrics"
