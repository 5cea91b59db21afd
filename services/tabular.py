"""Parsing of exported spreadsheet payloads into raw records."""

from __future__ import annotations

import csv
import io
from typing import Any, Dict, Iterable, List, Optional, Sequence

from openpyxl import load_workbook

from models.records import RawRecord

TIMESTAMP_COLUMN = "timestamp"
TEMPERATURE_COLUMN = "temperature"
HUMIDITY_COLUMN = "humidity"
_REQUIRED_COLUMNS = (TIMESTAMP_COLUMN, TEMPERATURE_COLUMN, HUMIDITY_COLUMN)

_ZIP_MAGIC = b"PK\x03\x04"


def parse_table(payload: bytes) -> List[RawRecord]:
    """Parse a CSV or XLSX export, reading the first sheet only.

    Raises ``ValueError`` when the payload has no header row or is missing one
    of the required columns.
    """
    if payload.startswith(_ZIP_MAGIC):
        rows = _xlsx_rows(payload)
    else:
        rows = _csv_rows(payload)
    return _rows_to_records(rows)


def _csv_rows(payload: bytes) -> Iterable[Sequence[Any]]:
    text = payload.decode("utf-8-sig")
    return list(csv.reader(io.StringIO(text)))


def _xlsx_rows(payload: bytes) -> Iterable[Sequence[Any]]:
    workbook = load_workbook(io.BytesIO(payload), read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        return [tuple(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _rows_to_records(rows: Iterable[Sequence[Any]]) -> List[RawRecord]:
    iterator = iter(rows)
    header = next(iterator, None)
    if not header or all(_is_blank(cell) for cell in header):
        raise ValueError("Snapshot is missing a header row.")

    columns = _locate_columns(header)
    records: List[RawRecord] = []
    for row_number, row in enumerate(iterator, start=2):
        if all(_is_blank(cell) for cell in row):
            continue
        records.append(
            RawRecord(
                timestamp=_cell(row, columns[TIMESTAMP_COLUMN]),
                temperature=_cell(row, columns[TEMPERATURE_COLUMN]),
                humidity=_cell(row, columns[HUMIDITY_COLUMN]),
                row_number=row_number,
            )
        )
    return records


def _locate_columns(header: Sequence[Any]) -> Dict[str, int]:
    normalized = {
        str(name).strip().lower(): index
        for index, name in enumerate(header)
        if not _is_blank(name)
    }
    missing = [name for name in _REQUIRED_COLUMNS if name not in normalized]
    if missing:
        raise ValueError(f"Snapshot missing required columns: {', '.join(missing)}")
    return {name: normalized[name] for name in _REQUIRED_COLUMNS}


def _cell(row: Sequence[Any], index: int) -> Optional[Any]:
    if index >= len(row):
        return None
    value = row[index]
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
