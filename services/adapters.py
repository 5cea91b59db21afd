"""Reading sources: a one-shot tabular snapshot and a level-triggered stream."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Iterable, List, Mapping, Optional

import httpx

from datastore.realtime_db import MockRealtimeDatabase, Subscription
from models.records import RawRecord, Reading, ReadingSeries
from services.errors import MalformedRecordError, SourceUnavailableError
from services.normalizer import normalize_record
from services.tabular import parse_table

logger = logging.getLogger(__name__)

Deliver = Callable[[ReadingSeries], None]


def normalize_records(records: Iterable[RawRecord], source: str) -> ReadingSeries:
    """Normalize records in order, dropping and logging malformed ones."""
    readings: List[Reading] = []
    dropped = 0
    for record in records:
        try:
            readings.append(normalize_record(record))
        except MalformedRecordError as exc:
            dropped += 1
            logger.warning(
                "Dropping record: %s",
                exc.reason,
                extra={
                    "source": source,
                    "row_number": record.row_number,
                    "reading_key": record.key,
                    "reason": exc.reason,
                    "invalid_value": exc.invalid_value,
                },
            )
    logger.info(
        "Normalized %d readings",
        len(readings),
        extra={"source": source, "reading_count": len(readings), "dropped_count": dropped},
    )
    return tuple(readings)


class ReadingSource(ABC):
    """Delivers complete reading series, once or repeatedly.

    Every delivery carries the full current set and replaces whatever was
    delivered before.
    """

    name: str = "source"

    @abstractmethod
    def start(self, deliver: Deliver) -> None:
        """Begin delivering; raises :class:`SourceUnavailableError` on failure."""

    @abstractmethod
    def stop(self) -> None:
        """Stop delivering. No delivery happens after this returns."""


class SnapshotAdapter(ReadingSource):
    """Fetches a spreadsheet export once and delivers it exactly once."""

    name = "snapshot"

    def __init__(
        self,
        location: Optional[str],
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.location = location
        self.timeout = timeout
        self._client = client
        self._stopped = False
        self._lock = Lock()

    def start(self, deliver: Deliver) -> None:
        payload = self._fetch()
        try:
            records = parse_table(payload)
        except Exception as exc:
            # openpyxl surfaces corrupt workbooks as assorted zip/xml errors.
            raise SourceUnavailableError(f"Snapshot could not be parsed: {exc}") from exc

        series = normalize_records(records, source=self.name)
        with self._lock:
            if self._stopped:
                return
            deliver(series)

    def stop(self) -> None:
        with self._lock:
            self._stopped = True

    def _fetch(self) -> bytes:
        if not self.location:
            raise SourceUnavailableError("No snapshot location configured.")

        if self.location.startswith(("http://", "https://")):
            return self._fetch_http(self.location)

        try:
            return Path(self.location).read_bytes()
        except OSError as exc:
            raise SourceUnavailableError(f"Snapshot file unreadable: {exc}") from exc

    def _fetch_http(self, url: str) -> bytes:
        try:
            if self._client is not None:
                response = self._client.get(url)
            else:
                with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                    response = client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SourceUnavailableError(f"Snapshot fetch failed: {exc}") from exc
        return response.content


class StreamAdapter(ReadingSource):
    """Subscribes to a key-value path and re-delivers the full set on change.

    Keys are the reading timestamps; each value is an object carrying
    ``Temperature`` and ``Humidity``.
    """

    name = "stream"

    def __init__(self, database: MockRealtimeDatabase, path: str) -> None:
        self.database = database
        self.path = path
        self._subscription: Optional[Subscription] = None

    def start(self, deliver: Deliver) -> None:
        if self._subscription is not None:
            return
        try:
            self._subscription = self.database.subscribe(
                self.path, lambda value: deliver(self._to_series(value))
            )
        except Exception as exc:
            raise SourceUnavailableError(f"Subscription to {self.path!r} failed: {exc}") from exc

    def stop(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.unsubscribe()

    def _to_series(self, value: Any) -> ReadingSeries:
        if value is None:
            return normalize_records([], source=self.name)
        if not isinstance(value, Mapping):
            logger.warning(
                "Ignoring non-object value at stream path",
                extra={"source": self.name, "reason": "not an object", "invalid_value": value},
            )
            return normalize_records([], source=self.name)

        records: List[RawRecord] = []
        for key, entry in value.items():
            if not isinstance(entry, Mapping):
                logger.warning(
                    "Dropping record: not an object",
                    extra={"source": self.name, "reading_key": key, "reason": "not an object"},
                )
                continue
            records.append(
                RawRecord(
                    timestamp=str(key),
                    temperature=_field(entry, "Temperature"),
                    humidity=_field(entry, "Humidity"),
                    key=str(key),
                )
            )
        return normalize_records(records, source=self.name)


def _field(entry: Mapping[str, Any], name: str) -> Any:
    if name in entry:
        return entry[name]
    lowered = name.lower()
    for key, value in entry.items():
        if str(key).lower() == lowered:
            return value
    return None
