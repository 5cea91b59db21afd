"""In-memory holder for the current reading series."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, Iterable, List

from models.records import Reading, ReadingSeries

logger = logging.getLogger(__name__)

StoreListener = Callable[[ReadingSeries], None]


class ReadingStore:
    """Holds exactly one reading series and publishes every replacement.

    The series is an immutable tuple swapped under a lock, so readers see
    either the previous series or the new one and never a mix.
    """

    def __init__(self) -> None:
        self._series: ReadingSeries = ()
        self._lock = Lock()
        self._listeners: List[StoreListener] = []

    def get(self) -> ReadingSeries:
        with self._lock:
            return self._series

    def replace(self, readings: Iterable[Reading]) -> ReadingSeries:
        series = tuple(readings)
        with self._lock:
            self._series = series
            listeners = list(self._listeners)

        logger.debug("Reading series replaced", extra={"reading_count": len(series)})
        for listener in listeners:
            try:
                listener(series)
            except Exception:
                logger.exception("Reading store listener failed")
        return series

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe
