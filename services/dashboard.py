"""Reactive wiring of source, store and clock into dashboard snapshots."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import lru_cache
from threading import Lock
from typing import Callable, List, Optional

from datastore.realtime_db import build_default_database
from models.records import Reading, ReadingSeries
from services.adapters import ReadingSource, SnapshotAdapter, StreamAdapter
from services.aggregator import Aggregator, Metric, Summary
from services.classifier import ClassificationResult, classify_reading
from services.clock import Clock
from services.errors import SourceUnavailableError
from services.store import ReadingStore
from services.window import DEFAULT_WINDOW_HOURS, window
from settings import SOURCE_SNAPSHOT, Settings, get_settings

logger = logging.getLogger(__name__)


class SourceStatus(str, Enum):
    """Lifecycle of the configured reading source."""

    loading = "loading"
    ready = "ready"
    unavailable = "unavailable"


@dataclass(frozen=True)
class DashboardSnapshot:
    """Everything a display needs, computed for one instant."""

    now: datetime
    status: SourceStatus
    latest_reading: Optional[Reading]
    windowed_series: ReadingSeries
    temperature_summary: Summary
    humidity_summary: Summary
    classification: Optional[ClassificationResult]
    total_readings: int
    error: Optional[str] = None


SnapshotListener = Callable[[DashboardSnapshot], None]


class DashboardService:
    """Recomputes the dashboard whenever the store is replaced or the clock ticks."""

    def __init__(
        self,
        source: ReadingSource,
        store: ReadingStore,
        clock: Clock,
        aggregator: Aggregator,
        window_hours: float = DEFAULT_WINDOW_HOURS,
    ) -> None:
        self.source = source
        self.store = store
        self.clock = clock
        self.aggregator = aggregator
        self.window_hours = window_hours
        self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="reading-source")
        self._lock = Lock()
        self._status = SourceStatus.loading
        self._error: Optional[str] = None
        self._listeners: List[SnapshotListener] = []
        self._unsubscribers: List[Callable[[], None]] = []
        self._source_future: Optional[Future[None]] = None
        self._closed = False
        self._snapshot = self._compute(clock.now())

    def start(self, run_clock: bool = True) -> None:
        """Subscribe to store and clock, then start the source in the background."""
        if self._source_future is not None:
            return
        self._unsubscribers.append(self.store.subscribe(self._on_series))
        self._unsubscribers.append(self.clock.subscribe(self._on_tick))
        self._source_future = self.executor.submit(self._run_source)
        if run_clock:
            self.clock.start()

    def wait_until_started(self, timeout: Optional[float] = None) -> None:
        """Block until the source has delivered once or failed."""
        if self._source_future is not None:
            self._source_future.result(timeout=timeout)

    def snapshot(self) -> DashboardSnapshot:
        return self._snapshot

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def shutdown(self) -> None:
        """Stop ticking and delivering; no listener fires after this returns."""
        self.clock.stop()
        self.source.stop()
        with self._lock:
            self._closed = True
            self._listeners.clear()
            unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsubscribe in unsubscribers:
            unsubscribe()
        self.executor.shutdown(wait=False, cancel_futures=True)

    def _run_source(self) -> None:
        logger.info("Starting reading source", extra={"source": self.source.name})
        try:
            self.source.start(self.store.replace)
        except SourceUnavailableError as exc:
            logger.error(
                "Reading source unavailable",
                extra={"source": self.source.name, "reason": str(exc)},
            )
            self._recompute(self.clock.now(), status=SourceStatus.unavailable, error=str(exc))
        except Exception as exc:
            logger.exception(
                "Reading source failed",
                extra={"source": self.source.name, "reason": str(exc)},
            )
            self._recompute(self.clock.now(), status=SourceStatus.unavailable, error=str(exc))

    def _on_series(self, series: ReadingSeries) -> None:
        logger.info(
            "Received reading series",
            extra={"source": self.source.name, "reading_count": len(series)},
        )
        self._recompute(self.clock.now(), status=SourceStatus.ready, error=None)

    def _on_tick(self, now: datetime) -> None:
        self._recompute(now)

    def _recompute(
        self,
        now: datetime,
        status: Optional[SourceStatus] = None,
        error: Optional[str] = None,
    ) -> None:
        with self._lock:
            if self._closed:
                return
            if status is not None:
                self._status = status
                self._error = error
            snapshot = self._compute(now)
            self._snapshot = snapshot
            for listener in list(self._listeners):
                try:
                    listener(snapshot)
                except Exception:
                    logger.exception("Dashboard listener failed")

    def _compute(self, now: datetime) -> DashboardSnapshot:
        series = self.store.get()
        windowed = window(series, now, self.window_hours)
        # Latest means last in arrival order, not the greatest timestamp.
        latest = windowed[-1] if windowed else None
        return DashboardSnapshot(
            now=now,
            status=self._status,
            latest_reading=latest,
            windowed_series=windowed,
            temperature_summary=self.aggregator.summarize(windowed, Metric.temperature),
            humidity_summary=self.aggregator.summarize(windowed, Metric.humidity),
            classification=classify_reading(latest),
            total_readings=len(series),
            error=self._error,
        )


def build_source(settings: Settings) -> ReadingSource:
    if settings.source_kind == SOURCE_SNAPSHOT:
        return SnapshotAdapter(settings.snapshot_url, timeout=settings.snapshot_timeout)
    return StreamAdapter(build_default_database(), settings.stream_path)


@lru_cache
def build_default_dashboard() -> DashboardService:
    """Factory that wires the dashboard from environment settings."""
    settings = get_settings()
    return DashboardService(
        source=build_source(settings),
        store=ReadingStore(),
        clock=Clock(interval=settings.tick_seconds),
        aggregator=Aggregator(),
        window_hours=settings.window_hours,
    )
