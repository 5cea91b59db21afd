"""Ticking source of the current instant."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from threading import Event, Lock, RLock, Thread, current_thread
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

ClockListener = Callable[[datetime], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Clock:
    """Publishes the current UTC instant to listeners at a fixed interval.

    ``tick()`` can be driven by hand (tests inject ``now``); ``start()`` runs
    it on a daemon thread until ``stop()``. After ``stop()`` returns no
    listener is called again.
    """

    def __init__(
        self,
        interval: float = 1.0,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.interval = interval
        self._now = now
        self._listeners: List[ClockListener] = []
        self._lock = Lock()
        self._tick_lock = RLock()
        self._stopped = Event()
        self._thread: Optional[Thread] = None

    def now(self) -> datetime:
        return self._now()

    def subscribe(self, listener: ClockListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def tick(self) -> datetime:
        current = self._now()
        with self._tick_lock:
            if self._stopped.is_set():
                return current
            with self._lock:
                listeners = list(self._listeners)
            for listener in listeners:
                listener(current)
        return current

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = Thread(target=self._run, name="clock-ticker", daemon=True)
        self._thread.start()
        logger.info("Clock started (interval=%ss)", self.interval)

    def stop(self) -> None:
        self._stopped.set()
        thread = self._thread
        if thread is not None and thread is not current_thread():
            thread.join(timeout=max(self.interval, 1.0) * 2)
        # Wait out a tick that was already dispatching.
        with self._tick_lock:
            with self._lock:
                self._listeners.clear()
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stopped.is_set()

    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Clock listener failed")
