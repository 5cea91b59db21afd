from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List

from models.records import Reading, ReadingSeries
from services.store import ReadingStore
from services.window import window

NOW = datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc)


def _reading(hours_ago: float, temperature: float = 20.0) -> Reading:
    return Reading(timestamp=NOW - timedelta(hours=hours_ago), temperature=temperature, humidity=40.0)


def test_store_starts_empty_and_replaces_wholesale() -> None:
    store = ReadingStore()
    assert store.get() == ()

    store.replace([_reading(1), _reading(2)])
    store.replace([_reading(3)])

    assert store.get() == (_reading(3),)


def test_store_notifies_listeners_until_unsubscribed() -> None:
    store = ReadingStore()
    seen: List[ReadingSeries] = []
    unsubscribe = store.subscribe(seen.append)

    store.replace([_reading(1)])
    unsubscribe()
    store.replace([_reading(2)])

    assert seen == [(_reading(1),)]


def test_failing_listener_does_not_block_the_others(caplog) -> None:
    store = ReadingStore()
    seen: List[ReadingSeries] = []

    def broken(series: ReadingSeries) -> None:
        raise RuntimeError("listener exploded")

    store.subscribe(broken)
    store.subscribe(seen.append)

    with caplog.at_level(logging.ERROR):
        store.replace([_reading(1)])

    assert store.get() == (_reading(1),)
    assert seen == [(_reading(1),)]
    assert any(record.exc_info for record in caplog.records)


def test_window_keeps_readings_strictly_after_cutoff() -> None:
    inside = _reading(23.99)
    boundary = _reading(24)
    outside = _reading(30)

    assert window([outside, boundary, inside], NOW) == (inside,)


def test_window_preserves_arrival_order_when_unsorted() -> None:
    # Arrival order, not timestamp order, is what the window keeps.
    late = _reading(1, temperature=1.0)
    early = _reading(5, temperature=2.0)
    stale = _reading(48, temperature=3.0)

    result = window([late, stale, early], NOW)

    assert [reading.temperature for reading in result] == [1.0, 2.0]


def test_window_duration_is_configurable() -> None:
    readings = [_reading(0.5), _reading(2)]

    assert len(window(readings, NOW, duration_hours=1)) == 1
    assert window([], NOW) == ()


def test_window_shrinks_as_now_advances() -> None:
    readings = [_reading(20), _reading(2)]

    assert len(window(readings, NOW)) == 2
    assert len(window(readings, NOW + timedelta(hours=5))) == 1
    assert len(window(readings, NOW + timedelta(hours=30))) == 0
