"""Unit tests for the in-process realtime key-value store."""

from __future__ import annotations

import json
from typing import Any, List

import pytest

from datastore.realtime_db import MockRealtimeDatabase


def _collector(into: List[Any]):
    return into.append


def test_get_returns_deep_copies() -> None:
    database = MockRealtimeDatabase("test")
    database.set("readings/a", {"Temperature": 20})

    fetched = database.get("readings")
    fetched["a"]["Temperature"] = 99

    assert database.get("readings/a") == {"Temperature": 20}


def test_subscriber_sees_full_value_after_nested_writes() -> None:
    database = MockRealtimeDatabase("test")
    seen: List[Any] = []
    database.subscribe("readings", _collector(seen))

    database.set("readings/a", {"Temperature": 20})
    database.update("readings", {"b": {"Temperature": 21}})

    assert seen == [
        None,
        {"a": {"Temperature": 20}},
        {"a": {"Temperature": 20}, "b": {"Temperature": 21}},
    ]


def test_writes_elsewhere_do_not_notify() -> None:
    database = MockRealtimeDatabase("test")
    seen: List[Any] = []
    database.subscribe("readings", _collector(seen))

    database.set("devices/alpha", {"online": True})

    assert seen == [None]


def test_parent_write_notifies_child_subscriber() -> None:
    database = MockRealtimeDatabase("test")
    seen: List[Any] = []
    database.subscribe("readings/a", _collector(seen))

    database.set("readings", {"a": {"Temperature": 5}, "b": {"Temperature": 6}})

    assert seen == [None, {"Temperature": 5}]


def test_remove_prunes_empty_parents_and_reports_missing_keys() -> None:
    database = MockRealtimeDatabase("test")
    database.set("readings/a", {"Temperature": 20})

    assert database.remove("readings/a") is True
    assert database.get("readings") is None
    assert database.remove("readings/a") is False


def test_unsubscribe_is_idempotent_and_final() -> None:
    database = MockRealtimeDatabase("test")
    seen: List[Any] = []
    subscription = database.subscribe("readings", _collector(seen))

    subscription.unsubscribe()
    subscription.unsubscribe()
    database.set("readings/a", {"Temperature": 20})

    assert seen == [None]
    assert subscription.active is False


def test_failing_subscriber_does_not_break_writes_or_other_subscribers() -> None:
    database = MockRealtimeDatabase("test")
    seen: List[Any] = []
    calls: List[Any] = []

    def broken(value: Any) -> None:
        calls.append(value)
        if value is not None:
            raise RuntimeError("subscriber exploded")

    database.subscribe("readings", broken)
    database.subscribe("readings", _collector(seen))

    database.set("readings/a", {"Temperature": 20})

    assert database.get("readings/a") == {"Temperature": 20}
    assert calls == [None, {"a": {"Temperature": 20}}]
    assert seen == [None, {"a": {"Temperature": 20}}]


def test_setting_root_is_rejected() -> None:
    database = MockRealtimeDatabase("test")

    with pytest.raises(ValueError):
        database.set("/", {"readings": {}})


def test_seed_file_populates_initial_state(tmp_path) -> None:
    seed = tmp_path / "seed.json"
    seed.write_text(json.dumps({"readings": {"2024-01-01T00:00:00Z": {"Temperature": 20, "Humidity": 40}}}))

    database = MockRealtimeDatabase("test", seed_path=seed)

    assert database.get("readings/2024-01-01T00:00:00Z") == {"Temperature": 20, "Humidity": 40}
    assert json.loads(seed.read_text())["readings"]


def test_unreadable_seed_file_is_ignored(tmp_path) -> None:
    seed = tmp_path / "seed.json"
    seed.write_text("{not json")

    database = MockRealtimeDatabase("test", seed_path=seed)

    assert database.get("readings") is None
