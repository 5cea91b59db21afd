from __future__ import annotations

import logging
from typing import Iterable

from datastore.realtime_db import build_default_database
from logging_config import ContextualFormatter
from services.adapters import SnapshotAdapter, StreamAdapter
from services.dashboard import build_default_dashboard
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


CACHES = (get_settings, build_default_database, build_default_dashboard)


def test_defaults_apply_without_environment(monkeypatch) -> None:
    for name in (
        "TELEMETRY_SOURCE",
        "SNAPSHOT_URL",
        "SNAPSHOT_TIMEOUT_SECONDS",
        "STREAM_PATH",
        "STREAM_SEED_PATH",
        "WINDOW_HOURS",
        "CLOCK_TICK_SECONDS",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    _clear_caches(CACHES)

    try:
        settings = get_settings()
        assert settings.source_kind == "stream"
        assert settings.snapshot_url is None
        assert settings.stream_path == "readings"
        assert settings.window_hours == 24.0
        assert settings.tick_seconds == 1.0
        assert settings.log_level == "INFO"
    finally:
        _clear_caches(CACHES)


def test_snapshot_environment_overrides_apply(monkeypatch) -> None:
    monkeypatch.setenv("TELEMETRY_SOURCE", " Snapshot ")
    monkeypatch.setenv("SNAPSHOT_URL", "https://sheets.example/export.csv")
    monkeypatch.setenv("SNAPSHOT_TIMEOUT_SECONDS", "5")
    monkeypatch.setenv("WINDOW_HOURS", "12")
    monkeypatch.setenv("CLOCK_TICK_SECONDS", "-3")
    _clear_caches(CACHES)

    dashboard = build_default_dashboard()
    try:
        assert isinstance(dashboard.source, SnapshotAdapter)
        assert dashboard.source.location == "https://sheets.example/export.csv"
        assert dashboard.source.timeout == 5.0
        assert dashboard.window_hours == 12.0
        assert dashboard.clock.interval == 1.0
    finally:
        dashboard.shutdown()
        _clear_caches(CACHES)


def test_stream_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    seed = tmp_path / "seed.json"
    seed.write_text('{"sensors": {"2024-01-01T00:00:00Z": {"Temperature": 20, "Humidity": 40}}}')
    monkeypatch.setenv("TELEMETRY_SOURCE", "carrier-pigeon")
    monkeypatch.setenv("STREAM_PATH", "sensors")
    monkeypatch.setenv("STREAM_SEED_PATH", str(seed))
    _clear_caches(CACHES)

    dashboard = build_default_dashboard()
    try:
        assert isinstance(dashboard.source, StreamAdapter)
        assert dashboard.source.path == "sensors"
        assert dashboard.source.database is build_default_database()
        assert build_default_database().seed_path == seed
    finally:
        dashboard.shutdown()
        _clear_caches(CACHES)


def test_contextual_formatter_appends_extra_fields() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")
    record = logging.LogRecord("services.adapters", logging.WARNING, __file__, 1, "Dropping record", (), None)
    record.source = "snapshot"
    record.row_number = 3
    record.reason = "invalid timestamp"
    record.reading_key = None

    assert formatter.format(record) == (
        "WARNING Dropping record | source=snapshot row_number=3 reason='invalid timestamp'"
    )
