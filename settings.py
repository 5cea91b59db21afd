from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


SOURCE_SNAPSHOT = "snapshot"
SOURCE_STREAM = "stream"

_SOURCE_ENV = "TELEMETRY_SOURCE"
_SNAPSHOT_URL_ENV = "SNAPSHOT_URL"
_SNAPSHOT_TIMEOUT_ENV = "SNAPSHOT_TIMEOUT_SECONDS"
_STREAM_PATH_ENV = "STREAM_PATH"
_STREAM_SEED_ENV = "STREAM_SEED_PATH"
_WINDOW_HOURS_ENV = "WINDOW_HOURS"
_TICK_SECONDS_ENV = "CLOCK_TICK_SECONDS"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    source_kind: str
    snapshot_url: Optional[str]
    snapshot_timeout: float
    stream_path: str
    stream_seed_path: Optional[str]
    window_hours: float
    tick_seconds: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_source_kind(default: str) -> str:
    candidate = _read_str_env(_SOURCE_ENV, default).lower()
    if candidate not in {SOURCE_SNAPSHOT, SOURCE_STREAM}:
        return default
    return candidate


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        source_kind=_read_source_kind(SOURCE_STREAM),
        snapshot_url=_read_optional_env(_SNAPSHOT_URL_ENV, None),
        snapshot_timeout=_read_positive_float(_SNAPSHOT_TIMEOUT_ENV, 30.0),
        stream_path=_read_str_env(_STREAM_PATH_ENV, "readings"),
        stream_seed_path=_read_optional_env(_STREAM_SEED_ENV, None),
        window_hours=_read_positive_float(_WINDOW_HOURS_ENV, 24.0),
        tick_seconds=_read_positive_float(_TICK_SECONDS_ENV, 1.0),
        log_level=_read_log_level("INFO"),
    )
