"""Connection settings for the dashboard CLI.

Explicit command-line options win; otherwise ``API_BASE_URL`` and
``CLI_HTTP_TIMEOUT`` are read from the environment. Blank or unusable values
fall back to the defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 10.0

_BASE_URL_ENV = "API_BASE_URL"
_TIMEOUT_ENV = "CLI_HTTP_TIMEOUT"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT


def _env_text(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    return value.strip() or None


def _env_timeout(name: str, default: float) -> float:
    """Positive seconds from ``name``, else ``default``."""
    raw = _env_text(name)
    if raw is None:
        return default
    try:
        seconds = float(raw)
    except ValueError:
        return default
    return seconds if seconds > 0 else default


def load_config(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CLIConfig:
    url = base_url or _env_text(_BASE_URL_ENV) or DEFAULT_BASE_URL
    if timeout is None:
        timeout = _env_timeout(_TIMEOUT_ENV, DEFAULT_TIMEOUT)
    return CLIConfig(base_url=url.rstrip("/"), timeout=timeout)
