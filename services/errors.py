"""Exception types raised by the telemetry services."""

from __future__ import annotations


class TelemetryError(Exception):
    """Base class for telemetry ingestion failures."""


class MalformedRecordError(TelemetryError, ValueError):
    """A single record cannot be normalized and must be dropped."""

    def __init__(self, reason: str, invalid_value: object = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.invalid_value = invalid_value


class SourceUnavailableError(TelemetryError):
    """A whole source could not be fetched, subscribed to, or parsed."""
