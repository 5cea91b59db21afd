from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Optional

import typer

_STATUS_COLORS = {
    "Good": typer.colors.GREEN,
    "Moderate": typer.colors.YELLOW,
    "Poor": typer.colors.RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def format_timestamp(value: Optional[str]) -> str:
    """Render an ISO timestamp as ``YYYY-MM-DD HH:MM:SS``."""
    if not value:
        return "N/A"
    candidate = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(candidate).strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return value


def _metric(value: Any, unit: str) -> str:
    if value is None:
        return "N/A"
    return f"{value} {unit}"


def render_dashboard(payload: Dict[str, Any]) -> None:
    echo_heading("Air Quality Dashboard")
    echo_key_values(
        [
            ("source_status", payload.get("status")),
            ("now", format_timestamp(payload.get("now"))),
            ("window_hours", payload.get("window_hours")),
            ("total_readings", payload.get("total_readings")),
        ]
    )
    if payload.get("error"):
        typer.secho(f"error: {payload['error']}", fg=typer.colors.RED)

    typer.echo()
    latest = payload.get("latest_reading")
    if not latest:
        echo_heading("Latest Reading")
        typer.echo("No readings in the current window.")
    else:
        echo_heading(f"Last Updated: {format_timestamp(latest.get('timestamp'))}")
        echo_key_values(
            [
                ("Latest Temperature", _metric(latest.get("temperature"), "°C")),
                ("Latest Humidity", _metric(latest.get("humidity"), "%")),
            ]
        )

    classification = payload.get("classification") or {}
    status = classification.get("status")
    typer.echo("Air Quality Status: ", nl=False)
    typer.secho(status or "N/A", fg=_STATUS_COLORS.get(status or ""))

    for title, key, unit in (
        ("Temperature", "temperature_summary", "°C"),
        ("Humidity", "humidity_summary", "%"),
    ):
        summary = payload.get(key) or {}
        typer.echo()
        echo_heading(f"Avg {title}")
        typer.echo(f"{summary.get('avg', 0):.2f} {unit}")
        typer.echo(f"Min: {summary.get('min', 0):.2f} | Max: {summary.get('max', 0):.2f}")


def render_readings(payload: Dict[str, Any]) -> None:
    scope = "rolling window" if payload.get("windowed") else "all readings"
    echo_heading(f"Raw Logs ({scope}, {payload.get('count', 0)} rows)")
    readings = payload.get("readings") or []
    if not readings:
        typer.echo("No readings available.")
        return

    typer.echo(f"{'Timestamp':<20} {'Temperature (°C)':>17} {'Humidity (%)':>13}")
    for reading in readings:
        temperature = reading.get("temperature")
        humidity = reading.get("humidity")
        typer.echo(
            f"{format_timestamp(reading.get('timestamp')):<20} "
            f"{'N/A' if temperature is None else temperature:>17} "
            f"{'N/A' if humidity is None else humidity:>13}"
        )
