from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_dashboard, render_readings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the telemetry dashboard service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Dashboard API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show the latest reading, air-quality status and window summaries."""
    state = _get_state(ctx)
    render_dashboard(state.client.get_dashboard())


@app.command("readings")
def readings_command(
    ctx: typer.Context,
    all_readings: bool = typer.Option(
        False,
        "--all",
        help="Include readings outside the rolling window.",
    ),
) -> None:
    """Print the raw reading log."""
    state = _get_state(ctx)
    render_readings(state.client.get_readings(windowed=not all_readings))


@app.command("push")
def push_command(
    ctx: typer.Context,
    temperature: float = typer.Option(..., "--temperature", "-t", help="Degrees Celsius."),
    humidity: float = typer.Option(..., "--humidity", "-H", help="Relative humidity in percent."),
    key: Optional[str] = typer.Argument(
        None,
        help="Reading timestamp key (defaults to the current UTC time).",
    ),
) -> None:
    """Write one reading into the push store."""
    state = _get_state(ctx)
    reading_key = key or datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    state.client.push_reading(reading_key, temperature=temperature, humidity=humidity)
    typer.secho(f"Reading accepted. key={reading_key}", fg=typer.colors.GREEN)


@app.command("remove")
def remove_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Reading timestamp key to delete."),
) -> None:
    """Delete one reading from the push store."""
    state = _get_state(ctx)
    state.client.delete_reading(key)
    typer.echo(f"Removed reading {key}.")
