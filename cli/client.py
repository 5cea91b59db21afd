from __future__ import annotations

from typing import Any, Dict, NoReturn
from urllib.parse import quote

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the dashboard service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def get_dashboard(self) -> Dict[str, Any]:
        return self._request("GET", "/dashboard").json()

    def get_readings(self, windowed: bool = True) -> Dict[str, Any]:
        params = {"windowed": "true" if windowed else "false"}
        return self._request("GET", "/readings", params=params).json()

    def push_reading(self, key: str, temperature: float, humidity: float) -> None:
        self._request(
            "PUT",
            f"/stream/readings/{quote(key, safe='')}",
            json={"temperature": temperature, "humidity": humidity},
        )

    def delete_reading(self, key: str) -> None:
        response = self._request("DELETE", f"/stream/readings/{quote(key, safe='')}", allow_missing=True)
        if response.status_code == 404:
            raise typer.BadParameter(f"Reading {key} was not found.")

    def _request(self, method: str, path: str, allow_missing: bool = False, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
            if allow_missing and response.status_code == 404:
                return response
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> NoReturn:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
