from __future__ import annotations

from typing import Any, Dict, List
from urllib.parse import quote

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for a running passive endpoint."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        headers = {"Authorization": f"Bearer {config.token}"} if config.token else {}
        self._client = httpx.Client(
            base_url=config.base_url, timeout=config.timeout, headers=headers
        )

    def close(self) -> None:
        self._client.close()

    def list_temperature(self) -> List[Dict[str, Any]]:
        return self._get("/temperature")

    def get_temperature(self, device_id: str) -> Dict[str, Any]:
        return self._get(f"/temperature/{quote(device_id, safe='')}", what=f"Sensor {device_id}")

    def list_upses(self) -> List[Dict[str, Any]]:
        return self._get("/ups")

    def get_ups(self, device_id: str) -> Dict[str, Any]:
        return self._get(f"/ups/{quote(device_id, safe='')}", what=f"UPS {device_id}")

    def _get(self, path: str, what: str = "Resource") -> Any:
        try:
            response = self._client.get(path)
            if response.status_code == 404:
                raise typer.BadParameter(f"{what} was not found.")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Cannot reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True
            )
            raise typer.Exit(code=1)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
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
