from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]], indent: str = "") -> None:
    for key, value in pairs:
        typer.echo(f"{indent}{key}: {value}")


def _device_id(reading: Dict[str, Any]) -> str:
    return ((reading.get("meta") or {}).get("hw") or {}).get("id", "?")


def render_sensors(readings: Iterable[Dict[str, Any]]) -> None:
    readings = list(readings)
    echo_heading("Temperature sensors")
    if not readings:
        typer.echo("No sensors reported.")
        return
    for reading in readings:
        typer.echo(f"- {_device_id(reading)}")
        echo_key_values(
            [
                ("temperature", reading.get("temperature")),
                ("resolution", reading.get("resolution")),
            ],
            indent="    ",
        )


def render_upses(readings: Iterable[Dict[str, Any]]) -> None:
    readings = list(readings)
    echo_heading("UPSes")
    if not readings:
        typer.echo("No UPSes reported.")
        return
    for reading in readings:
        typer.echo(f"- {_device_id(reading)}")
        variables = reading.get("variables") or {}
        if variables:
            echo_key_values(sorted(variables.items()), indent="    ")
        else:
            typer.echo("    No variables available.")
