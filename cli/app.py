from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli import daemon
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_sensors, render_upses
from logging_config import configure_logging
from services.config_loader import ConfigError, load_config as load_app_config
from services.config_loader import write_example_config
from settings import get_settings


@dataclass
class CLIState:
    config: CLIConfig
    client: Optional[ApiClient] = None


app = typer.Typer(
    help="Collect 1-Wire temperatures and UPS status, push them to HTTP endpoints and serve them.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def _get_client(ctx: typer.Context) -> ApiClient:
    state = _get_state(ctx)
    if state.client is None:
        state.client = ApiClient(state.config)
        ctx.call_on_close(state.client.close)
    return state.client


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Passive endpoint base URL (defaults to UDS_API_BASE_URL env or http://localhost:63623).",
    ),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        help="Bearer token for the passive endpoint (defaults to UDS_API_TOKEN env).",
    ),
) -> None:
    """Entry point for the CLI."""
    ctx.obj = CLIState(config=load_config(base_url=base_url, token=token))


@app.command("run")
def run_command(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to the JSON config file (defaults to UDS_CONFIG_FILE env or ./config.json).",
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL."),
) -> None:
    """Run the collector in the foreground until interrupted."""
    configure_logging(log_level, force=log_level is not None)
    path = config or get_settings().config_file
    try:
        app_config = load_app_config(path)
        daemon.run(app_config)
    except ConfigError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


@app.command("init-config")
def init_config_command(
    path: Optional[Path] = typer.Argument(None, help="Where to write the example config."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file."),
) -> None:
    """Write an example config file to edit."""
    target = path or get_settings().config_file
    if not write_example_config(target, overwrite=force):
        typer.secho(f"{target} already exists; use --force to overwrite.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.secho(f"Wrote example config to {target}", fg=typer.colors.GREEN)


@app.command("temperature")
def temperature_command(
    ctx: typer.Context,
    device_id: Optional[str] = typer.Argument(None, help="1-Wire bus id, e.g. 28-00000a0b0c0d."),
) -> None:
    """Show temperatures served by a running passive endpoint."""
    client = _get_client(ctx)
    if device_id is None:
        render_sensors(client.list_temperature())
    else:
        render_sensors([client.get_temperature(device_id)])


@app.command("ups")
def ups_command(
    ctx: typer.Context,
    device_id: Optional[str] = typer.Argument(None, help="UPS id, e.g. [ups1]monitor@localhost:3493."),
) -> None:
    """Show UPS variables served by a running passive endpoint."""
    client = _get_client(ctx)
    if device_id is None:
        render_upses(client.list_upses())
    else:
        render_upses([client.get_ups(device_id)])
