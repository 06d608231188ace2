from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_history, render_sensors


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the Tilted telemetry service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("submit")
def submit_command(
    ctx: typer.Context,
    sensor_id: str = typer.Argument(..., help="Sensor identifier."),
    gravity: float = typer.Option(..., "--gravity", help="Specific gravity."),
    tilt: float = typer.Option(..., "--tilt", help="Tilt angle in degrees."),
    temp: float = typer.Option(..., "--temp", help="Temperature."),
    volt: float = typer.Option(..., "--volt", help="Battery voltage."),
    interval: int = typer.Option(900, "--interval", min=0, help="Sampling interval in seconds."),
    gateway_id: str = typer.Option(..., "--gateway-id", help="Relaying gateway identifier."),
    gateway_name: str = typer.Option("", "--gateway-name", help="Relaying gateway name."),
) -> None:
    """Submit one reading the way a relay gateway does."""
    state = _get_state(ctx)
    payload = {
        "reading": {
            "sensorId": sensor_id,
            "gravity": gravity,
            "tilt": tilt,
            "temp": temp,
            "volt": volt,
            "interval": interval,
        },
        "gatewayId": gateway_id,
        "gatewayName": gateway_name,
    }
    state.client.submit_reading(payload)
    typer.secho(f"Reading stored for sensor {sensor_id}.", fg=typer.colors.GREEN)


@app.command("sensors")
def sensors_command(ctx: typer.Context) -> None:
    """List every sensor that has reported."""
    state = _get_state(ctx)
    render_sensors(state.client.list_sensors())


@app.command("history")
def history_command(
    ctx: typer.Context,
    sensor_id: str = typer.Argument(..., help="Sensor identifier."),
    hours: Optional[int] = typer.Option(
        None,
        "--hours",
        min=0,
        help="Lookback window in hours (server default when omitted).",
    ),
) -> None:
    """Show a sensor's readings over a lookback window."""
    state = _get_state(ctx)
    render_history(state.client.get_history(sensor_id, hours=hours))
