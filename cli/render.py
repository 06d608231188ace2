from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def format_timestamp(timestamp_ms: int) -> str:
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def render_sensors(sensor_ids: Iterable[str]) -> None:
    echo_heading("Sensors")
    ids = list(sensor_ids)
    if not ids:
        typer.echo("No sensors have reported yet.")
        return
    for sensor_id in ids:
        typer.echo(f"  - {sensor_id}")


def render_history(payload: Dict[str, Any]) -> None:
    echo_heading("Sensor")
    echo_key_values(
        [
            ("sensor_id", payload.get("sensorId")),
            ("gateway_id", payload.get("gatewayId") or "-"),
            ("gateway_name", payload.get("gatewayName") or "-"),
        ]
    )

    points = payload.get("dataPoints") or []
    typer.echo()
    echo_heading(f"Readings ({len(points)})")
    if not points:
        typer.echo("No readings in the selected window.")
        return

    typer.echo(
        f"{'time (UTC)':>19}  {'gravity':>8}  {'tilt':>8}  "
        f"{'temp':>8}  {'volt':>8}  {'interval':>8}"
    )
    for point in points:
        typer.echo(
            f"{format_timestamp(point.get('timestamp', 0)):>19}  "
            f"{point.get('gravity', 0.0):>8.3f}  "
            f"{point.get('tilt', 0.0):>8.2f}  "
            f"{point.get('temp', 0.0):>8.2f}  "
            f"{point.get('volt', 0.0):>8.2f}  "
            f"{point.get('interval', 0):>8d}"
        )
