"""Text exposition encoding for per-field reading series."""

from __future__ import annotations

from typing import Dict, List

from models.records import GatewayIdentity, Reading

SERIES_PREFIX = "tilted_"

# Field order is significant: the merge takes gateway labels from the first
# non-empty series in this order.
FIELD_NAMES = ("gravity", "tilt", "temp", "volt", "interval")
SERIES_NAMES: Dict[str, str] = {field: f"{SERIES_PREFIX}{field}" for field in FIELD_NAMES}

_VALUE_FORMATS = {
    "gravity": "{:.3f}",
    "tilt": "{:.2f}",
    "temp": "{:.2f}",
    "volt": "{:.2f}",
    "interval": "{:d}",
}


def escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def format_labels(labels: Dict[str, str]) -> str:
    pairs = ",".join(f'{name}="{escape_label_value(value)}"' for name, value in labels.items())
    return "{" + pairs + "}"


def encode_reading(reading: Reading, gateway: GatewayIdentity, timestamp_ms: int) -> str:
    """Render one sample line per field, all sharing labels and timestamp."""
    labels = format_labels(
        {
            "sensor_id": reading.sensor_id,
            "gateway_id": gateway.gateway_id,
            "gateway_name": gateway.gateway_name,
        }
    )
    lines: List[str] = []
    for field in FIELD_NAMES:
        value = _VALUE_FORMATS[field].format(getattr(reading, field))
        lines.append(f"{SERIES_NAMES[field]}{labels} {value} {timestamp_ms}")
    return "\n".join(lines) + "\n"


def range_selector(series_name: str, sensor_id: str, hours: int) -> str:
    return f"{series_name}{format_labels({'sensor_id': sensor_id})}[{hours}h]"
