from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_BACKEND_ENV = "TILTED_STORAGE_BACKEND"
_DATABASE_URL_ENV = "TILTED_DATABASE_URL"
_METRICS_URL_ENV = "TILTED_METRICS_URL"
_METRICS_TIMEOUT_ENV = "TILTED_METRICS_TIMEOUT"
_WINDOW_HOURS_ENV = "TILTED_DEFAULT_WINDOW_HOURS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

BACKEND_SQL = "sql"
BACKEND_METRICS = "metrics"
_KNOWN_BACKENDS = {BACKEND_SQL, BACKEND_METRICS}


@dataclass(frozen=True)
class Settings:
    storage_backend: str
    database_url: str
    metrics_url: str
    metrics_timeout: float
    default_window_hours: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_backend(default: str) -> str:
    candidate = _read_str_env(_BACKEND_ENV, default).lower()
    return candidate if candidate in _KNOWN_BACKENDS else default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_window_hours(default: int) -> int:
    value = os.getenv(_WINDOW_HOURS_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        storage_backend=_read_backend(BACKEND_SQL),
        database_url=_read_str_env(_DATABASE_URL_ENV, "sqlite:///./tmp/tilted.db"),
        metrics_url=_read_str_env(_METRICS_URL_ENV, "http://victoriametrics:8428").rstrip("/"),
        metrics_timeout=_read_positive_float(_METRICS_TIMEOUT_ENV, 10.0),
        default_window_hours=_read_window_hours(24),
        log_level=_read_log_level("INFO"),
    )
