from __future__ import annotations

import logging

from logging_config import ContextualFormatter
from settings import get_settings


def test_environment_overrides_apply(monkeypatch) -> None:
    monkeypatch.setenv("TILTED_STORAGE_BACKEND", " METRICS ")
    monkeypatch.setenv("TILTED_DATABASE_URL", "postgresql://tilted@db/tilted")
    monkeypatch.setenv("TILTED_METRICS_URL", "http://vm:8428/")
    monkeypatch.setenv("TILTED_METRICS_TIMEOUT", "2.5")
    monkeypatch.setenv("TILTED_DEFAULT_WINDOW_HOURS", "72")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.storage_backend == "metrics"
        assert settings.database_url == "postgresql://tilted@db/tilted"
        assert settings.metrics_url == "http://vm:8428"
        assert settings.metrics_timeout == 2.5
        assert settings.default_window_hours == 72
        assert settings.log_level == "DEBUG"
    finally:
        get_settings.cache_clear()


def test_malformed_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("TILTED_STORAGE_BACKEND", "cassandra")
    monkeypatch.setenv("TILTED_METRICS_TIMEOUT", "-3")
    monkeypatch.setenv("TILTED_DEFAULT_WINDOW_HOURS", "a day")
    monkeypatch.setenv("TILTED_DATABASE_URL", "   ")

    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.storage_backend == "sql"
        assert settings.metrics_timeout == 10.0
        assert settings.default_window_hours == 24
        assert settings.database_url == "sqlite:///./tmp/tilted.db"
    finally:
        get_settings.cache_clear()


def test_contextual_formatter_appends_known_extras() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")
    record = logging.LogRecord("tilted", logging.INFO, __file__, 1, "Stored reading", None, None)
    record.sensor_id = "RED"
    record.gateway_id = None
    record.status_code = 502

    assert formatter.format(record) == "Stored reading | sensor_id=RED status_code=502"
