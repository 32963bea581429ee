"""Tests for settings parsing."""

import pytest
from pydantic import SecretStr, ValidationError

from config.settings import (
    DatabaseSettings,
    DatabaseType,
    Environment,
    LoggingSettings,
    LogLevel,
    MonitoringSettings,
    SecuritySettings,
    Settings,
)


def test_sqlite_url(tmp_path):
    db = DatabaseSettings(sqlite_path=tmp_path / "monitor")

    assert db.is_sqlite
    assert db.sqlite_path.suffix == ".db"
    assert db.url == f"sqlite+aiosqlite:///{tmp_path / 'monitor.db'}"


def test_postgres_url():
    db = DatabaseSettings(
        type=DatabaseType.POSTGRESQL,
        host="db.internal",
        user="monitor",
        password=SecretStr("pw"),
        name="monitor",
    )

    assert db.url == "postgresql+asyncpg://monitor:pw@db.internal:5432/monitor"


def test_monitoring_env_prefix(monkeypatch):
    monkeypatch.setenv("MONITOR_PROBE_TIMEOUT", "3.5")
    monkeypatch.setenv("MONITOR_MAX_CONCURRENT_CHECKS", "2")

    monitoring = MonitoringSettings()

    assert monitoring.probe_timeout == 3.5
    assert monitoring.max_concurrent_checks == 2


def test_probe_timeout_must_be_positive():
    with pytest.raises(ValidationError):
        MonitoringSettings(probe_timeout=0)


def test_url_schemes_from_comma_string(monkeypatch):
    monkeypatch.setenv("SECURITY_ALLOWED_URL_SCHEMES", "HTTPS, http")

    assert SecuritySettings().allowed_url_schemes == {"http", "https"}


def test_auth_requires_credentials():
    with pytest.raises(ValidationError):
        SecuritySettings(auth_enabled=True)


def test_production_forces_quiet_defaults():
    settings = Settings(
        environment=Environment.PRODUCTION,
        debug=True,
        database=DatabaseSettings(echo=True),
    )

    assert settings.debug is False
    assert settings.database.echo is False


def test_development_lowers_log_level():
    settings = Settings(
        environment=Environment.DEVELOPMENT,
        logging=LoggingSettings(level=LogLevel.INFO),
    )

    assert settings.logging.level == LogLevel.DEBUG


def test_to_dict_hides_secrets():
    settings = Settings(
        security=SecuritySettings(
            admin_email="ops@example.com",
            admin_password=SecretStr("hunter2"),
        ),
    )

    security = settings.to_dict()["security"]
    assert "secret_key" not in security
    assert "admin_password" not in security
    assert security["admin_email"] == "ops@example.com"
