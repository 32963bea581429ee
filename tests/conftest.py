"""
Shared fixtures: a throwaway SQLite database per test and the monitoring
components wired against it. Probes go through an httpx MockTransport so
no test touches the network.
"""

from datetime import datetime, timezone

import httpx
import pytest
from pydantic import SecretStr

from config.settings import (
    DatabaseSettings,
    Environment,
    LoggingSettings,
    MonitoringSettings,
    SecuritySettings,
    Settings,
)
from database.connection import DatabaseManager
from monitoring.aggregator import DailyStatsAggregator
from monitoring.event_log import EventLogAppender
from monitoring.orchestrator import MonitoringOrchestrator
from monitoring.probe import HealthProbe
from monitoring.registry import DeploymentRegistry
from utils.validators import DeploymentValidator, URLValidator


class FixedClock:
    """Clock that tests move by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def ok_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, text="ok")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        environment=Environment.TESTING,
        database=DatabaseSettings(sqlite_path=tmp_path / "monitor.db"),
        monitoring=MonitoringSettings(
            probe_timeout=2.0,
            scheduler_enabled=False,
            max_concurrent_checks=4,
        ),
        logging=LoggingSettings(console_enabled=False),
        security=SecuritySettings(
            secret_key=SecretStr("test-secret"),
            admin_email="ops@example.com",
            admin_password=SecretStr("hunter2"),
        ),
    )


@pytest.fixture
async def db_manager(settings):
    manager = DatabaseManager(settings.database)
    await manager.initialize()
    yield manager
    await manager.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def event_log(db_manager) -> EventLogAppender:
    return EventLogAppender(db_manager)


@pytest.fixture
def aggregator(db_manager, clock) -> DailyStatsAggregator:
    return DailyStatsAggregator(db_manager, clock=clock)


@pytest.fixture
def registry(db_manager, settings, event_log) -> DeploymentRegistry:
    validator = DeploymentValidator(
        URLValidator(
            settings.security.allowed_url_schemes,
            settings.security.max_url_length,
        )
    )
    return DeploymentRegistry(db_manager, settings.monitoring, validator, event_log)


@pytest.fixture
def handler_box():
    """Mutable holder so a test can swap the probe's response handler."""
    return {"handler": ok_handler}


@pytest.fixture
async def probe(settings, handler_box):
    async def dispatch(request: httpx.Request) -> httpx.Response:
        result = handler_box["handler"](request)
        if hasattr(result, "__await__"):
            result = await result
        return result

    health_probe = HealthProbe(settings.monitoring, transport=httpx.MockTransport(dispatch))
    yield health_probe
    await health_probe.close()


@pytest.fixture
def orchestrator(db_manager, settings, registry, probe, event_log, aggregator):
    return MonitoringOrchestrator(
        db_manager, settings.monitoring, registry, probe, event_log, aggregator
    )


@pytest.fixture
async def deployment(registry):
    return await registry.create(
        {"name": "api", "url": "https://api.example.com"}
    )
