"""
============================================================================
DEPLOYMENT MONITOR - MAIN APPLICATION
============================================================================
Entry point that wires every layer of the monitor together:

    Layer 1 - Core & Database
        • Settings (Pydantic)
        • SQLAlchemy async engine + models
        • DatabaseManager + Repositories
        • Logging, Validators, Helpers

    Layer 2 - Monitoring Core
        • DeploymentRegistry     - targets and their configuration
        • HealthProbe            - httpx liveness checks
        • EventLogAppender       - per-deployment event trail
        • DailyStatsAggregator   - per-day statistics buckets
        • MonitoringOrchestrator - Probe → Log → Aggregate

    Layer 3 - Surfaces
        • ApiServer              - aiohttp HTTP API
        • Scheduler              - periodic health sweep + heartbeat

Startup Order
-------------
1.  Load settings & configure logging
2.  Initialize DatabaseManager (create tables if enabled)
3.  Build the monitoring core
4.  Start ApiServer (aiohttp, non-blocking)
5.  Start Scheduler (if MONITOR_SCHEDULER_ENABLED)
6.  Wait for SIGINT / SIGTERM

Shutdown Order (reverse)
-------------------------
    Stop scheduler → stop API server → close probe client → close DB → exit

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

import asyncio
import signal
import sys
from typing import Optional

from pydantic import ValidationError

from api.auth import SessionManager
from api.server import ApiServer
from config.settings import Settings, get_settings
from database.connection import DatabaseManager
from exceptions import ConfigurationError, DeploymentMonitorException
from monitoring.aggregator import DailyStatsAggregator
from monitoring.event_log import EventLogAppender
from monitoring.orchestrator import MonitoringOrchestrator
from monitoring.probe import HealthProbe
from monitoring.registry import DeploymentRegistry
from monitoring.scheduler import Scheduler
from utils.logger import get_logger, setup_logging
from utils.validators import DeploymentValidator, URLValidator


logger = get_logger("Main")


# ============================================================================
# SETTINGS BOOTSTRAP
# ============================================================================

def load_settings() -> Settings:
    """
    Load settings from the environment.

    Raises:
        ConfigurationError: If the environment holds invalid values
    """
    try:
        return get_settings()
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} error(s)",
            details={"errors": e.errors(include_url=False)},
            cause=e,
        )


# ============================================================================
# APPLICATION CLASS
# ============================================================================

class DeploymentMonitorApplication:
    """
    Top-level application orchestrator.

    Owns every subsystem and is the single place that knows the startup /
    shutdown order. Components receive their collaborators through their
    constructors.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

        # --- subsystems (populated during startup) ---
        self.db_manager: Optional[DatabaseManager] = None
        self.probe: Optional[HealthProbe] = None
        self.registry: Optional[DeploymentRegistry] = None
        self.orchestrator: Optional[MonitoringOrchestrator] = None
        self.api_server: Optional[ApiServer] = None
        self.scheduler: Optional[Scheduler] = None

        self._stop_event = asyncio.Event()

    # ==================================================================
    # PHASE 1 - DATABASE
    # ==================================================================

    async def _init_database(self) -> None:
        logger.info("── Phase 1: Database ─────────────────────────────")
        self.db_manager = DatabaseManager(self.settings.database)
        await self.db_manager.initialize()
        logger.info(f"  ✓ Connected ({self.db_manager.dialect_name})")

    # ==================================================================
    # PHASE 2 - MONITORING CORE
    # ==================================================================

    def _init_monitoring(self) -> None:
        logger.info("── Phase 2: Monitoring Core ──────────────────────")
        security = self.settings.security
        monitoring = self.settings.monitoring

        validator = DeploymentValidator(
            URLValidator(security.allowed_url_schemes, security.max_url_length)
        )
        event_log = EventLogAppender(self.db_manager)
        aggregator = DailyStatsAggregator(self.db_manager)

        self.registry = DeploymentRegistry(self.db_manager, monitoring, validator, event_log)
        self.probe = HealthProbe(monitoring)
        self.orchestrator = MonitoringOrchestrator(
            self.db_manager,
            monitoring,
            self.registry,
            self.probe,
            event_log,
            aggregator,
        )
        logger.info("  ✓ Registry, Probe, EventLog, Aggregator, Orchestrator created")

    # ==================================================================
    # PHASE 3 - SURFACES
    # ==================================================================

    def _init_surfaces(self) -> None:
        logger.info("── Phase 3: API & Scheduler ──────────────────────")
        self.api_server = ApiServer(
            self.settings,
            self.db_manager,
            self.registry,
            self.orchestrator,
            SessionManager(self.settings.security),
        )

        if self.settings.monitoring.scheduler_enabled:
            self.scheduler = Scheduler(
                self.settings.monitoring, self.db_manager, self.orchestrator
            )
        else:
            logger.info("  Scheduler disabled — checks run on demand only")

    # ==================================================================
    # FULL STARTUP SEQUENCE
    # ==================================================================

    async def startup(self) -> None:
        """
        Execute the complete startup sequence.

        Raises:
            DeploymentMonitorException: If a critical phase fails
        """
        logger.info("=" * 74)
        logger.info(
            f"  STARTING {self.settings.app_name} v{self.settings.app_version} "
            f"({self.settings.environment.value})"
        )
        logger.info("=" * 74)

        await self._init_database()
        self._init_monitoring()
        self._init_surfaces()

        await self.api_server.start()
        if self.scheduler:
            await self.scheduler.start()

        logger.info("=" * 74)
        logger.info("  ✓ ALL SYSTEMS OPERATIONAL")
        logger.info(
            f"  API: http://{self.settings.web_host}:{self.settings.web_port} "
            f"(auth {'on' if self.settings.security.auth_enabled else 'off'})"
        )
        logger.info(
            f"  Monitoring: {self.settings.monitoring.max_concurrent_checks} concurrent, "
            f"every {self.settings.monitoring.check_interval}s"
        )
        logger.info("=" * 74)

    # ==================================================================
    # SHUTDOWN SEQUENCE
    # ==================================================================

    async def shutdown(self) -> None:
        """
        Graceful shutdown in reverse order.
        A failure in one subsystem does not stop the others from cleaning up.
        """
        logger.info("  SHUTTING DOWN …")

        if self.scheduler:
            try:
                await self.scheduler.stop()
            except Exception as e:
                logger.error(f"  ✗ Scheduler stop error: {e}")

        if self.api_server:
            try:
                await self.api_server.stop()
            except Exception as e:
                logger.error(f"  ✗ API server stop error: {e}")

        if self.probe:
            try:
                await self.probe.close()
            except Exception as e:
                logger.error(f"  ✗ Probe client close error: {e}")

        if self.db_manager:
            try:
                await self.db_manager.close()
            except Exception as e:
                logger.error(f"  ✗ Database close error: {e}")

        logger.info("  ✓ SHUTDOWN COMPLETE")

    # ==================================================================
    # RUN
    # ==================================================================

    def request_stop(self) -> None:
        self._stop_event.set()

    async def run(self) -> None:
        """Block until a stop is requested."""
        await self._stop_event.wait()


# ============================================================================
# SIGNAL HANDLER SETUP
# ============================================================================

def _install_signal_handlers(app: DeploymentMonitorApplication) -> None:
    """
    Install SIGTERM / SIGINT handlers so that the monitor shuts down
    gracefully even when killed by the OS.
    """
    loop = asyncio.get_running_loop()

    def _handle_signal(sig: signal.Signals) -> None:
        logger.info(f"  ⚡ {sig.name} received — initiating graceful shutdown…")
        app.request_stop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _handle_signal, sig)
        except (NotImplementedError, OSError):
            # Not supported on Windows; KeyboardInterrupt still applies
            pass


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

async def main() -> None:
    """
    Async main - creates the app, starts it, and runs until shutdown.
    """
    settings = load_settings()
    setup_logging(settings)

    app = DeploymentMonitorApplication(settings)
    _install_signal_handlers(app)

    try:
        await app.startup()
        await app.run()
    finally:
        await app.shutdown()


# ============================================================================
# SCRIPT ENTRY POINT
# ============================================================================

def cli() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
    except DeploymentMonitorException as e:
        logger.error(f"Fatal error: {e.log_format()}")
        sys.exit(1)


if __name__ == "__main__":
    cli()
