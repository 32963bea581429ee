"""
============================================================================
DEPLOYMENT MONITOR - MONITORING ORCHESTRATOR
============================================================================
Facade that runs one complete health check for a deployment and fans
checks out over every registered deployment for the periodic sweep.

RunCheck sequence
-----------------
run_check(deployment_id)
├── registry.get_deployment()   ← NotFound aborts here
├── probe.probe()               ← never raises, always yields a result
├── _record_health()            ← health_status + last_health_check_at
├── _record_log()               ← one ``health_check`` log entry
└── _record_stats()             ← today's bucket

The three record steps each run in their own transaction. A failing step
does not undo the others and does not stop the remaining ones; once all
have been attempted any failure is raised as HealthCheckPersistenceError
carrying the probe result.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from config.settings import MonitoringSettings
from database.connection import DatabaseManager
from database.models import Deployment, LogType
from database.repositories import DeploymentRepository
from exceptions import DatabaseNotFoundError, HealthCheckPersistenceError
from monitoring.aggregator import DailyStatsAggregator
from monitoring.event_log import EventLogAppender
from monitoring.probe import HealthProbe, ProbeResult
from monitoring.registry import DeploymentRegistry
from utils.helpers import TimeHelper
from utils.logger import get_logger, log_execution_time


logger = get_logger("Orchestrator")


# ============================================================================
# RESULT OBJECTS
# ============================================================================

@dataclass
class HealthCheckResult:
    """Outcome of one RunCheck as returned to the caller."""
    deployment_id: str
    health_status: str
    response_time_ms: int
    error: Optional[str]
    checked_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deployment_id": self.deployment_id,
            "health_status": self.health_status,
            "response_time_ms": self.response_time_ms,
            "error": self.error,
            "checked_at": TimeHelper.to_iso(self.checked_at),
        }


@dataclass
class SweepSummary:
    """Totals for one pass over every deployment."""
    checked: int = 0
    healthy: int = 0
    unhealthy: int = 0
    failed: int = 0
    failed_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checked": self.checked,
            "healthy": self.healthy,
            "unhealthy": self.unhealthy,
            "failed": self.failed,
            "failed_ids": list(self.failed_ids),
        }


# ============================================================================
# MONITORING ORCHESTRATOR
# ============================================================================

class MonitoringOrchestrator:
    """
    Sequences Probe → Log → Aggregate for a single deployment and runs
    bounded-concurrency sweeps across all of them.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        settings: MonitoringSettings,
        registry: DeploymentRegistry,
        probe: HealthProbe,
        event_log: EventLogAppender,
        aggregator: DailyStatsAggregator,
    ):
        self.settings = settings
        self.registry = registry
        self.probe = probe
        self.event_log = event_log
        self.aggregator = aggregator
        self.deployments = DeploymentRepository(db_manager)

        self._semaphore = asyncio.Semaphore(settings.max_concurrent_checks)
        self._in_flight: int = 0

    @property
    def in_flight_checks(self) -> int:
        return self._in_flight

    # ------------------------------------------------------------------
    # SINGLE CHECK
    # ------------------------------------------------------------------

    async def run_check(self, deployment_id: str) -> HealthCheckResult:
        """
        Probe one deployment and record the outcome.

        Args:
            deployment_id: Deployment to check

        Returns:
            HealthCheckResult

        Raises:
            DatabaseNotFoundError: If the deployment does not exist
            HealthCheckPersistenceError: If any record step failed
        """
        deployment = await self.registry.get_deployment(deployment_id)

        probe_result = await self.probe.probe(deployment)
        checked_at = TimeHelper.get_utc_now()

        result = HealthCheckResult(
            deployment_id=deployment.id,
            health_status=probe_result.status.value,
            response_time_ms=probe_result.response_time_ms,
            error=probe_result.error_message,
            checked_at=checked_at,
        )

        failed_steps: List[str] = []
        first_error: Optional[Exception] = None

        steps = (
            ("health_status", lambda: self._record_health(deployment, probe_result, checked_at)),
            ("log", lambda: self._record_log(deployment, probe_result)),
            ("stats", lambda: self._record_stats(deployment, probe_result)),
        )
        for step_name, step in steps:
            try:
                await step()
            except DatabaseNotFoundError:
                # Deleted while the probe was in flight
                raise
            except Exception as e:
                logger.error(
                    f"[Check] {deployment.name}: recording {step_name} failed: {e}"
                )
                failed_steps.append(step_name)
                first_error = first_error or e

        if failed_steps:
            raise HealthCheckPersistenceError(
                f"Health check for {deployment.name} completed but "
                f"{', '.join(failed_steps)} could not be recorded",
                failed_steps=failed_steps,
                result=result.to_dict(),
                cause=first_error,
            )

        logger.info(
            f"[Check] {deployment.name} → {result.health_status} "
            f"({result.response_time_ms}ms)"
        )
        return result

    async def _record_health(
        self,
        deployment: Deployment,
        probe_result: ProbeResult,
        checked_at: datetime,
    ) -> None:
        await self.deployments.set_health(
            deployment.id, probe_result.status.value, checked_at
        )

    async def _record_log(self, deployment: Deployment, probe_result: ProbeResult) -> None:
        message = (
            probe_result.error_message
            or f"Health check completed: {probe_result.status.value}"
        )
        await self.event_log.append(
            deployment.id,
            LogType.HEALTH_CHECK,
            message,
            {
                "status": probe_result.status.value,
                "response_time_ms": probe_result.response_time_ms,
                "error": probe_result.error_message,
            },
        )

    async def _record_stats(self, deployment: Deployment, probe_result: ProbeResult) -> None:
        await self.aggregator.record_outcome(
            deployment.id,
            probe_result.is_healthy,
            probe_result.response_time_ms,
        )

    # ------------------------------------------------------------------
    # SWEEP
    # ------------------------------------------------------------------

    @log_execution_time
    async def run_sweep(self) -> SweepSummary:
        """
        Run a check for every registered deployment.

        Checks run concurrently, bounded by ``max_concurrent_checks``.
        A failure for one deployment is logged and never stops the others.
        """
        deployment_ids = await self.registry.list_ids()
        summary = SweepSummary()

        if not deployment_ids:
            return summary

        logger.debug(f"[Sweep] Checking {len(deployment_ids)} deployments")

        results = await asyncio.gather(
            *(self._run_guarded(deployment_id) for deployment_id in deployment_ids),
            return_exceptions=True,
        )

        for deployment_id, outcome in zip(deployment_ids, results):
            summary.checked += 1
            if isinstance(outcome, BaseException):
                summary.failed += 1
                summary.failed_ids.append(deployment_id)
                logger.error(f"[Sweep] Check for {deployment_id} raised: {outcome}")
            elif outcome.health_status == "healthy":
                summary.healthy += 1
            else:
                summary.unhealthy += 1

        logger.info(
            f"[Sweep] {summary.checked} checked, {summary.healthy} healthy, "
            f"{summary.unhealthy} unhealthy, {summary.failed} failed"
        )
        return summary

    async def _run_guarded(self, deployment_id: str) -> HealthCheckResult:
        """
        Acquire the concurrency semaphore, run the check, release.
        """
        async with self._semaphore:
            self._in_flight += 1
            try:
                return await self.run_check(deployment_id)
            finally:
                self._in_flight -= 1


# ============================================================================
# END OF ORCHESTRATOR MODULE
# ============================================================================
