"""
============================================================================
DEPLOYMENT MONITOR - BACKGROUND TASK SCHEDULER
============================================================================
A lightweight, asyncio-native task scheduler that drives the periodic
health sweep. All jobs run as coroutines in the same event loop, so the
deployment stays a single process with no broker.

Registered Jobs
---------------
1.  health_sweep     (every MONITOR_CHECK_INTERVAL, default 5 min)
    Runs a health check for every registered deployment, bounded by
    MONITOR_MAX_CONCURRENT_CHECKS.

2.  heartbeat        (every MONITOR_HEARTBEAT_INTERVAL, default 10 min)
    Logs a heartbeat with database connectivity so operators can verify
    the service is alive during quiet periods.

A job never overlaps with itself: if a run is still in progress when the
job comes due again, that tick is skipped.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set

from config.settings import MonitoringSettings
from database.connection import DatabaseManager
from monitoring.orchestrator import MonitoringOrchestrator
from utils.helpers import TimeHelper
from utils.logger import get_logger


logger = get_logger("Scheduler")


# ============================================================================
# JOB DEFINITION
# ============================================================================

@dataclass
class ScheduledJob:
    """
    Describes a single periodic background job.

    Attributes
    ----------
    name : str
        Human-readable identifier (used in logs).
    interval_seconds : int
        How often the job runs.
    coroutine_factory : Callable
        An async callable (no arguments) that performs the work.
    enabled : bool
        Can be toggled at runtime.
    last_run : Optional[float]
        Epoch timestamp of the last successful execution.
    next_run : float
        Epoch timestamp when the job should next execute.
    run_count : int
        Total number of successful executions since startup.
    error_count : int
        Total number of failed executions since startup.
    running : bool
        Whether an execution is currently in progress.
    """
    name: str
    interval_seconds: int
    coroutine_factory: Callable
    enabled: bool = True
    last_run: Optional[float] = None
    next_run: float = field(default_factory=time.time)
    run_count: int = 0
    error_count: int = 0
    running: bool = False


def _epoch_to_iso(value: Optional[float]) -> Optional[str]:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()


# ============================================================================
# SCHEDULER
# ============================================================================

class Scheduler:
    """
    Asyncio-based periodic job scheduler.

    Usage
    -----
        scheduler = Scheduler(settings.monitoring, db_manager, orchestrator)
        await scheduler.start()
        # ... later ...
        await scheduler.stop()
    """

    def __init__(
        self,
        settings: MonitoringSettings,
        db_manager: DatabaseManager,
        orchestrator: MonitoringOrchestrator,
        tick_interval: float = 2.0,
    ):
        self.settings = settings
        self.db_manager = db_manager
        self.orchestrator = orchestrator

        self._jobs: Dict[str, ScheduledJob] = {}
        self._running = False
        self._loop_task: Optional[asyncio.Task] = None
        self._job_tasks: Set[asyncio.Task] = set()
        self._tick_interval = tick_interval  # how often the main loop wakes up to check jobs
        self._started_at: Optional[float] = None

        # Register built-in jobs
        self._register_builtin_jobs()

        logger.info(
            f"Scheduler created with {len(self._jobs)} built-in jobs"
        )

    # ------------------------------------------------------------------
    # JOB REGISTRATION
    # ------------------------------------------------------------------

    def register_job(
        self,
        name: str,
        interval_seconds: int,
        coroutine_factory: Callable,
        enabled: bool = True,
    ) -> None:
        """
        Register a new periodic job.

        Parameters
        ----------
        name : str
            Unique job name.
        interval_seconds : int
            Period in seconds.
        coroutine_factory : Callable
            An async callable that takes no arguments.
        enabled : bool
            Whether the job starts enabled.
        """
        if name in self._jobs:
            logger.warning(f"[Scheduler] Job '{name}' already registered, overwriting")

        self._jobs[name] = ScheduledJob(
            name=name,
            interval_seconds=interval_seconds,
            coroutine_factory=coroutine_factory,
            enabled=enabled,
            next_run=time.time(),  # run immediately on first tick
        )
        logger.debug(f"[Scheduler] Registered job '{name}' (interval={interval_seconds}s)")

    def enable_job(self, name: str) -> bool:
        """Enable a job by name. Returns True if found."""
        if name in self._jobs:
            self._jobs[name].enabled = True
            return True
        return False

    def disable_job(self, name: str) -> bool:
        """Disable a job by name. Returns True if found."""
        if name in self._jobs:
            self._jobs[name].enabled = False
            return True
        return False

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scheduler loop."""
        if self._running:
            logger.warning("Scheduler is already running")
            return
        self._running = True
        self._started_at = time.time()
        self._loop_task = asyncio.create_task(self._main_loop())
        logger.info("✓ Scheduler started")

    async def stop(self) -> None:
        """Stop the scheduler loop and cancel jobs still in progress."""
        self._running = False
        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        for task in list(self._job_tasks):
            task.cancel()
        if self._job_tasks:
            await asyncio.gather(*self._job_tasks, return_exceptions=True)

        logger.info("✓ Scheduler stopped")

    # ------------------------------------------------------------------
    # MAIN LOOP
    # ------------------------------------------------------------------

    async def _main_loop(self) -> None:
        """
        Wake up every _tick_interval seconds.  For each enabled job whose
        next_run time has arrived, launch it as a background task.
        """
        logger.info("[Scheduler] Main loop started")
        while self._running:
            now = time.time()
            for job in self._jobs.values():
                if job.enabled and now >= job.next_run:
                    # Advance next_run immediately so we don't re-trigger
                    job.next_run = now + job.interval_seconds

                    if job.running:
                        logger.warning(
                            f"[Scheduler] Job '{job.name}' still running, skipping this run"
                        )
                        continue

                    task = asyncio.create_task(self._execute_job(job))
                    self._job_tasks.add(task)
                    task.add_done_callback(self._job_tasks.discard)

            try:
                await asyncio.sleep(self._tick_interval)
            except asyncio.CancelledError:
                break

        logger.info("[Scheduler] Main loop exited")

    # ------------------------------------------------------------------
    # JOB EXECUTION
    # ------------------------------------------------------------------

    async def _execute_job(self, job: ScheduledJob) -> None:
        """
        Run a single job, capture timing and errors.
        """
        job.running = True
        start_time = time.perf_counter()
        try:
            logger.debug(f"[Scheduler] Running job '{job.name}'…")
            await job.coroutine_factory()
            elapsed = time.perf_counter() - start_time

            job.run_count += 1
            job.last_run = time.time()
            logger.debug(
                f"[Scheduler] Job '{job.name}' completed in {elapsed:.2f}s "
                f"(run #{job.run_count})"
            )

        except Exception as e:
            job.error_count += 1
            elapsed = time.perf_counter() - start_time
            logger.opt(exception=e).error(
                f"[Scheduler] Job '{job.name}' FAILED after {elapsed:.2f}s: {e}"
            )
        finally:
            job.running = False

    async def run_job_now(self, name: str) -> None:
        """
        Execute a registered job immediately, outside the tick loop.

        Raises:
            KeyError: If no job with that name exists
        """
        await self._execute_job(self._jobs[name])

    # ------------------------------------------------------------------
    # DIAGNOSTICS
    # ------------------------------------------------------------------

    def get_job_stats(self) -> List[Dict[str, Any]]:
        """Return status of all registered jobs."""
        return [
            {
                "name": job.name,
                "interval_seconds": job.interval_seconds,
                "enabled": job.enabled,
                "running": job.running,
                "run_count": job.run_count,
                "error_count": job.error_count,
                "last_run": _epoch_to_iso(job.last_run),
                "next_run": _epoch_to_iso(job.next_run),
            }
            for job in self._jobs.values()
        ]

    # ==================================================================
    # BUILT-IN JOBS
    # ==================================================================

    def _register_builtin_jobs(self) -> None:
        """Register all built-in periodic jobs."""

        # 1. Health sweep over every deployment
        self.register_job(
            "health_sweep",
            interval_seconds=self.settings.check_interval,
            coroutine_factory=self._job_health_sweep,
        )

        # 2. Heartbeat
        self.register_job(
            "heartbeat",
            interval_seconds=self.settings.heartbeat_interval,
            coroutine_factory=self._job_heartbeat,
        )

    # ------------------------------------------------------------------
    # JOB: Health Sweep
    # ------------------------------------------------------------------

    async def _job_health_sweep(self) -> None:
        """
        Check every deployment once. Individual failures are counted and
        logged by the orchestrator; only a failure to enumerate the
        deployments fails the job.
        """
        summary = await self.orchestrator.run_sweep()
        if summary.failed:
            logger.warning(
                f"[Sweep] {summary.failed} of {summary.checked} checks "
                f"could not be completed: {summary.failed_ids}"
            )

    # ------------------------------------------------------------------
    # JOB: Heartbeat
    # ------------------------------------------------------------------

    async def _job_heartbeat(self) -> None:
        """
        Write a heartbeat log entry.  If you see heartbeats in the log,
        the service is alive.
        """
        is_alive = await self.db_manager.check_connection()
        uptime = time.time() - (self._started_at or time.time())
        logger.info(
            f"[Heartbeat] ✓ Monitor alive — up {TimeHelper.seconds_to_human_readable(uptime)}, "
            f"db={'OK' if is_alive else 'FAIL'}, "
            f"in_flight={self.orchestrator.in_flight_checks}"
        )


# ============================================================================
# END OF SCHEDULER MODULE
# ============================================================================
