"""
============================================================================
DEPLOYMENT MONITOR - MONITORING PACKAGE
============================================================================
Health monitoring core and its periodic driver:
    • DeploymentRegistry     - monitored targets and their configuration
    • HealthProbe            - one bounded-time liveness check
    • EventLogAppender       - immutable per-deployment event trail
    • DailyStatsAggregator   - per-day running statistics buckets
    • MonitoringOrchestrator - Probe → Log → Aggregate facade and sweeps
    • Scheduler              - periodic background job runner

File layout
-----------
monitoring/
├── __init__.py          ← this file
├── registry.py          ← DeploymentRegistry + DeploymentView
├── probe.py             ← HealthProbe + ProbeResult
├── event_log.py         ← EventLogAppender
├── aggregator.py        ← DailyStatsAggregator
├── orchestrator.py      ← MonitoringOrchestrator + HealthCheckResult
└── scheduler.py         ← Scheduler + built-in periodic jobs

============================================================================
"""

from monitoring.registry import DeploymentRegistry, DeploymentView
from monitoring.probe import HealthProbe, ProbeResult
from monitoring.event_log import EventLogAppender
from monitoring.aggregator import DailyStatsAggregator
from monitoring.orchestrator import MonitoringOrchestrator, HealthCheckResult, SweepSummary
from monitoring.scheduler import Scheduler, ScheduledJob

__all__ = [
    # Registry
    "DeploymentRegistry",
    "DeploymentView",

    # Probe
    "HealthProbe",
    "ProbeResult",

    # Event log & statistics
    "EventLogAppender",
    "DailyStatsAggregator",

    # Orchestration
    "MonitoringOrchestrator",
    "HealthCheckResult",
    "SweepSummary",

    # Scheduler
    "Scheduler",
    "ScheduledJob",
]
