"""Tests for the periodic job scheduler."""

import asyncio

import pytest

from monitoring.scheduler import Scheduler


@pytest.fixture
def scheduler(settings, db_manager, orchestrator):
    return Scheduler(settings.monitoring, db_manager, orchestrator, tick_interval=0.01)


def job_stats(scheduler, name):
    return next(job for job in scheduler.get_job_stats() if job["name"] == name)


async def test_builtin_jobs_registered(scheduler, settings):
    names = {job["name"] for job in scheduler.get_job_stats()}

    assert names == {"health_sweep", "heartbeat"}
    assert job_stats(scheduler, "health_sweep")["interval_seconds"] == settings.monitoring.check_interval


async def test_health_sweep_job_checks_deployments(scheduler, registry, deployment):
    await scheduler.run_job_now("health_sweep")

    stored = await registry.get_deployment(deployment.id)
    assert stored.health_status == "healthy"
    stats = job_stats(scheduler, "health_sweep")
    assert stats["run_count"] == 1
    assert stats["error_count"] == 0
    assert stats["last_run"] is not None


async def test_heartbeat_job_runs(scheduler):
    await scheduler.run_job_now("heartbeat")

    assert job_stats(scheduler, "heartbeat")["run_count"] == 1


async def test_failing_job_counts_error(scheduler):
    async def boom():
        raise RuntimeError("boom")

    scheduler.register_job("boom", 60, boom)
    await scheduler.run_job_now("boom")

    stats = job_stats(scheduler, "boom")
    assert stats["error_count"] == 1
    assert stats["run_count"] == 0
    assert stats["running"] is False


async def test_unknown_job_raises(scheduler):
    with pytest.raises(KeyError):
        await scheduler.run_job_now("nope")


async def test_start_runs_due_jobs_and_stop(scheduler):
    calls = []

    async def tick():
        calls.append(1)

    scheduler.disable_job("health_sweep")
    scheduler.disable_job("heartbeat")
    scheduler.register_job("tick", 3600, tick)

    await scheduler.start()
    assert scheduler.is_running
    for _ in range(50):
        if calls:
            break
        await asyncio.sleep(0.01)
    await scheduler.stop()

    assert calls == [1]
    assert not scheduler.is_running


async def test_disable_and_enable_job(scheduler):
    assert scheduler.disable_job("heartbeat")
    assert job_stats(scheduler, "heartbeat")["enabled"] is False

    assert scheduler.enable_job("heartbeat")
    assert job_stats(scheduler, "heartbeat")["enabled"] is True

    assert not scheduler.enable_job("nope")
    assert not scheduler.disable_job("nope")
