"""Tests for the daily statistics buckets."""

import asyncio
from datetime import date, timedelta

import pytest

from exceptions import DatabaseNotFoundError


def assert_bucket_consistent(stat):
    assert stat.total_requests == stat.success_count + stat.error_count
    expected = stat.success_count * 100.0 / stat.total_requests
    assert stat.uptime_percentage == pytest.approx(expected)


async def test_first_outcome_creates_bucket(aggregator, deployment):
    stat = await aggregator.record_outcome(deployment.id, True, 120)

    assert stat.stat_date == date(2024, 3, 10)
    assert stat.total_requests == 1
    assert stat.success_count == 1
    assert stat.error_count == 0
    assert stat.uptime_percentage == pytest.approx(100.0)
    assert stat.response_time_ms == 120


async def test_first_unhealthy_outcome_has_zero_uptime(aggregator, deployment):
    stat = await aggregator.record_outcome(deployment.id, False, 40)

    assert stat.error_count == 1
    assert stat.uptime_percentage == pytest.approx(0.0)


async def test_same_day_outcomes_share_one_row(aggregator, deployment):
    await aggregator.record_outcome(deployment.id, True, 100)
    await aggregator.record_outcome(deployment.id, False, 300)
    stat = await aggregator.record_outcome(deployment.id, True, 200)

    rows = await aggregator.daily_stats(deployment.id)
    assert len(rows) == 1
    assert stat.total_requests == 3
    assert stat.success_count == 2
    assert stat.error_count == 1
    assert stat.uptime_percentage == pytest.approx(200.0 / 3)
    assert_bucket_consistent(stat)


async def test_response_time_keeps_latest_sample(aggregator, deployment):
    await aggregator.record_outcome(deployment.id, True, 100)
    stat = await aggregator.record_outcome(deployment.id, True, 900)

    assert stat.response_time_ms == 900


async def test_new_day_starts_new_bucket(aggregator, deployment, clock):
    await aggregator.record_outcome(deployment.id, True, 100)
    await aggregator.record_outcome(deployment.id, True, 100)

    clock.now = clock.now + timedelta(days=1)
    stat = await aggregator.record_outcome(deployment.id, False, 50)

    assert stat.stat_date == date(2024, 3, 11)
    assert stat.total_requests == 1
    assert stat.uptime_percentage == pytest.approx(0.0)

    rows = await aggregator.daily_stats(deployment.id)
    assert [row.stat_date for row in rows] == [date(2024, 3, 11), date(2024, 3, 10)]
    assert rows[1].total_requests == 2


async def test_concurrent_outcomes_are_not_lost(aggregator, deployment):
    outcomes = [i % 3 != 0 for i in range(12)]

    await asyncio.gather(
        *(aggregator.record_outcome(deployment.id, ok, 10) for ok in outcomes)
    )

    stat = await aggregator.repository.get_for_day(deployment.id, aggregator.today())
    assert stat.total_requests == 12
    assert stat.success_count == sum(outcomes)
    assert stat.error_count == 12 - sum(outcomes)
    assert_bucket_consistent(stat)
    assert aggregator._locks == {}


async def test_unknown_deployment_raises_not_found(aggregator):
    with pytest.raises(DatabaseNotFoundError):
        await aggregator.record_outcome("missing", True, 10)


async def test_stat_to_dict_rounds_uptime(aggregator, deployment):
    for ok in (True, True, False):
        stat = await aggregator.record_outcome(deployment.id, ok, 10)

    data = stat.to_dict()
    assert data["uptime_percentage"] == 66.67
    assert data["stat_date"] == "2024-03-10"
