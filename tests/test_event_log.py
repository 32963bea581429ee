"""Tests for EventLogAppender."""

import pytest

from database.models import LogType
from exceptions import DatabaseNotFoundError


async def test_append_stores_entry(event_log, deployment):
    entry = await event_log.append(
        deployment.id, LogType.DEPLOYED, "Release 42 live", {"version": "42"}
    )

    assert entry.id is not None
    assert entry.log_type == "deployed"
    assert entry.to_dict()["metadata"] == {"version": "42"}
    assert entry.to_dict()["created_at"].endswith("+00:00")


async def test_append_accepts_string_type(event_log, deployment):
    entry = await event_log.append(deployment.id, "health_check", "ok")

    assert entry.log_type == LogType.HEALTH_CHECK.value
    assert entry.meta == {}


async def test_append_rejects_unknown_type(event_log, deployment):
    with pytest.raises(ValueError):
        await event_log.append(deployment.id, "rebooted", "nope")


async def test_append_for_unknown_deployment(event_log):
    with pytest.raises(DatabaseNotFoundError):
        await event_log.append("missing", LogType.CREATED, "orphan")


async def test_recent_is_newest_first_and_limited(event_log, deployment):
    for i in range(4):
        await event_log.append(deployment.id, LogType.DEPLOYED, f"deploy {i}")

    entries = await event_log.recent(deployment.id, limit=3)

    assert [entry.message for entry in entries] == ["deploy 3", "deploy 2", "deploy 1"]
