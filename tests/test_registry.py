"""Tests for DeploymentRegistry CRUD and its log entries."""

import pytest

from exceptions import (
    DatabaseDuplicateError,
    DatabaseNotFoundError,
    FieldTooLongError,
    InvalidFormatError,
    InvalidURLError,
    MissingFieldError,
)


async def test_create_applies_defaults(registry):
    deployment = await registry.create({"name": "api", "url": "https://api.example.com"})

    assert deployment.id
    assert deployment.display_name == "api"
    assert deployment.platform == "render"
    assert deployment.branch == "main"
    assert deployment.environment == "production"
    assert deployment.status == "deployed"
    assert deployment.health_status == "unknown"
    assert deployment.last_health_check_at is None
    assert deployment.check_url == "https://api.example.com"


async def test_create_writes_created_log(registry):
    deployment = await registry.create({
        "name": "api",
        "display_name": "Public API",
        "url": "https://api.example.com",
        "platform": "vercel",
    })

    view = await registry.get(deployment.id)
    assert len(view.logs) == 1
    entry = view.logs[0]
    assert entry.log_type == "created"
    assert entry.message == "Deployment Public API created"
    assert entry.meta == {"url": "https://api.example.com", "platform": "vercel"}
    assert view.stats == []


async def test_create_keeps_metadata(registry):
    deployment = await registry.create({
        "name": "api",
        "url": "https://api.example.com",
        "metadata": {"team": "core", "tier": 1},
    })

    assert deployment.to_dict()["metadata"] == {"team": "core", "tier": 1}


async def test_duplicate_name_rejected(registry, deployment):
    with pytest.raises(DatabaseDuplicateError) as exc_info:
        await registry.create({"name": "api", "url": "https://other.example.com"})

    assert exc_info.value.http_status == 409


@pytest.mark.parametrize(
    "payload, field",
    [
        ({"url": "https://api.example.com"}, "name"),
        ({"name": "   ", "url": "https://api.example.com"}, "name"),
        ({"name": "api"}, "url"),
    ],
)
async def test_missing_required_field(registry, payload, field):
    with pytest.raises(MissingFieldError) as exc_info:
        await registry.create(payload)

    assert exc_info.value.details["field"] == field
    assert await registry.list_ids() == []


async def test_invalid_url_rejected(registry):
    with pytest.raises(InvalidURLError):
        await registry.create({"name": "api", "url": "ftp://api.example.com"})

    with pytest.raises(InvalidURLError):
        await registry.create({"name": "api", "url": "not a url"})


async def test_unknown_platform_rejected(registry):
    with pytest.raises(InvalidFormatError) as exc_info:
        await registry.create({"name": "api", "url": "https://a.example.com", "platform": "heroku"})

    assert "render" in exc_info.value.details["allowed"]


async def test_overlong_name_rejected(registry):
    with pytest.raises(FieldTooLongError):
        await registry.create({"name": "x" * 300, "url": "https://a.example.com"})


async def test_update_records_diff(registry, deployment):
    updated = await registry.update(deployment.id, {
        "url": "https://api-v2.example.com",
        "branch": "main",
        "notes": "moved",
    })

    assert updated.url == "https://api-v2.example.com"
    assert updated.notes == "moved"

    view = await registry.get(deployment.id)
    entry = view.logs[0]
    assert entry.log_type == "updated"
    assert entry.message == "Deployment api updated"
    assert entry.meta["changes"] == {
        "url": {"old": "https://api.example.com", "new": "https://api-v2.example.com"},
        "notes": {"old": None, "new": "moved"},
    }


async def test_update_metadata_reported_under_metadata_key(registry, deployment):
    await registry.update(deployment.id, {"metadata": {"team": "edge"}})

    view = await registry.get(deployment.id)
    assert view.logs[0].meta["changes"] == {
        "metadata": {"old": {}, "new": {"team": "edge"}},
    }


async def test_noop_update_writes_no_log(registry, deployment):
    unchanged = await registry.update(deployment.id, {"branch": "main"})
    empty = await registry.update(deployment.id, {})

    assert unchanged.id == empty.id == deployment.id
    view = await registry.get(deployment.id)
    assert [entry.log_type for entry in view.logs] == ["created"]


async def test_update_rejects_read_only_fields(registry, deployment):
    with pytest.raises(InvalidFormatError) as exc_info:
        await registry.update(deployment.id, {"health_status": "healthy"})

    assert exc_info.value.details["field"] == "health_status"
    stored = await registry.get_deployment(deployment.id)
    assert stored.health_status == "unknown"


async def test_update_rejects_unknown_fields(registry, deployment):
    with pytest.raises(InvalidFormatError):
        await registry.update(deployment.id, {"colour": "blue"})


async def test_rename_to_taken_name_rejected(registry, deployment):
    other = await registry.create({"name": "worker", "url": "https://w.example.com"})

    with pytest.raises(DatabaseDuplicateError):
        await registry.update(other.id, {"name": "api"})


async def test_update_unknown_deployment(registry):
    with pytest.raises(DatabaseNotFoundError):
        await registry.update("missing", {"notes": "x"})


async def test_delete_removes_history(registry, aggregator, deployment):
    await aggregator.record_outcome(deployment.id, True, 10)

    await registry.delete(deployment.id)

    with pytest.raises(DatabaseNotFoundError):
        await registry.get(deployment.id)
    assert await registry.event_log.repository.count_for_deployment(deployment.id) == 0
    assert await aggregator.daily_stats(deployment.id) == []


async def test_delete_unknown_deployment(registry):
    with pytest.raises(DatabaseNotFoundError) as exc_info:
        await registry.delete("missing")

    assert exc_info.value.user_message() == "Deployment not found"


async def test_list_orders_oldest_first_with_preview(registry, settings):
    first = await registry.create({"name": "a", "url": "https://a.example.com"})
    second = await registry.create({"name": "b", "url": "https://b.example.com"})
    for i in range(settings.monitoring.preview_log_limit + 2):
        await registry.update(first.id, {"notes": f"rev {i}"})

    views = await registry.list()

    assert [view.deployment.id for view in views] == [first.id, second.id]
    assert len(views[0].logs) == settings.monitoring.preview_log_limit
    assert views[0].logs[0].message == "Deployment a updated"

    data = views[0].to_dict()
    assert "deployment_logs" in data and "deployment_stats" in data
