"""End-to-end tests for the aiohttp API using the aiohttp test client."""

import httpx
import pytest
from aiohttp.test_utils import TestClient, TestServer
from pydantic import SecretStr

from api.auth import SessionManager
from api.server import ApiServer
from config.settings import SecuritySettings


async def make_client(settings, db_manager, registry, orchestrator, sessions=None):
    server = ApiServer(settings, db_manager, registry, orchestrator, sessions)
    client = TestClient(TestServer(server.app))
    await client.start_server()
    return client


@pytest.fixture
async def client(settings, db_manager, registry, orchestrator):
    client = await make_client(settings, db_manager, registry, orchestrator)
    yield client
    await client.close()


@pytest.fixture
async def secured_client(settings, db_manager, registry, orchestrator):
    sessions = SessionManager(
        SecuritySettings(
            auth_enabled=True,
            secret_key=SecretStr("api-secret"),
            admin_email="ops@example.com",
            admin_password=SecretStr("hunter2"),
        )
    )
    client = await make_client(settings, db_manager, registry, orchestrator, sessions)
    yield client
    await client.close()


async def create(client, **fields):
    payload = {"name": "api", "url": "https://api.example.com", **fields}
    response = await client.post("/deployments", json=payload)
    assert response.status == 201
    return await response.json()


# ----------------------------------------------------------------------
# Service health
# ----------------------------------------------------------------------

async def test_health_ok(client):
    response = await client.get("/health")
    body = await response.json()

    assert response.status == 200
    assert body["status"] == "ok"
    assert body["database"] == {"status": "connected", "error": None}
    assert body["version"] == "1.0.0"


async def test_health_degraded_when_database_down(client, db_manager):
    await db_manager.close()

    response = await client.get("/health")
    body = await response.json()

    assert response.status == 503
    assert body["status"] == "degraded"
    assert body["database"]["status"] == "error"


# ----------------------------------------------------------------------
# Deployments
# ----------------------------------------------------------------------

async def test_create_and_fetch(client):
    created = await create(client, platform="netlify")

    assert created["platform"] == "netlify"
    assert created["health_status"] == "unknown"

    response = await client.get(f"/deployments/{created['id']}")
    body = await response.json()

    assert response.status == 200
    assert body["name"] == "api"
    assert body["deployment_logs"][0]["log_type"] == "created"
    assert body["deployment_stats"] == []


async def test_list_deployments(client):
    await create(client, name="a")
    await create(client, name="b")

    response = await client.get("/deployments")
    body = await response.json()

    assert [item["name"] for item in body] == ["a", "b"]
    assert all("deployment_logs" in item for item in body)


async def test_create_validation_error_payload(client):
    response = await client.post("/deployments", json={"name": "api"})
    body = await response.json()

    assert response.status == 400
    assert body["error"] == "The url field is required"
    assert body["details"]["type"] == "MissingFieldError"
    assert body["details"]["field"] == "url"


async def test_create_duplicate_is_conflict(client):
    await create(client)

    response = await client.post(
        "/deployments", json={"name": "api", "url": "https://b.example.com"}
    )

    assert response.status == 409


async def test_invalid_json_body(client):
    response = await client.post(
        "/deployments", data="{not json", headers={"Content-Type": "application/json"}
    )
    body = await response.json()

    assert response.status == 400
    assert body["details"]["field"] == "body"


async def test_unknown_deployment_is_404(client):
    response = await client.get("/deployments/does-not-exist")
    body = await response.json()

    assert response.status == 404
    assert body["error"] == "Deployment not found"
    assert body["details"]["entity_id"] == "does-not-exist"


async def test_unknown_route_is_json_404(client):
    response = await client.get("/nowhere")
    body = await response.json()

    assert response.status == 404
    assert body["error"] == "Not Found"


async def test_patch_updates(client):
    created = await create(client)

    response = await client.patch(
        f"/deployments/{created['id']}", json={"display_name": "Public API"}
    )
    body = await response.json()

    assert response.status == 200
    assert body["display_name"] == "Public API"


async def test_patch_read_only_field_rejected(client):
    created = await create(client)

    response = await client.patch(
        f"/deployments/{created['id']}", json={"last_health_check_at": "2024-01-01T00:00:00Z"}
    )

    assert response.status == 400


async def test_delete(client):
    created = await create(client)

    response = await client.delete(f"/deployments/{created['id']}")
    assert response.status == 200
    assert await response.json() == {"message": "Deployment deleted successfully"}

    response = await client.delete(f"/deployments/{created['id']}")
    assert response.status == 404


async def test_health_check_endpoint(client, handler_box):
    created = await create(client)
    handler_box["handler"] = lambda request: httpx.Response(503)

    response = await client.post(f"/deployments/{created['id']}/health-check")
    body = await response.json()

    assert response.status == 200
    assert body["deployment_id"] == created["id"]
    assert body["health_status"] == "unhealthy"
    assert body["error"] == "HTTP 503: Service Unavailable"

    detail = await (await client.get(f"/deployments/{created['id']}")).json()
    assert detail["health_status"] == "unhealthy"
    assert detail["deployment_stats"][0]["error_count"] == 1


async def test_health_check_unknown_deployment(client):
    response = await client.post("/deployments/missing/health-check")

    assert response.status == 404


# ----------------------------------------------------------------------
# Auth gate
# ----------------------------------------------------------------------

async def test_gate_open_when_auth_disabled(client):
    response = await client.get("/deployments")

    assert response.status == 200


async def test_gate_requires_session(secured_client):
    response = await secured_client.get("/deployments")
    body = await response.json()

    assert response.status == 401
    assert body["details"]["type"] == "AuthenticationError"


async def test_gate_rejects_non_ascii_cookie(secured_client):
    response = await secured_client.get(
        "/deployments", headers={"Cookie": "ih_session=éx.éy"}
    )
    body = await response.json()

    assert response.status == 401
    assert body["details"]["reason"] == "invalid"


async def test_health_is_public(secured_client):
    response = await secured_client.get("/health")

    assert response.status == 200


async def test_login_missing_fields(secured_client):
    response = await secured_client.post("/auth/login", json={"email": "ops@example.com"})
    body = await response.json()

    assert response.status == 400
    assert body["error"] == "Email and password are required"
    assert body["details"]["field"] == "password"


@pytest.mark.parametrize(
    "payload", [{"email": 123, "password": "hunter2"}, {"email": "", "password": "hunter2"}]
)
async def test_login_invalid_email_field(secured_client, payload):
    response = await secured_client.post("/auth/login", json=payload)
    body = await response.json()

    assert response.status == 400
    assert body["details"]["field"] == "email"


async def test_login_bad_credentials(secured_client):
    response = await secured_client.post(
        "/auth/login", json={"email": "ops@example.com", "password": "nope"}
    )
    body = await response.json()

    assert response.status == 401
    assert body["error"] == "Invalid email or password"


async def test_login_then_logout(secured_client):
    response = await secured_client.post(
        "/auth/login", json={"email": "ops@example.com", "password": "hunter2"}
    )
    assert response.status == 200
    assert await response.json() == {"success": True, "email": "ops@example.com"}
    assert "ih_session" in response.cookies

    response = await secured_client.get("/deployments")
    assert response.status == 200

    response = await secured_client.post("/auth/logout")
    assert await response.json() == {"success": True}

    response = await secured_client.get("/deployments")
    assert response.status == 401
