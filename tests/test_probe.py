"""Tests for HealthProbe classification against a mocked transport."""

import asyncio

import httpx

from database.models import HealthStatus


async def test_ok_response_is_healthy(probe, handler_box):
    result = await probe.probe_url("https://svc.example.com/")

    assert result.status == HealthStatus.HEALTHY
    assert result.is_healthy
    assert result.error_message is None
    assert result.status_code == 200
    assert result.response_time_ms >= 0


async def test_server_error_is_unhealthy(probe, handler_box):
    handler_box["handler"] = lambda request: httpx.Response(503)

    result = await probe.probe_url("https://svc.example.com/")

    assert result.status == HealthStatus.UNHEALTHY
    assert result.error_message == "HTTP 503: Service Unavailable"
    assert result.status_code == 503


async def test_not_found_is_unhealthy(probe, handler_box):
    handler_box["handler"] = lambda request: httpx.Response(404)

    result = await probe.probe_url("https://svc.example.com/missing")

    assert not result.is_healthy
    assert result.error_message == "HTTP 404: Not Found"


async def test_redirect_is_followed(probe, handler_box):
    def handler(request):
        if request.url.path == "/old":
            return httpx.Response(302, headers={"Location": "https://svc.example.com/new"})
        return httpx.Response(200)

    handler_box["handler"] = handler

    result = await probe.probe_url("https://svc.example.com/old")

    assert result.is_healthy
    assert result.status_code == 200


async def test_slow_target_times_out(probe, handler_box):
    probe.timeout = 0.2

    async def slow(request):
        await asyncio.sleep(2)
        return httpx.Response(200)

    handler_box["handler"] = slow

    result = await probe.probe_url("https://slow.example.com/")

    assert result.status == HealthStatus.UNHEALTHY
    assert result.error_message == "Request timed out after 0.2s"
    assert result.status_code is None
    assert 0.9 * 200 <= result.response_time_ms <= 1.5 * 200


async def test_connection_error_is_unhealthy(probe, handler_box):
    def refuse(request):
        raise httpx.ConnectError("Connection refused", request=request)

    handler_box["handler"] = refuse

    result = await probe.probe_url("https://down.example.com/")

    assert result.status == HealthStatus.UNHEALTHY
    assert result.error_message == "Connection refused"


async def test_health_check_url_preferred(probe, handler_box, registry):
    seen = []

    def record(request):
        seen.append(str(request.url))
        return httpx.Response(200)

    handler_box["handler"] = record
    deployment = await registry.create({
        "name": "web",
        "url": "https://web.example.com",
        "health_check_url": "https://web.example.com/healthz",
    })

    await probe.probe(deployment)

    assert seen == ["https://web.example.com/healthz"]


async def test_user_agent_header_sent(probe, handler_box):
    seen = {}

    def record(request):
        seen["ua"] = request.headers.get("User-Agent")
        return httpx.Response(204)

    handler_box["handler"] = record

    result = await probe.probe_url("https://svc.example.com/")

    assert result.is_healthy
    assert seen["ua"] == "DeploymentMonitor/1.0"
