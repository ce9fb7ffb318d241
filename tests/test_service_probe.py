"""Tests for statusboard.collectors.service_probe."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from statusboard.collectors.service_probe import ServiceProbe
from statusboard.models import ServiceState, ServiceTarget

API = ServiceTarget(name="api", url="http://api.test/health")


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_2xx_is_healthy():
    async with _client(lambda req: httpx.Response(200, json={"status": "ok", "version": "2.1.0"})) as client:
        status = await ServiceProbe(client).probe(API, timeout=1.0)

    assert status.state == ServiceState.HEALTHY
    assert status.error is None
    assert status.status_code == 200
    assert status.version == "2.1.0"
    assert status.response_time_ms >= 0
    assert status.name == "api"
    assert status.url == API.url


@pytest.mark.asyncio
async def test_non_json_body_has_no_version():
    async with _client(lambda req: httpx.Response(204)) as client:
        status = await ServiceProbe(client).probe(API, timeout=1.0)

    assert status.state == ServiceState.HEALTHY
    assert status.version is None


@pytest.mark.asyncio
async def test_non_2xx_is_critical():
    async with _client(lambda req: httpx.Response(503, text="down")) as client:
        status = await ServiceProbe(client).probe(API, timeout=1.0)

    assert status.state == ServiceState.CRITICAL
    assert status.error == "HTTP 503"
    assert status.status_code == 503


@pytest.mark.asyncio
async def test_connection_error_is_critical():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    async with _client(handler) as client:
        status = await ServiceProbe(client).probe(API, timeout=1.0)

    assert status.state == ServiceState.CRITICAL
    assert "Connection refused" in status.error
    assert status.status_code is None


@pytest.mark.asyncio
async def test_transport_timeout_is_critical():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    async with _client(handler) as client:
        status = await ServiceProbe(client).probe(API, timeout=0.5)

    assert status.state == ServiceState.CRITICAL
    assert status.error == "timed out after 0.5s"


@pytest.mark.asyncio
async def test_hard_timeout_bounds_slow_response():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(2.0)
        return httpx.Response(200)

    loop = asyncio.get_running_loop()
    async with _client(handler) as client:
        start = loop.time()
        status = await ServiceProbe(client).probe(API, timeout=0.1)
        elapsed = loop.time() - start

    assert status.state == ServiceState.CRITICAL
    assert "timed out" in status.error
    assert elapsed < 1.0


@pytest.mark.asyncio
async def test_no_retry_on_failure():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    async with _client(handler) as client:
        await ServiceProbe(client).probe(API, timeout=1.0)

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_local_target_skips_network():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    async with _client(handler) as client:
        status = await ServiceProbe(client).probe(ServiceTarget(name="system", url="local"))

    assert status.state == ServiceState.HEALTHY
    assert status.is_system is True
    assert status.response_time_ms == 0
    assert calls == []
