"""Tests for statusboard.api routes."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from statusboard.engine import AlertLog, SnapshotAggregator
from statusboard.errors import MetricUnavailable
from statusboard.main import app
from statusboard.models import DisplayInfo, ServiceState, ServiceStatus, ServiceTarget, SystemMetrics


# ── fixtures ───────────────────────────────────────────

class StubSource:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail

    async def collect(self) -> SystemMetrics:
        if self.fail:
            raise MetricUnavailable("no metrics here")
        return SystemMetrics(
            cpu_load=0.4,
            memory_used_bytes=800,
            memory_total_bytes=1000,
            disk_used_bytes=10,
            disk_total_bytes=100,
            process_count=42,
            hostname="api-test",
        )


class StubProbe:
    async def probe(self, target: ServiceTarget, timeout: float = 5.0) -> ServiceStatus:
        if target.name == "broken":
            return ServiceStatus(
                name=target.name, url=target.url, state=ServiceState.CRITICAL, error="timed out after 5.0s"
            )
        return ServiceStatus(name=target.name, url=target.url, state=ServiceState.HEALTHY, response_time_ms=3)


TARGETS = [
    ServiceTarget(name="api", url="http://api.test/health"),
    ServiceTarget(name="broken", url="http://broken.test/health"),
    ServiceTarget(name="system", url="local"),
]


def _install_state(source: StubSource) -> None:
    alert_log = AlertLog(retention=10)
    app.state.aggregator = SnapshotAggregator(
        source, StubProbe(), alert_log=alert_log, display=DisplayInfo(title="Test Board")
    )
    app.state.alert_log = alert_log
    app.state.targets = TARGETS
    app.state.probe_timeout = 1.0
    app.state.refresh_seconds = 30


@pytest.fixture
def _setup_app_state():
    """Inject minimal app.state so routes work without full lifespan."""
    _install_state(StubSource())
    yield
    for name in ("aggregator", "alert_log", "targets", "probe_timeout", "refresh_seconds"):
        delattr(app.state, name)


@pytest.fixture
async def client(_setup_app_state):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ── REST tests ─────────────────────────────────────────

class TestHealth:
    @pytest.mark.asyncio
    async def test_liveness(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert set(data) == {"status", "service", "version", "port"}


class TestStatus:
    @pytest.mark.asyncio
    async def test_full_snapshot(self, client: AsyncClient):
        resp = await client.get("/api/status")
        assert resp.status_code == 200
        data = resp.json()
        assert [s["name"] for s in data["services"]] == ["api", "broken", "system"]
        assert data["overall_health"] == "CRITICAL"
        assert len(data["alerts"]) == 1
        assert data["alerts"][0]["source"] == "broken"
        assert data["alerts"][0]["label"].startswith("CRITICAL: Service broken is down")
        assert data["system"]["process_count"] == 42
        assert data["display"]["title"] == "Test Board"

    @pytest.mark.asyncio
    async def test_status_records_history(self, client: AsyncClient):
        await client.get("/api/status")
        await client.get("/api/status")
        resp = await client.get("/api/history")
        assert resp.status_code == 200
        data = resp.json()
        assert data["summary"]["total_checks"] == 2
        assert data["summary"]["total_alerts"] == 2
        assert len(data["checks"]) == 2
        assert data["checks"][0]["alerts"] == ["CRITICAL: Service broken is down: timed out after 5.0s"]

    @pytest.mark.asyncio
    async def test_history_limit(self, client: AsyncClient):
        for _ in range(3):
            await client.get("/api/status")
        resp = await client.get("/api/history", params={"limit": 1})
        assert len(resp.json()["checks"]) == 1


class TestSystem:
    @pytest.mark.asyncio
    async def test_system_metrics(self, client: AsyncClient):
        resp = await client.get("/api/system")
        assert resp.status_code == 200
        data = resp.json()
        assert data["hostname"] == "api-test"
        assert data["memory_used_ratio"] == 0.8

    @pytest.mark.asyncio
    async def test_system_fallback(self, client: AsyncClient):
        _install_state(StubSource(fail=True))
        resp = await client.get("/api/system")
        assert resp.status_code == 200
        data = resp.json()
        assert data["degraded"] is True
        assert "no metrics here" in data["error"]


class TestServiceHealth:
    @pytest.mark.asyncio
    async def test_known_service(self, client: AsyncClient):
        resp = await client.get("/api/health/api")
        assert resp.status_code == 200
        assert resp.json()["state"] == "HEALTHY"

    @pytest.mark.asyncio
    async def test_critical_service(self, client: AsyncClient):
        resp = await client.get("/api/health/broken")
        assert resp.status_code == 200
        data = resp.json()
        assert data["state"] == "CRITICAL"
        assert data["error"]

    @pytest.mark.asyncio
    async def test_unknown_service_404(self, client: AsyncClient):
        resp = await client.get("/api/health/nope")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Service not found"}


class TestDashboard:
    @pytest.mark.asyncio
    async def test_html_page(self, client: AsyncClient):
        resp = await client.get("/")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "System Status: CRITICAL" in resp.text
        assert "setInterval(refreshStatus, 30000)" in resp.text

    @pytest.mark.asyncio
    async def test_html_uses_latest_snapshot(self, client: AsyncClient):
        await client.get("/api/status")
        aggregator = app.state.aggregator
        latest = aggregator.latest
        resp = await client.get("/")
        assert resp.status_code == 200
        assert aggregator.latest is latest
        assert app.state.alert_log.total_checks == 1
