from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from statusboard.engine.aggregator import SnapshotAggregator
from statusboard.engine.alert_log import AlertLog
from statusboard.engine.poller import Poller
from statusboard.models import ServiceState, ServiceStatus, ServiceTarget, SystemMetrics

TARGETS = [ServiceTarget(name="api", url="http://api.test/health")]


class StubSource:
    async def collect(self) -> SystemMetrics:
        return SystemMetrics(memory_used_bytes=500, memory_total_bytes=1000, hostname="stub-host")


class StubProbe:
    async def probe(self, target: ServiceTarget, timeout: float = 5.0) -> ServiceStatus:
        return ServiceStatus(name=target.name, url=target.url, state=ServiceState.HEALTHY)


def _aggregator() -> SnapshotAggregator:
    return SnapshotAggregator(StubSource(), StubProbe(), alert_log=AlertLog(retention=50))


# ── lifecycle ──────────────────────────────────────────

@pytest.mark.asyncio
async def test_poller_polls_repeatedly():
    aggregator = _aggregator()
    poller = Poller(aggregator, TARGETS, interval=0.05)

    await poller.start()
    await asyncio.sleep(0.2)
    await poller.stop()

    assert aggregator.alert_log.total_checks >= 2
    assert aggregator.latest is not None


@pytest.mark.asyncio
async def test_start_stop_idempotent():
    poller = Poller(_aggregator(), TARGETS, interval=10.0)

    await poller.start()
    await poller.start()  # double start
    assert poller.running is True

    await poller.stop()
    await poller.stop()  # double stop
    assert poller.running is False
    assert poller._task is None


@pytest.mark.asyncio
async def test_poller_survives_poll_error():
    aggregator = _aggregator()
    aggregator.poll = AsyncMock(side_effect=RuntimeError("poll failed"))
    poller = Poller(aggregator, TARGETS, interval=0.05)

    await poller.start()
    await asyncio.sleep(0.2)
    assert poller.running is True
    await poller.stop()

    assert aggregator.poll.await_count >= 2


# ── reports ────────────────────────────────────────────

@pytest.mark.asyncio
async def test_run_once_writes_report(tmp_path):
    report = tmp_path / "reports" / "status.html"
    poller = Poller(_aggregator(), TARGETS, report_path=report)

    snapshot = await poller.run_once()

    html = report.read_text()
    assert "System Status: HEALTHY" in html
    assert "Total Checks: 1" in html
    assert "setInterval" not in html
    assert snapshot.services[0].name == "api"


@pytest.mark.asyncio
async def test_report_failure_does_not_break_poll(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    poller = Poller(_aggregator(), TARGETS, report_path=blocker / "status.html")

    snapshot = await poller.run_once()

    assert snapshot is not None
    assert poller.aggregator.alert_log.total_checks == 1
