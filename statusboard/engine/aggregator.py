from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence

from statusboard.engine.alert_log import AlertLog
from statusboard.engine.rules_engine import RulesEngine
from statusboard.errors import MetricUnavailable, UnknownServiceRequested
from statusboard.models import (
    Alert,
    DisplayInfo,
    ServiceState,
    ServiceStatus,
    ServiceTarget,
    Severity,
    Snapshot,
    SystemMetrics,
    derive_health,
)

logger = logging.getLogger(__name__)


class MetricSource(Protocol):
    async def collect(self) -> SystemMetrics: ...


class Probe(Protocol):
    async def probe(self, target: ServiceTarget, timeout: float = ...) -> ServiceStatus: ...


class SnapshotAggregator:
    """Fans out to the metric source and every probe, joins, and classifies.

    Never raises to its caller: a failing source is recorded inside the
    snapshot as a fallback or CRITICAL entry, so there is always something
    to render.
    """

    def __init__(
        self,
        system_source: MetricSource,
        probe: Probe,
        rules_engine: RulesEngine | None = None,
        alert_log: AlertLog | None = None,
        display: DisplayInfo | None = None,
    ) -> None:
        self.system_source = system_source
        self.probe = probe
        self.rules_engine = rules_engine or RulesEngine()
        self.alert_log = alert_log
        self.display = display or DisplayInfo()
        self.latest: Snapshot | None = None

    async def build_snapshot(
        self,
        targets: Sequence[ServiceTarget],
        timeout: float = 5.0,
    ) -> Snapshot:
        system, *services = await asyncio.gather(
            self.collect_system(),
            *(self._probe_safely(t, timeout) for t in targets),
        )
        alerts = self._evaluate(system, services)
        return Snapshot(
            system=system,
            services=tuple(services),
            overall_health=derive_health(alerts),
            alerts=tuple(alerts),
            display=self.display,
        )

    async def poll(
        self,
        targets: Sequence[ServiceTarget],
        timeout: float = 5.0,
    ) -> Snapshot:
        """One poll cycle: build, record in the history, remember as latest."""
        snapshot = await self.build_snapshot(targets, timeout)
        if self.alert_log is not None:
            await self.alert_log.append(snapshot)
        self.latest = snapshot
        logger.debug(
            "Poll complete: %s, %d alerts, %d services",
            snapshot.overall_health,
            len(snapshot.alerts),
            len(snapshot.services),
        )
        return snapshot

    async def probe_one(
        self,
        targets: Sequence[ServiceTarget],
        name: str,
        timeout: float = 5.0,
    ) -> ServiceStatus:
        for target in targets:
            if target.name == name:
                return await self._probe_safely(target, timeout)
        raise UnknownServiceRequested(name)

    async def collect_system(self) -> SystemMetrics:
        try:
            return await self.system_source.collect()
        except MetricUnavailable as exc:
            logger.warning("Using fallback system metrics: %s", exc)
            return SystemMetrics.unavailable(str(exc))
        except Exception as exc:
            logger.exception("Unexpected error collecting system metrics")
            return SystemMetrics.unavailable(f"{exc.__class__.__name__}: {exc}")

    def _evaluate(self, system: SystemMetrics, services: list[ServiceStatus]) -> list[Alert]:
        try:
            return self.rules_engine.evaluate(system, services)
        except Exception as exc:
            logger.exception("Alert rule evaluation failed")
            return [
                Alert(
                    rule_id="RULES_FAILED",
                    severity=Severity.CRITICAL,
                    message=f"Alert rules could not be evaluated: {exc.__class__.__name__}: {exc}",
                )
            ]

    async def _probe_safely(self, target: ServiceTarget, timeout: float) -> ServiceStatus:
        try:
            return await self.probe.probe(target, timeout)
        except Exception as exc:
            logger.exception("Probe [%s] raised unexpectedly", target.name)
            return ServiceStatus(
                name=target.name,
                url=target.url,
                state=ServiceState.CRITICAL,
                error=f"{exc.__class__.__name__}: {exc}",
                is_system=target.is_system,
            )
