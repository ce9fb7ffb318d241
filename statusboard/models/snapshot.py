from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, model_validator

from statusboard.models.alert import Alert, Severity
from statusboard.models.metrics import SystemMetrics
from statusboard.models.service import ServiceStatus


class HealthState(StrEnum):
    HEALTHY = "HEALTHY"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


def derive_health(alerts: Iterable[Alert]) -> HealthState:
    """Worst severity among ``alerts``; HEALTHY when there are none."""
    health = HealthState.HEALTHY
    for alert in alerts:
        if alert.severity == Severity.CRITICAL:
            return HealthState.CRITICAL
        health = HealthState.WARNING
    return health


class DisplayInfo(BaseModel):
    """Static display data supplied by configuration, never measured."""

    model_config = ConfigDict(frozen=True)

    title: str = "Status Dashboard"
    subtitle: str = ""
    facts: dict[str, str] = Field(default_factory=dict)


class Snapshot(BaseModel):
    """One immutable aggregated view of host and service health."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    system: SystemMetrics
    services: tuple[ServiceStatus, ...] = ()
    overall_health: HealthState = HealthState.HEALTHY
    alerts: tuple[Alert, ...] = ()
    display: DisplayInfo = Field(default_factory=DisplayInfo)

    @model_validator(mode="after")
    def _check_health(self) -> Snapshot:
        expected = derive_health(self.alerts)
        if self.overall_health != expected:
            raise ValueError(
                f"overall_health {self.overall_health} does not match alerts ({expected})"
            )
        return self

    def service(self, name: str) -> ServiceStatus | None:
        for status in self.services:
            if status.name == name:
                return status
        return None


class HistoryEntry(BaseModel):
    """What the history keeps of one poll."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    metrics: SystemMetrics
    overall_health: HealthState
    alerts: tuple[str, ...] = ()

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> HistoryEntry:
        return cls(
            timestamp=snapshot.timestamp,
            metrics=snapshot.system,
            overall_health=snapshot.overall_health,
            alerts=tuple(a.label for a in snapshot.alerts),
        )


class HistorySummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_checks: int = 0
    total_alerts: int = 0
    last_status: HealthState | None = None
    last_check: datetime | None = None
    retained: int = 0
    start_time: datetime | None = None
