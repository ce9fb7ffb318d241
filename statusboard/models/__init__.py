from .alert import Alert, Severity
from .metrics import SystemMetrics
from .service import LOCAL_URL, ServiceState, ServiceStatus, ServiceTarget
from .snapshot import (
    DisplayInfo,
    HealthState,
    HistoryEntry,
    HistorySummary,
    Snapshot,
    derive_health,
)

__all__ = [
    "Alert",
    "Severity",
    "SystemMetrics",
    "LOCAL_URL",
    "ServiceState",
    "ServiceStatus",
    "ServiceTarget",
    "DisplayInfo",
    "HealthState",
    "HistoryEntry",
    "HistorySummary",
    "Snapshot",
    "derive_health",
]
