from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class SystemMetrics(BaseModel):
    """Point-in-time reading of local resource state.

    ``degraded`` marks a fallback built when the OS query failed; every
    number is then zero and ``error`` says why.
    """

    model_config = ConfigDict(frozen=True)

    cpu_load: float = Field(default=0.0, ge=0)  # 1-minute load average
    cpu_percent: float = Field(default=0.0, ge=0)
    memory_used_bytes: int = Field(default=0, ge=0)
    memory_total_bytes: int = Field(default=0, ge=0)
    disk_used_bytes: int = Field(default=0, ge=0)
    disk_total_bytes: int = Field(default=0, ge=0)
    process_count: int = Field(default=0, ge=0)
    uptime_seconds: int = Field(default=0, ge=0)
    network_connections: int | None = Field(default=None, ge=0)  # None when not permitted
    # watched process name -> number of matching running processes
    watched_processes: dict[str, int] = Field(default_factory=dict)
    hostname: str = ""
    platform: str = ""
    arch: str = ""
    degraded: bool = False
    error: str | None = None
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @model_validator(mode="after")
    def _check_bounds(self) -> SystemMetrics:
        if self.memory_used_bytes > self.memory_total_bytes:
            raise ValueError("memory_used_bytes exceeds memory_total_bytes")
        if self.disk_used_bytes > self.disk_total_bytes:
            raise ValueError("disk_used_bytes exceeds disk_total_bytes")
        return self

    @computed_field
    @property
    def memory_used_ratio(self) -> float:
        if not self.memory_total_bytes:
            return 0.0
        return self.memory_used_bytes / self.memory_total_bytes

    @computed_field
    @property
    def disk_used_ratio(self) -> float:
        if not self.disk_total_bytes:
            return 0.0
        return self.disk_used_bytes / self.disk_total_bytes

    @classmethod
    def unavailable(cls, error: str) -> SystemMetrics:
        return cls(hostname="unavailable", degraded=True, error=error or "unavailable")
