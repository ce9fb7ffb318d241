from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

LOCAL_URL = "local"


class ServiceState(StrEnum):
    HEALTHY = "HEALTHY"
    CRITICAL = "CRITICAL"
    UNKNOWN = "UNKNOWN"


class ServiceTarget(BaseModel):
    """One configured probe target."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str

    @property
    def is_system(self) -> bool:
        return self.url == LOCAL_URL


class ServiceStatus(BaseModel):
    """Outcome of probing one named endpoint."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    state: ServiceState
    response_time_ms: int = Field(default=0, ge=0)
    error: str | None = None
    status_code: int | None = None
    version: str | None = None
    is_system: bool = False
    observed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @model_validator(mode="after")
    def _check_state(self) -> ServiceStatus:
        if self.state == ServiceState.CRITICAL and not self.error:
            raise ValueError("CRITICAL status requires an error")
        if self.state == ServiceState.HEALTHY and self.error is not None:
            raise ValueError("HEALTHY status cannot carry an error")
        return self
