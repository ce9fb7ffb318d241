from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, computed_field


class Severity(StrEnum):
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class Alert(BaseModel):
    """Alert raised when a snapshot matches a rule."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    severity: Severity
    message: str
    source: str = "system"

    @computed_field
    @property
    def label(self) -> str:
        return f"{self.severity.value}: {self.message}"
