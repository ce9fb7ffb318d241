from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Literal

import yaml
from pydantic import BaseModel

from statusboard.models import Alert, ServiceStatus, Severity, SystemMetrics

logger = logging.getLogger(__name__)


class RuleCondition(BaseModel):
    field: str
    operator: str
    value: Any


class RuleDefinition(BaseModel):
    id: str
    description: str = ""
    source: Literal["system", "service", "process"]
    severity: Severity
    condition: RuleCondition
    message: str = ""  # str.format template over the evaluated fields
    group: str | None = None  # first matching rule of a group wins


def default_rules(
    memory_critical_ratio: float = 0.95,
    memory_warning_ratio: float = 0.90,
    cpu_load_ceiling: float = 5.0,
    process_count_ceiling: int = 500,
    disk_ratio_ceiling: float = 0.90,
) -> list[RuleDefinition]:
    """Built-in rule set, in evaluation order."""
    raw = [
        {
            "id": "METRICS_UNAVAILABLE",
            "description": "System metrics could not be read",
            "source": "system",
            "severity": Severity.CRITICAL,
            "condition": {"field": "degraded", "operator": "eq", "value": True},
            "message": "System metrics unavailable: {error}",
        },
        {
            "id": "MEMORY_CRITICAL",
            "description": "Memory usage above critical ratio",
            "source": "system",
            "severity": Severity.CRITICAL,
            "condition": {"field": "memory_used_ratio", "operator": "gt", "value": memory_critical_ratio},
            "message": "Memory usage {memory_percent:.1f}% ({memory_used_gb:.1f}GB/{memory_total_gb:.1f}GB)",
            "group": "memory",
        },
        {
            "id": "MEMORY_WARNING",
            "description": "Memory usage above warning ratio",
            "source": "system",
            "severity": Severity.WARNING,
            "condition": {"field": "memory_used_ratio", "operator": "gt", "value": memory_warning_ratio},
            "message": "High memory usage {memory_percent:.1f}%",
            "group": "memory",
        },
        {
            "id": "SERVICE_DOWN",
            "description": "Monitored service is not healthy",
            "source": "service",
            "severity": Severity.CRITICAL,
            "condition": {"field": "state", "operator": "eq", "value": "CRITICAL"},
            "message": "Service {name} is down: {error}",
        },
        {
            "id": "PROCESS_NOT_RUNNING",
            "description": "Watched process is not running",
            "source": "process",
            "severity": Severity.WARNING,
            "condition": {"field": "running", "operator": "eq", "value": False},
            "message": "Process {name} status: {status}",
        },
        {
            "id": "CPU_LOAD_HIGH",
            "description": "CPU load above ceiling",
            "source": "system",
            "severity": Severity.WARNING,
            "condition": {"field": "cpu_load", "operator": "gt", "value": cpu_load_ceiling},
            "message": "High CPU load: {cpu_load} (1-minute average)",
        },
        {
            "id": "PROCESS_COUNT_HIGH",
            "description": "Process count above ceiling",
            "source": "system",
            "severity": Severity.WARNING,
            "condition": {"field": "process_count", "operator": "gt", "value": process_count_ceiling},
            "message": "High process count: {process_count}",
        },
        {
            "id": "DISK_USAGE_HIGH",
            "description": "Disk usage above ceiling",
            "source": "system",
            "severity": Severity.WARNING,
            "condition": {"field": "disk_used_ratio", "operator": "gt", "value": disk_ratio_ceiling},
            "message": "High disk usage {disk_percent:.1f}% ({disk_used_gb:.1f}GB/{disk_total_gb:.1f}GB)",
        },
    ]
    return [RuleDefinition(**entry) for entry in raw]


class RulesEngine:
    """Evaluates system metrics and service statuses against ordered rules."""

    def __init__(self, rules: Iterable[RuleDefinition] | None = None) -> None:
        self.rules: list[RuleDefinition] = list(rules) if rules is not None else default_rules()

    @classmethod
    def from_settings(cls, settings: Any) -> RulesEngine:
        if settings.rules_file:
            return cls(cls.load_rules(settings.rules_file))
        return cls(
            default_rules(
                memory_critical_ratio=settings.memory_critical_ratio,
                memory_warning_ratio=settings.memory_warning_ratio,
                cpu_load_ceiling=settings.cpu_load_ceiling,
                process_count_ceiling=settings.process_count_ceiling,
                disk_ratio_ceiling=settings.disk_ratio_ceiling,
            )
        )

    @staticmethod
    def load_rules(path: str | Path) -> list[RuleDefinition]:
        raw = yaml.safe_load(Path(path).read_text())
        entries = raw.get("rules", []) if isinstance(raw, dict) else raw or []
        rules: list[RuleDefinition] = []
        for entry in entries:
            try:
                rules.append(RuleDefinition(**entry))
            except Exception:
                logger.warning("Skipping invalid rule: %r", entry)
        return rules

    def evaluate(
        self,
        system: SystemMetrics,
        services: Iterable[ServiceStatus] = (),
    ) -> list[Alert]:
        """Evaluate every rule in order. Output order depends only on inputs."""
        services = list(services)
        system_fields = _system_fields(system)
        fired_groups: set[str] = set()
        alerts: list[Alert] = []

        for rule in self.rules:
            if rule.group and rule.group in fired_groups:
                continue

            if rule.source == "system":
                if system.degraded and rule.condition.field != "degraded":
                    continue
                if not self._check_condition(rule.condition, system_fields):
                    continue
                alerts.append(self._make_alert(rule, system_fields, source="system"))
                if rule.group:
                    fired_groups.add(rule.group)
                continue

            if rule.source == "process":
                items = _process_fields(system)
            else:
                items = [
                    (status.name, status.model_dump(mode="json"))
                    for status in services
                    if not status.is_system
                ]

            matched = False
            for source, fields in items:
                if self._check_condition(rule.condition, fields):
                    alerts.append(self._make_alert(rule, fields, source=source))
                    matched = True
            if matched and rule.group:
                fired_groups.add(rule.group)

        return alerts

    @staticmethod
    def _make_alert(rule: RuleDefinition, fields: dict, source: str) -> Alert:
        template = rule.message or rule.description or rule.id
        try:
            message = template.format(**fields)
        except (KeyError, IndexError, ValueError, AttributeError, TypeError):
            logger.warning("Rule %s has a bad message template: %r", rule.id, template)
            message = rule.description or rule.id
        return Alert(rule_id=rule.id, severity=rule.severity, message=message, source=source)

    def _check_condition(self, cond: RuleCondition, fields: dict) -> bool:
        field_val = fields.get(cond.field)
        if field_val is None:
            return False

        try:
            return self._compare(cond.operator, field_val, cond.value)
        except (TypeError, ValueError) as exc:
            logger.warning(
                "Cannot compare field %s (%r) %s %r: %s",
                cond.field, field_val, cond.operator, cond.value, exc,
            )
            return False

    def _compare(self, op: str, field_val: Any, rule_val: Any) -> bool:
        if op == "gt":
            return float(field_val) > float(rule_val)
        elif op == "lt":
            return float(field_val) < float(rule_val)
        elif op == "gte":
            return float(field_val) >= float(rule_val)
        elif op == "lte":
            return float(field_val) <= float(rule_val)
        elif op == "eq":
            return self._eq(field_val, rule_val)
        elif op == "neq":
            return not self._eq(field_val, rule_val)
        elif op == "in":
            return field_val in rule_val
        elif op == "not_in":
            return field_val not in rule_val
        else:
            logger.warning("Unknown operator: %s", op)
            return False

    @staticmethod
    def _eq(field_val: Any, rule_val: Any) -> bool:
        """Equality supporting bool/str/int coercion."""
        if isinstance(rule_val, bool) or (
            isinstance(rule_val, str) and rule_val.lower() in ("true", "false")
        ):
            fv = field_val if isinstance(field_val, bool) else str(field_val).lower() == "true"
            rv = rule_val if isinstance(rule_val, bool) else str(rule_val).lower() == "true"
            return fv == rv
        return str(field_val) == str(rule_val)


def _system_fields(system: SystemMetrics) -> dict[str, Any]:
    gb = 1024 ** 3
    fields = system.model_dump(mode="json")
    fields.update(
        memory_percent=system.memory_used_ratio * 100,
        memory_used_gb=system.memory_used_bytes / gb,
        memory_total_gb=system.memory_total_bytes / gb,
        disk_percent=system.disk_used_ratio * 100,
        disk_used_gb=system.disk_used_bytes / gb,
        disk_total_gb=system.disk_total_bytes / gb,
    )
    return fields


def _process_fields(system: SystemMetrics) -> list[tuple[str, dict[str, Any]]]:
    if system.degraded:
        return []
    return [
        (
            name,
            {
                "name": name,
                "count": count,
                "running": count > 0,
                "status": "RUNNING" if count > 0 else "STOPPED",
            },
        )
        for name, count in system.watched_processes.items()
    ]
