from __future__ import annotations

import asyncio
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Iterable

from statusboard.errors import HistoryWriteFailure
from statusboard.models import HistoryEntry

logger = logging.getLogger(__name__)


class HistoryFile:
    """JSON history document on disk.

    Layout::

        {"startTime": ..., "checks": [...], "metrics": {"totalChecks": n, "totalAlerts": n}}
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def read(self) -> dict | None:
        return await asyncio.to_thread(self._read)

    async def write(
        self,
        start_time: datetime,
        entries: Iterable[HistoryEntry],
        total_checks: int,
        total_alerts: int,
    ) -> None:
        doc = {
            "startTime": start_time.isoformat(),
            "checks": [_entry_to_dict(e) for e in entries],
            "metrics": {"totalChecks": total_checks, "totalAlerts": total_alerts},
        }
        try:
            await asyncio.to_thread(self._write, doc)
        except (OSError, TypeError, ValueError) as exc:
            raise HistoryWriteFailure(f"cannot write {self.path}: {exc}") from exc

    def _read(self) -> dict | None:
        if not self.path.exists():
            return None
        try:
            return json.loads(self.path.read_text())
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable history file %s", self.path)
            return None

    def _write(self, doc: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(doc, indent=2))
        os.replace(tmp, self.path)


def _entry_to_dict(entry: HistoryEntry) -> dict:
    return {
        "timestamp": entry.timestamp.isoformat(),
        "metrics": entry.metrics.model_dump(mode="json"),
        "overallHealth": entry.overall_health.value,
        "alerts": list(entry.alerts),
    }


def entry_from_dict(row: dict) -> HistoryEntry:
    return HistoryEntry(
        timestamp=row["timestamp"],
        metrics=row["metrics"],
        overall_health=row.get("overallHealth", "HEALTHY"),
        alerts=tuple(row.get("alerts") or ()),
    )
