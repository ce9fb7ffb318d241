from __future__ import annotations

import asyncio
import logging
from collections import deque
from datetime import datetime, timezone

from statusboard.db.history_file import HistoryFile, entry_from_dict
from statusboard.errors import HistoryWriteFailure
from statusboard.models import HistoryEntry, HistorySummary, Snapshot

logger = logging.getLogger(__name__)


class AlertLog:
    """Bounded, append-only history of polls with running counters.

    The only mutable state shared between pollers. ``append`` is serialized
    by a lock; the oldest entry is evicted once ``retention`` is reached.
    """

    def __init__(self, retention: int = 100, store: HistoryFile | None = None) -> None:
        if retention < 1:
            raise ValueError("retention must be at least 1")
        self.retention = retention
        self.store = store
        self.total_checks = 0
        self.total_alerts = 0
        self.start_time = datetime.now(timezone.utc)
        self._entries: deque[HistoryEntry] = deque(maxlen=retention)
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        """Restore counters and retained checks from the store, if any."""
        if self.store is None:
            return
        doc = await self.store.read()
        if not doc:
            return
        if not isinstance(doc, dict):
            logger.warning("Ignoring history file %s: not a JSON object", self.store.path)
            return
        async with self._lock:
            counters = doc.get("metrics")
            if not isinstance(counters, dict):
                counters = {}
            self.total_checks = _count(counters.get("totalChecks"))
            self.total_alerts = _count(counters.get("totalAlerts"))
            start_time = doc.get("startTime")
            if start_time:
                try:
                    self.start_time = datetime.fromisoformat(str(start_time))
                except ValueError:
                    logger.warning("Ignoring bad history startTime %r", start_time)
            self._entries.clear()
            checks = doc.get("checks")
            for row in checks if isinstance(checks, list) else []:
                try:
                    self._entries.append(entry_from_dict(row))
                except Exception:
                    logger.warning("Skipping malformed history entry: %r", row)
        logger.info("Loaded %d history entries from %s", len(self._entries), self.store.path)

    async def append(self, snapshot: Snapshot) -> HistorySummary:
        async with self._lock:
            self._entries.append(HistoryEntry.from_snapshot(snapshot))
            self.total_checks += 1
            self.total_alerts += len(snapshot.alerts)
            summary = self._summary()
            if self.store is not None:
                try:
                    await self.store.write(
                        self.start_time,
                        list(self._entries),
                        self.total_checks,
                        self.total_alerts,
                    )
                except HistoryWriteFailure as exc:
                    logger.error("History write failed, keeping in-memory history: %s", exc)
        return summary

    def summary(self) -> HistorySummary:
        return self._summary()

    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def _summary(self) -> HistorySummary:
        last = self._entries[-1] if self._entries else None
        return HistorySummary(
            total_checks=self.total_checks,
            total_alerts=self.total_alerts,
            last_status=last.overall_health if last else None,
            last_check=last.timestamp if last else None,
            retained=len(self._entries),
            start_time=self.start_time,
        )


def _count(value: object) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0
