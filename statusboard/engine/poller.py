from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Sequence

from statusboard.api.views import render_dashboard
from statusboard.engine.aggregator import SnapshotAggregator
from statusboard.models import ServiceTarget, Snapshot

logger = logging.getLogger(__name__)


class Poller:
    """Periodic poll task with an explicit start/stop lifecycle."""

    name: str = "poller"

    def __init__(
        self,
        aggregator: SnapshotAggregator,
        targets: Sequence[ServiceTarget],
        timeout: float = 5.0,
        interval: float = 30.0,
        report_path: str | Path | None = None,
    ) -> None:
        self.aggregator = aggregator
        self.targets = list(targets)
        self.timeout = timeout
        self.interval = interval
        self.report_path = Path(report_path) if report_path else None
        self._running = False
        self._task: asyncio.Task | None = None

    # ── lifecycle ────────────────────────────────────────

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "Poller started (interval=%.1fs, %d targets)", self.interval, len(self.targets)
        )

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Poller stopped")

    # ── polling ──────────────────────────────────────────

    async def run_once(self) -> Snapshot:
        snapshot = await self.aggregator.poll(self.targets, self.timeout)
        if self.report_path is not None:
            await self.write_report(snapshot)
        return snapshot

    async def write_report(self, snapshot: Snapshot) -> None:
        summary = None
        if self.aggregator.alert_log is not None:
            summary = self.aggregator.alert_log.summary()
        html = render_dashboard(snapshot, summary, refresh_seconds=0)
        try:
            await asyncio.to_thread(_write_text, self.report_path, html)
        except OSError:
            logger.exception("Could not write report to %s", self.report_path)

    async def _loop(self) -> None:
        while self._running:
            try:
                snapshot = await self.run_once()
                if snapshot.alerts:
                    logger.info(
                        "Status %s with %d alerts", snapshot.overall_health, len(snapshot.alerts)
                    )
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Poller error during poll")
            await asyncio.sleep(self.interval)

    @property
    def running(self) -> bool:
        return self._running


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
