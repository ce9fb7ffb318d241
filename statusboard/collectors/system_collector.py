from __future__ import annotations

import asyncio
import logging
import os
import platform
import socket
import time
from typing import Iterable

import psutil

from statusboard.errors import MetricUnavailable
from statusboard.models.metrics import SystemMetrics

logger = logging.getLogger(__name__)


class SystemCollector:
    """Reads memory, CPU load, disk usage, processes, connections and uptime.

    Pure read. The psutil calls run in a worker thread bounded by
    ``timeout``; any failure of the underlying OS query, including a hung
    call, surfaces as ``MetricUnavailable`` so the caller can substitute a
    fallback.
    """

    name = "system_collector"

    def __init__(
        self,
        disk_path: str = "/",
        watched_processes: Iterable[str] = (),
        timeout: float | None = 5.0,
    ) -> None:
        self.disk_path = disk_path
        self.watched_processes = list(watched_processes)
        self.timeout = timeout

    async def collect(self) -> SystemMetrics:
        try:
            return await asyncio.wait_for(asyncio.to_thread(self._read), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise MetricUnavailable(f"system metrics timed out after {self.timeout}s") from exc

    def _read(self) -> SystemMetrics:
        try:
            load_1m, _, _ = psutil.getloadavg()
            memory = psutil.virtual_memory()
            disk = psutil.disk_usage(self.disk_path)
            uptime = max(0, int(time.time() - psutil.boot_time()))
            cpu_percent = psutil.cpu_percent(interval=0)
            process_count, watched = self._scan_processes()
        except Exception as exc:
            raise MetricUnavailable(f"system metrics unavailable: {exc}") from exc

        # "used" is total minus what the OS can hand out without swapping
        memory_used = min(memory.total - memory.available, memory.total)
        return SystemMetrics(
            cpu_load=round(max(load_1m, 0.0), 2),
            cpu_percent=max(cpu_percent, 0.0),
            memory_used_bytes=max(memory_used, 0),
            memory_total_bytes=memory.total,
            disk_used_bytes=min(disk.used, disk.total),
            disk_total_bytes=disk.total,
            process_count=process_count,
            uptime_seconds=uptime,
            network_connections=self._count_connections(),
            watched_processes=watched,
            hostname=socket.gethostname(),
            platform=platform.system().lower() or os.name,
            arch=platform.machine(),
        )

    def _scan_processes(self) -> tuple[int, dict[str, int]]:
        """Total process count plus matches per watched name (case-insensitive substring)."""
        patterns = {name: name.lower() for name in self.watched_processes}
        watched = dict.fromkeys(patterns, 0)
        total = 0
        for proc in psutil.process_iter(["name"]):
            total += 1
            try:
                proc_name = (proc.info["name"] or "").lower()
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
            for name, pattern in patterns.items():
                if pattern in proc_name:
                    watched[name] += 1
        return total, watched

    @staticmethod
    def _count_connections() -> int | None:
        try:
            return len(psutil.net_connections(kind="inet"))
        except (psutil.AccessDenied, PermissionError):
            logger.debug("Not permitted to list network connections")
            return None
