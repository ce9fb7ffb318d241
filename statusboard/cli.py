"""Command line entry point.

Usage:
    statusboard serve                  # run the dashboard server
    statusboard serve --port 8080
    statusboard check --report out.html  # one poll, exit code reflects health
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from statusboard.config import settings
from statusboard.engine import Poller
from statusboard.main import build_aggregator
from statusboard.models import HealthState

logger = logging.getLogger("statusboard")

_EXIT_CODES = {
    HealthState.HEALTHY: 0,
    HealthState.WARNING: 1,
    HealthState.CRITICAL: 2,
}


async def run_check(report: str | None) -> HealthState:
    aggregator = build_aggregator(settings)
    await aggregator.alert_log.load()
    poller = Poller(
        aggregator,
        settings.targets,
        timeout=settings.probe_timeout,
        report_path=report or settings.report_file or None,
    )
    snapshot = await poller.run_once()

    m = snapshot.system
    logger.info("CPU load: %s", m.cpu_load)
    logger.info("Memory: %.1f%%", m.memory_used_ratio * 100)
    logger.info("Processes: %d", m.process_count)
    for status in snapshot.services:
        logger.info("Service %s: %s (%dms)", status.name, status.state, status.response_time_ms)
    for alert in snapshot.alerts:
        logger.warning("%s", alert.label)
    if not snapshot.alerts:
        logger.info("No alerts detected")

    summary = aggregator.alert_log.summary()
    print(json.dumps(
        {
            "status": snapshot.overall_health.value,
            "checks": summary.total_checks,
            "alerts": summary.total_alerts,
        }
    ))
    return snapshot.overall_health


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="statusboard", description=settings.app_name)
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the dashboard server")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)

    check = sub.add_parser("check", help="Run one poll and exit")
    check.add_argument("--report", default=None, help="Write the HTML report to this path")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command == "serve":
        import uvicorn

        uvicorn.run("statusboard.main:app", host=args.host, port=args.port)
        return 0

    health = asyncio.run(run_check(args.report))
    return _EXIT_CODES[health]


if __name__ == "__main__":
    sys.exit(main())
