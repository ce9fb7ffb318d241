from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from statusboard.api.routes import router
from statusboard.collectors import ServiceProbe, SystemCollector
from statusboard.config import Settings, settings
from statusboard.db.history_file import HistoryFile
from statusboard.engine import AlertLog, Poller, RulesEngine, SnapshotAggregator
from statusboard.models import DisplayInfo

logger = logging.getLogger(__name__)


def build_aggregator(
    cfg: Settings,
    client: httpx.AsyncClient | None = None,
) -> SnapshotAggregator:
    """Wire collectors, rules and history from settings."""
    store = HistoryFile(cfg.history_file) if cfg.history_file else None
    return SnapshotAggregator(
        system_source=SystemCollector(
            disk_path=cfg.disk_path,
            watched_processes=cfg.watched_processes,
            timeout=cfg.probe_timeout,
        ),
        probe=ServiceProbe(client),
        rules_engine=RulesEngine.from_settings(cfg),
        alert_log=AlertLog(retention=cfg.history_retention, store=store),
        display=DisplayInfo(
            title=cfg.display_title,
            subtitle=cfg.display_subtitle,
            facts=cfg.display_facts,
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── startup ───────────────────────────────────────
    client = httpx.AsyncClient(timeout=settings.probe_timeout)
    aggregator = build_aggregator(settings, client)
    await aggregator.alert_log.load()

    targets = settings.targets
    poller = Poller(
        aggregator,
        targets,
        timeout=settings.probe_timeout,
        interval=settings.poll_interval,
        report_path=settings.report_file or None,
    )
    await poller.start()

    # Store on app.state for route access
    app.state.aggregator = aggregator
    app.state.alert_log = aggregator.alert_log
    app.state.poller = poller
    app.state.targets = targets
    app.state.probe_timeout = settings.probe_timeout
    app.state.refresh_seconds = settings.refresh_seconds

    logger.info("%s started, monitoring %d services", settings.app_name, len(targets))

    yield

    # ── shutdown ──────────────────────────────────────
    await poller.stop()
    await client.aclose()
    logger.info("%s shut down", settings.app_name)


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(router)
