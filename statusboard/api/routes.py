from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse

from statusboard.api.views import render_dashboard
from statusboard.config import settings
from statusboard.errors import UnknownServiceRequested

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.version,
        "port": settings.port,
    }


@router.get("/api/status")
async def get_status(request: Request) -> dict:
    state = request.app.state
    snapshot = await state.aggregator.poll(state.targets, state.probe_timeout)
    return snapshot.model_dump(mode="json")


@router.get("/api/system")
async def get_system(request: Request) -> dict:
    metrics = await request.app.state.aggregator.collect_system()
    return metrics.model_dump(mode="json")


@router.get("/api/health/{service_name}")
async def get_service_health(service_name: str, request: Request) -> dict:
    state = request.app.state
    try:
        status = await state.aggregator.probe_one(
            state.targets, service_name, state.probe_timeout
        )
    except UnknownServiceRequested:
        raise HTTPException(status_code=404, detail="Service not found")
    return status.model_dump(mode="json")


@router.get("/api/history")
async def get_history(request: Request, limit: int = 100) -> dict:
    alert_log = request.app.state.alert_log
    entries = alert_log.entries()[-limit:] if limit > 0 else []
    return {
        "summary": alert_log.summary().model_dump(mode="json"),
        "checks": [e.model_dump(mode="json") for e in entries],
    }


@router.get("/", response_class=HTMLResponse)
async def dashboard(request: Request) -> HTMLResponse:
    state = request.app.state
    snapshot = state.aggregator.latest
    if snapshot is None:
        snapshot = await state.aggregator.poll(state.targets, state.probe_timeout)
    html = render_dashboard(
        snapshot,
        state.alert_log.summary(),
        refresh_seconds=state.refresh_seconds,
    )
    return HTMLResponse(content=html)
