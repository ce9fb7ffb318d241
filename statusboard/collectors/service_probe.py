from __future__ import annotations

import asyncio
import logging
import time

import httpx

from statusboard.errors import ProbeError, ProbeHTTPError, ProbeTimeout, ProbeUnreachable
from statusboard.models.service import ServiceState, ServiceStatus, ServiceTarget

logger = logging.getLogger(__name__)


class ServiceProbe:
    """Single bounded-timeout GET against one health endpoint.

    Never retries; retry is the polling cadence's job. Any failure becomes
    a CRITICAL status with ``error`` populated.
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client

    async def probe(self, target: ServiceTarget, timeout: float = 5.0) -> ServiceStatus:
        if target.is_system:
            return ServiceStatus(
                name=target.name,
                url=target.url,
                state=ServiceState.HEALTHY,
                is_system=True,
            )

        start = time.monotonic()
        try:
            response = await self._fetch(target.url, timeout)
        except ProbeError as exc:
            elapsed_ms = _elapsed_ms(start)
            logger.warning("Probe [%s] failed after %dms: %s", target.name, elapsed_ms, exc)
            return ServiceStatus(
                name=target.name,
                url=target.url,
                state=ServiceState.CRITICAL,
                response_time_ms=elapsed_ms,
                error=str(exc) or exc.__class__.__name__,
                status_code=getattr(exc, "status_code", None),
            )

        return ServiceStatus(
            name=target.name,
            url=target.url,
            state=ServiceState.HEALTHY,
            response_time_ms=_elapsed_ms(start),
            status_code=response.status_code,
            version=_read_version(response),
        )

    async def _fetch(self, url: str, timeout: float) -> httpx.Response:
        try:
            if self._client is not None:
                response = await asyncio.wait_for(
                    self._client.get(url, timeout=timeout), timeout=timeout
                )
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await asyncio.wait_for(client.get(url), timeout=timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise ProbeTimeout(f"timed out after {timeout}s") from exc
        except httpx.HTTPError as exc:
            raise ProbeUnreachable(str(exc)[:500] or exc.__class__.__name__) from exc

        if not response.is_success:
            raise ProbeHTTPError(response.status_code)
        return response


def _elapsed_ms(start: float) -> int:
    return max(0, round((time.monotonic() - start) * 1000))


def _read_version(response: httpx.Response) -> str | None:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("version") is not None:
        return str(data["version"])
    return None
