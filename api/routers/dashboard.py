"""
api.routers.dashboard - System status endpoints.

Provides the server statistics pass-through and the dashboard summary
(entity counts plus server stats, with demo values when the backend cannot
report them).
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_app_context
from api.middleware.error_handling import upstream_error
from api.models import DashboardResponse, EntityCounts, ServerStats
from core.constants import DASHBOARD_MAX_WORKERS, DEMO_SERVER_STATS, PROXY_ENTITIES
from core.interfaces import IAppContext
from data_sources.base_api import APIError, MalformedJSONError, UpstreamStatusError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/server-stats")
def get_server_stats(ctx: IAppContext = Depends(get_app_context)) -> JSONResponse:
    """
    Relay CPU, memory and disk usage reported by the backend.

    The payload is opaque to this service and returned unchanged.
    """
    try:
        return JSONResponse(content=ctx.backend.get_server_stats())
    except UpstreamStatusError as e:
        logger.error(f"Server stats returned status {e.status_code}")
        return upstream_error(e.status_code, f"API responded with status: {e.status_code}", e.body[:200])
    except MalformedJSONError as e:
        logger.error(f"Server stats response is not JSON: {e}")
        return upstream_error(500, "Invalid JSON response from server", e.excerpt)
    except APIError as e:
        logger.error(f"Error fetching server stats: {e}")
        return upstream_error(500, "Failed to fetch server stats from external API", str(e))


def _count_entities(ctx: IAppContext) -> EntityCounts:
    with ThreadPoolExecutor(max_workers=DASHBOARD_MAX_WORKERS) as executor:
        futures = {
            entity: executor.submit(ctx.backend.list_entities, entity)
            for entity in PROXY_ENTITIES
        }
        counts: dict[str, int] = {}
        for entity, future in futures.items():
            rows = future.result()
            counts[entity] = len(rows) if isinstance(rows, list) else 0
    return EntityCounts(**counts)


def _load_server_stats(ctx: IAppContext) -> tuple[ServerStats, bool, str | None]:
    """Returns (stats, is_demo, error)."""
    try:
        raw: Any = ctx.backend.get_server_stats()
        if isinstance(raw, dict) and raw.get("error"):
            raise APIError(str(raw["error"]))
        return ServerStats.model_validate(raw), False, None
    except (APIError, ValueError) as e:
        logger.warning(f"Server stats unavailable: {e}")
        if ctx.config.use_mock_fallback:
            return ServerStats.model_validate(DEMO_SERVER_STATS), True, str(e)
        return ServerStats(), False, str(e)


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(ctx: IAppContext = Depends(get_app_context)) -> DashboardResponse:
    """
    Summary for the system-status dashboard.

    Entity counts fall back to 0 per entity; server stats fall back to demo
    values (flagged with ``is_demo``) when configured.
    """
    counts = _count_entities(ctx)
    server_stats, is_demo, error = _load_server_stats(ctx)
    return DashboardResponse(
        server_stats=server_stats,
        counts=counts,
        is_demo=is_demo,
        error=error,
    )
