"""
api.routers.health - Service status and effective configuration.

Upstream reachability is probed through the backend client; an unreachable
upstream degrades the service (statistics fall back to sample data) but
only the readiness probe fails on it.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from starlette.concurrency import run_in_threadpool

from api import __version__
from api.dependencies import get_app_context
from api.models import ConfigResponse, HealthResponse
from core.interfaces import IAppContext

logger = logging.getLogger(__name__)
router = APIRouter()

SERVICE_ATTRIBUTES = ("history_service", "chart_service", "export_service")


def _service_states(ctx: IAppContext) -> dict[str, str]:
    return {
        name: "unavailable" if getattr(ctx, name, None) is None else "available"
        for name in SERVICE_ATTRIBUTES
    }


async def _upstream_reachable(ctx: IAppContext) -> bool:
    return bool(await run_in_threadpool(ctx.backend.ping))


@router.get("/health", response_model=HealthResponse)
async def health_check(ctx: IAppContext = Depends(get_app_context)) -> HealthResponse:
    reachable = await _upstream_reachable(ctx)
    return HealthResponse(
        status="healthy" if reachable else "degraded",
        version=__version__,
        upstream="reachable" if reachable else "unreachable",
        services=_service_states(ctx),
    )


@router.get("/health/ready")
async def readiness_check(ctx: IAppContext = Depends(get_app_context)) -> dict[str, str]:
    """503 until the upstream admin API answers."""
    if not await _upstream_reachable(ctx):
        logger.warning(f"Not ready: {ctx.config.api_base_url} unreachable")
        raise HTTPException(status_code=503, detail="Not ready: upstream unreachable")
    return {"status": "ready"}


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}


@router.get("/config", response_model=ConfigResponse)
async def get_config(ctx: IAppContext = Depends(get_app_context)) -> ConfigResponse:
    """Upstream and chart settings in effect (after env overrides and clamping)."""
    config = ctx.config
    return ConfigResponse(
        api_base_url=config.api_base_url,
        default_period=config.default_period,
        display_limit=config.display_limit,
        chart_type=config.chart_type,
        price_timeout_seconds=config.price_timeout_seconds,
        proxy_timeout_seconds=config.proxy_timeout_seconds,
    )
