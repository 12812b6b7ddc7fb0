"""
api.main - Goldboard Admin ASGI application.

Run with:
    uvicorn api.main:app --reload
    python run_api.py --debug
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from api.middleware import setup_error_handlers
from api.routers import (
    dashboard_router,
    health_router,
    proxy_router,
    statistics_router,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the app context (config, upstream clients, services) for the process."""
    from core.app_context import create_app_context

    ctx = create_app_context()
    app.state.context = ctx
    logger.info(f"Upstream API: {ctx.config.api_base_url}")
    try:
        yield
    finally:
        app.state.context = None
        ctx.close()
        logger.info("Upstream clients closed")


def create_app() -> FastAPI:
    application = FastAPI(
        title="Goldboard Admin API",
        description=(
            "Proxies the catalogue entities of the upstream admin API, summarises "
            "server status and serves item price statistics with CSV export."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    application.state.context = None

    # Browser dashboard is served from another origin
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    setup_error_handlers(application)

    # /api/dashboard and /api/server-stats before the /api/{entity} catch-all
    application.include_router(health_router, tags=["Health"])
    application.include_router(statistics_router, prefix="/api/v1", tags=["Statistics"])
    application.include_router(dashboard_router, prefix="/api", tags=["Dashboard"])
    application.include_router(proxy_router, prefix="/api", tags=["Proxy"])

    @application.get("/", include_in_schema=False)
    async def index():
        return {
            "name": application.title,
            "version": __version__,
            "dashboard": "/api/dashboard",
            "statistics": "/api/v1/items/{item_id}/statistics",
            "docs": application.docs_url,
        }

    return application


app = create_app()
