"""API routers package."""

from api.routers.health import router as health_router
from api.routers.dashboard import router as dashboard_router
from api.routers.proxy import router as proxy_router
from api.routers.statistics import router as statistics_router

__all__ = [
    "health_router",
    "dashboard_router",
    "proxy_router",
    "statistics_router",
]
