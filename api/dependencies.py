"""
api.dependencies - FastAPI dependency injection providers.

Routers depend on the narrowest provider they need; tests override
``get_app_context`` once and every provider below follows.
"""

from __future__ import annotations

from fastapi import Depends, Request

from core.interfaces import IAppContext, IBackendAPI


def get_app_context(request: Request) -> IAppContext:
    """
    Application context created in the lifespan handler.

    Raises RuntimeError when called before startup.
    """
    ctx = getattr(request.app.state, "context", None)
    if ctx is None:
        raise RuntimeError("App context not initialized. Server not started?")
    return ctx


def get_backend(ctx: IAppContext = Depends(get_app_context)) -> IBackendAPI:
    """Upstream admin API client used by the proxy and dashboard routes."""
    return ctx.backend

