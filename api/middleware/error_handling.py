"""
api.middleware.error_handling - JSON error bodies.

Every error leaves the service as ``{error, details}``. Handlers registered
here add ``status_code`` and ``path``; routes that relay an upstream failure
build the body themselves with ``upstream_error`` so the upstream status
passes through unchanged.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from data_sources.base_api import APIError, UpstreamStatusError

logger = logging.getLogger(__name__)


def upstream_error(status_code: int, error: str, details: Any = None, **extra: Any) -> JSONResponse:
    """Error body for a failed upstream call; ``extra`` keys (e.g. ``responseText``) are appended."""
    return JSONResponse(status_code=status_code, content={"error": error, "details": details, **extra})


def _envelope(request: Request, status_code: int, error: str, details: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "details": details,
            "status_code": status_code,
            "path": request.url.path,
        },
    )


def _field_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    return [
        {
            "field": ".".join(str(part) for part in error["loc"] if part not in ("query", "path", "body")),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]


def setup_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _envelope(request, exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _envelope(request, 422, "Validation error", _field_errors(exc))

    @app.exception_handler(APIError)
    async def upstream_exception_handler(request: Request, exc: APIError) -> JSONResponse:
        """Upstream failures a route did not map itself."""
        logger.error(f"Upstream failure on {request.url.path}: {exc}")
        status_code = exc.status_code if isinstance(exc, UpstreamStatusError) else 500
        return _envelope(request, status_code, "Upstream API error", str(exc))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unexpected error on {request.url.path}: {exc}")
        return _envelope(request, 500, "Internal server error")
