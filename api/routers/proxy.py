"""
api.routers.proxy - Pass-through routes to the upstream admin API.

``GET /api/{entity}`` and ``POST /api/{entity}`` forward to the configured
upstream URL for items, weapons, categories, collections, rarities and
types. Upstream failures are normalized into an ``{error, details}``
envelope carrying the upstream status (or 500).
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.dependencies import get_backend
from api.middleware.error_handling import upstream_error
from api.models import ErrorEnvelope
from core.constants import PROXY_ENTITIES
from core.interfaces import IBackendAPI
from data_sources.base_api import MalformedJSONError, UpstreamResponse, UpstreamUnavailable

logger = logging.getLogger(__name__)
router = APIRouter()

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    500: {"model": ErrorEnvelope, "description": "Upstream unreachable or returned invalid JSON"},
}


def _check_entity(entity: str) -> None:
    if entity not in PROXY_ENTITIES:
        raise HTTPException(status_code=404, detail=f"Unknown entity: {entity}")


def _upstream_error_details(response: UpstreamResponse) -> Any:
    """Upstream error body as JSON when possible, else ``{"message": text}``."""
    try:
        return response.json()
    except MalformedJSONError:
        return {"message": response.text}


def _relay_json(response: UpstreamResponse, entity: str) -> JSONResponse:
    try:
        data = response.json()
    except MalformedJSONError as e:
        logger.error(f"Failed to parse {entity} response as JSON: {e}. Response: {e.excerpt!r}")
        return upstream_error(500, "Invalid JSON response from server", str(e), responseText=e.excerpt)
    return JSONResponse(content=data)


@router.get("/{entity}", responses=ERROR_RESPONSES)
def proxy_get(entity: str, backend: IBackendAPI = Depends(get_backend)) -> JSONResponse:
    """
    Forward a list request for ``entity`` to the upstream API.

    Returns the upstream JSON unchanged on success.
    """
    _check_entity(entity)
    try:
        response = backend.forward("GET", entity)
    except UpstreamUnavailable as e:
        logger.error(f"Error fetching {entity}: {e}")
        return upstream_error(500, f"Failed to fetch {entity} from external API", str(e))

    if not response.ok:
        logger.warning(f"Upstream {entity} responded with status {response.status_code}")
        return upstream_error(
            response.status_code,
            f"API responded with status: {response.status_code}",
            _upstream_error_details(response),
        )

    return _relay_json(response, entity)


@router.post("/{entity}", responses=ERROR_RESPONSES)
async def proxy_post(
    entity: str,
    request: Request,
    backend: IBackendAPI = Depends(get_backend),
) -> JSONResponse:
    """
    Forward a create request with the caller's JSON body.
    """
    _check_entity(entity)
    noun = PROXY_ENTITIES[entity]

    try:
        body = await request.json()
    except ValueError as e:
        logger.error(f"Invalid request body for {entity}: {e}")
        return upstream_error(500, f"Failed to create {noun}", f"Invalid request body: {e}")

    try:
        response = await run_in_threadpool(backend.forward, "POST", entity, body)
    except UpstreamUnavailable as e:
        logger.error(f"Error creating {noun}: {e}")
        return upstream_error(500, f"Failed to create {noun}", str(e))

    if not response.ok:
        return upstream_error(
            response.status_code, f"API Error: {response.status_code}", _upstream_error_details(response)
        )

    return _relay_json(response, entity)
