"""
api.routers.statistics - Item price statistics endpoints.

Runs the history fetcher and the display pipeline for one item and returns
chart-ready points, or the period-filtered series as a CSV download.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from api.dependencies import get_app_context
from api.models import (
    AggregatesModel,
    BannerModel,
    ItemStatisticsResponse,
    PricePointModel,
    SummaryStatsModel,
    ZoomModel,
)
from core.interfaces import IAppContext
from core.pricing.models import ErrorWithFallback, FetchOutcome, PeriodWindow, ZoomRange
from core.services.chart_data_service import clamp_zoom, project
from core.services.export_service import content_disposition, export_filename, render_price_csv

logger = logging.getLogger(__name__)
router = APIRouter()


def _zoom_from_query(zoom_start: Optional[int], zoom_end: Optional[int]) -> Optional[ZoomRange]:
    if zoom_start is None and zoom_end is None:
        return None
    if zoom_start is None or zoom_end is None:
        raise HTTPException(
            status_code=400,
            detail="zoom_start and zoom_end must be given together",
        )
    if zoom_start > zoom_end:
        raise HTTPException(status_code=400, detail="zoom_start must not exceed zoom_end")
    return ZoomRange(zoom_start, zoom_end)


def _fetch(ctx: IAppContext, item_id: str, name: Optional[str]) -> tuple[str, FetchOutcome]:
    item_name = (name or item_id).strip()
    if not item_name:
        raise HTTPException(status_code=400, detail="Item name must not be empty")
    outcome = ctx.history_service.fetch(item_name)
    if isinstance(outcome, ErrorWithFallback):
        logger.warning(f"Showing sample data for {item_name}: {outcome.kind.value}: {outcome.message}")
    return item_name, outcome


@router.get("/items/{item_id}/statistics", response_model=ItemStatisticsResponse)
def get_item_statistics(
    item_id: str,
    name: Optional[str] = Query(None, description="Item name sent upstream; defaults to item_id"),
    period: Optional[PeriodWindow] = Query(None, description="Time window; defaults to config"),
    zoom_start: Optional[int] = Query(None, ge=0),
    zoom_end: Optional[int] = Query(None, ge=0),
    limit: Optional[int] = Query(None, ge=1, description="Maximum rendered points"),
    ctx: IAppContext = Depends(get_app_context),
) -> ItemStatisticsResponse:
    """
    Chart data for one item.

    Never fails because of the upstream: errors and empty results come back
    with synthetic points, ``is_fallback`` set and a banner describing why.
    """
    zoom = _zoom_from_query(zoom_start, zoom_end)
    config = ctx.config
    period = period or config.default_period
    display_limit = limit or ctx.chart_service.display_limit

    item_name, outcome = _fetch(ctx, item_id, name)
    display = project(outcome.series, period, zoom, display_limit)
    applied_zoom = clamp_zoom(zoom, display.filtered_count)

    return ItemStatisticsResponse(
        item_id=item_id,
        item_name=item_name,
        period=period,
        chart_type=config.chart_type,
        display_limit=display_limit,
        zoom=(
            ZoomModel(start_index=applied_zoom.start_index, end_index=applied_zoom.end_index)
            if applied_zoom else None
        ),
        points=[PricePointModel.from_point(p) for p in display.points],
        filtered_count=display.filtered_count,
        total_count=len(outcome.series),
        aggregates=AggregatesModel.from_aggregates(display.aggregates),
        stats=SummaryStatsModel.from_stats(outcome.stats),
        is_fallback=outcome.is_fallback,
        show_no_data_message=outcome.show_no_data_message,
        error_kind=outcome.kind if isinstance(outcome, ErrorWithFallback) else None,
        error=outcome.message if isinstance(outcome, ErrorWithFallback) else None,
        banner=BannerModel.from_banner(outcome.banner),
    )


@router.get("/items/{item_id}/statistics/export")
def export_item_statistics(
    item_id: str,
    name: Optional[str] = Query(None),
    period: Optional[PeriodWindow] = Query(None),
    quote: bool = Query(False, description="Quote fields that contain delimiters"),
    ctx: IAppContext = Depends(get_app_context),
) -> Response:
    """
    Download the period-filtered series as ``<Item_Name>_price_history.csv``.

    Zoom and down-sampling do not apply; every point in the period is
    exported.
    """
    period = period or ctx.config.default_period
    item_name, outcome = _fetch(ctx, item_id, name)
    filtered = project(outcome.series, period).filtered
    if not filtered:
        raise HTTPException(status_code=404, detail="No data to export")

    filename = export_filename(item_name)
    logger.info(f"Exporting {len(filtered)} points for {item_name}")
    return Response(
        content=render_price_csv(filtered, quote_fields=quote),
        media_type="text/csv",
        headers={"Content-Disposition": content_disposition(filename)},
    )
