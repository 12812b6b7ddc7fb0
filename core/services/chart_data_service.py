"""
Chart data service for price history visualization.

Turns a normalized price series into what the chart actually draws:
period filtering, down-sampling to a display limit, index-based zoom and
the derived y-axis aggregates. Everything here is a pure function of its
inputs; "now" is read at filter time unless the caller pins it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from dateutil.relativedelta import relativedelta

from core.constants import (
    CHART_MAX_BUFFER,
    CHART_MIN_BUFFER,
    DISPLAY_LIMIT_DEFAULT,
    ZOOM_IN_FACTOR,
    ZOOM_INITIAL_END,
    ZOOM_INITIAL_START,
    ZOOM_MIN_SPAN,
    ZOOM_OUT_FACTOR,
    ZOOM_RESET_MARGIN,
)
from core.pricing.models import (
    ChartAggregates,
    PeriodWindow,
    PricePoint,
    PriceSeries,
    ZoomRange,
)

logger = logging.getLogger(__name__)


_PERIOD_OFFSETS = {
    PeriodWindow.ONE_WEEK: timedelta(days=7),
    PeriodWindow.ONE_MONTH: relativedelta(months=1),
    PeriodWindow.THREE_MONTHS: relativedelta(months=3),
    PeriodWindow.SIX_MONTHS: relativedelta(months=6),
    PeriodWindow.ONE_YEAR: relativedelta(years=1),
}


@dataclass(frozen=True)
class DisplaySeries:
    """What the chart renders plus the series it was derived from."""

    points: PriceSeries
    filtered: PriceSeries
    aggregates: ChartAggregates

    @property
    def filtered_count(self) -> int:
        return len(self.filtered)


def cutoff_for(period: PeriodWindow, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Earliest instant kept for a period, or None for ALL.

    Months and years are calendar arithmetic (a month back from Mar 31 is
    Feb 28/29).
    """
    period = PeriodWindow(period)
    if period is PeriodWindow.ALL:
        return None
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - _PERIOD_OFFSETS[period]


def filter_by_period(
    series: PriceSeries,
    period: PeriodWindow,
    now: Optional[datetime] = None,
) -> PriceSeries:
    """
    Keep points at or after the period cutoff.

    An empty result falls back to the whole series so the chart never goes
    blank just because the data is older than the window.
    """
    series = tuple(series)
    cutoff = cutoff_for(period, now)
    if cutoff is None or not series:
        return series

    cutoff_millis = int(cutoff.timestamp() * 1000)
    filtered = tuple(p for p in series if p.timestamp_millis >= cutoff_millis)
    if not filtered:
        logger.debug(f"No points within {PeriodWindow(period).value}, showing full series")
        return series
    return filtered


def downsample(points: Sequence[PricePoint], limit: int) -> PriceSeries:
    """
    Reduce ``points`` to roughly ``limit`` entries.

    Identity when ``len(points) <= limit``. Otherwise keeps the first point,
    every ``ceil(n / limit)``-th point in between and the last point, so the
    extremes of the visible range are never dropped.
    """
    if limit < 1:
        raise ValueError(f"display limit must be positive, got {limit}")

    points = tuple(points)
    count = len(points)
    if count <= limit:
        return points

    stride = math.ceil(count / limit)
    sampled = [points[0]]
    index = stride
    while index < count - stride:
        sampled.append(points[index])
        index += stride
    sampled.append(points[-1])
    return tuple(sampled)


def clamp_zoom(zoom: Optional[ZoomRange], length: int) -> Optional[ZoomRange]:
    """Clamp a zoom range to ``[0, length - 1]``; None when nothing remains."""
    if zoom is None or length <= 0:
        return None
    start = max(0, zoom.start_index)
    end = min(length - 1, zoom.end_index)
    if start > end:
        return None
    return ZoomRange(start, end)


def apply_zoom(
    filtered: Sequence[PricePoint],
    display: PriceSeries,
    zoom: Optional[ZoomRange],
    limit: int,
) -> PriceSeries:
    """
    Points for the current zoom over the filtered series.

    Without zoom the down-sampled ``display`` set is returned. A zoom span
    under the limit shows every point in the span; a wider span is
    down-sampled with the same stride rule.
    """
    filtered = tuple(filtered)
    zoom = clamp_zoom(zoom, len(filtered))
    if zoom is None:
        return display

    window = filtered[zoom.start_index:zoom.end_index + 1]
    if zoom.span < limit:
        return window
    return downsample(window, limit)


def compute_aggregates(filtered: Sequence[PricePoint]) -> ChartAggregates:
    """
    Y-axis bounds and summary figures over the filtered (pre-zoom) series.

    min/max carry a fixed 2% visual buffer and volatility is computed from
    the buffered bounds.
    """
    if not filtered:
        return ChartAggregates()

    prices = [p.price for p in filtered]
    min_price = min(prices) * CHART_MIN_BUFFER
    max_price = max(prices) * CHART_MAX_BUFFER
    avg_price = sum(prices) / len(prices)
    volatility = ((max_price - min_price) / avg_price) * 100 if avg_price else 0.0
    return ChartAggregates(
        min_price=min_price,
        max_price=max_price,
        avg_price=avg_price,
        volatility=volatility,
    )


def zoom_in(zoom: Optional[ZoomRange], length: int) -> Optional[ZoomRange]:
    """
    One zoom-in step.

    With no zoom, snaps to the middle half of the series. Otherwise shrinks
    the span by a quarter around its midpoint, never below 10 points.
    """
    if length <= 0:
        return zoom

    if zoom is None:
        return ZoomRange(
            math.floor(length * ZOOM_INITIAL_START),
            math.floor(length * ZOOM_INITIAL_END),
        )

    new_span = max(ZOOM_MIN_SPAN, math.floor(zoom.span * ZOOM_IN_FACTOR))
    half = new_span // 2
    midpoint = zoom.midpoint
    return ZoomRange(max(0, midpoint - half), min(length - 1, midpoint + half))


def zoom_out(zoom: Optional[ZoomRange], length: int) -> Optional[ZoomRange]:
    """
    One zoom-out step: doubles the span around its midpoint.

    Returns None (full view) once the new range reaches within five points
    of both ends of the series.
    """
    if length <= 0 or zoom is None:
        return zoom

    new_span = min(length, math.floor(zoom.span * ZOOM_OUT_FACTOR))
    half = new_span // 2
    midpoint = zoom.midpoint
    widened = ZoomRange(max(0, midpoint - half), min(length - 1, midpoint + half))

    if widened.start_index <= ZOOM_RESET_MARGIN and widened.end_index >= length - ZOOM_RESET_MARGIN:
        return None
    return widened


def project(
    series: PriceSeries,
    period: PeriodWindow,
    zoom: Optional[ZoomRange] = None,
    limit: int = DISPLAY_LIMIT_DEFAULT,
    now: Optional[datetime] = None,
) -> DisplaySeries:
    """
    Full filter -> limit -> zoom pipeline for one chart render.
    """
    filtered = filter_by_period(series, period, now)
    display = downsample(filtered, limit)
    points = apply_zoom(filtered, display, zoom, limit)
    return DisplaySeries(
        points=points,
        filtered=filtered,
        aggregates=compute_aggregates(filtered),
    )


class ChartDataService:
    """Service wrapper binding the pipeline to a configured display limit."""

    def __init__(self, display_limit: int = DISPLAY_LIMIT_DEFAULT):
        if display_limit < 1:
            raise ValueError(f"display limit must be positive, got {display_limit}")
        self.display_limit = display_limit

    def project(
        self,
        series: PriceSeries,
        period: PeriodWindow,
        zoom: Optional[ZoomRange] = None,
        now: Optional[datetime] = None,
    ) -> DisplaySeries:
        return project(series, period, zoom, self.display_limit, now)
