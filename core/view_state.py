"""
core.view_state - Explicit state record and reducer for the statistics view.

Every transition of the item statistics view (fetch started/completed,
period change, zoom, hover, fullscreen) is a pure step
``reduce(state, event) -> state``. The rendered points are always recomputed
from ``(series, period, zoom, display_limit)`` so no other state can leak
into what the chart shows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Union

from core.constants import DISPLAY_LIMIT_DEFAULT
from core.pricing.formatting import CurrentComparison, compare_to_current
from core.pricing.models import (
    Banner,
    ChartAggregates,
    ChartType,
    ErrorWithFallback,
    FetchErrorKind,
    FetchOutcome,
    PeriodWindow,
    PricePoint,
    PriceSeries,
    SummaryStats,
    ZoomRange,
)
from core.services.chart_data_service import project, zoom_in, zoom_out

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HoverDetail:
    """Long-hover popup anchored at chart coordinates."""

    x: float
    y: float
    point: Optional[PricePoint]


@dataclass(frozen=True)
class ViewState:
    """Everything the statistics view renders, in one immutable record."""

    item_name: str
    period: PeriodWindow = PeriodWindow.ONE_MONTH
    chart_type: ChartType = ChartType.AREA
    display_limit: int = DISPLAY_LIMIT_DEFAULT

    is_loading: bool = False
    is_refreshing: bool = False
    fetch_generation: int = 0

    series: PriceSeries = ()
    filtered: PriceSeries = ()
    display: PriceSeries = ()
    aggregates: ChartAggregates = field(default_factory=ChartAggregates)
    stats: Optional[SummaryStats] = None
    zoom: Optional[ZoomRange] = None

    error_kind: Optional[FetchErrorKind] = None
    error_message: Optional[str] = None
    show_no_data_message: bool = False
    banner: Optional[Banner] = None

    hover: Optional[HoverDetail] = None
    is_fullscreen: bool = False

    @property
    def is_zoomed(self) -> bool:
        return self.zoom is not None

    @property
    def has_error(self) -> bool:
        return self.error_message is not None

    @property
    def hover_comparison(self) -> Optional[CurrentComparison]:
        """Hovered price against the current price, for the long-hover popup."""
        if self.hover is None or self.hover.point is None:
            return None
        current = self.stats.current_price if self.stats is not None else 0.0
        return compare_to_current(self.hover.point.price, current)


# ----------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class FetchStarted:
    generation: int
    refreshing: bool = False


@dataclass(frozen=True)
class FetchCompleted:
    generation: int
    outcome: FetchOutcome


@dataclass(frozen=True)
class FetchAborted:
    """The fetch was cancelled before producing an outcome."""

    generation: int


@dataclass(frozen=True)
class PeriodChanged:
    period: PeriodWindow


@dataclass(frozen=True)
class ZoomIn:
    pass


@dataclass(frozen=True)
class ZoomOut:
    pass


@dataclass(frozen=True)
class ZoomReset:
    pass


@dataclass(frozen=True)
class ChartTypeChanged:
    chart_type: ChartType


@dataclass(frozen=True)
class DisplayLimitChanged:
    display_limit: int


@dataclass(frozen=True)
class HoverDetailShown:
    detail: HoverDetail


@dataclass(frozen=True)
class HoverCleared:
    pass


@dataclass(frozen=True)
class FullscreenChanged:
    is_fullscreen: bool


ViewEvent = Union[
    FetchStarted,
    FetchCompleted,
    FetchAborted,
    PeriodChanged,
    ZoomIn,
    ZoomOut,
    ZoomReset,
    ChartTypeChanged,
    DisplayLimitChanged,
    HoverDetailShown,
    HoverCleared,
    FullscreenChanged,
]


# ----------------------------------------------------------------------
# Reducer
# ----------------------------------------------------------------------


def _reproject(state: ViewState, now: Optional[datetime]) -> ViewState:
    projected = project(state.series, state.period, state.zoom, state.display_limit, now)
    return replace(
        state,
        filtered=projected.filtered,
        display=projected.points,
        aggregates=projected.aggregates,
    )


def _apply_outcome(state: ViewState, outcome: FetchOutcome) -> ViewState:
    if isinstance(outcome, ErrorWithFallback):
        error_kind: Optional[FetchErrorKind] = outcome.kind
        error_message: Optional[str] = outcome.message
    else:
        error_kind = None
        error_message = None

    return replace(
        state,
        is_loading=False,
        is_refreshing=False,
        series=outcome.series,
        stats=outcome.stats,
        # A new series invalidates index-based zoom
        zoom=None,
        hover=None,
        error_kind=error_kind,
        error_message=error_message,
        show_no_data_message=outcome.show_no_data_message,
        banner=outcome.banner,
    )


def reduce(state: ViewState, event: ViewEvent, now: Optional[datetime] = None) -> ViewState:
    """
    Apply one event. Pure: ``now`` pins the windowing clock when given.
    """
    if isinstance(event, FetchStarted):
        return replace(
            state,
            fetch_generation=event.generation,
            is_loading=True,
            is_refreshing=event.refreshing,
            error_kind=None,
            error_message=None,
            show_no_data_message=False,
            banner=None,
        )

    if isinstance(event, FetchCompleted):
        if event.generation != state.fetch_generation:
            logger.debug(
                f"Ignoring stale fetch result (generation {event.generation}, "
                f"current {state.fetch_generation})"
            )
            return state
        return _reproject(_apply_outcome(state, event.outcome), now)

    if isinstance(event, FetchAborted):
        if event.generation != state.fetch_generation:
            return state
        return replace(state, is_loading=False, is_refreshing=False)

    if isinstance(event, PeriodChanged):
        return _reproject(replace(state, period=PeriodWindow(event.period), zoom=None), now)

    if isinstance(event, ZoomIn):
        if not state.filtered:
            return state
        return _reproject(replace(state, zoom=zoom_in(state.zoom, len(state.filtered))), now)

    if isinstance(event, ZoomOut):
        if not state.filtered or state.zoom is None:
            return state
        return _reproject(replace(state, zoom=zoom_out(state.zoom, len(state.filtered))), now)

    if isinstance(event, ZoomReset):
        if state.zoom is None:
            return state
        return _reproject(replace(state, zoom=None), now)

    if isinstance(event, ChartTypeChanged):
        return replace(state, chart_type=ChartType(event.chart_type))

    if isinstance(event, DisplayLimitChanged):
        if event.display_limit < 1:
            raise ValueError(f"display limit must be positive, got {event.display_limit}")
        return _reproject(replace(state, display_limit=event.display_limit), now)

    if isinstance(event, HoverDetailShown):
        return replace(state, hover=event.detail)

    if isinstance(event, HoverCleared):
        return replace(state, hover=None)

    if isinstance(event, FullscreenChanged):
        return replace(state, is_fullscreen=event.is_fullscreen)

    raise TypeError(f"Unknown view event: {event!r}")
