"""
Pricing Models.

Data structures for item price history: points, series, summary stats,
chart selections and the tagged result of a history fetch.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union

INVALID_DATE_LABEL = "Invalid date"


class PeriodWindow(str, Enum):
    """Time window selectable above the price chart."""

    ONE_WEEK = "1W"
    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    SIX_MONTHS = "6M"
    ONE_YEAR = "1Y"
    ALL = "ALL"


class ChartType(str, Enum):
    """Chart renderings offered by the statistics view."""

    LINE = "line"
    AREA = "area"
    CANDLESTICK = "candlestick"


class FetchErrorKind(str, Enum):
    """Discriminates why a history fetch fell back to synthetic data."""

    NETWORK_OR_TIMEOUT = "network_or_timeout"
    UPSTREAM_STATUS = "upstream_status"
    MALFORMED_JSON = "malformed_json"
    INVALID_DATA_SHAPE = "invalid_data_shape"


class EmptyReason(str, Enum):
    """Why a fetch produced no usable points."""

    EMPTY_RESULT = "empty_result"
    NO_VALID_POINTS = "no_valid_points"


@dataclass(frozen=True)
class PointLabels:
    """Display strings derived once from a point's timestamp."""

    date: str
    time: str
    date_time: str


@dataclass(frozen=True)
class PricePoint:
    """
    A single normalized price observation.

    ``timestamp_millis`` is 0 and ``observed_at`` is None when the upstream
    date could not be parsed; such points are kept, not dropped.
    """

    price: float
    observed_at: Optional[datetime]
    labels: PointLabels
    timestamp_millis: int
    raw_date: str = ""

    @property
    def has_valid_date(self) -> bool:
        return self.observed_at is not None


# Ordered, non-decreasing by timestamp_millis once ingested
PriceSeries = Tuple[PricePoint, ...]


@dataclass(frozen=True)
class PriceChange:
    """Absolute and relative change over one horizon."""

    delta: float = 0.0
    percent: float = 0.0


@dataclass(frozen=True)
class SummaryStats:
    """Headline numbers shown above the chart."""

    current_price: float = 0.0
    per_day: PriceChange = field(default_factory=PriceChange)
    per_week: PriceChange = field(default_factory=PriceChange)
    per_month: PriceChange = field(default_factory=PriceChange)
    per_year: PriceChange = field(default_factory=PriceChange)


@dataclass(frozen=True)
class ZoomRange:
    """Inclusive index span into the period-filtered series."""

    start_index: int
    end_index: int

    @property
    def span(self) -> int:
        return self.end_index - self.start_index

    @property
    def midpoint(self) -> int:
        return (self.start_index + self.end_index) // 2


@dataclass(frozen=True)
class ChartAggregates:
    """Y-axis bounds and summary figures for the filtered series."""

    min_price: float = 0.0
    max_price: float = 0.0
    avg_price: float = 0.0
    volatility: float = 0.0


@dataclass(frozen=True)
class Banner:
    """Message shown above the chart after a fetch."""

    title: str
    description: str
    variant: str  # "destructive" or "warning"


# ----------------------------------------------------------------------
# Fetch outcomes
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class FetchSuccess:
    """Upstream returned usable points."""

    series: PriceSeries
    stats: SummaryStats

    is_fallback = False
    show_no_data_message = False

    @property
    def banner(self) -> Optional[Banner]:
        return None


@dataclass(frozen=True)
class EmptyWithFallback:
    """Upstream had nothing usable; synthetic data stands in for a preview."""

    series: PriceSeries
    stats: SummaryStats
    reason: EmptyReason = EmptyReason.EMPTY_RESULT

    is_fallback = True
    show_no_data_message = True

    @property
    def banner(self) -> Banner:
        if self.reason is EmptyReason.NO_VALID_POINTS:
            title = "No valid price data available"
        else:
            title = "No price data available"
        return Banner(
            title=title,
            description="Using sample data for preview purposes",
            variant="warning",
        )


@dataclass(frozen=True)
class ErrorWithFallback:
    """The fetch failed; synthetic data stands in and the error is surfaced."""

    series: PriceSeries
    stats: SummaryStats
    kind: FetchErrorKind
    message: str

    is_fallback = True
    show_no_data_message = False

    @property
    def banner(self) -> Banner:
        return Banner(title="Error", description=self.message, variant="destructive")


FetchOutcome = Union[FetchSuccess, EmptyWithFallback, ErrorWithFallback]
