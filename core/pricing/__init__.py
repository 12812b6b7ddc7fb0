"""
Pricing Package.

Price history for the item statistics view.

Public API:
- PriceHistoryService: Fetch an item's history as a tagged FetchOutcome
- synthesize: Deterministic sample history used as fallback
- normalize_points / coerce_stats: Upstream payload normalization
- format_gold / format_percent / compare_to_current: Display strings

Example:
    from core.pricing import PriceHistoryService
    service = PriceHistoryService(price_api)
    outcome = service.fetch("Sword of Embers")
"""
from core.pricing.models import (
    Banner,
    ChartAggregates,
    ChartType,
    EmptyReason,
    EmptyWithFallback,
    ErrorWithFallback,
    FetchErrorKind,
    FetchOutcome,
    FetchSuccess,
    PeriodWindow,
    PriceChange,
    PricePoint,
    PriceSeries,
    SummaryStats,
    ZoomRange,
)
from core.pricing.formatting import CurrentComparison, compare_to_current, format_gold, format_percent
from core.pricing.history_service import PriceHistoryService
from core.pricing.normalizer import coerce_stats, normalize_points
from core.pricing.synthetic import synthesize

__all__ = [
    "Banner",
    "ChartAggregates",
    "ChartType",
    "CurrentComparison",
    "EmptyReason",
    "EmptyWithFallback",
    "ErrorWithFallback",
    "FetchErrorKind",
    "FetchOutcome",
    "FetchSuccess",
    "PeriodWindow",
    "PriceChange",
    "PriceHistoryService",
    "PricePoint",
    "PriceSeries",
    "SummaryStats",
    "ZoomRange",
    "coerce_stats",
    "compare_to_current",
    "format_gold",
    "format_percent",
    "normalize_points",
    "synthesize",
]
