"""
api.models - Pydantic models for API request/response schemas.

These models provide type-safe data validation for the dashboard, item
statistics and health endpoints. Proxy routes relay upstream JSON untouched
and only use ErrorEnvelope for documentation.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from core.pricing.models import (
    Banner,
    ChartAggregates,
    ChartType,
    FetchErrorKind,
    PeriodWindow,
    PriceChange,
    PricePoint,
    SummaryStats,
)
from core.pricing.formatting import format_gold, format_percent


# ==============================================================================
# Error Models
# ==============================================================================


class ErrorEnvelope(BaseModel):
    """Uniform error body returned by proxy routes and error handlers."""

    error: str = Field(..., description="Error summary")
    details: Optional[Any] = Field(None, description="Upstream error body or reason")


# ==============================================================================
# Dashboard Models
# ==============================================================================


class MemoryStats(BaseModel):
    """Host memory usage."""

    total_gb: float = 0.0
    used_gb: float = 0.0
    available_gb: float = 0.0
    percent: float = 0.0


class DiskStats(BaseModel):
    """Host disk usage."""

    total_gb: float = 0.0
    used_gb: float = 0.0
    free_gb: float = 0.0
    percent: float = 0.0


class ServerStats(BaseModel):
    """Server resource snapshot reported by the backend."""

    cpu_percent: float = Field(0.0, description="CPU utilisation in percent")
    memory: MemoryStats = Field(default_factory=MemoryStats)
    disk: DiskStats = Field(default_factory=DiskStats)


class EntityCounts(BaseModel):
    """Number of records per entity list."""

    items: int = 0
    users: int = Field(0, description="No upstream list exists for users; always 0")
    weapons: int = 0
    categories: int = 0
    collections: int = 0
    rarities: int = 0
    types: int = 0


class DashboardResponse(BaseModel):
    """Response model for the system-status dashboard."""

    server_stats: ServerStats
    counts: EntityCounts
    is_demo: bool = Field(False, description="Server stats are demo values")
    error: Optional[str] = Field(None, description="Why demo values are shown")


# ==============================================================================
# Item Statistics Models
# ==============================================================================


class PricePointModel(BaseModel):
    """One rendered chart point."""

    price: float = Field(..., examples=[245.5])
    timestamp: int = Field(..., description="Milliseconds since epoch, 0 if unknown")
    date: str = Field(..., examples=["2024-01-01"])
    time: str = Field(..., examples=["12:30"])
    date_time: str = Field(..., examples=["2024-01-01 12:30"])

    @classmethod
    def from_point(cls, point: PricePoint) -> "PricePointModel":
        return cls(
            price=point.price,
            timestamp=point.timestamp_millis,
            date=point.labels.date,
            time=point.labels.time,
            date_time=point.labels.date_time,
        )


class PriceChangeModel(BaseModel):
    gold: float = 0.0
    percent: float = 0.0
    text: str = Field("0.00%", description="Signed percentage, e.g. \"+1.23%\"")

    @classmethod
    def from_change(cls, change: PriceChange) -> "PriceChangeModel":
        return cls(gold=change.delta, percent=change.percent, text=format_percent(change.percent))


class SummaryStatsModel(BaseModel):
    """Headline stats in the upstream field naming."""

    price: float = 0.0
    price_text: str = Field("0.00 G", description="Current price, e.g. \"245.10 G\"")
    per_day: PriceChangeModel = Field(default_factory=PriceChangeModel)
    per_week: PriceChangeModel = Field(default_factory=PriceChangeModel)
    per_month: PriceChangeModel = Field(default_factory=PriceChangeModel)
    per_year: PriceChangeModel = Field(default_factory=PriceChangeModel)

    @classmethod
    def from_stats(cls, stats: SummaryStats) -> "SummaryStatsModel":
        return cls(
            price=stats.current_price,
            price_text=format_gold(stats.current_price),
            per_day=PriceChangeModel.from_change(stats.per_day),
            per_week=PriceChangeModel.from_change(stats.per_week),
            per_month=PriceChangeModel.from_change(stats.per_month),
            per_year=PriceChangeModel.from_change(stats.per_year),
        )


class AggregatesModel(BaseModel):
    min_price: float = 0.0
    max_price: float = 0.0
    avg_price: float = 0.0
    volatility: float = 0.0

    @classmethod
    def from_aggregates(cls, aggregates: ChartAggregates) -> "AggregatesModel":
        return cls(
            min_price=aggregates.min_price,
            max_price=aggregates.max_price,
            avg_price=aggregates.avg_price,
            volatility=aggregates.volatility,
        )


class BannerModel(BaseModel):
    title: str
    description: str
    variant: str = Field(..., examples=["destructive", "warning"])

    @classmethod
    def from_banner(cls, banner: Optional[Banner]) -> Optional["BannerModel"]:
        if banner is None:
            return None
        return cls(title=banner.title, description=banner.description, variant=banner.variant)


class ZoomModel(BaseModel):
    start_index: int
    end_index: int


class ItemStatisticsResponse(BaseModel):
    """Chart-ready statistics for one item."""

    item_id: str
    item_name: str
    period: PeriodWindow
    chart_type: ChartType = ChartType.AREA
    display_limit: int
    zoom: Optional[ZoomModel] = None
    points: list[PricePointModel] = Field(default_factory=list)
    filtered_count: int = Field(..., description="Points in the selected period")
    total_count: int = Field(..., description="Points in the whole series")
    aggregates: AggregatesModel
    stats: SummaryStatsModel
    is_fallback: bool = Field(False, description="Points are synthetic sample data")
    show_no_data_message: bool = False
    error_kind: Optional[FetchErrorKind] = None
    error: Optional[str] = None
    banner: Optional[BannerModel] = None


# ==============================================================================
# Health & Status Models
# ==============================================================================


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Service status", examples=["healthy"])
    version: str = Field(..., description="API version", examples=["1.0.0"])
    upstream: str = Field(
        ..., description="Upstream API status", examples=["reachable"]
    )
    services: dict[str, str] = Field(
        default_factory=dict, description="Status of individual services"
    )


class ConfigResponse(BaseModel):
    """Response model for configuration info."""

    api_base_url: str = Field(..., description="Upstream API root")
    default_period: PeriodWindow = Field(..., description="Initial chart period")
    display_limit: int = Field(..., description="Maximum rendered points")
    chart_type: ChartType = Field(..., description="Default chart type")
    price_timeout_seconds: int
    proxy_timeout_seconds: int
