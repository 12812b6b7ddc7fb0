"""
core.pricing.synthetic - Deterministic sample price history.

Used whenever the upstream has nothing usable for an item so the statistics
view always has a chart to draw. The series shape depends only on the item
name; the per-point time of day is random and only affects display labels.
"""

from __future__ import annotations

import math
import random
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Tuple

from core.constants import (
    SYNTHETIC_BASE_MODULO,
    SYNTHETIC_BASE_OFFSET,
    SYNTHETIC_DAYS,
    SYNTHETIC_TREND_MAX,
)
from core.pricing.models import (
    PointLabels,
    PriceChange,
    PricePoint,
    PriceSeries,
    SummaryStats,
)


def name_code_sum(name: str) -> int:
    """Sum of the name's UTF-16 code units."""
    encoded = name.encode("utf-16-le", errors="surrogatepass")
    return sum(
        int.from_bytes(encoded[i:i + 2], "little") for i in range(0, len(encoded), 2)
    )


def base_price_for(name: str) -> int:
    """Base price in [200, 499] derived from the item name."""
    return SYNTHETIC_BASE_OFFSET + (name_code_sum(name) % SYNTHETIC_BASE_MODULO)


def synthetic_price(base: float, days_back: int) -> float:
    """Price ``days_back`` days before today for a given base price."""
    drift = math.sin(days_back / 30) * 20
    noise = math.sin(days_back) * 10 + math.cos(days_back * 2) * 5
    trend = (days_back / SYNTHETIC_DAYS) * SYNTHETIC_TREND_MAX
    return round(base + drift + noise + trend, 2)


def _change(current: float, previous: float) -> PriceChange:
    delta = current - previous
    percent = (delta / previous) * 100 if previous else 0.0
    return PriceChange(delta=round(delta, 2), percent=round(percent, 2))


def stats_from_series(series: PriceSeries) -> SummaryStats:
    """
    Summary stats computed from a daily series' own points.

    Day/week/month compare against the points 1, 6 and 29 positions before
    the last one; year compares against the first point.
    """
    if not series:
        return SummaryStats()

    def price_at(index: int) -> float:
        try:
            return series[index].price
        except IndexError:
            return current

    current = series[-1].price
    return SummaryStats(
        current_price=current,
        per_day=_change(current, price_at(-2)),
        per_week=_change(current, price_at(-7)),
        per_month=_change(current, price_at(-30)),
        per_year=_change(current, series[0].price),
    )


def synthesize(
    item_name: str,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> Tuple[PriceSeries, SummaryStats]:
    """
    Generate one year (366 daily points, inclusive) of sample prices.

    Args:
        item_name: Name used to seed the base price.
        today: Last day of the series (defaults to the current UTC date).
        rng: Source for the display-only time of day.

    Returns:
        (series, stats) with stats derived from the series itself.
    """
    if today is None:
        today = datetime.now(timezone.utc).date()
    if rng is None:
        rng = random.Random()

    base = base_price_for(item_name)
    points: List[PricePoint] = []

    for days_back in range(SYNTHETIC_DAYS, -1, -1):
        day = today - timedelta(days=days_back)
        midnight = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
        observed_at = midnight.replace(
            hour=rng.randrange(24),
            minute=rng.randrange(60),
            second=rng.randrange(60),
        )
        date_label = day.isoformat()
        time_label = observed_at.strftime("%H:%M")

        points.append(PricePoint(
            price=synthetic_price(base, days_back),
            observed_at=observed_at,
            labels=PointLabels(
                date=date_label,
                time=time_label,
                date_time=f"{date_label} {time_label}",
            ),
            # Ordering and windowing use the day only
            timestamp_millis=int(midnight.timestamp() * 1000),
            raw_date=observed_at.strftime("%Y-%m-%d %H:%M:%S"),
        ))

    series = tuple(points)
    return series, stats_from_series(series)
