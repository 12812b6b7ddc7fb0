"""
core.pricing.normalizer - Turn raw upstream price rows into PricePoints.

Upstream rows look like ``{"purchase_price": 123.4, "Date": "2024-01-01 12:00:00"}``.
Rows with a non-numeric price are dropped. Rows with an unparseable date are
kept with sentinel labels and timestamp 0 so that one bad row never aborts
the batch.
"""

from __future__ import annotations

import functools
import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, TypeVar

from dateutil import parser as dtparser

from core.pricing.models import (
    INVALID_DATE_LABEL,
    PointLabels,
    PriceChange,
    PricePoint,
    PriceSeries,
    SummaryStats,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

PRICE_FIELD = "purchase_price"
DATE_FIELD = "Date"

INVALID_LABELS = PointLabels(date=INVALID_DATE_LABEL, time="", date_time=INVALID_DATE_LABEL)


def parse_price(value: Any) -> Optional[float]:
    """
    Validate a raw price value.

    Accepts ints, floats and numeric strings. Returns None for anything that
    is not a finite number (including booleans and None).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        price = float(value)
    elif isinstance(value, str):
        try:
            price = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(price):
        return None
    return price


def parse_observed_at(value: Any) -> Optional[datetime]:
    """
    Parse an upstream date string. Naive values are taken as UTC.

    Returns None when the value cannot be parsed.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = dtparser.parse(value.strip())
        except (ValueError, OverflowError) as e:
            logger.debug(f"Unparseable date {value!r}: {e}")
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def labels_for(observed_at: datetime) -> PointLabels:
    """Display labels for a timestamp."""
    date_label = observed_at.strftime("%Y-%m-%d")
    time_label = observed_at.strftime("%H:%M")
    return PointLabels(date=date_label, time=time_label, date_time=f"{date_label} {time_label}")


def normalize_point(row: Mapping[str, Any]) -> Optional[PricePoint]:
    """
    Normalize one raw row, or return None when its price is invalid.
    """
    price = parse_price(row.get(PRICE_FIELD))
    if price is None:
        return None

    raw_date = row.get(DATE_FIELD)
    observed_at = parse_observed_at(raw_date)
    raw_date_str = "" if raw_date is None else str(raw_date)

    if observed_at is None:
        logger.warning(f"Invalid date format: {raw_date!r}")
        return PricePoint(
            price=price,
            observed_at=None,
            labels=INVALID_LABELS,
            timestamp_millis=0,
            raw_date=raw_date_str,
        )

    try:
        timestamp_millis = int(observed_at.timestamp() * 1000)
    except (OverflowError, OSError, ValueError):
        logger.warning(f"Date out of range: {raw_date!r}")
        return PricePoint(
            price=price,
            observed_at=None,
            labels=INVALID_LABELS,
            timestamp_millis=0,
            raw_date=raw_date_str,
        )

    return PricePoint(
        price=price,
        observed_at=observed_at,
        labels=labels_for(observed_at),
        timestamp_millis=timestamp_millis,
        raw_date=raw_date_str,
    )


def tolerant_sort(items: Iterable[T], compare: Callable[[T, T], int]) -> List[T]:
    """
    Stable sort with a comparator that may raise.

    A comparison that raises is treated as "equal" so the sort always
    completes; Python's sort is stable, so such items keep their input order
    relative to each other.
    """
    def safe_compare(a: T, b: T) -> int:
        try:
            return compare(a, b)
        except Exception as e:
            logger.debug(f"Comparator failed, treating as equal: {e}")
            return 0

    return sorted(items, key=functools.cmp_to_key(safe_compare))


def compare_timestamps(a: PricePoint, b: PricePoint) -> int:
    left = a.timestamp_millis or 0
    right = b.timestamp_millis or 0
    return (left > right) - (left < right)


def normalize_points(rows: Sequence[Any]) -> PriceSeries:
    """
    Normalize and sort a batch of raw rows.

    Non-mapping rows are skipped the same way as rows with invalid prices.
    """
    points: List[PricePoint] = []
    dropped = 0
    for row in rows:
        if not isinstance(row, Mapping):
            dropped += 1
            continue
        point = normalize_point(row)
        if point is None:
            dropped += 1
            continue
        points.append(point)

    if dropped:
        logger.info(f"Dropped {dropped} of {len(rows)} price rows with invalid prices")

    return tuple(tolerant_sort(points, compare_timestamps))


def _coerce_number(value: Any) -> float:
    number = parse_price(value)
    return 0.0 if number is None else number


def _coerce_change(raw: Any) -> PriceChange:
    if not isinstance(raw, Mapping):
        return PriceChange()
    return PriceChange(
        delta=_coerce_number(raw.get("gold")),
        percent=_coerce_number(raw.get("percent")),
    )


def coerce_stats(raw: Any) -> SummaryStats:
    """
    Build SummaryStats from an upstream ``stats`` object.

    Every numeric field defaults to 0 when missing or malformed, so callers
    never see a partially-populated stats object.
    """
    if not isinstance(raw, Mapping):
        return SummaryStats()
    return SummaryStats(
        current_price=_coerce_number(raw.get("price")),
        per_day=_coerce_change(raw.get("per_day")),
        per_week=_coerce_change(raw.get("per_week")),
        per_month=_coerce_change(raw.get("per_month")),
        per_year=_coerce_change(raw.get("per_year")),
    )
