"""
Tests for core.pricing.normalizer - raw upstream rows to PricePoints.
"""
from datetime import datetime, timezone

import pytest

from core.pricing.models import INVALID_DATE_LABEL, PriceChange, SummaryStats
from core.pricing.normalizer import (
    coerce_stats,
    normalize_point,
    normalize_points,
    parse_observed_at,
    parse_price,
    tolerant_sort,
)

pytestmark = pytest.mark.unit


class TestParsePrice:
    @pytest.mark.parametrize("raw,expected", [
        (250, 250.0),
        (12.5, 12.5),
        ("99.9", 99.9),
        (" 7 ", 7.0),
        (0, 0.0),
        (-3.5, -3.5),
    ])
    def test_accepts_numbers(self, raw, expected):
        assert parse_price(raw) == expected

    @pytest.mark.parametrize("raw", [
        None, True, False, "abc", "", float("nan"), float("inf"), "-inf", [], {},
    ])
    def test_rejects_non_numbers(self, raw):
        assert parse_price(raw) is None


class TestParseObservedAt:
    def test_naive_is_utc(self):
        parsed = parse_observed_at("2024-01-01 12:30:00")
        assert parsed == datetime(2024, 1, 1, 12, 30, tzinfo=timezone.utc)

    def test_keeps_offset(self):
        parsed = parse_observed_at("2024-01-01T12:30:00+02:00")
        assert parsed.utcoffset().total_seconds() == 7200

    @pytest.mark.parametrize("raw", ["not a date", "", None, 12345, "2024-13-45"])
    def test_invalid(self, raw):
        assert parse_observed_at(raw) is None


class TestNormalizePoint:
    def test_valid_row(self):
        point = normalize_point({"purchase_price": "245.5", "Date": "2024-01-01 08:05:00"})

        assert point.price == 245.5
        assert point.labels.date == "2024-01-01"
        assert point.labels.time == "08:05"
        assert point.labels.date_time == "2024-01-01 08:05"
        assert point.timestamp_millis == 1704096300000
        assert point.has_valid_date

    def test_invalid_price_drops_row(self):
        assert normalize_point({"purchase_price": "n/a", "Date": "2024-01-01"}) is None
        assert normalize_point({"Date": "2024-01-01"}) is None

    def test_invalid_date_keeps_row(self):
        point = normalize_point({"purchase_price": 10, "Date": "yesterday-ish"})

        assert point is not None
        assert point.price == 10.0
        assert point.timestamp_millis == 0
        assert point.labels.date == INVALID_DATE_LABEL
        assert point.labels.time == ""
        assert point.raw_date == "yesterday-ish"
        assert not point.has_valid_date


class TestNormalizePoints:
    def test_sorted_ascending(self):
        rows = [
            {"purchase_price": 3, "Date": "2024-01-03"},
            {"purchase_price": 1, "Date": "2024-01-01"},
            {"purchase_price": 2, "Date": "2024-01-02"},
        ]

        series = normalize_points(rows)

        assert [p.price for p in series] == [1.0, 2.0, 3.0]

    def test_drops_invalid_prices_and_non_mappings(self):
        rows = [
            {"purchase_price": 1, "Date": "2024-01-01"},
            {"purchase_price": None, "Date": "2024-01-02"},
            "garbage",
            None,
            {"purchase_price": 4, "Date": "2024-01-04"},
        ]

        assert [p.price for p in normalize_points(rows)] == [1.0, 4.0]

    def test_invalid_dates_sort_first(self):
        rows = [
            {"purchase_price": 2, "Date": "2024-01-02"},
            {"purchase_price": 9, "Date": "??"},
        ]

        series = normalize_points(rows)

        assert [p.price for p in series] == [9.0, 2.0]

    def test_equal_timestamps_keep_input_order(self):
        rows = [
            {"purchase_price": 5, "Date": "2024-01-01 00:00:00"},
            {"purchase_price": 6, "Date": "2024-01-01 00:00:00"},
        ]

        assert [p.price for p in normalize_points(rows)] == [5.0, 6.0]

    def test_returns_tuple(self):
        assert normalize_points([]) == ()


class TestTolerantSort:
    def test_failing_comparator_treated_as_equal(self):
        def compare(a, b):
            if a is None or b is None:
                raise TypeError("cannot compare")
            return (a > b) - (a < b)

        result = tolerant_sort([3, None, 1], compare)

        assert len(result) == 3
        assert None in result


class TestCoerceStats:
    def test_full_payload(self):
        stats = coerce_stats({
            "price": 250,
            "per_day": {"gold": 5, "percent": 2.04},
            "per_week": {"gold": -10, "percent": "-3.8"},
            "per_month": {"gold": 20, "percent": 8.7},
            "per_year": {"gold": 50, "percent": 25},
        })

        assert stats.current_price == 250.0
        assert stats.per_day == PriceChange(5.0, 2.04)
        assert stats.per_week == PriceChange(-10.0, -3.8)

    def test_missing_fields_default_to_zero(self):
        stats = coerce_stats({"price": "oops", "per_day": {"gold": 1}})

        assert stats.current_price == 0.0
        assert stats.per_day == PriceChange(1.0, 0.0)
        assert stats.per_year == PriceChange()

    @pytest.mark.parametrize("raw", [None, [], "stats"])
    def test_non_mapping(self, raw):
        assert coerce_stats(raw) == SummaryStats()
