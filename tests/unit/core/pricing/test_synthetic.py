"""
Tests for the synthetic fallback price generator.
"""
import random
from datetime import date, datetime, timezone

import pytest

from core.pricing.synthetic import (
    base_price_for,
    name_code_sum,
    stats_from_series,
    synthesize,
    synthetic_price,
)

pytestmark = pytest.mark.unit

TODAY = date(2024, 3, 15)


class TestBasePrice:
    def test_code_sum(self):
        # "AB" = 65 + 66
        assert name_code_sum("AB") == 131

    def test_code_sum_uses_utf16_units(self):
        # U+1F5E1 (dagger) is a surrogate pair: 0xD83D + 0xDDE1
        assert name_code_sum("\U0001F5E1") == 0xD83D + 0xDDE1

    def test_base_in_range(self):
        for name in ["", "Sword", "Dragon Sword", "Épée", "x" * 500]:
            assert 200 <= base_price_for(name) <= 499

    def test_base_formula(self):
        assert base_price_for("AB") == 200 + 131 % 300
        assert base_price_for("") == 200


class TestSyntheticPrice:
    def test_today_value(self):
        # days_back 0: sin(0)*20 + sin(0)*10 + cos(0)*5 + 0
        assert synthetic_price(300, 0) == 305.0

    def test_rounded_to_cents(self):
        value = synthetic_price(250, 17)
        assert value == round(value, 2)


class TestSynthesize:
    def test_length_and_range(self):
        series, _ = synthesize("Sword", today=TODAY, rng=random.Random(1))

        assert len(series) == 366
        assert series[0].labels.date == "2023-03-16"
        assert series[-1].labels.date == "2024-03-15"

    def test_ascending_timestamps(self):
        series, _ = synthesize("Sword", today=TODAY, rng=random.Random(1))

        timestamps = [p.timestamp_millis for p in series]
        assert timestamps == sorted(timestamps)
        assert len(set(timestamps)) == 366

    def test_timestamp_is_midnight_utc(self):
        series, _ = synthesize("Sword", today=TODAY, rng=random.Random(1))

        last = series[-1]
        midnight = datetime(2024, 3, 15, tzinfo=timezone.utc)
        assert last.timestamp_millis == int(midnight.timestamp() * 1000)
        assert last.observed_at.date() == TODAY

    def test_prices_deterministic_in_name(self):
        first, _ = synthesize("Dragon Sword", today=TODAY, rng=random.Random(1))
        second, _ = synthesize("Dragon Sword", today=TODAY, rng=random.Random(99))

        assert [p.price for p in first] == [p.price for p in second]

    def test_time_labels_vary_with_rng(self):
        first, _ = synthesize("Dragon Sword", today=TODAY, rng=random.Random(1))
        second, _ = synthesize("Dragon Sword", today=TODAY, rng=random.Random(2))

        assert [p.labels.time for p in first] != [p.labels.time for p in second]

    def test_last_price_uses_days_back_zero(self):
        series, _ = synthesize("AB", today=TODAY, rng=random.Random(1))

        assert series[-1].price == synthetic_price(base_price_for("AB"), 0)
        assert series[0].price == synthetic_price(base_price_for("AB"), 365)

    def test_labels_consistent(self):
        series, _ = synthesize("Sword", today=TODAY, rng=random.Random(5))

        for point in series[:10]:
            assert point.labels.date_time == f"{point.labels.date} {point.labels.time}"


class TestStatsFromSeries:
    def test_stats_match_series(self):
        series, stats = synthesize("Sword", today=TODAY, rng=random.Random(1))
        current = series[-1].price

        assert stats.current_price == current
        assert stats.per_day.delta == round(current - series[-2].price, 2)
        assert stats.per_week.delta == round(current - series[-7].price, 2)
        assert stats.per_month.delta == round(current - series[-30].price, 2)
        assert stats.per_year.delta == round(current - series[0].price, 2)

    def test_percent(self, daily_series):
        series = daily_series(3, start_price=100.0)  # 100, 101, 102

        stats = stats_from_series(series)

        assert stats.per_day.delta == 1.0
        assert stats.per_day.percent == round(1 / 101 * 100, 2)
        # fewer than 7 points: week compares to the current price
        assert stats.per_week.delta == 0.0

    def test_zero_reference_gives_zero_percent(self, daily_series):
        series = daily_series(2, start_price=0.0)

        assert stats_from_series(series).per_day.percent == 0.0

    def test_empty(self):
        assert stats_from_series(()).current_price == 0.0
