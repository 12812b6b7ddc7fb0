from __future__ import annotations

"""
Unit tests for core.config module
"""

import json
import uuid
from pathlib import Path

import pytest

from core.config import Config
from core.pricing.models import ChartType, PeriodWindow

pytestmark = pytest.mark.unit


# -------------------------
# Helper
# -------------------------

def get_unique_config_path(tmp_path):
    """Generate a unique config file path to prevent test interference"""
    return tmp_path / f"config_{uuid.uuid4().hex}.json"


# -------------------------
# Initialization Tests
# -------------------------

class TestConfigInitialization:
    def test_creates_config_file(self, tmp_path):
        config_file = get_unique_config_path(tmp_path)
        config = Config(config_file)
        config.save()

        assert config_file.exists()

    def test_loads_defaults_for_new_config(self, tmp_path):
        cfg = Config(get_unique_config_path(tmp_path))

        assert cfg.api_base_url == "http://localhost:8080"
        assert cfg.default_period is PeriodWindow.ONE_MONTH
        assert cfg.chart_type is ChartType.AREA
        assert cfg.price_timeout_seconds == 15
        assert cfg.proxy_timeout_seconds == 10
        assert cfg.use_mock_fallback is True

    def test_default_path(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        cfg = Config()
        assert cfg.config_file == tmp_path / ".goldboard" / "config.json"

    def test_loads_existing_config(self, tmp_path):
        config_file = get_unique_config_path(tmp_path)

        cfg1 = Config(config_file)
        cfg1.default_period = PeriodWindow.SIX_MONTHS
        cfg1.api_base_url = "https://admin.example.com/"

        cfg2 = Config(config_file)
        assert cfg2.default_period is PeriodWindow.SIX_MONTHS
        assert cfg2.api_base_url == "https://admin.example.com"

    def test_merges_with_defaults_on_load(self, tmp_path):
        config_file = get_unique_config_path(tmp_path)
        with open(config_file, "w") as f:
            json.dump({"chart": {"chart_type": "line"}}, f)

        cfg = Config(config_file)

        assert cfg.chart_type is ChartType.LINE
        assert cfg.default_period is PeriodWindow.ONE_MONTH
        assert cfg.get_endpoint("prices") == "/api/v1/prices"

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path):
        config_file = get_unique_config_path(tmp_path)
        config_file.write_text("{not json", encoding="utf-8")

        cfg = Config(config_file)

        assert cfg.display_limit == 1_000_000


# -------------------------
# Upstream API Tests
# -------------------------

class TestUpstreamSettings:
    def test_env_overrides_base_url(self, tmp_path, monkeypatch):
        cfg = Config(get_unique_config_path(tmp_path))
        monkeypatch.setenv("GOLDBOARD_API_BASE_URL", "http://backend:9000/")

        assert cfg.api_base_url == "http://backend:9000"

    def test_blank_env_is_ignored(self, tmp_path, monkeypatch):
        cfg = Config(get_unique_config_path(tmp_path))
        monkeypatch.setenv("GOLDBOARD_API_BASE_URL", "   ")

        assert cfg.api_base_url == "http://localhost:8080"

    @pytest.mark.parametrize("value,expected", [(0, 1), (30, 30), (500, 120), ("abc", 15)])
    def test_price_timeout_is_clamped(self, tmp_path, value, expected):
        cfg = Config(get_unique_config_path(tmp_path))
        cfg.data["api"]["price_timeout_seconds"] = value

        assert cfg.price_timeout_seconds == expected

    def test_unknown_endpoint_raises(self, tmp_path):
        cfg = Config(get_unique_config_path(tmp_path))

        with pytest.raises(KeyError):
            cfg.get_endpoint("spells")

    def test_set_endpoint_persists(self, tmp_path):
        config_file = get_unique_config_path(tmp_path)
        Config(config_file).set_endpoint("items", "https://other.example.com/items")

        assert Config(config_file).get_endpoint("items") == "https://other.example.com/items"


# -------------------------
# Chart Preference Tests
# -------------------------

class TestChartSettings:
    def test_invalid_period_falls_back(self, tmp_path):
        cfg = Config(get_unique_config_path(tmp_path))
        cfg.data["chart"]["default_period"] = "2W"

        assert cfg.default_period is PeriodWindow.ONE_MONTH

    def test_invalid_chart_type_falls_back(self, tmp_path):
        cfg = Config(get_unique_config_path(tmp_path))
        cfg.data["chart"]["chart_type"] = "pie"

        assert cfg.chart_type is ChartType.AREA

    def test_display_limit_minimum(self, tmp_path):
        cfg = Config(get_unique_config_path(tmp_path))
        cfg.display_limit = 1

        assert cfg.display_limit == 2

    def test_hover_delay_never_negative(self, tmp_path):
        cfg = Config(get_unique_config_path(tmp_path))
        cfg.data["chart"]["hover_delay_ms"] = -50

        assert cfg.hover_delay_ms == 0


class TestLoggingSettings:
    def test_debug_logging_off_by_default(self, tmp_path):
        assert Config(get_unique_config_path(tmp_path)).debug_logging is False

    def test_debug_logging_from_file(self, tmp_path):
        cfg = Config(get_unique_config_path(tmp_path))
        cfg.data["logging"]["debug"] = True

        assert cfg.debug_logging is True
