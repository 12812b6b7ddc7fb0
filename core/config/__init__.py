"""
Configuration management for Goldboard Admin.
Handles upstream API settings, chart preferences, and persistence.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from core.config.defaults import DEFAULT_CONFIG, get_config_dir
from core.constants import API_BASE_URL_ENV, API_TIMEOUT_MAX
from core.pricing.models import ChartType, PeriodWindow

logger = logging.getLogger(__name__)

__all__ = ["Config", "DEFAULT_CONFIG", "get_config_dir"]


class Config:
    """
    Application configuration with JSON persistence.

    Key ideas:
    - The backing store is a JSON file on disk (~/.goldboard/config.json).
    - Sections ("api", "endpoints", "chart", ...) are merged over the defaults
      so keys added in newer releases appear without discarding user values.
    - The upstream base URL can be overridden from the environment, which is
      how deployments point the dashboard at their backend.
    """

    DEFAULT_CONFIG: Dict[str, Any] = DEFAULT_CONFIG

    def __init__(self, config_file: Optional[Path] = None) -> None:
        """
        Initialize configuration.

        Args:
            config_file: Optional path to config JSON file. When omitted,
                         the default path under ~/.goldboard/config.json
                         is used.
        """
        self.config_file: Path = self._resolve_config_path(config_file)
        self.config_file.parent.mkdir(parents=True, exist_ok=True)

        self.data: Dict[str, Any] = self._load()
        logger.info(f"Config loaded from {self.config_file}")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_config_path(config_file: Optional[Path]) -> Path:
        if config_file is not None:
            return config_file
        return Path.home() / ".goldboard" / "config.json"

    def _load(self) -> Dict[str, Any]:
        """Load configuration from JSON file, merging with defaults."""
        if self.config_file.exists():
            try:
                with self.config_file.open("r", encoding="utf-8") as f:
                    raw = json.load(f)

                merged = self._merge_with_defaults(raw)
                logger.info("Configuration loaded successfully")
                return merged
            except Exception as exc:  # defensive
                logger.error(f"Failed to load config: {exc}. Using defaults.")
                return self._default_config_deepcopy()
        else:
            logger.info("No config file found, using defaults")
            return self._default_config_deepcopy()

    @classmethod
    def _default_config_deepcopy(cls) -> Dict[str, Any]:
        """
        Return a deep copy of the DEFAULT_CONFIG to avoid state leakage
        between instances or tests.
        """
        return copy.deepcopy(cls.DEFAULT_CONFIG)

    def _merge_with_defaults(self, user_config: Dict[str, Any]) -> Dict[str, Any]:
        merged = self._default_config_deepcopy()

        if not isinstance(user_config, dict):
            logger.warning("Config root is not an object, ignoring file contents")
            return merged

        for key, value in user_config.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key].update(value)
            else:
                merged[key] = value

        return merged

    def _section(self, name: str) -> Dict[str, Any]:
        return self.data.setdefault(name, {})

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        """Persist the current configuration to the config file."""
        try:
            with self.config_file.open("w", encoding="utf-8") as f:
                json.dump(self.data, f, indent=2, ensure_ascii=False)
            logger.info("Configuration saved")
        except Exception as exc:  # defensive
            logger.error(f"Failed to save config: {exc}")

    # ------------------------------------------------------------------
    # Upstream API
    # ------------------------------------------------------------------

    @property
    def api_base_url(self) -> str:
        """Upstream API root. The environment variable wins over the file."""
        env_value = os.environ.get(API_BASE_URL_ENV, "").strip()
        if env_value:
            return env_value.rstrip("/")
        return str(self._section("api").get("base_url", DEFAULT_CONFIG["api"]["base_url"])).rstrip("/")

    @api_base_url.setter
    def api_base_url(self, value: str) -> None:
        self._section("api")["base_url"] = value.rstrip("/")
        self.save()

    @property
    def user_agent(self) -> str:
        return str(self._section("api").get("user_agent", DEFAULT_CONFIG["api"]["user_agent"]))

    @staticmethod
    def _clamp_timeout(value: Any, fallback: int) -> int:
        try:
            seconds = int(value)
        except (TypeError, ValueError):
            return fallback
        return max(1, min(API_TIMEOUT_MAX, seconds))

    @property
    def price_timeout_seconds(self) -> int:
        """Total budget for one price history fetch. Guardrails: 1..120."""
        default = DEFAULT_CONFIG["api"]["price_timeout_seconds"]
        return self._clamp_timeout(self._section("api").get("price_timeout_seconds", default), default)

    @price_timeout_seconds.setter
    def price_timeout_seconds(self, value: int) -> None:
        default = DEFAULT_CONFIG["api"]["price_timeout_seconds"]
        self._section("api")["price_timeout_seconds"] = self._clamp_timeout(value, default)
        self.save()

    @property
    def proxy_timeout_seconds(self) -> int:
        """Budget for pass-through proxy requests. Guardrails: 1..120."""
        default = DEFAULT_CONFIG["api"]["proxy_timeout_seconds"]
        return self._clamp_timeout(self._section("api").get("proxy_timeout_seconds", default), default)

    @proxy_timeout_seconds.setter
    def proxy_timeout_seconds(self, value: int) -> None:
        default = DEFAULT_CONFIG["api"]["proxy_timeout_seconds"]
        self._section("api")["proxy_timeout_seconds"] = self._clamp_timeout(value, default)
        self.save()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def get_endpoint(self, name: str) -> str:
        """
        Return the configured URL or path for a named upstream endpoint.

        Raises:
            KeyError: If the endpoint is not configured.
        """
        endpoints = self._section("endpoints")
        if name not in endpoints:
            raise KeyError(f"Unknown upstream endpoint: {name}")
        return str(endpoints[name])

    def set_endpoint(self, name: str, url: str) -> None:
        self._section("endpoints")[name] = url
        self.save()

    # ------------------------------------------------------------------
    # Chart preferences
    # ------------------------------------------------------------------

    @property
    def default_period(self) -> PeriodWindow:
        raw = self._section("chart").get("default_period", "1M")
        try:
            return PeriodWindow(raw)
        except ValueError:
            logger.warning(f"Invalid default_period in config: {raw!r}, using 1M")
            return PeriodWindow.ONE_MONTH

    @default_period.setter
    def default_period(self, value: PeriodWindow) -> None:
        self._section("chart")["default_period"] = PeriodWindow(value).value
        self.save()

    @property
    def display_limit(self) -> int:
        """Maximum points handed to the chart renderer (minimum 2)."""
        default = DEFAULT_CONFIG["chart"]["display_limit"]
        try:
            limit = int(self._section("chart").get("display_limit", default))
        except (TypeError, ValueError):
            return default
        return max(2, limit)

    @display_limit.setter
    def display_limit(self, value: int) -> None:
        self._section("chart")["display_limit"] = max(2, int(value))
        self.save()

    @property
    def hover_delay_ms(self) -> int:
        default = DEFAULT_CONFIG["chart"]["hover_delay_ms"]
        try:
            return max(0, int(self._section("chart").get("hover_delay_ms", default)))
        except (TypeError, ValueError):
            return default

    @property
    def chart_type(self) -> ChartType:
        raw = self._section("chart").get("chart_type", "area")
        try:
            return ChartType(raw)
        except ValueError:
            return ChartType.AREA

    @chart_type.setter
    def chart_type(self, value: ChartType) -> None:
        self._section("chart")["chart_type"] = ChartType(value).value
        self.save()

    # ------------------------------------------------------------------
    # Dashboard / logging
    # ------------------------------------------------------------------

    @property
    def use_mock_fallback(self) -> bool:
        return bool(self._section("dashboard").get("use_mock_fallback", True))

    @use_mock_fallback.setter
    def use_mock_fallback(self, value: bool) -> None:
        self._section("dashboard")["use_mock_fallback"] = bool(value)
        self.save()

    @property
    def debug_logging(self) -> bool:
        return bool(self._section("logging").get("debug", False))

    def __repr__(self) -> str:
        return f"Config(file={self.config_file}, base_url={self.api_base_url})"
