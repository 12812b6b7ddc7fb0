"""
Default configuration values for Goldboard Admin.

This module contains the default configuration structure and utility functions
for locating the config directory.
"""

from pathlib import Path
from typing import Any, Dict

from core.constants import (
    API_TIMEOUT_PRICES,
    API_TIMEOUT_PROXY,
    DEFAULT_API_BASE_URL,
    DISPLAY_LIMIT_DEFAULT,
    HOVER_DELAY_MS,
)


def get_config_dir() -> Path:
    """
    Get the application config directory.

    Returns:
        Path to the config directory (~/.goldboard/)
    """
    config_dir = Path.home() / ".goldboard"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


# Default configuration structure
# NOTE: This structure is treated as immutable. Always use deep copy
# when initializing from defaults.
DEFAULT_CONFIG: Dict[str, Any] = {
    "api": {
        "base_url": DEFAULT_API_BASE_URL,
        "price_timeout_seconds": API_TIMEOUT_PRICES,
        "proxy_timeout_seconds": API_TIMEOUT_PROXY,
        "user_agent": "Goldboard-Admin/1.0",
    },
    # Relative paths are joined to api.base_url, absolute URLs are used as-is
    "endpoints": {
        "prices": "/api/v1/prices",
        "items": "/api/v1/items",
        "weapons": "/api/v1/weapons",
        "categories": "/api/v1/categories",
        "collections": "/api/v1/collections",
        "rarities": "/api/v1/rarities",
        "types": "/api/v1/types",
        "server_stats": "/api/v1/server-stats",
    },
    "chart": {
        "default_period": "1M",
        "display_limit": DISPLAY_LIMIT_DEFAULT,
        "hover_delay_ms": HOVER_DELAY_MS,
        "chart_type": "area",  # line, area, or candlestick
    },
    "dashboard": {
        # Serve demo server stats when the upstream is unavailable
        "use_mock_fallback": True,
    },
    "logging": {
        "debug": False,
    },
}
