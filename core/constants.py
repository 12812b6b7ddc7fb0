"""
Application-wide constants for Goldboard Admin.

Centralizes magic numbers and configuration values to improve maintainability.
"""

# =============================================================================
# Network Timeouts (seconds)
# =============================================================================

# Budget for proxy routes forwarding to the upstream API
API_TIMEOUT_PROXY = 10

# Budget for a single price history fetch
API_TIMEOUT_PRICES = 15

# Quick health check timeout
API_TIMEOUT_HEALTH_CHECK = 5

# Timeout for thread/worker joins
THREAD_JOIN_TIMEOUT = 2.0

# Upper bound accepted from config for any timeout
API_TIMEOUT_MAX = 120


# =============================================================================
# Upstream Endpoints
# =============================================================================

DEFAULT_API_BASE_URL = "http://localhost:8080"

# Environment variable that overrides the configured upstream base URL
API_BASE_URL_ENV = "GOLDBOARD_API_BASE_URL"

# Entities exposed through the pass-through proxy routes.
# Maps the route segment to the singular noun used in error messages.
PROXY_ENTITIES = {
    "items": "item",
    "weapons": "weapon",
    "categories": "category",
    "collections": "collection",
    "rarities": "rarity",
    "types": "type",
}

# Characters of a non-JSON upstream body echoed back to the caller
RESPONSE_TEXT_EXCERPT = 100


# =============================================================================
# Chart / Display Pipeline
# =============================================================================

# Maximum number of points handed to the chart renderer
DISPLAY_LIMIT_DEFAULT = 1_000_000

# Visual buffer applied to the y-axis extremes
CHART_MIN_BUFFER = 0.98
CHART_MAX_BUFFER = 1.02

# Zoom steps
ZOOM_INITIAL_START = 0.25
ZOOM_INITIAL_END = 0.75
ZOOM_IN_FACTOR = 0.75
ZOOM_OUT_FACTOR = 2
ZOOM_MIN_SPAN = 10
# Zoom-out within this many points of both edges clears the zoom
ZOOM_RESET_MARGIN = 5

# Long-hover detail delay (milliseconds)
HOVER_DELAY_MS = 500


# =============================================================================
# Synthetic Fallback Data
# =============================================================================

SYNTHETIC_DAYS = 365
SYNTHETIC_BASE_OFFSET = 200
SYNTHETIC_BASE_MODULO = 300
SYNTHETIC_TREND_MAX = 50


# =============================================================================
# Export
# =============================================================================

CSV_HEADER = ("Date", "Time", "Price (G)")
CSV_FILENAME_SUFFIX = "_price_history.csv"


# =============================================================================
# Dashboard
# =============================================================================

# Shown when the backend cannot report server statistics
DEMO_SERVER_STATS = {
    "cpu_percent": 25.5,
    "memory": {
        "total_gb": 16.0,
        "used_gb": 8.2,
        "available_gb": 7.8,
        "percent": 51.25,
    },
    "disk": {
        "total_gb": 512.0,
        "used_gb": 256.0,
        "free_gb": 256.0,
        "percent": 50.0,
    },
}

# Parallel upstream calls when counting entities
DASHBOARD_MAX_WORKERS = 6
