"""
core.pricing.history_service - Fetch one item's price history.

Wraps the upstream client and turns every outcome into a tagged
FetchOutcome. Errors never leave the caller without a series: each failure
path carries the synthetic fallback plus the error kind and message.
Only cancellation propagates as an exception.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Callable, Optional, Protocol, Tuple

from core.cancellation import CancellationToken
from core.pricing.models import (
    EmptyReason,
    EmptyWithFallback,
    ErrorWithFallback,
    FetchErrorKind,
    FetchOutcome,
    FetchSuccess,
    PriceSeries,
    SummaryStats,
)
from core.pricing.normalizer import coerce_stats, normalize_points
from core.pricing.synthetic import synthesize
from data_sources.base_api import (
    MalformedJSONError,
    UpstreamStatusError,
    UpstreamUnavailable,
)

logger = logging.getLogger(__name__)

Synthesizer = Callable[[str], Tuple[PriceSeries, SummaryStats]]


class PriceSource(Protocol):
    def get_prices(self, item_name: str, cancel_token: Optional[CancellationToken] = None): ...


class InvalidDataShape(ValueError):
    """Payload parsed but lacks a ``data`` list."""


class PriceHistoryService:
    """
    High-level fetcher used by the statistics view and API.

    Usage:
        service = PriceHistoryService(PriceHistoryAPI(base_url))
        outcome = service.fetch("Sword of Embers", token)
        if outcome.is_fallback:
            ...
    """

    def __init__(self, source: PriceSource, synthesizer: Synthesizer = synthesize):
        self.source = source
        self.synthesizer = synthesizer

    def fetch(
        self,
        item_name: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> FetchOutcome:
        """
        Fetch, validate and normalize an item's price history.

        Raises:
            OperationCancelled: ``cancel_token`` was cancelled mid-fetch
        """
        try:
            payload = self.source.get_prices(item_name, cancel_token=cancel_token)
            rows = self._extract_rows(payload)
        except UpstreamUnavailable as e:
            return self._error(item_name, FetchErrorKind.NETWORK_OR_TIMEOUT, str(e))
        except UpstreamStatusError as e:
            return self._error(item_name, FetchErrorKind.UPSTREAM_STATUS, str(e))
        except MalformedJSONError as e:
            return self._error(item_name, FetchErrorKind.MALFORMED_JSON, str(e))
        except InvalidDataShape as e:
            return self._error(item_name, FetchErrorKind.INVALID_DATA_SHAPE, str(e))

        if not rows:
            logger.info(f"No price data for {item_name!r}, using sample data")
            return self._empty(item_name, EmptyReason.EMPTY_RESULT)

        series = normalize_points(rows)
        if not series:
            logger.info(f"No valid price rows for {item_name!r}, using sample data")
            return self._empty(item_name, EmptyReason.NO_VALID_POINTS)

        stats = coerce_stats(payload.get("stats"))
        logger.info(f"Loaded {len(series)} price points for {item_name!r}")
        return FetchSuccess(series=series, stats=stats)

    @staticmethod
    def _extract_rows(payload) -> list:
        if not isinstance(payload, Mapping):
            raise InvalidDataShape("Invalid data structure received from API")
        rows = payload.get("data")
        if not isinstance(rows, list):
            raise InvalidDataShape("Invalid data structure received from API")
        return rows

    def _empty(self, item_name: str, reason: EmptyReason) -> EmptyWithFallback:
        series, stats = self.synthesizer(item_name)
        return EmptyWithFallback(series=series, stats=stats, reason=reason)

    def _error(self, item_name: str, kind: FetchErrorKind, message: str) -> ErrorWithFallback:
        logger.error(f"Error fetching item statistics for {item_name!r} ({kind.value}): {message}")
        series, stats = self.synthesizer(item_name)
        return ErrorWithFallback(
            series=series,
            stats=stats,
            kind=kind,
            message=message or "Failed to load item statistics",
        )
