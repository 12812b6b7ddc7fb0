"""
Price history API client.

Queries ``GET {base}/api/v1/prices?name=<item>`` which answers with
``{"data": [{"purchase_price": ..., "Date": ...}, ...], "stats": {...}}``.
"""
from typing import Any, Optional

import logging

from core.cancellation import CancellationToken
from core.constants import API_TIMEOUT_PRICES
from data_sources.base_api import BaseAPIClient

logger = logging.getLogger(__name__)


class PriceHistoryAPI(BaseAPIClient):
    """
    Client for the upstream price history endpoint.

    One bounded request per fetch, no connection-level retries: the whole
    fetch must fit in its time budget.
    """

    MAX_RETRIES = 0

    NO_CACHE_HEADERS = {
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }

    def __init__(
        self,
        base_url: str,
        endpoint: str = "/api/v1/prices",
        timeout: float = API_TIMEOUT_PRICES,
        user_agent: Optional[str] = None,
    ):
        """
        Args:
            base_url: Upstream API root
            endpoint: Price history path (or absolute URL)
            timeout: Total budget for one fetch in seconds
        """
        super().__init__(base_url=base_url, timeout=timeout, user_agent=user_agent)
        self.endpoint = endpoint
        self.request_count = 0

    def get_prices(self, item_name: str, cancel_token: Optional[CancellationToken] = None) -> Any:
        """
        Fetch the raw price payload for an item.

        Args:
            item_name: Item display name (URL-encoded by requests)
            cancel_token: Cancelling it abandons the request

        Returns:
            Decoded JSON payload (shape not validated here)

        Raises:
            UpstreamUnavailable, UpstreamStatusError, MalformedJSONError,
            OperationCancelled
        """
        self.request_count += 1
        logger.info(f"[prices] Request #{self.request_count}: {item_name!r}")
        return self.get(
            self.endpoint,
            params={"name": item_name},
            headers=self.NO_CACHE_HEADERS,
            cancel_token=cancel_token,
        )
