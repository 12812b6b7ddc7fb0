"""
Backend API client for the admin entity endpoints and server statistics.

The proxy routes need the upstream status and raw body to build their error
envelopes, so ``forward`` returns the UpstreamResponse instead of raising on
non-2xx statuses.
"""
from typing import Any, Dict, List, Optional

import logging

from core.constants import API_TIMEOUT_PROXY
from data_sources.base_api import APIError, BaseAPIClient, MalformedJSONError, UpstreamResponse

logger = logging.getLogger(__name__)


class BackendAPI(BaseAPIClient):
    """
    Client for the upstream admin API (items, weapons, categories,
    collections, rarities, types, server stats).
    """

    def __init__(
        self,
        base_url: str,
        endpoints: Dict[str, str],
        timeout: float = API_TIMEOUT_PROXY,
        user_agent: Optional[str] = None,
    ):
        """
        Args:
            base_url: Upstream API root
            endpoints: Entity name -> path or absolute URL
            timeout: Total budget per request in seconds
        """
        super().__init__(base_url=base_url, timeout=timeout, user_agent=user_agent)
        self.endpoints = dict(endpoints)

    def endpoint_for(self, entity: str) -> str:
        """
        Raises:
            KeyError: Unknown entity
        """
        return self.endpoints[entity]

    def forward(self, method: str, entity: str, data: Any = None) -> UpstreamResponse:
        """
        Send one request for ``entity`` and return status plus raw text.

        Raises:
            KeyError: Unknown entity
            UpstreamUnavailable: Connection failure or timeout
        """
        endpoint = self.endpoint_for(entity)
        headers = {"Content-Type": "application/json"}
        return self._make_request(method, endpoint, data=data, headers=headers)

    def list_entities(self, entity: str) -> List[Any]:
        """
        Fetch an entity list for counting.

        Returns an empty list for any failure, non-2xx status, unparseable
        body or non-list payload; the dashboard treats those as zero.
        """
        try:
            response = self.forward("GET", entity)
        except APIError as e:
            logger.error(f"Error fetching {entity}: {e}")
            return []

        if not response.ok:
            logger.warning(f"Warning: {entity} returned status {response.status_code}")
            return []

        try:
            payload = response.json()
        except MalformedJSONError as e:
            logger.error(f"Error parsing JSON from {entity}: {e}")
            return []

        return payload if isinstance(payload, list) else []

    def get_server_stats(self) -> Dict[str, Any]:
        """
        Fetch server statistics (cpu/memory/disk) as an opaque mapping.

        Raises:
            UpstreamUnavailable, UpstreamStatusError, MalformedJSONError
        """
        return self.get(self.endpoint_for("server_stats"))

    def ping(self) -> bool:
        """Whether the upstream answers at all (any status)."""
        try:
            self._make_request("GET", self.endpoint_for("types"), timeout_override=5)
            return True
        except APIError as e:
            logger.debug(f"Upstream ping failed: {e}")
            return False
