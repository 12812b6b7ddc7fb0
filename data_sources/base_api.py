"""
Base API Client with bounded, cancellable requests and error classification.
All upstream clients (price history, entity proxy, server stats) inherit from this.

Responses are streamed and read as text first, then parsed as JSON, so the
caller can tell a network failure, a non-2xx status and an unparseable body
apart.
"""

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from core.cancellation import CancellationToken, CancelReason, OperationCancelled
from core.constants import API_TIMEOUT_PROXY, RESPONSE_TEXT_EXCERPT

# Get logger - configuration should be done by application entrypoint, not library modules
logger = logging.getLogger(__name__)


class APIError(Exception):
    """Generic upstream API error"""
    pass


class UpstreamUnavailable(APIError):
    """Connection failure or the request ran out of time"""

    def __init__(self, message: str, timed_out: bool = False):
        self.timed_out = timed_out
        super().__init__(message)


class UpstreamStatusError(APIError):
    """Upstream answered with a non-2xx status"""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        detail = f" - {body[:200]}" if body else ""
        super().__init__(f"API Error: {status_code}{detail}")


class MalformedJSONError(APIError):
    """Upstream body could not be parsed as JSON"""

    def __init__(self, message: str, response_text: str = ""):
        self.response_text = response_text
        super().__init__(message)

    @property
    def excerpt(self) -> str:
        return self.response_text[:RESPONSE_TEXT_EXCERPT]


@dataclass(frozen=True)
class UpstreamResponse:
    """Status and raw body text of a completed upstream request."""

    status_code: int
    text: str
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """
        Parse the body as JSON.

        Raises:
            MalformedJSONError: Empty body or invalid JSON
        """
        if not self.text or not self.text.strip():
            raise MalformedJSONError("Empty response received", self.text)
        try:
            return json.loads(self.text)
        except ValueError as e:
            raise MalformedJSONError(f"Failed to parse API response: {e}", self.text) from e


TimeoutType = Union[int, float, Tuple[float, float]]


def _total_budget(timeout: TimeoutType) -> float:
    if isinstance(timeout, tuple):
        return float(sum(timeout))
    return float(timeout)


class BaseAPIClient:
    """
    Base class for upstream API clients.
    Provides pooled sessions, a total time budget per request, cancellation
    and error classification.
    """

    # Connection pool settings
    POOL_CONNECTIONS = 10  # Number of connection pools to cache
    POOL_MAXSIZE = 20      # Max connections per pool
    MAX_RETRIES = 2        # Connection-level retries for idempotent requests
    BACKOFF_FACTOR = 0.5   # Exponential backoff multiplier
    RETRY_STATUS_CODES = frozenset({502, 503, 504})
    CHUNK_SIZE = 8192

    def __init__(
            self,
            base_url: str,
            timeout: TimeoutType = API_TIMEOUT_PROXY,
            user_agent: Optional[str] = None,
    ):
        """
        Args:
            base_url: Base URL for the API; absolute endpoint URLs bypass it
            timeout: Total request budget in seconds (also the socket timeout)
            user_agent: Custom User-Agent header
        """
        self.base_url = base_url.rstrip('/')
        self.timeout: TimeoutType = timeout
        self.user_agent = user_agent or "Goldboard-Admin/1.0"

        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': self.user_agent,
            'Accept': 'application/json',
        })

        retry_strategy = Retry(
            total=self.MAX_RETRIES,
            backoff_factor=self.BACKOFF_FACTOR,
            status_forcelist=self.RETRY_STATUS_CODES,
            allowed_methods=["GET"],  # never replay a POST
            raise_on_status=False  # Don't raise, let us handle status codes
        )
        adapter = HTTPAdapter(
            pool_connections=self.POOL_CONNECTIONS,
            pool_maxsize=self.POOL_MAXSIZE,
            max_retries=retry_strategy
        )
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)

        logger.info(f"Initialized {self.__class__.__name__} - Base: {self.base_url}, Timeout: {timeout}s")

    def build_url(self, endpoint: str) -> str:
        """Join ``endpoint`` to the base URL unless it is already absolute."""
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _make_request(
            self,
            method: str,
            endpoint: str,
            params: Optional[Dict] = None,
            data: Any = None,
            headers: Optional[Dict[str, str]] = None,
            timeout_override: Optional[TimeoutType] = None,
            cancel_token: Optional[CancellationToken] = None,
    ) -> UpstreamResponse:
        """
        Make one HTTP request and read the whole body as text.

        The budget covers connecting and reading the body. Cancelling
        ``cancel_token`` closes the streaming response. A POST always
        carries ``data`` as a JSON document, so ``None`` is sent as ``null``.

        Returns:
            UpstreamResponse (any status)

        Raises:
            UpstreamUnavailable: Connection failure or budget exceeded
            OperationCancelled: ``cancel_token`` was cancelled
        """
        url = self.build_url(endpoint)
        timeout = timeout_override if timeout_override is not None else self.timeout
        budget = _total_budget(timeout)

        # Private token: the caller's token and the watchdog both cancel it
        request_token = CancellationToken()
        unlink = (cancel_token.add_callback(request_token.cancel)
                  if cancel_token is not None else (lambda: None))
        watchdog = threading.Timer(budget, request_token.cancel, args=(CancelReason.TIMED_OUT,))
        watchdog.daemon = True
        watchdog.start()

        started = time.monotonic()
        response: Optional[requests.Response] = None
        try:
            request_token.raise_if_cancelled()
            logger.debug(f"{method} {url} - params: {params}")

            body = json.dumps(data) if method.upper() == "POST" or data is not None else None
            if body is not None:
                headers = {"Content-Type": "application/json", **(headers or {})}

            response = self.session.request(
                method=method,
                url=url,
                params=params,
                data=body,
                headers=headers,
                timeout=timeout,
                stream=True,
            )
            request_token.add_callback(response.close)
            text = self._read_text(response, request_token)
            elapsed = time.monotonic() - started

            logger.info(f"{method} {endpoint} -> {response.status_code} ({elapsed:.2f}s)")
            return UpstreamResponse(status_code=response.status_code, text=text, elapsed=elapsed)

        except OperationCancelled as e:
            raise self._translate_cancel(e.reason, budget) from None
        except requests.Timeout as e:
            logger.error(f"Request timed out: {method} {url}: {e}")
            raise UpstreamUnavailable(f"Request timed out: {e}", timed_out=True) from e
        except requests.RequestException as e:
            if request_token.cancelled:
                raise self._translate_cancel(request_token.reason, budget) from None
            logger.error(f"Request failed: {e}")
            raise UpstreamUnavailable(f"Request failed: {e}") from e
        except Exception:
            # Closing the response from another thread surfaces as an
            # arbitrary error inside the read loop
            if request_token.cancelled:
                raise self._translate_cancel(request_token.reason, budget) from None
            raise
        finally:
            watchdog.cancel()
            unlink()
            if response is not None:
                response.close()

    def _translate_cancel(self, reason: Optional[CancelReason], budget: float) -> Exception:
        if reason is CancelReason.TIMED_OUT:
            logger.warning(f"Request exceeded its {budget:g}s budget, aborted")
            return UpstreamUnavailable(f"Request timed out after {budget:g}s", timed_out=True)
        logger.info("Request cancelled by caller, aborted")
        return OperationCancelled(CancelReason.CANCELLED)

    def _read_text(self, response: requests.Response, token: CancellationToken) -> str:
        chunks = []
        for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
            token.raise_if_cancelled()
            if chunk:
                chunks.append(chunk)
        token.raise_if_cancelled()
        raw = b"".join(chunks)
        encoding = response.encoding or "utf-8"
        try:
            return raw.decode(encoding, errors="replace")
        except LookupError:
            return raw.decode("utf-8", errors="replace")

    def request_json(
            self,
            method: str,
            endpoint: str,
            params: Optional[Dict] = None,
            data: Any = None,
            headers: Optional[Dict[str, str]] = None,
            timeout_override: Optional[TimeoutType] = None,
            cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """
        Request and decode a JSON body from a 2xx response.

        Raises:
            UpstreamUnavailable, UpstreamStatusError, MalformedJSONError,
            OperationCancelled
        """
        response = self._make_request(
            method, endpoint, params=params, data=data, headers=headers,
            timeout_override=timeout_override, cancel_token=cancel_token,
        )
        if not response.ok:
            logger.error(f"API error {response.status_code}: {response.text[:200]}")
            raise UpstreamStatusError(response.status_code, response.text)
        return response.json()

    def get(self, endpoint: str, params: Optional[Dict] = None, **kwargs) -> Any:
        """GET request wrapper"""
        return self.request_json('GET', endpoint, params=params, **kwargs)

    def post(self, endpoint: str, data: Any = None, **kwargs) -> Any:
        """POST request wrapper"""
        return self.request_json('POST', endpoint, data=data, **kwargs)

    def close(self):
        """Clean up resources"""
        self.session.close()
        logger.info(f"Closed {self.__class__.__name__}")

    def __enter__(self):
        """Context manager entry - returns self for use in 'with' blocks."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensures session is closed."""
        self.close()
        return False  # Don't suppress exceptions
