"""
Tests for PriceHistoryAPI - the upstream price history client.
"""
from unittest.mock import Mock

import pytest

from core.cancellation import CancellationToken
from data_sources.base_api import UpstreamStatusError
from data_sources.price_history import PriceHistoryAPI

pytestmark = pytest.mark.unit


class FakeResponse:
    def __init__(self, status_code=200, body=b'{"data": [], "stats": {}}'):
        self.status_code = status_code
        self.encoding = "utf-8"
        self._body = body

    def iter_content(self, chunk_size=1):
        yield self._body

    def close(self):
        pass


@pytest.fixture
def api():
    client = PriceHistoryAPI(base_url="http://upstream.test", timeout=15)
    client.session = Mock()
    client.session.request.return_value = FakeResponse()
    return client


def test_queries_by_name(api):
    payload = api.get_prices("Dragon Sword")

    assert payload == {"data": [], "stats": {}}
    kwargs = api.session.request.call_args.kwargs
    assert kwargs["method"] == "GET"
    assert kwargs["url"] == "http://upstream.test/api/v1/prices"
    assert kwargs["params"] == {"name": "Dragon Sword"}


def test_disables_caching(api):
    api.get_prices("Sword")

    headers = api.session.request.call_args.kwargs["headers"]
    assert headers["Cache-Control"] == "no-cache"
    assert headers["Pragma"] == "no-cache"


def test_uses_price_budget(api):
    api.get_prices("Sword")

    assert api.session.request.call_args.kwargs["timeout"] == 15


def test_counts_requests(api):
    api.get_prices("A")
    api.get_prices("B")

    assert api.request_count == 2


def test_status_error_propagates(api):
    api.session.request.return_value = FakeResponse(502, b"Bad Gateway")

    with pytest.raises(UpstreamStatusError):
        api.get_prices("Sword")


def test_absolute_endpoint():
    client = PriceHistoryAPI(base_url="http://upstream.test", endpoint="https://prices.test/v2/history")
    client.session = Mock()
    client.session.request.return_value = FakeResponse()

    client.get_prices("Sword", cancel_token=CancellationToken())

    assert client.session.request.call_args.kwargs["url"] == "https://prices.test/v2/history"


def test_no_connection_retries():
    client = PriceHistoryAPI(base_url="http://upstream.test")
    try:
        assert client.session.get_adapter("http://upstream.test").max_retries.total == 0
    finally:
        client.close()
