"""Tests for the JSON error bodies."""

import pytest
from fastapi import FastAPI, Query
from fastapi.testclient import TestClient

from api.middleware.error_handling import setup_error_handlers, upstream_error
from data_sources.base_api import UpstreamStatusError, UpstreamUnavailable

pytestmark = pytest.mark.api


@pytest.fixture
def app() -> FastAPI:
    application = FastAPI()
    setup_error_handlers(application)

    @application.get("/status-error")
    def status_error():
        raise UpstreamStatusError(502, "Bad Gateway")

    @application.get("/unavailable")
    def unavailable():
        raise UpstreamUnavailable("Connection refused")

    @application.get("/crash")
    def crash():
        raise RuntimeError("secret internals")

    @application.get("/limited")
    def limited(limit: int = Query(..., ge=1)):
        return {"limit": limit}

    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


class TestHandlers:
    def test_unknown_route(self, client: TestClient):
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.json() == {
            "error": "Not Found",
            "details": None,
            "status_code": 404,
            "path": "/nowhere",
        }

    def test_validation_lists_fields(self, client: TestClient):
        response = client.get("/limited?limit=0")

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "Validation error"
        assert body["details"][0]["field"] == "limit"

    def test_upstream_status_passes_through(self, client: TestClient):
        response = client.get("/status-error")

        assert response.status_code == 502
        assert response.json()["error"] == "Upstream API error"
        assert "502" in response.json()["details"]

    def test_upstream_unavailable_is_500(self, client: TestClient):
        response = client.get("/unavailable")

        assert response.status_code == 500
        assert response.json()["details"] == "Connection refused"

    def test_unexpected_error_hides_details(self, client: TestClient):
        response = client.get("/crash")

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"
        assert "secret" not in response.text


class TestUpstreamError:
    def test_body(self):
        response = upstream_error(503, "API responded with status: 503", {"message": "down"})

        assert response.status_code == 503
        assert response.body == b'{"error":"API responded with status: 503","details":{"message":"down"}}'

    def test_extra_keys(self):
        response = upstream_error(500, "Invalid JSON response from server", "bad", responseText="<html>")

        assert b'"responseText":"<html>"' in response.body
