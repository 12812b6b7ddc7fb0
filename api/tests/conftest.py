"""
api.tests.conftest - Pytest fixtures for API tests.

Provides test client and mock dependencies for testing API endpoints.
"""

from __future__ import annotations

import random
from datetime import date
from typing import Generator
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from core.config import Config
from core.pricing.models import FetchSuccess
from core.pricing.synthetic import synthesize
from core.services.chart_data_service import ChartDataService
from core.services.export_service import ExportService
from data_sources.base_api import UpstreamResponse


def make_response(status_code: int = 200, text: str = "[]") -> UpstreamResponse:
    return UpstreamResponse(status_code=status_code, text=text, elapsed=0.01)


@pytest.fixture
def upstream_response():
    """Factory for UpstreamResponse values returned by the mocked backend."""
    return make_response


@pytest.fixture
def test_config(tmp_path, monkeypatch) -> Config:
    """Real Config backed by a temp file, with the env override cleared."""
    monkeypatch.delenv("GOLDBOARD_API_BASE_URL", raising=False)
    return Config(config_file=tmp_path / "config.json")


@pytest.fixture
def sample_success() -> FetchSuccess:
    """A year of deterministic points wrapped as a successful fetch."""
    series, stats = synthesize("Dragon Sword", today=date(2024, 6, 1), rng=random.Random(7))
    return FetchSuccess(series=series, stats=stats)


@pytest.fixture
def mock_backend() -> MagicMock:
    """Upstream admin API with every entity list holding two rows."""
    backend = MagicMock()
    backend.forward.return_value = make_response(200, '[{"id": 1}, {"id": 2}]')
    backend.list_entities.return_value = [{"id": 1}, {"id": 2}]
    backend.get_server_stats.return_value = {
        "cpu_percent": 12.5,
        "memory": {"total_gb": 16, "used_gb": 4, "available_gb": 12, "percent": 25},
        "disk": {"total_gb": 500, "used_gb": 100, "free_gb": 400, "percent": 20},
    }
    backend.ping.return_value = True
    return backend


@pytest.fixture
def mock_history_service(sample_success: FetchSuccess) -> MagicMock:
    service = MagicMock()
    service.fetch.return_value = sample_success
    return service


@pytest.fixture
def mock_app_context(
    test_config: Config,
    mock_backend: MagicMock,
    mock_history_service: MagicMock,
) -> MagicMock:
    """Create a mock app context with all services."""
    ctx = MagicMock()
    ctx.config = test_config
    ctx.backend = mock_backend
    ctx.history_service = mock_history_service
    ctx.chart_service = ChartDataService(test_config.display_limit)
    ctx.export_service = ExportService()
    ctx.close = MagicMock()
    return ctx


@pytest.fixture
def client(mock_app_context: MagicMock) -> Generator[TestClient, None, None]:
    """Create a test client with mocked dependencies."""
    from api import dependencies
    from api.main import create_app

    app = create_app()
    app.dependency_overrides[dependencies.get_app_context] = lambda: mock_app_context

    # Lifespan builds the context through this factory
    with patch("core.app_context.create_app_context", return_value=mock_app_context):
        with TestClient(app) as test_client:
            yield test_client

    app.dependency_overrides.clear()
