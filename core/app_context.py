# core/app_context.py
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

from core.config import Config
from core.constants import PROXY_ENTITIES
from core.pricing.history_service import PriceHistoryService
from core.services.chart_data_service import ChartDataService
from core.services.export_service import ExportService
from core.statistics_view import StatisticsViewController
from data_sources.backend_api import BackendAPI
from data_sources.price_history import PriceHistoryAPI


@dataclass
class AppContext:
    """
    Aggregates the services used by the API routers.

    Keeps wiring in one place so routers only orchestrate:
    - config: upstream URLs, timeouts, chart preferences
    - backend: upstream admin API (entity proxies, server stats)
    - price_api: upstream price history endpoint
    - history_service: tagged-outcome fetcher with synthetic fallback
    - chart_service: period filter / down-sample / zoom pipeline
    - export_service: CSV export

    Call close() when the application exits to release resources.
    """
    config: Config
    backend: BackendAPI
    price_api: PriceHistoryAPI
    history_service: PriceHistoryService
    chart_service: ChartDataService
    export_service: ExportService

    def create_statistics_view(self, item_name: str) -> StatisticsViewController:
        """Statistics view wired with the configured chart preferences."""
        return StatisticsViewController(
            item_name,
            self.history_service,
            period=self.config.default_period,
            chart_type=self.config.chart_type,
            display_limit=self.config.display_limit,
            hover_delay_ms=self.config.hover_delay_ms,
            export_service=self.export_service,
        )

    def close(self) -> None:
        """
        Clean up all resources held by the application context.

        Call this when the application exits to properly close the HTTP
        sessions of the upstream clients.
        """
        logger = logging.getLogger(__name__)
        logger.info("Closing AppContext resources...")

        for name, client in (("backend API", self.backend), ("price API", self.price_api)):
            try:
                client.close()
                logger.debug(f"{name} closed")
            except Exception as e:
                logger.error(f"Error closing {name}: {e}")

        logger.info("AppContext resources closed")


def create_app_context(config: Optional[Config] = None) -> AppContext:
    config = config or Config()
    logger = logging.getLogger(__name__)

    base_url = config.api_base_url
    endpoints = {name: config.get_endpoint(name) for name in (*PROXY_ENTITIES, "server_stats")}

    backend = BackendAPI(
        base_url=base_url,
        endpoints=endpoints,
        timeout=config.proxy_timeout_seconds,
        user_agent=config.user_agent,
    )
    price_api = PriceHistoryAPI(
        base_url=base_url,
        endpoint=config.get_endpoint("prices"),
        timeout=config.price_timeout_seconds,
        user_agent=config.user_agent,
    )

    logger.info(f"Upstream API: {base_url}")
    return AppContext(
        config=config,
        backend=backend,
        price_api=price_api,
        history_service=PriceHistoryService(price_api),
        chart_service=ChartDataService(config.display_limit),
        export_service=ExportService(),
    )
