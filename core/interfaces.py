"""
Service interfaces for dependency injection.

Provides Protocol definitions for core services so the API layer can type
against interfaces instead of concrete implementations, which keeps test
doubles (MagicMock contexts) and the real AppContext interchangeable.

Usage:
    from core.interfaces import IAppContext

    @router.get("/thing")
    def get_thing(ctx: IAppContext = Depends(get_app_context)):
        ...
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from core.cancellation import CancellationToken
from core.pricing.models import FetchOutcome


@runtime_checkable
class IHistoryService(Protocol):
    """Interface for price history fetchers."""

    def fetch(self, item_name: str, cancel_token: Optional[CancellationToken] = None) -> FetchOutcome:
        """Fetch an item's history; never raises except on cancellation."""
        ...


@runtime_checkable
class IBackendAPI(Protocol):
    """Interface for the upstream admin API client."""

    def forward(self, method: str, entity: str, data: Any = None) -> Any:
        ...

    def list_entities(self, entity: str) -> List[Any]:
        ...

    def get_server_stats(self) -> Dict[str, Any]:
        ...

    def ping(self) -> bool:
        ...


@runtime_checkable
class IAppContext(Protocol):
    """Interface for the application context."""

    @property
    def config(self) -> Any:
        ...

    @property
    def backend(self) -> IBackendAPI:
        ...

    @property
    def history_service(self) -> IHistoryService:
        ...

    @property
    def chart_service(self) -> Any:
        ...

    @property
    def export_service(self) -> Any:
        ...

    def close(self) -> None:
        ...
