"""
core.statistics_view - Controller for one item statistics view.

Owns the view's resources: the ViewState record, the cancellation token of
the in-flight fetch, the long-hover timer and the background fetch thread.
UI adapters call the ``on_*``/action methods and subscribe to state changes;
all state transitions go through ``core.view_state.reduce``.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from core.cancellation import CancellationToken, OperationCancelled
from core.constants import DISPLAY_LIMIT_DEFAULT, HOVER_DELAY_MS, THREAD_JOIN_TIMEOUT
from core.debounce import DebouncedTimer
from core.pricing.history_service import PriceHistoryService
from core.pricing.models import ChartType, PeriodWindow, PricePoint
from core.services.export_service import ExportResult, ExportService, export_filename, render_price_csv
from core.view_state import (
    ChartTypeChanged,
    FetchAborted,
    FetchCompleted,
    FetchStarted,
    FullscreenChanged,
    HoverCleared,
    HoverDetail,
    HoverDetailShown,
    PeriodChanged,
    ViewEvent,
    ViewState,
    ZoomIn,
    ZoomOut,
    ZoomReset,
    reduce,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[ViewState], None]


class ViewClosedError(RuntimeError):
    """Raised when an action is requested after close()."""


class StatisticsViewController:
    """
    Statistics view for a single item.

    Lifecycle:
        view = StatisticsViewController("Sword of Embers", service)
        view.subscribe(render)
        view.refresh()            # background fetch
        view.change_period(PeriodWindow.THREE_MONTHS)
        ...
        view.close()              # cancels fetch and hover timer
    """

    def __init__(
        self,
        item_name: str,
        history_service: PriceHistoryService,
        period: PeriodWindow = PeriodWindow.ONE_MONTH,
        chart_type: ChartType = ChartType.AREA,
        display_limit: int = DISPLAY_LIMIT_DEFAULT,
        hover_delay_ms: int = HOVER_DELAY_MS,
        clock: Optional[Callable[[], datetime]] = None,
        export_service: Optional[ExportService] = None,
    ):
        self.history_service = history_service
        self.export_service = export_service or ExportService()
        self._clock = clock
        self._state = ViewState(
            item_name=item_name,
            period=PeriodWindow(period),
            chart_type=ChartType(chart_type),
            display_limit=display_limit,
        )
        self._lock = threading.RLock()
        self._listeners: List[StateListener] = []
        self._token: Optional[CancellationToken] = None
        self._fetch_thread: Optional[threading.Thread] = None
        self._generation = 0
        self._hover_timer = DebouncedTimer(hover_delay_ms)
        self._closed = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> ViewState:
        with self._lock:
            return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, event: ViewEvent) -> ViewState:
        """Apply an event and notify listeners if the state changed."""
        with self._lock:
            state, listeners = self._apply_locked(event)
        self._notify(state, listeners)
        return state

    def _apply_locked(self, event: ViewEvent):
        now = self._clock() if self._clock else None
        previous = self._state
        self._state = reduce(previous, event, now)
        listeners = list(self._listeners) if self._state is not previous else []
        return self._state, listeners

    @staticmethod
    def _notify(state: ViewState, listeners: List[StateListener]) -> None:
        for listener in listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("State listener failed")

    def _ensure_open(self) -> None:
        if self._closed:
            raise ViewClosedError("Statistics view is closed")

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def refresh(self, refreshing: bool = True, background: bool = True) -> ViewState:
        """
        Start a new fetch, cancelling any fetch still in flight first.

        Args:
            refreshing: Mark the fetch as a user-initiated refresh
            background: Run on a worker thread (False runs inline)
        """
        with self._lock:
            self._ensure_open()
            if self._token is not None:
                self._token.cancel()
            token = CancellationToken()
            self._token = token
            self._generation += 1
            generation = self._generation
            # Same critical section as the token swap so generations never
            # reach the reducer out of order
            state, listeners = self._apply_locked(
                FetchStarted(generation=generation, refreshing=refreshing)
            )
        self._notify(state, listeners)

        if not background:
            self._run_fetch(generation, token)
            return self.state

        thread = threading.Thread(
            target=self._run_fetch,
            args=(generation, token),
            name=f"price-fetch-{generation}",
            daemon=True,
        )
        with self._lock:
            self._fetch_thread = thread
        thread.start()
        return state

    def load(self) -> ViewState:
        """Initial load: inline fetch without the refresh flag."""
        return self.refresh(refreshing=False, background=False)

    def _run_fetch(self, generation: int, token: CancellationToken) -> None:
        item_name = self.state.item_name
        try:
            outcome = self.history_service.fetch(item_name, cancel_token=token)
        except OperationCancelled:
            logger.info(f"Fetch {generation} for {item_name!r} cancelled")
            self.dispatch(FetchAborted(generation=generation))
            return

        if token.cancelled:
            self.dispatch(FetchAborted(generation=generation))
            return
        self.dispatch(FetchCompleted(generation=generation, outcome=outcome))

    def wait_for_fetch(self, timeout: Optional[float] = THREAD_JOIN_TIMEOUT) -> bool:
        """Join the current background fetch. Returns True when it finished."""
        with self._lock:
            thread = self._fetch_thread
        # A listener on the fetch thread may close the view
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout)
        return not thread.is_alive()

    # ------------------------------------------------------------------
    # Chart controls
    # ------------------------------------------------------------------

    def change_period(self, period: PeriodWindow) -> ViewState:
        self._ensure_open()
        return self.dispatch(PeriodChanged(period=PeriodWindow(period)))

    def zoom_in(self) -> ViewState:
        self._ensure_open()
        return self.dispatch(ZoomIn())

    def zoom_out(self) -> ViewState:
        self._ensure_open()
        return self.dispatch(ZoomOut())

    def reset_zoom(self) -> ViewState:
        self._ensure_open()
        return self.dispatch(ZoomReset())

    def set_chart_type(self, chart_type: ChartType) -> ViewState:
        self._ensure_open()
        return self.dispatch(ChartTypeChanged(chart_type=ChartType(chart_type)))

    # ------------------------------------------------------------------
    # Hover
    # ------------------------------------------------------------------

    def on_chart_mouse_move(self, x: Optional[float], y: Optional[float],
                            point: Optional[PricePoint] = None) -> None:
        """
        Restart the long-hover timer for the hovered point.

        Movement without an active coordinate only cancels the timer.
        """
        if self._closed:
            return
        if x is None or y is None:
            self._hover_timer.cancel()
            return
        if point is None:
            # Nothing under the cursor to describe
            self._hover_timer.cancel()
            return
        self._hover_timer.schedule(self._show_hover, HoverDetail(x=x, y=y, point=point))

    def on_chart_mouse_leave(self) -> None:
        self._hover_timer.cancel()
        if not self._closed:
            self.dispatch(HoverCleared())

    def _show_hover(self, detail: HoverDetail) -> None:
        if not self._closed:
            self.dispatch(HoverDetailShown(detail=detail))

    @property
    def hover_pending(self) -> bool:
        return self._hover_timer.pending

    # ------------------------------------------------------------------
    # Fullscreen
    # ------------------------------------------------------------------

    def toggle_fullscreen(self, request: Callable[[bool], None]) -> None:
        """
        Ask the host to enter/leave fullscreen.

        The state is not changed here; the host reports the actual change
        through ``on_fullscreen_change``.
        """
        self._ensure_open()
        request(not self.state.is_fullscreen)

    def on_fullscreen_change(self, is_fullscreen: bool) -> None:
        if not self._closed:
            self.dispatch(FullscreenChanged(is_fullscreen=is_fullscreen))

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_csv(self, quote_fields: bool = False) -> Optional[str]:
        """CSV of the period-filtered series, or None when there is nothing."""
        state = self.state
        if not state.filtered:
            return None
        return render_price_csv(state.filtered, quote_fields=quote_fields)

    @property
    def export_filename(self) -> str:
        return export_filename(self.state.item_name)

    def save_csv(self, directory: Path, quote_fields: bool = False) -> ExportResult:
        """Write the period-filtered series to ``directory`` under ``export_filename``."""
        state = self.state
        return self.export_service.write_price_history(
            list(state.filtered), directory, state.item_name, quote_fields=quote_fields
        )

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Cancel the hover timer and the in-flight fetch, then wait for the fetch thread. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            token, self._token = self._token, None
            self._listeners.clear()

        self._hover_timer.close()
        if token is not None:
            token.cancel()
        if not self.wait_for_fetch():
            logger.warning(f"Fetch thread for {self.state.item_name!r} still running after close")
        logger.debug(f"Statistics view for {self.state.item_name!r} closed")

    def __enter__(self) -> "StatisticsViewController":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False
