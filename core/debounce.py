"""
core.debounce - Restartable one-shot timer.

Backs the long-hover detail on the price chart: each mouse movement restarts
the timer, and leaving the chart or closing the view cancels it. At most one
timer thread is alive per DebouncedTimer.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from core.constants import HOVER_DELAY_MS

logger = logging.getLogger(__name__)


class DebouncedTimer:
    """
    Fires ``callback`` once ``delay_ms`` after the most recent ``schedule``.

    ``cancel`` and ``close`` are safe to call at any time and from any
    thread. After ``close`` the timer refuses new work.
    """

    def __init__(self, delay_ms: int = HOVER_DELAY_MS):
        self.delay_ms = delay_ms
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._closed = False

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def schedule(self, callback: Callable[..., Any], *args: Any) -> bool:
        """
        (Re)start the timer. Any previously scheduled callback is dropped.

        Returns False when the timer has been closed.
        """
        with self._lock:
            if self._closed:
                return False
            self._cancel_locked()
            self._generation += 1
            generation = self._generation
            timer = threading.Timer(
                self.delay_ms / 1000.0, self._fire, args=(generation, callback, args)
            )
            timer.daemon = True
            self._timer = timer
            timer.start()
        return True

    def cancel(self) -> bool:
        """Cancel the pending callback. Returns True if one was pending."""
        with self._lock:
            return self._cancel_locked()

    def close(self) -> None:
        """Cancel and refuse further scheduling."""
        with self._lock:
            self._closed = True
            self._cancel_locked()

    def _cancel_locked(self) -> bool:
        if self._timer is None:
            return False
        self._timer.cancel()
        self._timer = None
        # Invalidates a callback that already left the timer's wait
        self._generation += 1
        return True

    def _fire(self, generation: int, callback: Callable[..., Any], args: tuple) -> None:
        with self._lock:
            if generation != self._generation or self._closed:
                return
            self._timer = None
        try:
            callback(*args)
        except Exception:
            logger.exception("Debounced callback failed")

    def __enter__(self) -> "DebouncedTimer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False
