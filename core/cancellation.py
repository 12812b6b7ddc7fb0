"""
core.cancellation - Cooperative cancellation for in-flight operations.

A CancellationToken is handed to every fetch. Starting a new fetch cancels the
previous token; cancellation callbacks let the HTTP layer close the open
response so the transfer is abandoned rather than left to finish in the
background.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class CancelReason(str, Enum):
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


class OperationCancelled(Exception):
    """Raised when an operation notices its token was cancelled."""

    def __init__(self, reason: CancelReason = CancelReason.CANCELLED):
        self.reason = reason
        super().__init__(f"Operation {reason.value}")


class CancellationToken:
    """Thread-safe, one-shot cancellation flag with callbacks."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self._reason: Optional[CancelReason] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[CancelReason]:
        return self._reason

    def cancel(self, reason: CancelReason = CancelReason.CANCELLED) -> bool:
        """
        Cancel the token and run its callbacks.

        Returns False if the token was already cancelled (the first reason
        wins and callbacks run only once).
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"Cancellation callback failed: {e}")
        return True

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register ``callback`` to run on cancellation.

        Runs immediately when the token is already cancelled. Returns a
        function that unregisters the callback.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)

                def remove() -> None:
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)

                return remove

        callback()
        return lambda: None

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled(self._reason or CancelReason.CANCELLED)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or ``timeout`` elapses. Returns the flag."""
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        state = self._reason.value if self._reason else "active"
        return f"CancellationToken({state})"
