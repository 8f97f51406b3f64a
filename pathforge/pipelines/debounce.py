"""
Trailing-edge debounce for snapshot writes.

Holds a single pending value. Each trigger overwrites it and restarts the
timer; when the timer fires the pending value is emitted and cleared, so
only the last value captured within a quiet period is ever emitted.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Pending-value cell plus a resettable asyncio timer."""

    def __init__(
        self,
        callback: Callable[[T], None],
        wait_seconds: float,
    ):
        """
        Initialize debouncer.

        Args:
            callback: Receives the pending value when the timer fires.
            wait_seconds: Quiet period before firing.
        """
        self._callback = callback
        self._wait = wait_seconds
        self._pending: T | None = None
        self._has_pending = False
        self._handle: asyncio.TimerHandle | None = None

    @property
    def wait_seconds(self) -> float:
        return self._wait

    @property
    def pending(self) -> bool:
        """Whether a value is waiting to be emitted."""
        return self._has_pending

    def trigger(self, value: T) -> None:
        """
        Replace the pending value and restart the timer.

        Must be called from a running event loop.
        """
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._pending = value
        self._has_pending = True
        self._handle = loop.call_later(self._wait, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if not self._has_pending:
            return
        value = self._pending
        self._pending = None
        self._has_pending = False
        self._callback(value)  # type: ignore[arg-type]

    def flush(self) -> None:
        """Emit the pending value now, if any."""
        if self._handle is not None:
            self._handle.cancel()
        self._fire()

    def cancel(self) -> None:
        """Drop the pending value without emitting it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = None
        self._has_pending = False
