"""
Key-addressed debounce timers.

Each key owns one persistent single-shot QTimer. Scheduling a key again
restarts its timer and replaces the callback, so a burst of notifications
collapses into one callback after the quiet period.
"""
from __future__ import annotations

from functools import partial
from typing import Callable, Dict, List, Optional

from PySide6.QtCore import QObject, QTimer

from core.logging.logger import get_logger

logger = get_logger(__name__)


class DebounceScheduler(QObject):
    """Coalesces bursts of work per key on the Qt event loop."""

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._timers: Dict[str, QTimer] = {}
        self._callbacks: Dict[str, Callable[[], None]] = {}

    def schedule(self, key: str, delay_ms: int, callback: Callable[[], None]) -> None:
        """
        Run ``callback()`` once, ``delay_ms`` after the last schedule() for ``key``.

        The callback receives no arguments; it is expected to read current
        state when it fires.
        """
        timer = self._timers.get(key)
        if timer is None:
            timer = QTimer(self)
            timer.setSingleShot(True)
            timer.timeout.connect(partial(self._fire, key))
            self._timers[key] = timer

        self._callbacks[key] = callback
        # start() on an active timer restarts it
        timer.start(max(0, int(delay_ms)))

    def _fire(self, key: str) -> None:
        callback = self._callbacks.pop(key, None)
        if callback is None:
            return
        try:
            callback()
        except Exception as e:
            logger.error("Debounced callback for %s failed: %s", key, e, exc_info=True)

    def cancel(self, key: str) -> bool:
        timer = self._timers.get(key)
        if timer is not None:
            timer.stop()
        return self._callbacks.pop(key, None) is not None

    def cancel_all(self) -> None:
        """Stop every pending timer; none of their callbacks will run."""
        keys = list(self._callbacks)
        for timer in self._timers.values():
            timer.stop()
        self._callbacks.clear()
        if keys:
            logger.debug("Cancelled %d pending timer(s)", len(keys))

    def is_pending(self, key: str) -> bool:
        return key in self._callbacks

    def pending_keys(self) -> List[str]:
        return list(self._callbacks)
