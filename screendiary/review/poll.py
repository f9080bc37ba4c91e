"""
Fixed-interval dashboard auto-refresh.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PollLoop:
    """
    One repeating timer.

    Starting while running replaces the previous timer. Stopping is
    idempotent. A failing tick is logged and the loop keeps going.
    """

    def __init__(self, callback: Callable[[], None], interval_seconds: float = 30.0):
        self.callback = callback
        self.interval_seconds = interval_seconds
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    def start(self) -> None:
        """Start polling, cancelling any timer already active."""
        with self._lock:
            self._cancel_locked()
            self._generation += 1
            self._schedule_locked(self._generation)

        logger.info(f"Auto-refresh started (every {self.interval_seconds:g}s)")

    def stop(self) -> None:
        """Stop polling. No-op when not running."""
        with self._lock:
            was_running = self._timer is not None
            self._cancel_locked()
            self._generation += 1

        if was_running:
            logger.info("Auto-refresh stopped")

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule_locked(self, generation: int) -> None:
        timer = threading.Timer(self.interval_seconds, self._tick, args=(generation,))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return

        try:
            self.callback()
        except Exception as e:
            logger.error(f"Auto-refresh tick failed: {e}", exc_info=True)

        with self._lock:
            # stop() or a restart may have happened during the callback
            if generation == self._generation:
                self._schedule_locked(generation)
