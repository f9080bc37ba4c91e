"""
Dashboard view-controller.

Owns one dashboard page: the fetch/scope/reconcile/render cycle, the chart
render sessions, observers and the auto-refresh loop.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from screendiary.core.errors import TransportError
from screendiary.review.dashboard import DashboardSnapshot, reconcile
from screendiary.review.poll import PollLoop
from screendiary.session.gate import SessionGate

logger = logging.getLogger(__name__)


class DashboardController:
    """
    Single controller per dashboard view.

    Every refresh takes a ticket from a monotonic counter. A response whose
    ticket is older than the last one applied is dropped, so a slow fetch
    can never overwrite a newer render.
    """

    def __init__(
        self,
        gate: SessionGate,
        fetch: Callable[[], List[Dict[str, Any]]],
        renderer: Any,
        interval_seconds: float = 30.0,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.gate = gate
        self.fetch = fetch
        self.renderer = renderer
        self.clock = clock

        self.poll = PollLoop(self.refresh, interval_seconds)
        self.snapshot: Optional[DashboardSnapshot] = None

        self._sessions: List[Any] = []
        self._observers: List[Callable[[DashboardSnapshot], None]] = []
        self._issued = 0
        self._applied = 0
        self._ticket_lock = threading.Lock()
        self._render_lock = threading.Lock()

    def subscribe(self, callback: Callable[[DashboardSnapshot], None]) -> None:
        """Register a callback invoked with each applied snapshot."""
        self._observers.append(callback)

    # Lifecycle

    def mount(self) -> Optional[DashboardSnapshot]:
        """Render immediately and start auto-refresh."""
        snapshot = self.refresh()
        self.poll.start()
        return snapshot

    def unmount(self) -> None:
        """Stop auto-refresh and release chart sessions."""
        self.poll.stop()
        with self._render_lock:
            self._dispose_sessions()

    # Refresh cycle

    def refresh(self) -> Optional[DashboardSnapshot]:
        """
        Fetch, scope, reconcile and render.

        Returns the applied snapshot, or None if a newer one won.
        """
        with self._ticket_lock:
            self._issued += 1
            ticket = self._issued

        error = None
        try:
            records = self.gate.call(self.fetch)
        except TransportError as e:
            logger.error(f"Dashboard fetch failed: {e}")
            records = []
            error = "Could not load your entries. Showing what is available."

        now = self.clock() if self.clock else None
        snapshot = reconcile(records, self.gate.current_user(), now=now)
        snapshot.error = error

        with self._render_lock:
            if ticket < self._applied:
                logger.debug(f"Dropping stale dashboard response #{ticket} (applied #{self._applied})")
                return None

            self._applied = ticket
            self._render(snapshot)
            self.snapshot = snapshot

        for callback in list(self._observers):
            try:
                callback(snapshot)
            except Exception as e:
                logger.error(f"Dashboard observer failed: {e}", exc_info=True)

        return snapshot

    def handle_entry_saved(self, entry_id: Any) -> None:
        """Wizard hook: refresh after a save."""
        logger.info(f"Entry {entry_id} saved, refreshing dashboard")
        self.refresh()

    # Rendering

    def _dispose_sessions(self) -> None:
        for session in self._sessions:
            session.dispose()
        self._sessions = []

    def _render(self, snapshot: DashboardSnapshot) -> None:
        self._dispose_sessions()

        self.renderer.render_text(snapshot)

        if snapshot.is_empty:
            return

        for series in snapshot.charts:
            if series.is_empty:
                continue
            self._sessions.append(self.renderer.render_series(series))

    @property
    def live_sessions(self) -> List[Any]:
        return list(self._sessions)
