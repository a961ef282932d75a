# stockroom/listing/debounce.py
"""
Debounced query controller.

    IDLE --request()--> PENDING --timer--> EVALUATING --commit--> IDLE
                          ^   |
                          +---+ request() restarts the window

Every request() and begin() takes a new ticket from a monotonically
increasing counter. resolve(ticket, result) commits only when the ticket is
still the newest one; anything older is a stale result and is dropped.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from ..constants import SEARCH_DEBOUNCE_MS
from ..errors import StaleResultDiscarded

_log = logging.getLogger(__name__)


class QueryState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    EVALUATING = "evaluating"


class DebouncedQueryController(QObject):
    committed = Signal(object)
    stateChanged = Signal(str)

    def __init__(
        self,
        evaluate: Callable[[Any], Any],
        delay_ms: int = SEARCH_DEBOUNCE_MS,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._evaluate = evaluate
        self._state = QueryState.IDLE
        self._latest = 0
        self._pending: Any = None
        self._closed = False
        self.discarded = 0

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(max(int(delay_ms), 0))
        self._timer.timeout.connect(self._fire)

    # ---- introspection ----
    @property
    def state(self) -> QueryState:
        return self._state

    @property
    def delay_ms(self) -> int:
        return self._timer.interval()

    def set_delay(self, delay_ms: int) -> None:
        self._timer.setInterval(max(int(delay_ms), 0))

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _set_state(self, state: QueryState) -> None:
        if state != self._state:
            self._state = state
            self.stateChanged.emit(state.value)

    # ---- sequence guard ----
    def begin(self) -> int:
        """Take a ticket for an evaluation; it supersedes every older ticket."""
        self._latest += 1
        return self._latest

    def resolve(self, ticket: int, result: Any) -> bool:
        """Commit `result` if `ticket` is still the newest; drop it otherwise."""
        if self._closed:
            return False
        if ticket != self._latest:
            self.discarded += 1
            _log.debug("%s", StaleResultDiscarded(ticket, self._latest))
            return False
        if self._state is QueryState.EVALUATING:
            self._set_state(QueryState.IDLE)
        self.committed.emit(result)
        return True

    # ---- public triggers ----
    def request(self, query: Any) -> None:
        """Queue `query`; restarts the debounce window."""
        if self._closed:
            return
        self._pending = query
        self.begin()  # invalidates anything still in flight
        self._timer.start()
        self._set_state(QueryState.PENDING)

    def commit_now(self, query: Any = None) -> bool:
        """Skip the window and evaluate now (Enter key, mutations, reloads)."""
        if self._closed:
            return False
        self._timer.stop()
        if query is not None:
            self._pending = query
        return self._run()

    def cancel(self) -> None:
        self._timer.stop()
        self.begin()
        self._set_state(QueryState.IDLE)

    def teardown(self) -> None:
        """No timer may fire, and no result may be committed, after this."""
        self._timer.stop()
        self._closed = True
        self._pending = None
        self._set_state(QueryState.IDLE)

    # ---- internals ----
    def _fire(self) -> None:
        if self._closed:
            return
        _log.debug("debounce window elapsed; evaluating")
        self._run()

    def _run(self) -> bool:
        ticket = self.begin()
        self._set_state(QueryState.EVALUATING)
        try:
            result = self._evaluate(self._pending)
        except Exception:
            self._set_state(QueryState.IDLE)
            raise
        return self.resolve(ticket, result)
