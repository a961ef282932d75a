"""
ListModule: the controller side shared by every list screen.

A subclass provides
  - SCHEMA, COLUMNS, STATS (the listing definitions for its entity)
  - _fetch(conn) -> list[dict]    (runs on a worker with its own connection)
  - _build_view() -> ListPanel    (with the screen's filters added)
  - _stats_text(stats) -> str
and gets the session wiring, rendering, page size persistence, mutation
error handling and teardown from here.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Callable, Optional, Sequence, TypeVar

from PySide6.QtCore import QSettings
from PySide6.QtWidgets import QWidget

from ..constants import APP_NAME, DEFAULT_PAGE_SIZE, PAGE_SIZE_CHOICES
from ..database import connection_path, read_connection
from ..errors import DomainError, MutationError, StockroomError, ValidationError
from ..listing.events import DataEvents, RecordChange
from ..listing.filters import ListSchema
from ..listing.pipeline import ordered_records
from ..listing.session import ListSession, ListState
from ..listing.store import MutationKind, RecordStore
from ..utils.ui_helpers import error
from ..widgets.list_panel import ListPanel
from ..widgets.records_model import Column, RecordsTableModel
from .base_module import BaseModule

_log = logging.getLogger(__name__)

T = TypeVar("T")


class ListModule(BaseModule):
    SCHEMA: ListSchema
    COLUMNS: Sequence[Column] = ()
    STATS: Optional[Callable[[Sequence[dict]], Any]] = None
    SOURCE = "list"
    EMPTY_TEXT = "No records yet."
    FILTERED_EMPTY_TEXT = "No records match the current filters."
    last_error: Optional[StockroomError] = None

    def __init__(
        self,
        conn: sqlite3.Connection,
        events: Optional[DataEvents] = None,
        *,
        threaded: bool = True,
        settings: Optional[QSettings] = None,
        autoload: bool = True,
    ):
        super().__init__()
        self.conn = conn
        self.events = events or DataEvents(self)
        self.settings = settings or QSettings(APP_NAME, APP_NAME)
        self._db_path = connection_path(conn)

        # a worker thread needs a file it can open on its own
        threaded = threaded and self._db_path is not None
        self.store = RecordStore(
            self._make_loader(threaded), self.SCHEMA.id_field, threaded=threaded, parent=self
        )
        page_size = self._saved_page_size()
        self.session = ListSession(
            self.SCHEMA, self.store, type(self).STATS, page_size=page_size, parent=self
        )
        self.model = RecordsTableModel(self.COLUMNS, parent=self)

        self.view = self._build_view()
        self.view.pager.set_page_size(page_size)
        self.view.table.setModel(self.model)

        self._wire_list()
        self._render(self.session.state)
        if autoload:
            self.session.refresh()

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------
    def _fetch(self, conn: sqlite3.Connection) -> list[dict]:
        raise NotImplementedError

    def _build_view(self) -> ListPanel:
        raise NotImplementedError

    def _stats_text(self, stats) -> str:
        return ""

    def _reset_filter_widgets(self) -> None:
        """Put the screen's filter widgets back to "no filter" (signals blocked)."""

    def _on_rendered(self, state: ListState) -> None:
        """Called after every render; screens refresh detail panes here."""

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def _make_loader(self, threaded: bool):
        if not threaded:
            return lambda: self._fetch(self.conn)
        path = self._db_path

        def load():
            with read_connection(path) as conn:
                return self._fetch(conn)

        return load

    def get_widget(self) -> QWidget:
        return self.view

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------
    def _wire_list(self) -> None:
        v = self.view
        v.search.textChanged.connect(self.session.set_search)
        v.search.returnPressed.connect(self.session.commit_search)
        v.pager.pageRequested.connect(self.session.set_page)
        v.pager.pageSizeChanged.connect(self._on_page_size)
        v.btn_retry.clicked.connect(self.session.refresh)
        if hasattr(v, "btn_clear"):
            v.btn_clear.clicked.connect(self.clear_filters)
        if hasattr(v, "btn_refresh"):
            v.btn_refresh.clicked.connect(self.session.refresh)
        self.model.sortRequested.connect(self.session.set_sort)
        self.session.stateChanged.connect(self._render)
        self.session.errorRaised.connect(self._on_load_error)

    def _render(self, state: ListState) -> None:
        v = self.view
        keep = self.selected_id()
        self.model.replace(state.page.items)
        if keep is not None:
            self._reselect(keep)
        v.pager.show_page(state.page)
        v.lbl_stats.setText(self._stats_text(state.stats))
        v.lbl_loading.setVisible(state.loading)
        v.show_error(state.error)
        if state.page.total_items:
            v.show_empty(None)
        elif state.loading and not self.store.has_snapshot:
            v.show_empty(None)
        else:
            v.show_empty(self.FILTERED_EMPTY_TEXT if state.has_active_filters else self.EMPTY_TEXT)
        self._on_rendered(state)

    def _reselect(self, record_id) -> None:
        # a model reset drops the selection; keep the same record selected
        key = self.SCHEMA.id_field
        for row in range(self.model.rowCount()):
            if self.model.at(row).get(key) == record_id:
                self.view.table.selectRow(row)
                return

    def _on_load_error(self, message: str) -> None:
        _log.warning("%s: %s", type(self).__name__, message)

    # ------------------------------------------------------------------
    # Filters & paging
    # ------------------------------------------------------------------
    def clear_filters(self) -> None:
        v = self.view
        v.search.blockSignals(True)
        v.search.clear()
        v.search.blockSignals(False)
        self._reset_filter_widgets()
        self.session.reset_filters()

    def _settings_key(self) -> str:
        return f"{type(self).__name__}/page_size"

    def _saved_page_size(self) -> int:
        raw = self.settings.value(self._settings_key(), DEFAULT_PAGE_SIZE)
        try:
            n = int(raw)
        except (TypeError, ValueError):
            return DEFAULT_PAGE_SIZE
        return n if n in PAGE_SIZE_CHOICES else DEFAULT_PAGE_SIZE

    def _on_page_size(self, n: int) -> None:
        self.settings.setValue(self._settings_key(), int(n))
        self.session.set_page_size(n)

    def filtered_records(self) -> list[dict]:
        """Every record matching the current filters, in display order."""
        return ordered_records(self.store.snapshot, self.SCHEMA, self.session.query)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def selected_record(self) -> Optional[dict]:
        row = self.view.table.selected_row()
        if row is None or row >= self.model.rowCount():
            return None
        return dict(self.model.at(row))

    def selected_id(self):
        rec = self.selected_record()
        return rec.get(self.SCHEMA.id_field) if rec else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def _mutate(self, action: str, fn: Callable[[], T]) -> Optional[T]:
        """
        Run a repository write. DomainError and sqlite3.Error become a
        MutationError shown to the user; the snapshot is left untouched.
        A ValidationError raised by `fn` before it writes is shown as is.
        """
        try:
            return fn()
        except ValidationError as exc:
            _log.info("%s rejected: %s", action, exc)
            self.last_error = exc
            error(self.view, "Invalid input", str(exc))
            return None
        except (DomainError, sqlite3.Error) as exc:
            err = MutationError(action, str(exc))
            _log.warning("%s", err, exc_info=not isinstance(exc, DomainError))
            self.last_error = err
            error(self.view, "Error", str(err))
            return None

    def _apply(self, kind: MutationKind, record) -> None:
        self.session.on_mutation_success(kind, record)

    def _publish(self, signal, kind: MutationKind, record) -> None:
        signal.emit(RecordChange(kind, record or {}, self.SOURCE))

    def _apply_external(self, change: RecordChange) -> None:
        """Patch our snapshot with a change another screen made."""
        if change.source == self.SOURCE:
            return
        if change.kind is MutationKind.DELETE or change.record.get(self.SCHEMA.id_field) is not None:
            self.session.on_mutation_success(change.kind, dict(change.record))
        else:
            self.session.refresh()

    def _refresh_external(self, change: RecordChange) -> None:
        if change.source != self.SOURCE:
            self.session.refresh()

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------
    def teardown(self) -> None:
        self.session.teardown()
