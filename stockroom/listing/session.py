# stockroom/listing/session.py
"""
ListSession: the one object a list screen binds to.

It owns the screen's ListQuery (filters, sort, page), a RecordStore and a
DebouncedQueryController, and publishes a ListState every time the visible
page, stats, loading flag or error change.

`_query` is always the newest query the user asked for. Search edits are
debounced; every other change (filters, paging, sorting, reloads,
mutations) evaluates immediately and carries any pending search text along.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, Signal

from ..constants import DEFAULT_PAGE_SIZE, SEARCH_DEBOUNCE_MS
from .debounce import DebouncedQueryController
from .filters import FilterSpec, ListSchema, Range
from .paging import PageResult, PaginationSpec, SortDirection, SortSpec
from .pipeline import Evaluation, ListQuery, StatsFn, evaluate
from .store import MutationKind, RecordStore

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListState:
    query: ListQuery
    page: PageResult
    stats: Any = None
    loading: bool = False
    error: Optional[str] = None

    @property
    def has_active_filters(self) -> bool:
        return not self.query.filters.is_empty()


class ListSession(QObject):
    stateChanged = Signal(object)
    loadingChanged = Signal(bool)
    errorRaised = Signal(str)

    def __init__(
        self,
        schema: ListSchema,
        store: RecordStore,
        stats_fn: Optional[StatsFn] = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        debounce_ms: int = SEARCH_DEBOUNCE_MS,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._schema = schema
        self._store = store
        self._stats_fn = stats_fn
        self._closed = False
        self._follows: list[tuple[Any, Callable]] = []

        self._query = ListQuery.initial(schema, page_size)
        first = evaluate([], schema, self._query, stats_fn)
        self._state = ListState(first.query, first.page, first.stats)

        self._controller = DebouncedQueryController(self._evaluate, debounce_ms, self)
        self._controller.committed.connect(self._commit)

        store.loaded.connect(self._on_loaded)
        store.loadFailed.connect(self._on_load_failed)
        store.loadingChanged.connect(self._on_loading)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def schema(self) -> ListSchema:
        return self._schema

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def controller(self) -> DebouncedQueryController:
        return self._controller

    @property
    def state(self) -> ListState:
        return self._state

    @property
    def query(self) -> ListQuery:
        return self._query

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    def _evaluate(self, query: ListQuery) -> Evaluation:
        return evaluate(self._store.snapshot, self._schema, query, self._stats_fn)

    def _commit(self, ev: Evaluation) -> None:
        self._query = ev.query  # carries the clamped page
        self._publish(replace(self._state, query=ev.query, page=ev.page, stats=ev.stats))

    def _publish(self, state: ListState) -> None:
        self._state = state
        self.stateChanged.emit(state)

    def recompute(self) -> bool:
        return self._controller.commit_now(self._query)

    def _submit(self, query: ListQuery) -> bool:
        self._query = query
        return self._controller.commit_now(query)

    # ------------------------------------------------------------------
    # Presentation callbacks
    # ------------------------------------------------------------------
    def set_search(self, text: str) -> None:
        if self._closed:
            return
        self._query = self._query.with_filters(self._query.filters.with_search(text))
        self._controller.request(self._query)

    def commit_search(self) -> bool:
        return self.recompute()

    def set_filter_field(self, name: str, value: Any) -> bool:
        filters = self._query.filters.with_field(self._schema, name, value)
        return self._submit(self._query.with_filters(filters))

    def set_range(self, name: str, low: Any = None, high: Any = None) -> bool:
        return self.set_filter_field(name, Range(low, high))

    def set_page(self, page: int) -> bool:
        return self._submit(self._query.with_page(page))

    def next_page(self) -> bool:
        return self.set_page(self._state.page.page + 1)

    def previous_page(self) -> bool:
        return self.set_page(self._state.page.page - 1)

    def set_page_size(self, page_size: int) -> bool:
        return self._submit(replace(self._query, pagination=PaginationSpec(1, int(page_size))))

    def set_sort(self, key: str, direction: SortDirection | str = SortDirection.ASC) -> bool:
        sort = SortSpec(key, SortDirection(direction))
        return self._submit(replace(self._query, sort=sort).with_page(1))

    def reset_filters(self) -> bool:
        return self._submit(self._query.with_filters(FilterSpec()))

    def refresh(self) -> None:
        self._store.refresh()

    # ------------------------------------------------------------------
    # Store events
    # ------------------------------------------------------------------
    def _on_loaded(self, _rows) -> None:
        if self._state.error:
            self._state = replace(self._state, error=None)
        self.recompute()

    def _on_load_failed(self, message: str) -> None:
        self._publish(replace(self._state, error=message))
        self.errorRaised.emit(message)

    def _on_loading(self, loading: bool) -> None:
        self._publish(replace(self._state, loading=loading))
        self.loadingChanged.emit(loading)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def on_mutation_success(self, kind: MutationKind, record) -> None:
        """Patch the snapshot after a confirmed write and re-run the pipeline now."""
        if self._closed:
            return
        self._store.apply_mutation(kind, record)
        self.recompute()

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------
    def follow(self, signal, handler: Callable) -> None:
        """Connect `handler` to `signal` until teardown()."""
        signal.connect(handler)
        self._follows.append((signal, handler))

    def teardown(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._controller.teardown()
        self._store.close()
        for signal, handler in self._follows:
            try:
                signal.disconnect(handler)
            except (TypeError, RuntimeError):
                pass
        self._follows.clear()
        for signal, slot in (
            (self._store.loaded, self._on_loaded),
            (self._store.loadFailed, self._on_load_failed),
            (self._store.loadingChanged, self._on_loading),
        ):
            try:
                signal.disconnect(slot)
            except (TypeError, RuntimeError):
                pass
