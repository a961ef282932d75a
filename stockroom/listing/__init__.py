"""
Client-side listing core: snapshot store, filter/sort/paginate pipeline,
debounced query controller, stats and change notifications.

filters, paging, pipeline and stats do not import Qt themselves. The
package namespace re-exports the session, store, debounce and events
classes, so importing any part of `stockroom.listing` loads PySide6.
"""

from .debounce import DebouncedQueryController, QueryState
from .events import DataEvents, RecordChange
from .filters import FilterSpec, ListSchema, Range, filter_records, matches
from .paging import (
    PageResult,
    PaginationSpec,
    SortDirection,
    SortSpec,
    clamp_page,
    paginate,
    sort_records,
)
from .pipeline import Evaluation, ListQuery, evaluate, ordered_records
from .session import ListSession, ListState
from .store import MutationKind, RecordStore

__all__ = [
    "DebouncedQueryController",
    "QueryState",
    "DataEvents",
    "RecordChange",
    "FilterSpec",
    "ListSchema",
    "Range",
    "filter_records",
    "matches",
    "PageResult",
    "PaginationSpec",
    "SortDirection",
    "SortSpec",
    "clamp_page",
    "paginate",
    "sort_records",
    "Evaluation",
    "ListQuery",
    "evaluate",
    "ordered_records",
    "ListSession",
    "ListState",
    "MutationKind",
    "RecordStore",
]
