# stockroom/listing/paging.py
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Sequence

from .filters import ListSchema


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortSpec:
    key: str
    direction: SortDirection = SortDirection.DESC

    @classmethod
    def default_for(cls, schema: ListSchema) -> "SortSpec":
        return cls(
            schema.default_sort_key,
            SortDirection.DESC if schema.default_sort_desc else SortDirection.ASC,
        )


@dataclass(frozen=True)
class PaginationSpec:
    page: int = 1
    page_size: int = 20

    def __post_init__(self):
        if int(self.page) < 1:
            raise ValueError("page must be >= 1")
        if int(self.page_size) < 1:
            raise ValueError("page_size must be >= 1")


@dataclass(frozen=True)
class PageResult:
    items: tuple
    total_items: int
    total_pages: int
    page: int
    page_size: int

    @property
    def first_index(self) -> int:
        """1-based index of the first row on this page (0 when empty)."""
        return (self.page - 1) * self.page_size + 1 if self.items else 0

    @property
    def last_index(self) -> int:
        return self.first_index + len(self.items) - 1 if self.items else 0


def total_pages_for(total_items: int, page_size: int) -> int:
    if total_items <= 0:
        return 0
    return math.ceil(total_items / page_size)


def clamp_page(page: int, total_pages: int) -> int:
    return min(max(int(page), 1), max(total_pages, 1))


def _sort_value(v: Any):
    # None sorts lowest; strings compare case-insensitively
    if v is None:
        return (0, 0)
    if isinstance(v, str):
        return (1, v.lower())
    return (1, v)


def sort_records(records: Sequence[Mapping], sort: SortSpec, schema: ListSchema) -> list:
    """
    Stable sort by `sort.key`, ties broken ascending by the schema's tie breakers.

    Sorting runs from the least significant key to the most significant one;
    Python's sort is stable, so each pass keeps the previous order for ties.
    """
    rows = list(records)
    for key in reversed([k for k in schema.tie_breakers if k != sort.key]):
        rows.sort(key=lambda r, k=key: _sort_value(r.get(k)))
    rows.sort(
        key=lambda r: _sort_value(r.get(sort.key)),
        reverse=sort.direction == SortDirection.DESC,
    )
    return rows


def paginate(rows: Sequence[Mapping], page: PaginationSpec) -> PageResult:
    """Slice one page; an out-of-range page yields an empty slice, not an error."""
    total = len(rows)
    pages = total_pages_for(total, page.page_size)
    start = (page.page - 1) * page.page_size
    items = tuple(rows[start:start + page.page_size]) if start < total else ()
    return PageResult(items, total, pages, page.page, page.page_size)


def apply(
    records: Sequence[Mapping],
    sort: SortSpec,
    page: PaginationSpec,
    schema: ListSchema,
) -> PageResult:
    return paginate(sort_records(records, sort, schema), page)
