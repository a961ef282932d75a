# stockroom/listing/pipeline.py
"""
filter -> sort -> paginate -> stats, as one pure function of
(snapshot, schema, query, stats function).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping, Optional, Sequence

from .filters import FilterSpec, ListSchema, filter_records
from .paging import (
    PageResult,
    PaginationSpec,
    SortSpec,
    clamp_page,
    paginate,
    sort_records,
    total_pages_for,
)

StatsFn = Callable[[Sequence[Mapping]], Any]


@dataclass(frozen=True)
class ListQuery:
    filters: FilterSpec = field(default_factory=FilterSpec)
    sort: Optional[SortSpec] = None
    pagination: PaginationSpec = field(default_factory=PaginationSpec)

    @classmethod
    def initial(cls, schema: ListSchema, page_size: int) -> "ListQuery":
        return cls(FilterSpec(), SortSpec.default_for(schema), PaginationSpec(1, page_size))

    def with_filters(self, filters: FilterSpec) -> "ListQuery":
        # any change to the filters starts over on page 1
        return replace(self, filters=filters, pagination=replace(self.pagination, page=1))

    def with_page(self, page: int) -> "ListQuery":
        return replace(self, pagination=replace(self.pagination, page=max(int(page), 1)))


@dataclass(frozen=True)
class Evaluation:
    query: ListQuery
    page: PageResult
    stats: Any


def evaluate(
    snapshot: Sequence[Mapping],
    schema: ListSchema,
    query: ListQuery,
    stats_fn: Optional[StatsFn] = None,
) -> Evaluation:
    filtered = filter_records(snapshot, query.filters, schema)
    sort = query.sort or SortSpec.default_for(schema)
    ordered = sort_records(filtered, sort, schema)

    size = query.pagination.page_size
    page_no = clamp_page(query.pagination.page, total_pages_for(len(ordered), size))
    pagination = PaginationSpec(page_no, size)

    page = paginate(ordered, pagination)
    stats = stats_fn(filtered) if stats_fn is not None else None
    return Evaluation(replace(query, sort=sort, pagination=pagination), page, stats)


def ordered_records(
    snapshot: Sequence[Mapping],
    schema: ListSchema,
    query: ListQuery,
) -> list:
    """Every record that passes the query's filters, in display order (all pages)."""
    sort = query.sort or SortSpec.default_for(schema)
    return sort_records(filter_records(snapshot, query.filters, schema), sort, schema)
