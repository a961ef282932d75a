# stockroom/listing/filters.py
"""
Filter predicate engine for the list screens.

A screen declares what can be filtered through a ListSchema:
  - search_fields: text fields matched case-insensitively by `search`
  - exact_fields:  fields compared with ==
  - range_fields:  {field: "date" | "number"} for inclusive Range bounds
  - flags:         {name: predicate(record) -> bool}

A FilterSpec carries the active values. Absent, None and "" mean "no filter"
for every clause; numeric 0 is a real bound.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional

Record = Mapping[str, Any]
Predicate = Callable[[Record], bool]

DATE = "date"
NUMBER = "number"


@dataclass(frozen=True)
class Range:
    """Inclusive [low, high]; None on either side leaves that side open."""
    low: Any = None
    high: Any = None

    @property
    def active(self) -> bool:
        return self.low is not None or self.high is not None


@dataclass(frozen=True)
class ListSchema:
    id_field: str
    search_fields: tuple[str, ...] = ()
    exact_fields: tuple[str, ...] = ()
    range_fields: Mapping[str, str] = field(default_factory=dict)
    flags: Mapping[str, Predicate] = field(default_factory=dict)
    default_sort_key: str = "updated_at"
    default_sort_desc: bool = True
    tie_breakers: tuple[str, ...] = ()

    def kind_of(self, name: str) -> str:
        if name in self.exact_fields:
            return "exact"
        if name in self.range_fields:
            return "range"
        if name in self.flags:
            return "flag"
        raise KeyError(f"'{name}' is not a filterable field")


def _frozen(d: Optional[Mapping]) -> Mapping:
    return MappingProxyType(dict(d or {}))


@dataclass(frozen=True)
class FilterSpec:
    search: str = ""
    exact: Mapping[str, Any] = field(default_factory=dict)
    ranges: Mapping[str, Range] = field(default_factory=dict)
    flags: Mapping[str, Optional[bool]] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "exact", _frozen(self.exact))
        object.__setattr__(self, "ranges", _frozen(self.ranges))
        object.__setattr__(self, "flags", _frozen(self.flags))

    # ---- derived ----
    @property
    def search_term(self) -> str:
        return (self.search or "").strip().lower()

    def active_exact(self) -> dict[str, Any]:
        return {k: v for k, v in self.exact.items() if v is not None and v != ""}

    def active_ranges(self) -> dict[str, Range]:
        return {k: r for k, r in self.ranges.items() if r is not None and r.active}

    def active_flags(self) -> dict[str, bool]:
        return {k: bool(v) for k, v in self.flags.items() if v is not None}

    def is_empty(self) -> bool:
        return not (
            self.search_term or self.active_exact() or self.active_ranges() or self.active_flags()
        )

    # ---- copy-with helpers ----
    def with_search(self, text: str) -> "FilterSpec":
        return replace(self, search=text or "")

    def with_field(self, schema: ListSchema, name: str, value: Any) -> "FilterSpec":
        """Return a copy with one exact/range/flag clause set (None clears it)."""
        kind = schema.kind_of(name)
        if kind == "exact":
            return replace(self, exact={**self.exact, name: value})
        if kind == "range":
            if value is not None and not isinstance(value, Range):
                low, high = value
                value = Range(low, high)
            return replace(self, ranges={**self.ranges, name: value})
        return replace(self, flags={**self.flags, name: value})


def _text(value: Any) -> str:
    return "" if value is None else str(value).lower()


def _bound(x: Any) -> Optional[float]:
    # an unparsable bound leaves that side open
    if x is None or x == "":
        return None
    try:
        return float(x)
    except (TypeError, ValueError):
        return None


def _in_range(value: Any, rng: Range, kind: str) -> bool:
    if kind == DATE:
        if value is None:
            return False
        v = str(value)[:10]
        if rng.low is not None and v < str(rng.low)[:10]:
            return False
        if rng.high is not None and v > str(rng.high)[:10]:
            return False
        return True
    low, high = _bound(rng.low), _bound(rng.high)
    if low is None and high is None:
        return True
    try:
        v = float(value)
    except (TypeError, ValueError):
        return False
    if low is not None and v < low:
        return False
    if high is not None and v > high:
        return False
    return True


def matches(record: Record, spec: FilterSpec, schema: ListSchema) -> bool:
    """True iff `record` passes every active clause of `spec` (AND across clauses)."""
    term = spec.search_term
    if term and not any(term in _text(record.get(f)) for f in schema.search_fields):
        return False

    for name, wanted in spec.active_exact().items():
        if name not in schema.exact_fields:
            raise KeyError(f"'{name}' is not an exact-match field")
        if record.get(name) != wanted:
            return False

    for name, rng in spec.active_ranges().items():
        kind = schema.range_fields.get(name)
        if kind is None:
            raise KeyError(f"'{name}' is not a range field")
        if not _in_range(record.get(name), rng, kind):
            return False

    for name, wanted in spec.active_flags().items():
        predicate = schema.flags.get(name)
        if predicate is None:
            raise KeyError(f"'{name}' is not a flag")
        if bool(predicate(record)) != wanted:
            return False

    return True


def filter_records(records: Iterable[Record], spec: FilterSpec, schema: ListSchema) -> list:
    if spec.is_empty():
        return list(records)
    return [r for r in records if matches(r, spec, schema)]
