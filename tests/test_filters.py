# tests/test_filters.py
import pytest

from stockroom.listing.filters import DATE, NUMBER, FilterSpec, ListSchema, Range, filter_records, matches

SCHEMA = ListSchema(
    id_field="id",
    search_fields=("name", "category"),
    exact_fields=("category",),
    range_fields={"date": DATE, "stock": NUMBER},
    flags={"empty": lambda r: (r.get("stock") or 0) <= 0},
    default_sort_key="name",
    default_sort_desc=False,
    tie_breakers=("id",),
)

ROWS = [
    {"id": 1, "name": "Steel Rod 10mm", "category": "Rods", "date": "2024-01-05", "stock": 0},
    {"id": 2, "name": "Copper Wire", "category": "Wires", "date": "2024-02-10", "stock": 15},
    {"id": 3, "name": "steel plate", "category": "Plates", "date": "2024-03-15 10:00:00", "stock": 4},
    {"id": 4, "name": "Bolt", "category": None, "date": None, "stock": None},
]


def _ids(rows):
    return [r["id"] for r in rows]


def test_empty_spec_passes_everything():
    assert FilterSpec().is_empty()
    assert _ids(filter_records(ROWS, FilterSpec(), SCHEMA)) == [1, 2, 3, 4]


def test_search_is_case_insensitive_substring_over_search_fields():
    spec = FilterSpec(search="  STEEL ")
    assert _ids(filter_records(ROWS, spec, SCHEMA)) == [1, 3]


def test_search_matches_any_search_field():
    spec = FilterSpec(search="wire")
    assert _ids(filter_records(ROWS, spec, SCHEMA)) == [2]


def test_blank_and_none_values_mean_no_filter():
    spec = FilterSpec(search="   ", exact={"category": ""}, flags={"empty": None})
    assert spec.is_empty()
    spec = FilterSpec(exact={"category": None}, ranges={"stock": Range()})
    assert _ids(filter_records(ROWS, spec, SCHEMA)) == [1, 2, 3, 4]


def test_exact_match():
    spec = FilterSpec(exact={"category": "Rods"})
    assert _ids(filter_records(ROWS, spec, SCHEMA)) == [1]


def test_zero_is_a_real_numeric_bound():
    spec = FilterSpec(ranges={"stock": Range(0, 0)})
    assert _ids(filter_records(ROWS, spec, SCHEMA)) == [1]


def test_numeric_range_is_inclusive_and_skips_missing_values():
    spec = FilterSpec(ranges={"stock": Range(4, 15)})
    assert _ids(filter_records(ROWS, spec, SCHEMA)) == [2, 3]
    spec = FilterSpec(ranges={"stock": Range(low=5)})
    assert _ids(filter_records(ROWS, spec, SCHEMA)) == [2]


def test_date_range_compares_the_date_part_only():
    spec = FilterSpec(ranges={"date": Range("2024-02-10", "2024-03-15")})
    assert _ids(filter_records(ROWS, spec, SCHEMA)) == [2, 3]


def test_flags_true_and_false():
    assert _ids(filter_records(ROWS, FilterSpec(flags={"empty": True}), SCHEMA)) == [1, 4]
    assert _ids(filter_records(ROWS, FilterSpec(flags={"empty": False}), SCHEMA)) == [2, 3]


def test_clauses_combine_with_and():
    spec = FilterSpec(search="steel", ranges={"stock": Range(1, None)})
    assert _ids(filter_records(ROWS, spec, SCHEMA)) == [3]


def test_unknown_field_is_rejected():
    with pytest.raises(KeyError):
        FilterSpec().with_field(SCHEMA, "colour", "red")
    with pytest.raises(KeyError):
        matches(ROWS[0], FilterSpec(exact={"colour": "red"}), SCHEMA)


def test_with_field_accepts_tuples_for_ranges_and_is_immutable():
    base = FilterSpec()
    spec = base.with_field(SCHEMA, "stock", (1, 5))
    assert spec.ranges["stock"] == Range(1, 5)
    assert base.is_empty()
    with pytest.raises(TypeError):
        spec.ranges["stock"] = Range()  # read-only mapping


def test_unparsable_number_bound_leaves_that_side_open():
    spec = FilterSpec(ranges={"stock": Range("abc", None)})
    assert _ids(filter_records(ROWS, spec, SCHEMA)) == [1, 2, 3, 4]
    spec = FilterSpec(ranges={"stock": Range("abc", "5")})
    assert _ids(filter_records(ROWS, spec, SCHEMA)) == [1, 3]
