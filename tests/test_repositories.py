# tests/test_repositories.py
import sqlite3

import pytest

from stockroom.database import connection_path, get_connection, read_connection
from stockroom.database.repositories import (
    InventoryRepo,
    PaymentsRepo,
    ProductsRepo,
    ReceivingHeader,
    ReceivingItem,
    ReceivingsRepo,
    VendorsRepo,
)
from stockroom.errors import DomainError


# ---------------------------- connection ----------------------------

def test_connection_pragmas(conn, db_path):
    assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
    assert conn.execute("PRAGMA journal_mode").fetchone()[0].lower() == "wal"
    assert connection_path(conn).name == db_path.name
    version = conn.execute("SELECT version FROM schema_version WHERE id=1").fetchone()[0]
    assert version


def test_get_connection_is_idempotent(conn, db_path, seed):
    seed.product(conn, "Rod")
    again = get_connection(db_path)
    try:
        assert again.execute("SELECT COUNT(*) FROM products").fetchone()[0] == 1
    finally:
        again.close()


def test_read_connection_sees_committed_rows(conn, db_path, seed):
    seed.product(conn, "Rod")
    with read_connection(db_path) as rc:
        assert [r["name"] for r in ProductsRepo(rc).list_products()] == ["Rod"]


def test_in_memory_connection_has_no_path():
    mem = sqlite3.connect(":memory:")
    try:
        assert connection_path(mem) is None
    finally:
        mem.close()


# ---------------------------- products ----------------------------

def test_product_crud(conn):
    repo = ProductsRepo(conn)
    pid = repo.create("Steel Rod", "Rods", "piece", 12.5, min_stock_alert=3, size="10mm")
    p = repo.get(pid)
    assert p.name == "Steel Rod" and p.current_stock == 0 and p.size == "10mm"
    assert p.created_at and p.updated_at

    repo.update(pid, "Steel Rod 10mm", "Rods", "piece", 13.0, min_stock_alert=2)
    rec = repo.record(pid)
    assert rec["name"] == "Steel Rod 10mm"
    assert rec["rate_per_unit"] == 13.0
    assert rec["size"] is None

    repo.delete(pid)
    assert repo.get(pid) is None


def test_product_name_must_be_unique_ignoring_case(conn, seed):
    seed.product(conn, "Steel Rod")
    with pytest.raises(DomainError):
        ProductsRepo(conn).create(" steel rod ", "Rods", "piece", 1.0)


def test_update_missing_product(conn):
    with pytest.raises(DomainError):
        ProductsRepo(conn).update(999, "Ghost", None, "piece", 1.0)


def test_negative_opening_stock_rejected(conn):
    with pytest.raises(DomainError):
        ProductsRepo(conn).create("Rod", None, "piece", 1.0, current_stock=-1)


def test_product_with_history_cannot_be_deleted(conn, seed):
    pid = seed.product(conn, "Rod", stock=5)
    InventoryRepo(conn).adjust_stock(pid, -1, "Damaged")
    with pytest.raises(DomainError):
        ProductsRepo(conn).delete(pid)


def test_category_counts(conn, seed):
    seed.product(conn, "A1", category="Sheets")
    seed.product(conn, "A2", category="Rods")
    seed.product(conn, "A3", category="Rods")
    seed.product(conn, "A4", category=None)
    repo = ProductsRepo(conn)
    assert repo.category_counts() == [{"name": "Rods", "count": 2}, {"name": "Sheets", "count": 1}]
    assert repo.list_categories() == ["Rods", "Sheets"]


# ---------------------------- vendors ----------------------------

def test_vendors(conn):
    repo = VendorsRepo(conn)
    b = repo.create("Beta Metals", contact_info="555-0101")
    a = repo.create("Alpha Steel")
    assert [v.vendor_id for v in repo.list_vendors()] == [a, b]
    assert repo.get(b).contact_info == "555-0101"
    with pytest.raises(DomainError):
        repo.create("alpha steel")
    with pytest.raises(DomainError):
        repo.create("   ")


# ---------------------------- stock adjustments ----------------------------

def test_adjust_stock_writes_movement(conn, seed):
    pid = seed.product(conn, "Rod", stock=10)
    inv = InventoryRepo(conn)
    mid = inv.adjust_stock(pid, -3, "Damaged", notes="bent")
    m = inv.get_movement(mid)
    assert m["movement_type"] == "adjustment"
    assert m["quantity"] == -3
    assert (m["previous_stock"], m["new_stock"]) == (10, 7)
    assert m["product_name"] == "Rod"
    assert m["reference_type"] == "adjustment" and m["reference_id"] == mid
    assert ProductsRepo(conn).get(pid).current_stock == 7


@pytest.mark.parametrize("delta, reason", [(0, "x"), (float("nan"), "x"), (1, "  ")])
def test_adjust_stock_rejects_bad_input(conn, seed, delta, reason):
    pid = seed.product(conn, "Rod", stock=10)
    with pytest.raises(DomainError):
        InventoryRepo(conn).adjust_stock(pid, delta, reason)


def test_adjust_stock_cannot_go_negative_and_rolls_back(conn, seed):
    pid = seed.product(conn, "Rod", stock=2)
    inv = InventoryRepo(conn)
    with pytest.raises(DomainError):
        inv.adjust_stock(pid, -3, "Count")
    assert ProductsRepo(conn).get(pid).current_stock == 2
    assert inv.list_movements() == []


def test_list_products_for_select(conn, seed):
    b = seed.product(conn, "Bolt")
    a = seed.product(conn, "Anchor")
    assert InventoryRepo(conn).list_products_for_select() == [(a, "Anchor"), (b, "Bolt")]


# ---------------------------- receivings ----------------------------

def test_create_receiving_raises_stock_and_numbers_per_day(conn, seed):
    v = seed.vendor(conn)
    p1 = seed.product(conn, "Rod", stock=1)
    p2 = seed.product(conn, "Sheet")
    repo = ReceivingsRepo(conn)
    rid = seed.receiving(conn, v, [(p1, 4, 2.5), (p2, 2, 10)], date="2024-03-01")
    r = repo.get(rid)
    assert r["receiving_number"] == "SR20240301-0001"
    assert r["grand_total"] == 30.0
    assert r["total_quantity"] == 6
    assert r["payment_status"] == "pending"
    assert r["remaining_balance"] == 30.0
    assert r["item_count"] == 2
    assert r["vendor_name"] == "Acme Supplies"
    assert [i["total_price"] for i in repo.list_items(rid)] == [10.0, 20.0]

    products = ProductsRepo(conn)
    assert products.get(p1).current_stock == 5
    assert products.get(p2).current_stock == 2

    moves = InventoryRepo(conn).list_movements()
    assert {m["movement_type"] for m in moves} == {"in"}
    assert {m["reference_number"] for m in moves} == {"SR20240301-0001"}

    second = seed.receiving(conn, v, [(p1, 1, 1)], date="2024-03-01")
    other_day = seed.receiving(conn, v, [(p1, 1, 1)], date="2024-03-02")
    assert repo.get(second)["receiving_number"] == "SR20240301-0002"
    assert repo.get(other_day)["receiving_number"] == "SR20240302-0001"


def test_receiving_with_payment_on_delivery(conn, seed):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod")
    rid = seed.receiving(conn, v, [(p, 10, 5)], paid=20, method="Cash")
    r = ReceivingsRepo(conn).get(rid)
    assert r["payment_amount"] == 20
    assert r["payment_status"] == "partial"
    assert [x["amount"] for x in PaymentsRepo(conn).list_payments(rid)] == [20.0]


@pytest.mark.parametrize("lines, paid", [
    ([], 0),
    ([("P", 0, 1)], 0),
    ([("P", 1, 0)], 0),
    ([("P", 1, 5)], 6),
])
def test_invalid_receivings_write_nothing(conn, seed, lines, paid):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod")
    lines = [(p, q, price) for _, q, price in lines]
    with pytest.raises(DomainError):
        seed.receiving(conn, v, lines, paid=paid)
    assert ReceivingsRepo(conn).list_receivings() == []
    assert ProductsRepo(conn).get(p).current_stock == 0


def test_receiving_for_unknown_vendor(conn, seed):
    p = seed.product(conn, "Rod")
    header = ReceivingHeader(vendor_id=42, date="2024-03-01")
    with pytest.raises(DomainError):
        ReceivingsRepo(conn).create_receiving(header, [ReceivingItem(p, 1, 1)])


def test_receiving_rolls_back_when_an_item_fails(conn, seed):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod")
    header = ReceivingHeader(vendor_id=v, date="2024-03-01")
    with pytest.raises((DomainError, sqlite3.IntegrityError)):
        ReceivingsRepo(conn).create_receiving(header, [ReceivingItem(p, 1, 1), ReceivingItem(999, 1, 1)])
    assert ReceivingsRepo(conn).list_receivings() == []
    assert ProductsRepo(conn).get(p).current_stock == 0


def test_delete_receiving_takes_stock_back_out(conn, seed):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod", stock=1)
    rid = seed.receiving(conn, v, [(p, 4, 2)], paid=3)
    repo = ReceivingsRepo(conn)
    repo.delete_receiving(rid)
    assert repo.get(rid) is None
    assert PaymentsRepo(conn).list_payments(rid) == []
    assert ProductsRepo(conn).get(p).current_stock == 1
    kinds = [m["movement_type"] for m in InventoryRepo(conn).list_movements()]
    assert sorted(kinds) == ["in", "out"]


def test_delete_receiving_refused_when_stock_already_used(conn, seed):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod")
    rid = seed.receiving(conn, v, [(p, 4, 2)])
    InventoryRepo(conn).adjust_stock(p, -2, "Sold over the counter")
    with pytest.raises(DomainError):
        ReceivingsRepo(conn).delete_receiving(rid)
    assert ReceivingsRepo(conn).get(rid) is not None
    assert ProductsRepo(conn).get(p).current_stock == 2


# ---------------------------- payments ----------------------------

def test_payments_move_status_to_paid(conn, seed):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod")
    rid = seed.receiving(conn, v, [(p, 10, 10)])
    pay = PaymentsRepo(conn)
    pay.record_payment(rid, 40, "Cash", payment_date="2024-03-15")
    assert ReceivingsRepo(conn).get(rid)["payment_status"] == "partial"
    pay.record_payment(rid, 60, "Cheque", reference_number="CHQ-9", payment_date="2024-04-01")
    r = ReceivingsRepo(conn).get(rid)
    assert r["payment_status"] == "paid"
    assert r["remaining_balance"] == 0
    rows = pay.list_payments(rid)
    assert [x["amount"] for x in rows] == [40.0, 60.0]
    assert rows[1]["reference_number"] == "CHQ-9"


@pytest.mark.parametrize("amount, method", [(0, "Cash"), (-5, "Cash"), (100.01, "Cash"), (10, ""), ("abc", "Cash")])
def test_bad_payments_are_rejected(conn, seed, amount, method):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod")
    rid = seed.receiving(conn, v, [(p, 10, 10)])
    with pytest.raises(DomainError):
        PaymentsRepo(conn).record_payment(rid, amount, method)
    assert PaymentsRepo(conn).list_payments(rid) == []


def test_payment_for_missing_receiving(conn):
    with pytest.raises(DomainError):
        PaymentsRepo(conn).record_payment(123, 1, "Cash")


def test_repository_modules_carry_their_docstrings():
    from stockroom.database.repositories import inventory_repo, payments_repo

    assert "stock movements" in inventory_repo.__doc__
    assert payments_repo.__doc__
