# tests/test_movements_controller.py
from __future__ import annotations

import csv

import pytest

from stockroom.listing.events import DataEvents
from stockroom.modules.inventory import MovementsController
from stockroom.modules.product import ProductController
from stockroom.modules.receiving import ReceivingController


@pytest.fixture
def events(qapp):
    return DataEvents()


@pytest.fixture
def make_ctrl(conn, events, settings, qtbot):
    made = []

    def _make(cls=MovementsController):
        ctrl = cls(conn, events, threaded=False, settings=settings)
        qtbot.addWidget(ctrl.get_widget())
        made.append(ctrl)
        return ctrl

    yield _make
    for c in made:
        c.teardown()


@pytest.fixture
def history(conn, seed):
    v = seed.vendor(conn)
    rod = seed.product(conn, "Rod", stock=10)
    sheet = seed.product(conn, "Sheet")
    seed.receiving(conn, v, [(rod, 5, 1), (sheet, 2, 3)], date="2024-03-01")
    from stockroom.database.repositories import InventoryRepo
    InventoryRepo(conn).adjust_stock(rod, -4, "Damaged", date="2024-03-05")
    return {"rod": rod, "sheet": sheet}


def test_lists_history_with_stats(history, make_ctrl):
    ctrl = make_ctrl()
    assert ctrl.model.rowCount() == 3
    text = ctrl.view.lbl_stats.text()
    assert "Movements: 3" in text
    assert "In: 7" in text
    assert "Adjustments: 1" in text
    assert "Net: +3" in text


def test_filters(history, make_ctrl):
    ctrl = make_ctrl()
    v = ctrl.view
    assert v.cmb_product.count() == 3
    v.cmb_product.setCurrentIndex(v.cmb_product.findData(history["rod"]))
    assert ctrl.model.rowCount() == 2
    v.cmb_type.setCurrentIndex(v.cmb_type.findData("adjustment"))
    assert ctrl.model.rowCount() == 1
    assert ctrl.model.at(0)["reason"] == "Damaged"

    ctrl.clear_filters()
    v.txt_qty_min.setText("2")
    v.txt_qty_max.setText("2")
    assert [ctrl.model.at(r)["product_name"] for r in range(ctrl.model.rowCount())] == ["Sheet"]

    ctrl.clear_filters()
    v.search.setText("sr2024")
    v.search.returnPressed.emit()
    assert ctrl.model.rowCount() == 2


def test_export_csv_writes_every_filtered_row(history, make_ctrl, tmp_path):
    ctrl = make_ctrl()
    ctrl.session.set_page_size(1)
    ctrl.session.set_filter_field("product_id", history["rod"])
    path = tmp_path / "moves.csv"
    assert ctrl.export_csv(str(path)) == 2
    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ctrl.model.headers()
    assert len(rows) == 3
    assert {r[rows[0].index("Type")] for r in rows[1:]} == {"Stock In", "Adjustment"}


def test_export_with_nothing_to_export_says_so(make_ctrl, dialogs):
    ctrl = make_ctrl()
    ctrl._export()
    assert dialogs.infos[-1][0] == "Nothing to export"


def test_follows_adjustments_and_receivings(conn, seed, make_ctrl):
    from stockroom.database.repositories import ReceivingHeader, ReceivingItem

    v = seed.vendor(conn)
    pid = seed.product(conn, "Rod", stock=3)
    moves = make_ctrl()
    products = make_ctrl(ProductController)
    receivings = make_ctrl(ReceivingController)
    assert moves.model.rowCount() == 0

    products.adjust_stock(pid, 1, "Found stock")
    assert moves.model.rowCount() == 1

    receivings.create_receiving(ReceivingHeader(vendor_id=v, date="2024-03-01"), [ReceivingItem(pid, 2, 1)])
    assert moves.model.rowCount() == 2

    products.create_product({"name": "Bolt", "category": None, "unit_type": "piece", "rate_per_unit": 1.0})
    assert moves.view.cmb_product.findData(pid) > 0
    assert moves.view.cmb_product.count() == 3
