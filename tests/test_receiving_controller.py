# tests/test_receiving_controller.py
from __future__ import annotations

import pytest
from PySide6.QtCore import QDate

from stockroom.database.repositories import (
    PaymentsRepo,
    ProductsRepo,
    ReceivingHeader,
    ReceivingItem,
    ReceivingsRepo,
    VendorsRepo,
)
from stockroom.errors import ValidationError
from stockroom.listing.events import DataEvents
from stockroom.listing.store import MutationKind
from stockroom.modules.product import ProductController
from stockroom.modules.receiving import PaymentForm, ReceivingController, ReceivingForm


@pytest.fixture
def events(qapp):
    return DataEvents()


@pytest.fixture
def make_ctrl(conn, events, settings, qtbot):
    made = []

    def _make(cls=ReceivingController):
        ctrl = cls(conn, events, threaded=False, settings=settings)
        qtbot.addWidget(ctrl.get_widget())
        made.append(ctrl)
        return ctrl

    yield _make
    for c in made:
        c.teardown()


def _numbers(ctrl):
    return [ctrl.model.at(r)["receiving_number"] for r in range(ctrl.model.rowCount())]


def _header(vendor_id, date="2024-03-01", paid=0.0, method="Cash", reference=None):
    return ReceivingHeader(vendor_id=vendor_id, date=date, payment_amount=paid,
                           payment_method=method, reference_number=reference)


def test_create_receiving_updates_all_screens(conn, seed, make_ctrl, events):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod", stock=1)
    products = make_ctrl(ProductController)
    ctrl = make_ctrl()
    received = {"products": [], "receivings": [], "movements": []}
    events.productsChanged.connect(received["products"].append)
    events.receivingsChanged.connect(received["receivings"].append)
    events.movementsChanged.connect(received["movements"].append)

    rec = ctrl.create_receiving(_header(v, paid=5), [ReceivingItem(p, 4, 2.5)])
    assert rec["receiving_number"] == "SR20240301-0001"
    assert rec["payment_status"] == "partial"
    assert _numbers(ctrl) == ["SR20240301-0001"]
    assert [c.kind for c in received["receivings"]] == [MutationKind.INSERT]
    assert [c.record["product_id"] for c in received["products"]] == [p]
    assert received["movements"]
    assert not hasattr(events, "paymentsChanged")
    # the product screen picked up the new stock without reloading
    assert products.store.find(p)["current_stock"] == 5


def test_create_receiving_failure_is_reported(conn, seed, make_ctrl, dialogs, events):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod")
    ctrl = make_ctrl()
    got = []
    events.receivingsChanged.connect(got.append)
    assert ctrl.create_receiving(_header(v, paid=100), [ReceivingItem(p, 1, 1)]) is None
    assert dialogs.errors
    assert got == []
    assert ctrl.model.rowCount() == 0


def test_record_payment_updates_row_and_details(conn, seed, make_ctrl, qtbot):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod")
    rid = seed.receiving(conn, v, [(p, 10, 10)])
    ctrl = make_ctrl()
    ctrl.view.table.selectRow(0)
    assert ctrl.items_model.rowCount() == 1
    assert ctrl.payments_model.rowCount() == 0

    rec = ctrl.record_payment(rid, 100, "Cheque", "CHQ-1", "2024-03-05")
    assert rec["payment_status"] == "paid"
    assert ctrl.store.find(rid)["payment_status"] == "paid"
    assert ctrl.payments_model.rowCount() == 1
    assert "status Paid" in ctrl.view.lbl_header.text()


def test_overpayment_is_refused(conn, seed, make_ctrl, dialogs):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod")
    rid = seed.receiving(conn, v, [(p, 1, 10)])
    ctrl = make_ctrl()
    assert ctrl.record_payment(rid, 10.5, "Cash") is None
    assert dialogs.errors[-1] == ("Invalid input", "Payment amount cannot exceed remaining balance")
    assert ctrl.store.find(rid)["payment_status"] == "pending"


def test_delete_receiving(conn, seed, make_ctrl, events):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod")
    rid = seed.receiving(conn, v, [(p, 3, 1)])
    ctrl = make_ctrl()
    products = []
    events.productsChanged.connect(products.append)
    assert ctrl.delete_receiving(rid)
    assert ctrl.model.rowCount() == 0
    assert products[0].record["current_stock"] == 0


def test_filters(conn, seed, make_ctrl):
    a = seed.vendor(conn, "Alpha")
    b = seed.vendor(conn, "Beta")
    p = seed.product(conn, "Rod")
    seed.receiving(conn, a, [(p, 1, 100)], date="2024-01-10", paid=100)
    seed.receiving(conn, b, [(p, 1, 50)], date="2024-02-10")
    seed.receiving(conn, b, [(p, 1, 500)], date="2024-03-10", paid=20)
    ctrl = make_ctrl()
    v = ctrl.view
    assert ctrl.model.rowCount() == 3
    assert v.cmb_vendor.count() == 3

    v.cmb_vendor.setCurrentIndex(v.cmb_vendor.findData(b))
    assert _numbers(ctrl) == ["SR20240310-0001", "SR20240210-0001"]
    v.chk_balance.setChecked(True)
    assert ctrl.model.rowCount() == 2
    v.txt_min_total.setText("100")
    assert _numbers(ctrl) == ["SR20240310-0001"]

    ctrl.clear_filters()
    assert ctrl.model.rowCount() == 3
    v.cmb_status.setCurrentIndex(v.cmb_status.findData("paid"))
    assert _numbers(ctrl) == ["SR20240110-0001"]

    ctrl.clear_filters()
    v.date_from.setDate(QDate(2024, 2, 1))
    v.date_to.setDate(QDate(2024, 2, 29))
    assert _numbers(ctrl) == ["SR20240210-0001"]
    assert "Receivings: 1" in v.lbl_stats.text()


def test_zero_min_total_is_an_active_bound(conn, seed, make_ctrl):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod")
    seed.receiving(conn, v, [(p, 1, 1)])
    ctrl = make_ctrl()
    ctrl.view.txt_min_total.setText("0")
    assert ctrl.session.state.has_active_filters
    assert ctrl.model.rowCount() == 1


# ---------------------------- dialogs ----------------------------

def test_receiving_form_builds_payload(conn, seed, qtbot):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod", rate=7.5)
    dlg = ReceivingForm(None, vendors=VendorsRepo(conn).list_vendors(),
                        products=ProductsRepo(conn).list_products())
    qtbot.addWidget(dlg)
    assert dlg.get_payload() is None
    assert "vendor" in dlg.lbl_error.text().lower()

    dlg.cmb_vendor.setCurrentIndex(dlg.cmb_vendor.findData(v))
    dlg.btn_remove_item.click()
    assert dlg.tbl.rowCount() == 0
    dlg.add_item(p, 4)
    assert dlg._lines[0]["unit_price"].text() == "7.50"
    assert dlg.grand_total() == 30.0
    dlg.txt_paid.setText("30.01")
    assert dlg.get_payload() is None
    dlg.txt_paid.setText("10")
    dlg.cmb_method.setCurrentText("Cheque")
    assert dlg.get_payload() is None
    dlg.txt_reference.setText("CHQ-7")
    header, items = dlg.get_payload()
    assert header.vendor_id == v
    assert header.payment_amount == 10.0
    assert header.reference_number == "CHQ-7"
    assert [(i.product_id, i.quantity, i.unit_price) for i in items] == [(p, 4.0, 7.5)]


def test_payment_form_pay_full(qtbot):
    dlg = PaymentForm(None, receiving={"receiving_number": "SR20240301-0001", "vendor_name": "Acme",
                                       "grand_total": 100.0, "payment_amount": 40.0,
                                       "remaining_balance": 60.0})
    qtbot.addWidget(dlg)
    assert dlg.get_payload() is None
    dlg.btn_full.click()
    assert dlg.txt_amount.text() == "60.00"
    p = dlg.get_payload()
    assert p["amount"] == 60.0
    assert p["method"] == "Cash"
    dlg.txt_amount.setText("60.50")
    assert dlg.get_payload() is None


def test_cheque_payment_without_number_never_reaches_the_database(conn, seed, make_ctrl, dialogs):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod")
    rid = seed.receiving(conn, v, [(p, 1, 10)])
    ctrl = make_ctrl()
    assert ctrl.record_payment(rid, 5, "Cheque") is None
    assert isinstance(ctrl.last_error, ValidationError)
    assert "Cheque number" in dialogs.errors[-1][1]
    assert PaymentsRepo(conn).list_payments(rid) == []
    assert ctrl.store.find(rid)["payment_status"] == "pending"


def test_receiving_with_bad_line_is_not_created(conn, seed, make_ctrl, dialogs):
    v = seed.vendor(conn)
    p = seed.product(conn, "Rod", stock=2)
    ctrl = make_ctrl()
    assert ctrl.create_receiving(_header(v), [ReceivingItem(p, 0, 5)]) is None
    assert "quantity must be greater than 0" in dialogs.errors[-1][1]
    assert ReceivingsRepo(conn).list_receivings() == []
    assert ProductsRepo(conn).get(p).current_stock == 2
    assert ctrl.model.rowCount() == 0
