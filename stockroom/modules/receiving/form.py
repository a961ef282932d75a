from __future__ import annotations

from PySide6.QtCore import QDate
from PySide6.QtWidgets import (
    QComboBox,
    QDateEdit,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QHeaderView,
    QInputDialog,
    QLabel,
    QLineEdit,
    QPushButton,
    QTableWidget,
    QVBoxLayout,
)

from ...constants import PAYMENT_METHODS
from ...database.repositories.receivings_repo import ReceivingHeader, ReceivingItem
from ...errors import DomainError
from ...utils.helpers import fmt_money
from ...utils.ui_helpers import error
from ...utils.validators import try_parse_float, validate_payment, validate_receiving


class ReceivingForm(QDialog):
    """
    New stock receiving: vendor, date, item lines and an optional payment
    made on delivery.
    """

    COLS = ["Product", "Qty", "Unit Price", "Line Total"]

    def __init__(self, parent=None, vendors: list | None = None, products: list[dict] | None = None,
                 vendors_repo=None):
        super().__init__(parent)
        self.setWindowTitle("New Stock Receiving")
        self.setModal(True)
        self.resize(720, 520)
        self.vendors_repo = vendors_repo
        self.products = list(products or [])
        self._payload = None
        self._lines: list[dict] = []

        root = QVBoxLayout(self)

        # --- header ---
        form = QFormLayout()
        vrow = QHBoxLayout()
        self.cmb_vendor = QComboBox(objectName="cmb_vendor")
        self.cmb_vendor.setMinimumWidth(220)
        self.btn_add_vendor = QPushButton("New Vendor...", objectName="btn_add_vendor")
        vrow.addWidget(self.cmb_vendor, 1)
        vrow.addWidget(self.btn_add_vendor)
        form.addRow("Vendor*", vrow)
        self._fill_vendors(vendors or [])

        self.date = QDateEdit(objectName="date")
        self.date.setCalendarPopup(True)
        self.date.setDisplayFormat("yyyy-MM-dd")
        self.date.setDate(QDate.currentDate())
        form.addRow("Date*", self.date)

        self.notes = QLineEdit(objectName="notes")
        form.addRow("Notes", self.notes)
        root.addLayout(form)

        # --- items ---
        items_box = QGroupBox("Items")
        il = QVBoxLayout(items_box)
        self.tbl = QTableWidget(0, len(self.COLS), objectName="tbl_items")
        self.tbl.setHorizontalHeaderLabels(self.COLS)
        self.tbl.horizontalHeader().setSectionResizeMode(0, QHeaderView.Stretch)
        self.tbl.verticalHeader().setVisible(False)
        il.addWidget(self.tbl, 1)
        brow = QHBoxLayout()
        self.btn_add_item = QPushButton("Add Item", objectName="btn_add_item")
        self.btn_remove_item = QPushButton("Remove Item", objectName="btn_remove_item")
        brow.addWidget(self.btn_add_item)
        brow.addWidget(self.btn_remove_item)
        brow.addStretch(1)
        self.lbl_total = QLabel("Grand total: 0.00", objectName="lbl_total")
        brow.addWidget(self.lbl_total)
        il.addLayout(brow)
        root.addWidget(items_box, 1)

        # --- payment on delivery ---
        pay_box = QGroupBox("Payment (optional)")
        pf = QFormLayout(pay_box)
        self.txt_paid = QLineEdit(objectName="txt_paid")
        self.txt_paid.setPlaceholderText("0.00")
        self.cmb_method = QComboBox(objectName="cmb_method")
        for m in PAYMENT_METHODS:
            self.cmb_method.addItem(m)
        self.txt_reference = QLineEdit(objectName="txt_reference")
        self.txt_reference.setPlaceholderText("Cheque / transfer reference")
        pf.addRow("Amount paid", self.txt_paid)
        pf.addRow("Method", self.cmb_method)
        pf.addRow("Reference", self.txt_reference)
        root.addWidget(pay_box)

        self.lbl_error = QLabel("", objectName="lbl_error")
        self.lbl_error.setStyleSheet("color: red;")
        self.lbl_error.setWordWrap(True)
        root.addWidget(self.lbl_error)

        btns = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel, parent=self)
        btns.accepted.connect(self.accept)
        btns.rejected.connect(self.reject)
        root.addWidget(btns)

        self.btn_add_item.clicked.connect(lambda: self.add_item())
        self.btn_remove_item.clicked.connect(self._remove_selected)
        self.btn_add_vendor.clicked.connect(self._new_vendor)
        self.btn_add_vendor.setEnabled(self.vendors_repo is not None)

        self.add_item()

    # ---------- vendors ----------
    def _fill_vendors(self, vendors: list, select_id: int | None = None) -> None:
        self.cmb_vendor.clear()
        self.cmb_vendor.addItem("Select vendor...", userData=None)
        for v in vendors:
            self.cmb_vendor.addItem(v.name, userData=v.vendor_id)
        if select_id is not None:
            i = self.cmb_vendor.findData(select_id)
            if i >= 0:
                self.cmb_vendor.setCurrentIndex(i)

    def _new_vendor(self):
        name, ok = QInputDialog.getText(self, "New Vendor", "Vendor name:")
        if not ok or not name.strip():
            return
        try:
            vid = self.vendors_repo.create(name.strip())
        except DomainError as e:
            error(self, "Vendor", str(e))
            return
        self._fill_vendors(self.vendors_repo.list_vendors(), select_id=vid)

    # ---------- item lines ----------
    def add_item(self, product_id: int | None = None, quantity="", unit_price="") -> int:
        row = self.tbl.rowCount()
        self.tbl.insertRow(row)

        cmb = QComboBox()
        cmb.addItem("Select product...", userData=None)
        for p in self.products:
            cmb.addItem(p["name"], userData=p["product_id"])
        qty = QLineEdit(str(quantity))
        qty.setPlaceholderText("0")
        price = QLineEdit(str(unit_price))
        price.setPlaceholderText("0.00")
        total = QLabel("0.00")

        self.tbl.setCellWidget(row, 0, cmb)
        self.tbl.setCellWidget(row, 1, qty)
        self.tbl.setCellWidget(row, 2, price)
        self.tbl.setCellWidget(row, 3, total)
        line = {"product": cmb, "quantity": qty, "unit_price": price, "total": total}
        self._lines.append(line)

        cmb.currentIndexChanged.connect(lambda _=None, ln=line: self._on_product_changed(ln))
        qty.textChanged.connect(self._recalc)
        price.textChanged.connect(self._recalc)

        if product_id is not None:
            i = cmb.findData(product_id)
            if i >= 0:
                cmb.setCurrentIndex(i)
            if unit_price != "":
                price.setText(str(unit_price))
        self._recalc()
        return row

    def _on_product_changed(self, line: dict) -> None:
        # suggest the product's rate when no price was typed yet
        pid = line["product"].currentData()
        if pid is None or line["unit_price"].text().strip():
            return
        for p in self.products:
            if p["product_id"] == pid and p.get("rate_per_unit"):
                line["unit_price"].setText(f"{float(p['rate_per_unit']):.2f}")
                break

    def _remove_selected(self):
        row = self.tbl.currentRow()
        if row < 0:
            row = self.tbl.rowCount() - 1
        if row < 0:
            return
        self.tbl.removeRow(row)
        del self._lines[row]
        self._recalc()

    def items(self) -> list[dict]:
        return [
            {
                "product_id": ln["product"].currentData(),
                "quantity": ln["quantity"].text().strip(),
                "unit_price": ln["unit_price"].text().strip(),
            }
            for ln in self._lines
        ]

    def grand_total(self) -> float:
        total = 0.0
        for it in self.items():
            ok_q, q = try_parse_float(it["quantity"])
            ok_p, p = try_parse_float(it["unit_price"])
            if ok_q and ok_p:
                total += q * p
        return round(total, 2)

    def _recalc(self, _=None):
        for ln in self._lines:
            ok_q, q = try_parse_float(ln["quantity"].text().strip())
            ok_p, p = try_parse_float(ln["unit_price"].text().strip())
            ln["total"].setText(fmt_money(q * p) if ok_q and ok_p else "")
        self.lbl_total.setText(f"Grand total: {fmt_money(self.grand_total())}")

    # ---------- payload & validation ----------
    def get_payload(self) -> tuple[ReceivingHeader, list[ReceivingItem]] | None:
        self.lbl_error.clear()
        vendor_id = self.cmb_vendor.currentData()
        items = self.items()
        paid_text = self.txt_paid.text().strip()
        errors = validate_receiving(vendor_id, items, paid_text or 0)
        ok, paid = try_parse_float(paid_text or 0)
        if not errors and ok and paid > 0:
            errors = validate_payment(
                paid, self.grand_total(), self.cmb_method.currentText(),
                self.txt_reference.text().strip(),
            )
        if errors:
            self.lbl_error.setText(next(iter(errors.values())))
            return None

        header = ReceivingHeader(
            vendor_id=int(vendor_id),
            date=self.date.date().toString("yyyy-MM-dd"),
            notes=self.notes.text().strip() or None,
            payment_amount=float(paid or 0.0),
            payment_method=self.cmb_method.currentText(),
            reference_number=self.txt_reference.text().strip() or None,
        )
        lines = [
            ReceivingItem(int(it["product_id"]), float(it["quantity"]), float(it["unit_price"]))
            for it in items
        ]
        return header, lines

    def accept(self):
        payload = self.get_payload()
        if payload is None:
            return
        self._payload = payload
        super().accept()

    def payload(self):
        return self._payload
