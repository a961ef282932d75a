from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QDoubleValidator
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QGroupBox,
    QLabel,
    QLineEdit,
    QPushButton,
    QSplitter,
    QVBoxLayout,
    QWidget,
)

from ...constants import PAYMENT_STATUSES
from ...widgets.list_panel import ListPanel, make_date_filter
from ...widgets.table_view import TableView


class ReceivingView(ListPanel):
    SEARCH_PLACEHOLDER = "Search receivings (number, vendor, notes)..."

    def __init__(self, parent: QWidget | None = None, page_size: int = 20):
        super().__init__(parent, page_size=page_size)

        # ---------- actions ----------
        self.btn_new = QPushButton("New Receiving", objectName="btn_new")
        self.btn_pay = QPushButton("Record Payment", objectName="btn_pay")
        self.btn_delete = QPushButton("Delete", objectName="btn_delete")
        for b in (self.btn_new, self.btn_pay, self.btn_delete):
            self.actions.addWidget(b)
        self.actions.addStretch(1)

        # ---------- filters ----------
        self.cmb_vendor = QComboBox(objectName="cmb_vendor")
        self.cmb_vendor.setMinimumWidth(160)
        self.cmb_vendor.addItem("All vendors", userData=None)
        self.add_filter("Vendor:", self.cmb_vendor)

        self.cmb_status = QComboBox(objectName="cmb_status")
        self.cmb_status.addItem("All statuses", userData=None)
        for s in PAYMENT_STATUSES:
            self.cmb_status.addItem(s.title(), userData=s)
        self.add_filter("Status:", self.cmb_status)

        self.date_from = make_date_filter(self)
        self.date_to = make_date_filter(self)
        self.add_filter("From:", self.date_from)
        self.add_filter("To:", self.date_to)

        self.txt_min_total = QLineEdit(objectName="txt_min_total")
        self.txt_min_total.setPlaceholderText("Min total")
        dv = QDoubleValidator(self)
        dv.setBottom(0.0)
        dv.setNotation(QDoubleValidator.StandardNotation)
        self.txt_min_total.setValidator(dv)
        self.txt_min_total.setMaximumWidth(100)
        self.add_filter(None, self.txt_min_total)

        self.chk_balance = QCheckBox("Has balance", objectName="chk_balance")
        self.add_filter(None, self.chk_balance)
        self.finish_filters()

        # ---------- details pane (beside the table) ----------
        self.body.removeWidget(self.table)
        split = QSplitter(Qt.Horizontal, self)
        split.addWidget(self.table)

        self.details = QGroupBox("Details", objectName="details")
        d = QVBoxLayout(self.details)
        self.lbl_header = QLabel("Select a receiving to see its items and payments.",
                                 objectName="lbl_header")
        self.lbl_header.setWordWrap(True)
        d.addWidget(self.lbl_header)
        d.addWidget(QLabel("Items"))
        self.tbl_items = TableView()
        self.tbl_items.setObjectName("tbl_items")
        self.tbl_items.setSortingEnabled(False)
        d.addWidget(self.tbl_items, 2)
        d.addWidget(QLabel("Payments"))
        self.tbl_payments = TableView()
        self.tbl_payments.setObjectName("tbl_payments")
        self.tbl_payments.setSortingEnabled(False)
        d.addWidget(self.tbl_payments, 1)
        split.addWidget(self.details)
        split.setStretchFactor(0, 3)
        split.setStretchFactor(1, 2)
        self.body.addWidget(split, 1)

    def set_vendors(self, vendors: list) -> None:
        current = self.cmb_vendor.currentData()
        self.cmb_vendor.blockSignals(True)
        try:
            self.cmb_vendor.clear()
            self.cmb_vendor.addItem("All vendors", userData=None)
            for v in vendors:
                self.cmb_vendor.addItem(v.name, userData=v.vendor_id)
            i = self.cmb_vendor.findData(current) if current is not None else 0
            self.cmb_vendor.setCurrentIndex(max(i, 0))
        finally:
            self.cmb_vendor.blockSignals(False)

    @property
    def min_total(self) -> float | None:
        txt = (self.txt_min_total.text() or "").strip()
        try:
            return float(txt) if txt else None
        except ValueError:
            return None
