from __future__ import annotations

from PySide6.QtGui import QDoubleValidator
from PySide6.QtWidgets import QComboBox, QLineEdit, QPushButton, QWidget

from ...constants import MOVEMENT_TYPES
from ...widgets.list_panel import ListPanel, make_date_filter
from .model import MOVEMENT_TYPE_LABELS


def _qty_edit(placeholder: str, parent: QWidget) -> QLineEdit:
    w = QLineEdit()
    w.setPlaceholderText(placeholder)
    dv = QDoubleValidator(parent)
    dv.setNotation(QDoubleValidator.StandardNotation)
    w.setValidator(dv)
    w.setMaximumWidth(90)
    return w


def _number(w: QLineEdit) -> float | None:
    txt = (w.text() or "").strip()
    try:
        return float(txt) if txt else None
    except ValueError:
        return None


class MovementsView(ListPanel):
    SEARCH_PLACEHOLDER = "Search movements (product, reason, reference, notes)..."

    def __init__(self, parent: QWidget | None = None, page_size: int = 20):
        super().__init__(parent, page_size=page_size)

        self.btn_export = QPushButton("Export CSV", objectName="btn_export")
        self.actions.addWidget(self.btn_export)
        self.actions.addStretch(1)

        self.cmb_product = QComboBox(objectName="cmb_product")
        self.cmb_product.setMinimumWidth(180)
        self.cmb_product.addItem("All products", userData=None)
        self.add_filter("Product:", self.cmb_product)

        self.cmb_type = QComboBox(objectName="cmb_type")
        self.cmb_type.addItem("All types", userData=None)
        for t in MOVEMENT_TYPES:
            self.cmb_type.addItem(MOVEMENT_TYPE_LABELS[t], userData=t)
        self.add_filter("Type:", self.cmb_type)

        self.date_from = make_date_filter(self)
        self.date_to = make_date_filter(self)
        self.add_filter("From:", self.date_from)
        self.add_filter("To:", self.date_to)

        self.txt_qty_min = _qty_edit("Min qty", self)
        self.txt_qty_min.setObjectName("txt_qty_min")
        self.txt_qty_max = _qty_edit("Max qty", self)
        self.txt_qty_max.setObjectName("txt_qty_max")
        self.add_filter(None, self.txt_qty_min)
        self.add_filter(None, self.txt_qty_max)
        self.finish_filters()

    def set_products(self, products: list[tuple[int, str]]) -> None:
        current = self.cmb_product.currentData()
        self.cmb_product.blockSignals(True)
        try:
            self.cmb_product.clear()
            self.cmb_product.addItem("All products", userData=None)
            for pid, name in products:
                self.cmb_product.addItem(name, userData=pid)
            i = self.cmb_product.findData(current) if current is not None else 0
            self.cmb_product.setCurrentIndex(max(i, 0))
        finally:
            self.cmb_product.blockSignals(False)

    @property
    def qty_range(self) -> tuple[float | None, float | None]:
        return _number(self.txt_qty_min), _number(self.txt_qty_max)
