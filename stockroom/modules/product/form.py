from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLabel,
    QLineEdit,
    QVBoxLayout,
)

from ...constants import UNIT_TYPES
from ...utils.helpers import fmt_qty
from ...utils.validators import (
    try_parse_float,
    validate_adjustment,
    validate_product,
)


class ProductForm(QDialog):
    """
    Add / edit a product. Opening stock can only be entered for a new
    product; afterwards stock changes through receivings and adjustments.
    """

    def __init__(self, parent=None, initial: dict | None = None, categories: list[str] | None = None):
        super().__init__(parent)
        self.setWindowTitle("Edit Product" if initial else "Add Product")
        self.setModal(True)
        self.initial = initial
        self._payload = None
        root = QVBoxLayout(self)

        self.name = QLineEdit(objectName="name")
        self.category = QComboBox(objectName="category")
        self.category.setEditable(True)
        self.category.addItem("")
        for c in categories or []:
            self.category.addItem(c)
        self.unit_type = QComboBox(objectName="unit_type")
        for u in UNIT_TYPES:
            self.unit_type.addItem(u)
        self.rate = QLineEdit(objectName="rate")
        self.rate.setPlaceholderText("0.00")
        self.min_stock = QLineEdit(objectName="min_stock")
        self.min_stock.setPlaceholderText("0")
        self.opening_stock = QLineEdit(objectName="opening_stock")
        self.opening_stock.setPlaceholderText("0")
        self.size = QLineEdit(objectName="size")
        self.grade = QLineEdit(objectName="grade")
        self.desc = QLineEdit(objectName="desc")

        form = QFormLayout()
        form.addRow("Name*", self.name)
        form.addRow("Category", self.category)
        form.addRow("Unit*", self.unit_type)
        form.addRow("Rate per unit*", self.rate)
        form.addRow("Min stock alert", self.min_stock)
        if initial is None:
            form.addRow("Opening stock", self.opening_stock)
        form.addRow("Size", self.size)
        form.addRow("Grade", self.grade)
        form.addRow("Description", self.desc)
        root.addLayout(form)

        self.lbl_error = QLabel("", objectName="lbl_error")
        self.lbl_error.setStyleSheet("color: red;")
        self.lbl_error.setWordWrap(True)
        root.addWidget(self.lbl_error)

        btns = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel, parent=self)
        btns.accepted.connect(self.accept)
        btns.rejected.connect(self.reject)
        root.addWidget(btns)

        if initial:
            self._fill(initial)

    def _fill(self, p: dict) -> None:
        self.name.setText(p.get("name") or "")
        self.category.setCurrentText(p.get("category") or "")
        i = self.unit_type.findText(p.get("unit_type") or "")
        if i >= 0:
            self.unit_type.setCurrentIndex(i)
        self.rate.setText(f"{float(p.get('rate_per_unit') or 0):.2f}")
        self.min_stock.setText(fmt_qty(p.get("min_stock_alert") or 0))
        self.size.setText(p.get("size") or "")
        self.grade.setText(p.get("grade") or "")
        self.desc.setText(p.get("description") or "")

    # ---------- payload & validation ----------
    def raw(self) -> dict:
        return {
            "name": self.name.text(),
            "category": self.category.currentText(),
            "unit_type": self.unit_type.currentText(),
            "rate_per_unit": self.rate.text().strip(),
            "min_stock_alert": self.min_stock.text().strip(),
            "current_stock": self.opening_stock.text().strip(),
            "size": self.size.text(),
            "grade": self.grade.text(),
            "description": self.desc.text(),
        }

    def get_product_payload(self) -> dict | None:
        self.lbl_error.clear()
        data = self.raw()
        errors = validate_product(data)
        if self.initial is None and data["current_stock"]:
            ok, v = try_parse_float(data["current_stock"])
            if not ok or v < 0:
                errors["current_stock"] = "Opening stock must be zero or more"
        if errors:
            field, msg = next(iter(errors.items()))
            self.lbl_error.setText(msg)
            widget = {
                "name": self.name, "rate_per_unit": self.rate,
                "min_stock_alert": self.min_stock, "current_stock": self.opening_stock,
                "size": self.size, "grade": self.grade,
            }.get(field)
            if widget is not None:
                widget.setFocus()
            return None

        payload = {
            "name": data["name"].strip(),
            "category": data["category"].strip() or None,
            "unit_type": data["unit_type"],
            "rate_per_unit": round(float(data["rate_per_unit"]), 2),
            "min_stock_alert": float(data["min_stock_alert"] or 0),
            "size": data["size"].strip() or None,
            "grade": data["grade"].strip() or None,
            "description": data["description"].strip() or None,
        }
        if self.initial is None:
            payload["current_stock"] = float(data["current_stock"] or 0)
        return payload

    def accept(self):
        payload = self.get_product_payload()
        if payload is None:
            # keep dialog open; controller won't lose user input
            return
        self._payload = payload
        super().accept()

    def payload(self):
        return self._payload


class StockAdjustDialog(QDialog):
    """Signed stock correction for one product, with a required reason."""

    REASONS = ("Stock count correction", "Damaged goods", "Returned to vendor", "Found stock", "Other")

    def __init__(self, parent=None, product: dict | None = None):
        super().__init__(parent)
        self.product = product or {}
        self.setWindowTitle(f"Adjust stock: {self.product.get('name', '')}")
        self.setModal(True)
        self._payload = None
        self._current = float(self.product.get("current_stock") or 0.0)

        root = QVBoxLayout(self)
        form = QFormLayout()
        unit = self.product.get("unit_type") or ""
        form.addRow("Current stock", QLabel(f"{fmt_qty(self._current)} {unit}"))

        self.txt_qty = QLineEdit(objectName="txt_qty")
        self.txt_qty.setPlaceholderText("e.g., +5 or -3")
        form.addRow("Quantity (+/-)*", self.txt_qty)

        self.lbl_new = QLabel("", objectName="lbl_new")
        form.addRow("New stock", self.lbl_new)

        self.cmb_reason = QComboBox(objectName="cmb_reason")
        self.cmb_reason.setEditable(True)
        self.cmb_reason.addItem("")
        for r in self.REASONS:
            self.cmb_reason.addItem(r)
        form.addRow("Reason*", self.cmb_reason)

        self.txt_notes = QLineEdit(objectName="txt_notes")
        self.txt_notes.setPlaceholderText("Optional notes")
        form.addRow("Notes", self.txt_notes)
        root.addLayout(form)

        self.lbl_error = QLabel("", objectName="lbl_error")
        self.lbl_error.setStyleSheet("color: red;")
        root.addWidget(self.lbl_error)

        btns = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel, parent=self)
        btns.accepted.connect(self.accept)
        btns.rejected.connect(self.reject)
        root.addWidget(btns)

        self.txt_qty.textChanged.connect(self._preview)
        self._preview()

    def _preview(self, _=None):
        ok, qty = try_parse_float(self.txt_qty.text().strip())
        self.lbl_new.setText(fmt_qty(self._current + qty) if ok else "")

    def get_payload(self) -> dict | None:
        self.lbl_error.clear()
        qty_text = self.txt_qty.text().strip()
        reason = self.cmb_reason.currentText().strip()
        errors = validate_adjustment(self._current, qty_text, reason)
        if errors:
            self.lbl_error.setText(next(iter(errors.values())))
            return None
        return {
            "delta": float(qty_text),
            "reason": reason,
            "notes": self.txt_notes.text().strip() or None,
        }

    def accept(self):
        payload = self.get_payload()
        if payload is None:
            return
        self._payload = payload
        super().accept()

    def payload(self):
        return self._payload
