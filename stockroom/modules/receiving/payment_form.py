from PySide6.QtCore import QDate
from PySide6.QtWidgets import (
    QComboBox,
    QDateEdit,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
)

from ...constants import CHEQUE_METHODS, PAYMENT_METHODS
from ...listing.stats import remaining_balance
from ...utils.helpers import fmt_money
from ...utils.validators import validate_payment


class PaymentForm(QDialog):
    """Record a payment against one stock receiving."""

    def __init__(self, parent=None, receiving: dict | None = None):
        super().__init__(parent)
        self.receiving = receiving or {}
        self.remaining = max(remaining_balance(self.receiving), 0.0)
        self.setWindowTitle(f"Record payment: {self.receiving.get('receiving_number', '')}")
        self.setModal(True)
        self._payload = None

        root = QVBoxLayout(self)
        form = QFormLayout()
        form.addRow("Vendor", QLabel(str(self.receiving.get("vendor_name") or "")))
        form.addRow("Grand total", QLabel(fmt_money(self.receiving.get("grand_total") or 0)))
        form.addRow("Paid so far", QLabel(fmt_money(self.receiving.get("payment_amount") or 0)))
        form.addRow("Remaining", QLabel(fmt_money(self.remaining)))

        arow = QHBoxLayout()
        self.txt_amount = QLineEdit(objectName="txt_amount")
        self.txt_amount.setPlaceholderText("0.00")
        self.btn_full = QPushButton("Pay full", objectName="btn_full")
        arow.addWidget(self.txt_amount, 1)
        arow.addWidget(self.btn_full)
        form.addRow("Amount*", arow)

        self.cmb_method = QComboBox(objectName="cmb_method")
        for m in PAYMENT_METHODS:
            self.cmb_method.addItem(m)
        form.addRow("Method*", self.cmb_method)

        self.txt_reference = QLineEdit(objectName="txt_reference")
        form.addRow("Reference", self.txt_reference)

        self.date = QDateEdit(objectName="date")
        self.date.setCalendarPopup(True)
        self.date.setDisplayFormat("yyyy-MM-dd")
        self.date.setDate(QDate.currentDate())
        form.addRow("Date", self.date)

        self.txt_notes = QLineEdit(objectName="txt_notes")
        form.addRow("Notes", self.txt_notes)
        root.addLayout(form)

        self.lbl_error = QLabel("", objectName="lbl_error")
        self.lbl_error.setStyleSheet("color: red;")
        root.addWidget(self.lbl_error)

        btns = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel, parent=self)
        btns.accepted.connect(self.accept)
        btns.rejected.connect(self.reject)
        root.addWidget(btns)

        self.btn_full.clicked.connect(lambda: self.txt_amount.setText(f"{self.remaining:.2f}"))
        self.cmb_method.currentTextChanged.connect(self._on_method)
        self._on_method(self.cmb_method.currentText())

    def _on_method(self, method: str):
        cheque = method in CHEQUE_METHODS
        self.txt_reference.setPlaceholderText("Cheque number (required)" if cheque else "Optional")

    def get_payload(self) -> dict | None:
        self.lbl_error.clear()
        amount = self.txt_amount.text().strip()
        method = self.cmb_method.currentText()
        reference = self.txt_reference.text().strip()
        errors = validate_payment(amount, self.remaining, method, reference)
        if errors:
            self.lbl_error.setText(next(iter(errors.values())))
            return None
        return {
            "amount": round(float(amount), 2),
            "method": method,
            "reference_number": reference or None,
            "payment_date": self.date.date().toString("yyyy-MM-dd"),
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
