"""
Stock receiving module package exports.

- ReceivingController: receiving list, details pane, new receivings and payments.
- ReceivingView, ReceivingForm, PaymentForm: the widgets it drives.
"""

from .controller import ReceivingController
from .form import ReceivingForm
from .model import RECEIVING_COLUMNS, RECEIVING_SCHEMA
from .payment_form import PaymentForm
from .view import ReceivingView

__all__ = [
    "ReceivingController",
    "ReceivingView",
    "ReceivingForm",
    "PaymentForm",
    "RECEIVING_SCHEMA",
    "RECEIVING_COLUMNS",
]
