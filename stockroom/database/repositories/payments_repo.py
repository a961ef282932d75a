# stockroom/database/repositories/payments_repo.py
"""
Payments made to vendors against stock receivings.

A receiving's payment_amount and payment_status are derived from its
payment rows and are always written in the same transaction as the row.
"""

from __future__ import annotations

import math
import sqlite3
from typing import Optional

from ...constants import MONEY_EPS
from ...errors import DomainError
from ...utils.helpers import payment_status_for, today_str
from .base import Repo


def apply_payment(
    conn: sqlite3.Connection,
    receiving_id: int,
    amount: float,
    method: str,
    reference_number: Optional[str] = None,
    payment_date: Optional[str] = None,
    notes: Optional[str] = None,
) -> int:
    """
    Insert one payment and roll it into the receiving header.
    Must run inside the caller's transaction.
    """
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        raise DomainError("Payment amount must be a number.")
    if not math.isfinite(amount) or amount <= 0:
        raise DomainError("Payment amount must be greater than 0.")
    if not (method or "").strip():
        raise DomainError("Payment method is required.")

    row = conn.execute(
        "SELECT grand_total, payment_amount FROM stock_receivings WHERE receiving_id=?",
        (receiving_id,),
    ).fetchone()
    if row is None:
        raise DomainError(f"Stock receiving #{receiving_id} not found.")

    total = float(row["grand_total"] or 0.0)
    paid = float(row["payment_amount"] or 0.0)
    remaining = total - paid
    if amount > remaining + MONEY_EPS:
        raise DomainError(
            f"Payment amount {amount:,.2f} exceeds remaining balance {max(remaining, 0.0):,.2f}."
        )

    cur = conn.execute(
        "INSERT INTO receiving_payments(receiving_id, amount, payment_method, reference_number, "
        "payment_date, notes) VALUES (?, ?, ?, ?, ?, ?)",
        (receiving_id, round(amount, 2), method, reference_number or None,
         payment_date or today_str(), notes or None),
    )
    new_paid = min(round(paid + amount, 2), total)
    conn.execute(
        "UPDATE stock_receivings SET payment_amount=?, payment_status=? WHERE receiving_id=?",
        (new_paid, payment_status_for(total, new_paid), receiving_id),
    )
    return int(cur.lastrowid)


class PaymentsRepo(Repo):

    def record_payment(
        self,
        receiving_id: int,
        amount: float,
        method: str,
        reference_number: Optional[str] = None,
        payment_date: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Raises DomainError for a non-positive amount or an overpayment."""
        with self._immediate_tx():
            return apply_payment(
                self.conn, receiving_id, amount, method,
                reference_number, payment_date, notes,
            )

    def list_payments(self, receiving_id: int) -> list[dict]:
        return self._all(
            """
            SELECT payment_id, receiving_id, CAST(amount AS REAL) AS amount,
                   payment_method, reference_number, payment_date, notes, created_at
            FROM receiving_payments
            WHERE receiving_id=?
            ORDER BY payment_date, payment_id
            """,
            (receiving_id,),
        )
