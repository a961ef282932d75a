# stockroom/database/repositories/receivings_repo.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date as _date
from typing import Optional, Sequence

from ...constants import MONEY_EPS
from ...errors import DomainError
from ...utils.helpers import today_str
from .base import Repo
from .inventory_repo import record_movement
from .payments_repo import apply_payment


@dataclass
class ReceivingHeader:
    vendor_id: int
    date: str
    notes: Optional[str] = None
    # optional payment made on delivery
    payment_amount: float = 0.0
    payment_method: str = "Cash"
    reference_number: Optional[str] = None


@dataclass
class ReceivingItem:
    product_id: int
    quantity: float
    unit_price: float


_LIST_SQL = """
    SELECT
        r.receiving_id, r.receiving_number, r.vendor_id,
        v.name                                        AS vendor_name,
        r.date, r.time,
        CAST(r.total_quantity AS REAL)                AS total_quantity,
        CAST(r.grand_total AS REAL)                   AS grand_total,
        CAST(r.payment_amount AS REAL)                AS payment_amount,
        CAST(r.grand_total - r.payment_amount AS REAL) AS remaining_balance,
        r.payment_status,
        COALESCE(r.notes, '')                         AS notes,
        (SELECT COUNT(*) FROM stock_receiving_items i
          WHERE i.receiving_id = r.receiving_id)      AS item_count,
        r.created_at, r.updated_at
    FROM stock_receivings r
    JOIN vendors v ON v.vendor_id = r.vendor_id
"""

_NUMBER_RE = re.compile(r"^SR(\d{8})-(\d{4,})$")


class ReceivingsRepo(Repo):

    # ---------------------------- Reads ----------------------------

    def list_receivings(self) -> list[dict]:
        return self._all(_LIST_SQL + " ORDER BY r.date DESC, r.receiving_id DESC")

    def get(self, receiving_id: int) -> Optional[dict]:
        return self._one(_LIST_SQL + " WHERE r.receiving_id=?", (receiving_id,))

    def list_items(self, receiving_id: int) -> list[dict]:
        return self._all(
            """
            SELECT i.item_id, i.receiving_id, i.product_id, p.name AS product_name,
                   p.unit_type, CAST(i.quantity AS REAL) AS quantity,
                   CAST(i.unit_price AS REAL) AS unit_price,
                   CAST(i.total_price AS REAL) AS total_price
            FROM stock_receiving_items i
            JOIN products p ON p.product_id = i.product_id
            WHERE i.receiving_id=?
            ORDER BY i.item_id
            """,
            (receiving_id,),
        )

    def new_receiving_number(self, on_date: Optional[str] = None) -> str:
        """Next `SR<YYYYMMDD>-NNNN` for the given day (sequence restarts daily)."""
        day = _date.fromisoformat((on_date or today_str())[:10]).strftime("%Y%m%d")
        row = self.conn.execute(
            "SELECT receiving_number FROM stock_receivings "
            "WHERE receiving_number LIKE ? ORDER BY receiving_id DESC",
            (f"SR{day}-%",),
        ).fetchall()
        last = 0
        for r in row:
            m = _NUMBER_RE.match(r["receiving_number"] or "")
            if m:
                last = max(last, int(m.group(2)))
        return f"SR{day}-{last + 1:04d}"

    # ---------------------------- Writes ----------------------------

    def create_receiving(
        self, header: ReceivingHeader, items: Sequence[ReceivingItem]
    ) -> int:
        """
        Insert the header and its items, raise stock with one 'in' movement per
        item, and record the optional payment made on delivery. All or nothing.
        """
        if not items:
            raise DomainError("A stock receiving needs at least one item.")
        for n, it in enumerate(items, start=1):
            if float(it.quantity) <= 0:
                raise DomainError(f"Item {n}: quantity must be greater than 0.")
            if float(it.unit_price) <= 0:
                raise DomainError(f"Item {n}: unit price must be greater than 0.")
        if not self.conn.execute(
            "SELECT 1 FROM vendors WHERE vendor_id=?", (header.vendor_id,)
        ).fetchone():
            raise DomainError(f"Vendor #{header.vendor_id} not found.")

        grand_total = round(sum(float(i.quantity) * float(i.unit_price) for i in items), 2)
        total_qty = sum(float(i.quantity) for i in items)
        paid = float(header.payment_amount or 0.0)
        if paid < 0:
            raise DomainError("Payment amount cannot be negative.")
        if paid > grand_total + MONEY_EPS:
            raise DomainError("Payment amount cannot exceed the grand total.")

        with self._immediate_tx():
            number = self.new_receiving_number(header.date)
            cur = self.conn.execute(
                "INSERT INTO stock_receivings(receiving_number, vendor_id, date, time, "
                "total_quantity, grand_total, payment_amount, payment_status, notes) "
                "VALUES (?, ?, ?, ?, ?, ?, 0, 'pending', ?)",
                (number, header.vendor_id, header.date[:10], self._now_time(),
                 total_qty, grand_total, header.notes or None),
            )
            receiving_id = int(cur.lastrowid)

            for it in items:
                qty = float(it.quantity)
                price = float(it.unit_price)
                self.conn.execute(
                    "INSERT INTO stock_receiving_items(receiving_id, product_id, quantity, "
                    "unit_price, total_price) VALUES (?, ?, ?, ?, ?)",
                    (receiving_id, it.product_id, qty, price, round(qty * price, 2)),
                )
                record_movement(
                    self.conn, it.product_id, "in", qty,
                    reason=f"Stock receiving {number}",
                    reference_type="receiving", reference_id=receiving_id,
                    reference_number=number, date=header.date[:10],
                )

            if paid > MONEY_EPS:
                apply_payment(
                    self.conn, receiving_id, paid, header.payment_method,
                    header.reference_number, header.date[:10],
                    notes="Paid on receiving",
                )
        return receiving_id

    def delete_receiving(self, receiving_id: int) -> None:
        """
        Remove a receiving and take its quantities back out of stock.
        Refused when some of that stock has already left.
        """
        head = self.get(receiving_id)
        if head is None:
            raise DomainError(f"Stock receiving #{receiving_id} not found.")
        items = self.list_items(receiving_id)
        with self._immediate_tx():
            for it in items:
                record_movement(
                    self.conn, it["product_id"], "out", -float(it["quantity"]),
                    reason=f"Stock receiving {head['receiving_number']} deleted",
                    reference_type="receiving", reference_id=receiving_id,
                    reference_number=head["receiving_number"],
                )
            self.conn.execute(
                "DELETE FROM stock_receivings WHERE receiving_id=?", (receiving_id,)
            )
