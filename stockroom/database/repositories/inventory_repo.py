"""
Repository for stock movements and manual stock adjustments.

Conventions:
- All list-returning methods yield `list[dict]` (sqlite3.Row -> dict).
- Date strings are ISO 'YYYY-MM-DD'.
- Movement quantity is positive for 'in'/'out' and signed for 'adjustment';
  previous_stock/new_stock record the product's stock around the movement.
"""

from __future__ import annotations

import math
import sqlite3
from datetime import datetime
from typing import Optional

from ...errors import DomainError
from ...utils.helpers import today_str
from .base import Repo

_MOVEMENT_SQL = """
    SELECT
        m.movement_id                  AS movement_id,
        m.product_id                   AS product_id,
        p.name                         AS product_name,
        p.unit_type                    AS unit_type,
        m.movement_type                AS movement_type,
        CAST(m.quantity AS REAL)       AS quantity,
        CAST(m.previous_stock AS REAL) AS previous_stock,
        CAST(m.new_stock AS REAL)      AS new_stock,
        COALESCE(m.reason, '')         AS reason,
        m.reference_type               AS reference_type,
        m.reference_id                 AS reference_id,
        m.reference_number             AS reference_number,
        m.date                         AS date,
        m.time                         AS time,
        COALESCE(m.notes, '')          AS notes,
        m.created_at                   AS created_at,
        m.updated_at                   AS updated_at
    FROM stock_movements m
    LEFT JOIN products p ON p.product_id = m.product_id
"""


def record_movement(
    conn: sqlite3.Connection,
    product_id: int,
    movement_type: str,
    delta: float,
    *,
    reason: Optional[str] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[int] = None,
    reference_number: Optional[str] = None,
    date: Optional[str] = None,
    notes: Optional[str] = None,
) -> int:
    """
    Apply `delta` to products.current_stock and write the matching movement.
    Must run inside the caller's transaction.
    """
    row = conn.execute(
        "SELECT current_stock FROM products WHERE product_id=?", (product_id,)
    ).fetchone()
    if row is None:
        raise DomainError(f"Product #{product_id} not found.")

    previous = float(row["current_stock"] or 0.0)
    new = round(previous + delta, 4)
    if new < 0:
        raise DomainError(
            f"Insufficient stock: product #{product_id} has {previous:g}, needs {-delta:g}."
        )

    conn.execute(
        "UPDATE products SET current_stock=? WHERE product_id=?", (new, product_id)
    )
    quantity = delta if movement_type == "adjustment" else abs(delta)
    cur = conn.execute(
        """
        INSERT INTO stock_movements(product_id, movement_type, quantity, previous_stock,
            new_stock, reason, reference_type, reference_id, reference_number, date, time, notes)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            product_id, movement_type, quantity, previous, new, reason,
            reference_type, reference_id, reference_number,
            date or today_str(), datetime.now().strftime("%H:%M"), notes,
        ),
    )
    return int(cur.lastrowid)


class InventoryRepo(Repo):

    # ------------------------------------------------------------------
    # Small helper for UI product selectors
    # ------------------------------------------------------------------
    def list_products_for_select(self) -> list[tuple[int, str]]:
        """
        Return [(product_id, name), ...] ordered by name for populating combos.
        """
        rows = self.conn.execute(
            "SELECT product_id, name FROM products ORDER BY name"
        ).fetchall()
        return [(int(r["product_id"]), r["name"]) for r in rows]

    # ------------------------------------------------------------------
    # Movements
    # ------------------------------------------------------------------
    def list_movements(self) -> list[dict]:
        """Every movement, newest first; filtering happens in the list screen."""
        return self._all(_MOVEMENT_SQL + " ORDER BY m.date DESC, m.movement_id DESC")

    def get_movement(self, movement_id: int) -> Optional[dict]:
        return self._one(_MOVEMENT_SQL + " WHERE m.movement_id=?", (movement_id,))

    def adjust_stock(
        self,
        product_id: int,
        delta: float,
        reason: str,
        notes: Optional[str] = None,
        date: Optional[str] = None,
    ) -> int:
        """
        Manual correction of a product's stock. Returns the new movement_id.
        Rejects a zero delta, a missing reason and a negative resulting stock.
        """
        try:
            delta = float(delta)
        except (TypeError, ValueError):
            raise DomainError("Adjustment quantity must be a number.")
        if not math.isfinite(delta) or abs(delta) < 1e-9:
            raise DomainError("Adjustment quantity cannot be zero.")
        if not (reason or "").strip():
            raise DomainError("A reason is required for stock adjustments.")

        with self._immediate_tx():
            movement_id = record_movement(
                self.conn, product_id, "adjustment", delta,
                reason=reason.strip(), reference_type="adjustment",
                date=date, notes=notes,
            )
            self.conn.execute(
                "UPDATE stock_movements SET reference_id=? WHERE movement_id=?",
                (movement_id, movement_id),
            )
        return movement_id
