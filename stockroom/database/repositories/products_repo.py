# stockroom/database/repositories/products_repo.py
from dataclasses import dataclass, fields
from typing import Optional

from ...errors import DomainError
from .base import Repo


@dataclass
class Product:
    product_id: int | None
    name: str
    category: str | None
    unit_type: str
    rate_per_unit: float
    current_stock: float
    min_stock_alert: float
    size: str | None
    grade: str | None
    description: str | None
    created_at: str | None = None
    updated_at: str | None = None


_COLUMNS = ", ".join(f.name for f in fields(Product))


class ProductsRepo(Repo):

    # ---------------------------- Products ----------------------------

    def list_products(self) -> list[dict]:
        """All products as plain dicts (the list screen's snapshot)."""
        return self._all(f"SELECT {_COLUMNS} FROM products ORDER BY product_id DESC")

    def get(self, product_id: int) -> Product | None:
        r = self.record(product_id)
        return Product(**r) if r else None

    def record(self, product_id: int) -> Optional[dict]:
        return self._one(f"SELECT {_COLUMNS} FROM products WHERE product_id=?", (product_id,))

    def _name_taken(self, name: str, exclude_id: int | None = None) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM products WHERE lower(trim(name)) = lower(trim(?)) "
            "AND product_id IS NOT ? LIMIT 1",
            (name, exclude_id),
        ).fetchone()
        return row is not None

    def create(
        self,
        name: str,
        category: str | None,
        unit_type: str,
        rate_per_unit: float,
        min_stock_alert: float = 0.0,
        size: str | None = None,
        grade: str | None = None,
        description: str | None = None,
        current_stock: float = 0.0,
    ) -> int:
        name = (name or "").strip()
        if self._name_taken(name):
            raise DomainError(f"A product named '{name}' already exists.")
        if float(current_stock or 0.0) < 0:
            raise DomainError("Opening stock cannot be negative.")
        with self._immediate_tx():
            cur = self.conn.execute(
                "INSERT INTO products(name, category, unit_type, rate_per_unit, current_stock, "
                "min_stock_alert, size, grade, description) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    name, category or None, unit_type, float(rate_per_unit),
                    float(current_stock or 0.0), float(min_stock_alert or 0.0),
                    size or None, grade or None, description or None,
                ),
            )
            return int(cur.lastrowid)

    def update(
        self,
        product_id: int,
        name: str,
        category: str | None,
        unit_type: str,
        rate_per_unit: float,
        min_stock_alert: float = 0.0,
        size: str | None = None,
        grade: str | None = None,
        description: str | None = None,
    ) -> None:
        """Stock is not editable here; it changes through receivings and adjustments."""
        name = (name or "").strip()
        if self.record(product_id) is None:
            raise DomainError(f"Product #{product_id} no longer exists.")
        if self._name_taken(name, exclude_id=product_id):
            raise DomainError(f"A product named '{name}' already exists.")
        with self._immediate_tx():
            self.conn.execute(
                "UPDATE products "
                "SET name=?, category=?, unit_type=?, rate_per_unit=?, min_stock_alert=?, "
                "size=?, grade=?, description=? "
                "WHERE product_id=?",
                (
                    name, category or None, unit_type, float(rate_per_unit),
                    float(min_stock_alert or 0.0), size or None, grade or None,
                    description or None, product_id,
                ),
            )

    def _product_is_referenced(self, product_id: int) -> bool:
        """
        Receiving lines and movements keep history for a product; deleting it
        would orphan that history.
        """
        checks = [
            "SELECT 1 FROM stock_receiving_items WHERE product_id=? LIMIT 1",
            "SELECT 1 FROM stock_movements       WHERE product_id=? LIMIT 1",
        ]
        for sql in checks:
            if self.conn.execute(sql, (product_id,)).fetchone():
                return True
        return False

    def delete(self, product_id: int) -> None:
        """Disallowed once the product has receiving or movement history."""
        if self._product_is_referenced(product_id):
            raise DomainError(
                "Cannot delete product: it has stock receivings or stock movements."
            )
        with self._immediate_tx():
            self.conn.execute("DELETE FROM products WHERE product_id=?", (product_id,))

    # ---------------------------- Categories ----------------------------

    def category_counts(self) -> list[dict]:
        """[{name, count}] for the category filter, most used first."""
        return self._all(
            """
            SELECT category AS name, COUNT(*) AS count
            FROM products
            WHERE category IS NOT NULL AND trim(category) <> ''
            GROUP BY category
            ORDER BY count DESC, name
            """
        )

    def list_categories(self) -> list[str]:
        rows = self.conn.execute(
            "SELECT DISTINCT category FROM products "
            "WHERE category IS NOT NULL AND trim(category) <> '' ORDER BY category"
        ).fetchall()
        return [r["category"] for r in rows]
