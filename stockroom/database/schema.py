from pathlib import Path
import logging
import sqlite3
import sys

_log = logging.getLogger(__name__)

SQL = r"""
PRAGMA foreign_keys = ON;

/* ======================== CORE TABLES ======================== */

/* -------- parties -------- */
CREATE TABLE IF NOT EXISTS vendors (
    vendor_id    INTEGER PRIMARY KEY AUTOINCREMENT,
    name         TEXT NOT NULL,
    contact_info TEXT,
    address      TEXT,
    created_at   TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f','now')),
    updated_at   TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f','now'))
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_vendors_name ON vendors(name);

/* -------- products -------- */
CREATE TABLE IF NOT EXISTS products (
    product_id      INTEGER PRIMARY KEY AUTOINCREMENT,
    name            TEXT NOT NULL,
    category        TEXT,
    unit_type       TEXT NOT NULL DEFAULT 'piece',
    rate_per_unit   REAL NOT NULL DEFAULT 0 CHECK (rate_per_unit >= 0),
    current_stock   REAL NOT NULL DEFAULT 0 CHECK (current_stock >= 0),
    min_stock_alert REAL NOT NULL DEFAULT 0 CHECK (min_stock_alert >= 0),
    size            TEXT,
    grade           TEXT,
    description     TEXT,
    created_at      TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f','now')),
    updated_at      TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f','now'))
);
CREATE INDEX IF NOT EXISTS idx_products_name     ON products(name);
CREATE INDEX IF NOT EXISTS idx_products_category ON products(category);

/* ======================== RECEIVING ======================== */

CREATE TABLE IF NOT EXISTS stock_receivings (
    receiving_id     INTEGER PRIMARY KEY AUTOINCREMENT,
    receiving_number TEXT NOT NULL UNIQUE,
    vendor_id        INTEGER NOT NULL,
    date             TEXT NOT NULL,
    time             TEXT NOT NULL DEFAULT (strftime('%H:%M','now','localtime')),
    total_quantity   REAL NOT NULL DEFAULT 0,
    grand_total      REAL NOT NULL DEFAULT 0 CHECK (grand_total >= 0),
    payment_amount   REAL NOT NULL DEFAULT 0 CHECK (payment_amount >= 0),
    payment_status   TEXT NOT NULL DEFAULT 'pending'
                     CHECK (payment_status IN ('pending','partial','paid')),
    notes            TEXT,
    created_at       TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f','now')),
    updated_at       TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f','now')),
    FOREIGN KEY (vendor_id) REFERENCES vendors(vendor_id)
);
CREATE INDEX IF NOT EXISTS idx_receivings_date   ON stock_receivings(date);
CREATE INDEX IF NOT EXISTS idx_receivings_vendor ON stock_receivings(vendor_id);

CREATE TABLE IF NOT EXISTS stock_receiving_items (
    item_id      INTEGER PRIMARY KEY AUTOINCREMENT,
    receiving_id INTEGER NOT NULL,
    product_id   INTEGER NOT NULL,
    quantity     REAL NOT NULL CHECK (quantity > 0),
    unit_price   REAL NOT NULL CHECK (unit_price > 0),
    total_price  REAL NOT NULL,
    FOREIGN KEY (receiving_id) REFERENCES stock_receivings(receiving_id) ON DELETE CASCADE,
    FOREIGN KEY (product_id)   REFERENCES products(product_id)
);
CREATE INDEX IF NOT EXISTS idx_receiving_items_receiving ON stock_receiving_items(receiving_id);
CREATE INDEX IF NOT EXISTS idx_receiving_items_product   ON stock_receiving_items(product_id);

CREATE TABLE IF NOT EXISTS receiving_payments (
    payment_id       INTEGER PRIMARY KEY AUTOINCREMENT,
    receiving_id     INTEGER NOT NULL,
    amount           REAL NOT NULL CHECK (amount > 0),
    payment_method   TEXT NOT NULL,
    reference_number TEXT,
    payment_date     TEXT NOT NULL,
    notes            TEXT,
    created_at       TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f','now')),
    FOREIGN KEY (receiving_id) REFERENCES stock_receivings(receiving_id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_receiving_payments_receiving ON receiving_payments(receiving_id);

/* ======================== STOCK MOVEMENTS ======================== */

/* quantity is positive for 'in'/'out' and signed for 'adjustment' */
CREATE TABLE IF NOT EXISTS stock_movements (
    movement_id      INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id       INTEGER NOT NULL,
    movement_type    TEXT NOT NULL CHECK (movement_type IN ('in','out','adjustment')),
    quantity         REAL NOT NULL,
    previous_stock   REAL NOT NULL,
    new_stock        REAL NOT NULL CHECK (new_stock >= 0),
    reason           TEXT,
    reference_type   TEXT CHECK (reference_type IN ('receiving','adjustment')),
    reference_id     INTEGER,
    reference_number TEXT,
    date             TEXT NOT NULL,
    time             TEXT NOT NULL DEFAULT (strftime('%H:%M','now','localtime')),
    notes            TEXT,
    created_at       TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f','now')),
    updated_at       TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f','now')),
    FOREIGN KEY (product_id) REFERENCES products(product_id)
);
CREATE INDEX IF NOT EXISTS idx_movements_product ON stock_movements(product_id);
CREATE INDEX IF NOT EXISTS idx_movements_date    ON stock_movements(date);

/* ======================== updated_at TRIGGERS ======================== */

DROP TRIGGER IF EXISTS trg_vendors_touch;
CREATE TRIGGER trg_vendors_touch
AFTER UPDATE ON vendors
FOR EACH ROW WHEN NEW.updated_at = OLD.updated_at
BEGIN
  UPDATE vendors SET updated_at = strftime('%Y-%m-%d %H:%M:%f','now')
  WHERE vendor_id = NEW.vendor_id;
END;

DROP TRIGGER IF EXISTS trg_products_touch;
CREATE TRIGGER trg_products_touch
AFTER UPDATE ON products
FOR EACH ROW WHEN NEW.updated_at = OLD.updated_at
BEGIN
  UPDATE products SET updated_at = strftime('%Y-%m-%d %H:%M:%f','now')
  WHERE product_id = NEW.product_id;
END;

DROP TRIGGER IF EXISTS trg_receivings_touch;
CREATE TRIGGER trg_receivings_touch
AFTER UPDATE ON stock_receivings
FOR EACH ROW WHEN NEW.updated_at = OLD.updated_at
BEGIN
  UPDATE stock_receivings SET updated_at = strftime('%Y-%m-%d %H:%M:%f','now')
  WHERE receiving_id = NEW.receiving_id;
END;
"""


def init_schema(db_path: Path | str = "stockroom.db") -> None:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        conn.execute("PRAGMA journal_mode=WAL;")
        # Apply (idempotent) schema
        conn.executescript(SQL)
        conn.commit()
    finally:
        conn.close()
    _log.debug("schema applied to %s", db_path)


if __name__ == "__main__":
    target = sys.argv[1] if len(sys.argv) > 1 else Path(__file__).resolve().parents[1] / "data" / "stockroom.db"
    init_schema(target)
