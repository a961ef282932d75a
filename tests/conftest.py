# tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - pytest-qt owns QApplication (use qapp/qtbot fixtures)
# - Every test gets its own SQLite file under tmp_path (schema applied)
# - conn.row_factory = sqlite3.Row, PRAGMA foreign_keys=ON
# - Message boxes never block: info/error/confirm are recorded instead
# - Silence benign Qt signal warnings
# ---------------------------------------------------------------------

from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import re
from pathlib import Path

import pytest
from PySide6 import QtCore

from stockroom.database import get_connection
from stockroom.database.repositories import (
    ProductsRepo,
    ReceivingHeader,
    ReceivingItem,
    ReceivingsRepo,
    VendorsRepo,
)


# ---------- Qt: let pytest-qt own the app ----------
@pytest.fixture(scope="session")
def app(qapp):
    return qapp


_BENIGN_QT_PATTERNS = [
    r"^QObject::connect: .* already connected",
    r"^QObject::disconnect: Unexpected null parameter",
    r"^QBasicTimer::stop: Failed\. Platform timer not running\.",
]


@pytest.fixture(autouse=True, scope="session")
def _silence_benign_qt():
    rx = [re.compile(p) for p in _BENIGN_QT_PATTERNS]
    previous = None

    def handler(msg_type, context, message):
        text = str(message)
        if any(r.search(text) for r in rx):
            return
        if previous is not None:
            previous(msg_type, context, message)

    previous = QtCore.qInstallMessageHandler(handler)
    try:
        yield
    finally:
        QtCore.qInstallMessageHandler(previous)


# ---------- Database ----------
@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "stockroom.db"


@pytest.fixture
def conn(db_path):
    con = get_connection(db_path)
    try:
        yield con
    finally:
        con.close()


@pytest.fixture
def settings(tmp_path):
    """Page-size persistence goes to a throwaway ini file."""
    return QtCore.QSettings(str(tmp_path / "settings.ini"), QtCore.QSettings.IniFormat)


# ---------- Dialogs ----------
class DialogLog:
    def __init__(self):
        self.infos: list[tuple[str, str]] = []
        self.errors: list[tuple[str, str]] = []
        self.confirms: list[tuple[str, str]] = []
        self.confirm_answer = True

    def info(self, parent, title, text):
        self.infos.append((title, text))

    def error(self, parent, title, text):
        self.errors.append((title, text))

    def confirm(self, parent, title, text):
        self.confirms.append((title, text))
        return self.confirm_answer


@pytest.fixture(autouse=True)
def dialogs(monkeypatch) -> DialogLog:
    log = DialogLog()
    for target in (
        "stockroom.modules.list_module",
        "stockroom.modules.product.controller",
        "stockroom.modules.receiving.controller",
        "stockroom.modules.receiving.form",
        "stockroom.modules.inventory.controller",
    ):
        for name in ("info", "error", "confirm"):
            monkeypatch.setattr(f"{target}.{name}", getattr(log, name), raising=False)
    return log


# ---------- Seed helpers ----------
def make_product(conn, name: str, *, category="Rods", unit_type="piece", rate=10.0,
                 stock=0.0, min_stock_alert=0.0, **extra) -> int:
    return ProductsRepo(conn).create(
        name=name, category=category, unit_type=unit_type, rate_per_unit=rate,
        min_stock_alert=min_stock_alert, current_stock=stock, **extra,
    )


def make_vendor(conn, name: str = "Acme Supplies") -> int:
    return VendorsRepo(conn).create(name)


def make_receiving(conn, vendor_id: int, lines, *, date="2024-03-01", paid=0.0,
                   method="Cash", reference=None) -> int:
    """lines: [(product_id, quantity, unit_price), ...]"""
    header = ReceivingHeader(
        vendor_id=vendor_id, date=date, notes=None, payment_amount=paid,
        payment_method=method, reference_number=reference,
    )
    items = [ReceivingItem(pid, qty, price) for pid, qty, price in lines]
    return ReceivingsRepo(conn).create_receiving(header, items)


@pytest.fixture
def seed():
    """Namespace of seed helpers so tests don't import conftest directly."""
    class _Seed:
        product = staticmethod(make_product)
        vendor = staticmethod(make_vendor)
        receiving = staticmethod(make_receiving)
    return _Seed
