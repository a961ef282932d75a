# tests/test_main_window.py
from PySide6.QtCore import QThreadPool
from PySide6.QtWidgets import QLabel

from stockroom.main import MainWindow
from stockroom.modules.inventory import MovementsController
from stockroom.modules.product import ProductController


def test_modules_load_on_first_visit(conn, seed, qtbot):
    seed.product(conn, "Rod")
    win = MainWindow(conn)
    qtbot.addWidget(win)
    win.show()
    assert win.nav.count() == 3
    assert isinstance(win.module("Products"), ProductController)
    assert win.module("Movements") is None

    win.nav.setCurrentRow(2)
    moves = win.module("Movements")
    assert isinstance(moves, MovementsController)
    assert win.stack.currentWidget() is moves.get_widget()
    # every screen shares the window's event hub
    assert moves.events is win.events is win.module("Products").events

    products = win.module("Products")
    qtbot.waitUntil(lambda: products.model.rowCount() == 1, timeout=3000)
    win.close()
    QThreadPool.globalInstance().waitForDone(2000)
    assert win.loaded == {}


def test_broken_module_gets_a_placeholder(conn, qtbot):
    win = MainWindow(conn, modules=(("Broken", "stockroom.modules.missing", "Nothing"),))
    qtbot.addWidget(win)
    assert win.module("Broken") is None
    page = win.stack.currentWidget()
    labels = [w.text() for w in page.findChildren(QLabel)]
    assert any("Loading failed" in t for t in labels)
