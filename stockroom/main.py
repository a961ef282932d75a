import sys
from importlib import import_module
from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QSizePolicy,
    QStackedWidget,
    QWidget,
)

from .constants import APP_NAME, STYLE_FILE
from .database import get_connection
from .listing.events import DataEvents
from .modules.base_module import BaseModule
from .utils.loggers import get_logger
from .utils.ui_helpers import wrap_center

_log = get_logger()

# (nav title, module path, controller class)
MODULES = (
    ("Products", "stockroom.modules.product.controller", "ProductController"),
    ("Receivings", "stockroom.modules.receiving.controller", "ReceivingController"),
    ("Movements", "stockroom.modules.inventory.controller", "MovementsController"),
)


def load_qss() -> str:
    f = Path(__file__).resolve().parent / STYLE_FILE
    return f.read_text(encoding="utf-8") if f.exists() else ""


def _lazy_get(name: str, attr: str):
    """Import a module by name and fetch an attribute from it, with a clear error if missing."""
    try:
        mod = import_module(name)
    except ImportError as e:
        raise ImportError(f"Failed to import module '{name}': {e}") from e
    try:
        return getattr(mod, attr)
    except AttributeError as e:
        raise ImportError(f"'{attr}' not found in module '{name}'.") from e


class MainWindow(QMainWindow):
    """
    Left navigation + stacked pages. Each screen's controller is built the
    first time its page is shown; all of them share one connection and one
    DataEvents hub so a write on one screen updates the others.
    """

    def __init__(self, conn, modules=MODULES):
        super().__init__()
        self.setWindowTitle(APP_NAME)
        self.setMinimumSize(820, 520)

        self.conn = conn
        self.events = DataEvents(self)

        central = QWidget(self)
        row = QHBoxLayout(central)
        self.setCentralWidget(central)

        self.nav = QListWidget(objectName="nav")
        self.nav.setFixedWidth(120)
        self.nav.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Expanding)
        self.stack = QStackedWidget(objectName="stack")
        row.addWidget(self.nav)
        row.addWidget(self.stack, 1)

        self.module_info: list[tuple[str, str, str]] = list(modules)
        self.loaded: dict[int, BaseModule] = {}

        for title, _path, _cls in self.module_info:
            self.nav.addItem(QListWidgetItem(title))
            self.stack.addWidget(wrap_center(QLabel(f"Loading {title}...")))

        self.nav.currentRowChanged.connect(self._on_nav_item_changed)
        if self.module_info:
            self.nav.setCurrentRow(0)

    # ---------- deferred loading ----------
    def _on_nav_item_changed(self, index: int):
        if index < 0 or index >= len(self.module_info):
            return
        if index not in self.loaded:
            self._load_module(index)
        self.stack.setCurrentIndex(index)

    def _load_module(self, index: int) -> None:
        title, path, cls = self.module_info[index]
        QApplication.setOverrideCursor(Qt.WaitCursor)
        try:
            Controller = _lazy_get(path, cls)
            controller = Controller(self.conn, self.events)
        except Exception:
            # keep the app usable; the page tells the user what happened
            _log.exception("failed to load %s", title)
            self._replace_page(index, wrap_center(QLabel(f"{title}\n\nLoading failed")))
            return
        finally:
            QApplication.restoreOverrideCursor()
        self.loaded[index] = controller
        self._replace_page(index, controller.get_widget())
        _log.debug("loaded %s", title)

    def _replace_page(self, index: int, page: QWidget) -> None:
        old = self.stack.widget(index)
        self.stack.insertWidget(index, page)
        if old is not None:
            self.stack.removeWidget(old)
            old.deleteLater()

    def module(self, title: str):
        for i, (t, _p, _c) in enumerate(self.module_info):
            if t == title:
                return self.loaded.get(i)
        return None

    # ---------- lifetime ----------
    def closeEvent(self, event):
        for controller in self.loaded.values():
            controller.teardown()
        self.loaded.clear()
        super().closeEvent(event)


def main():
    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setOrganizationName(APP_NAME)

    conn = get_connection()
    _log.info("%s started", APP_NAME)

    qss = load_qss()
    if qss:
        app.setStyleSheet(qss)

    win = MainWindow(conn)
    win.resize(1100, 640)
    win.show()
    code = app.exec()
    conn.close()
    sys.exit(code)


if __name__ == "__main__":
    main()
