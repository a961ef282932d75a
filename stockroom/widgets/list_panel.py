from __future__ import annotations

from PySide6.QtCore import QDate, Qt
from PySide6.QtWidgets import (
    QDateEdit,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from ..constants import DEFAULT_PAGE_SIZE
from .pagination import PaginationBar
from .table_view import TableView


def make_date_filter(parent: QWidget | None = None) -> QDateEdit:
    """
    Date edit whose minimum date is a sentinel shown as blank text,
    meaning "no bound".
    """
    w = QDateEdit(parent)
    w.setCalendarPopup(True)
    w.setDisplayFormat("yyyy-MM-dd")
    w.setSpecialValueText(" ")
    w.setMinimumDate(QDate(1900, 1, 1))  # sentinel
    w.setDate(w.minimumDate())
    w.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
    return w


def date_filter_value(w: QDateEdit) -> str | None:
    if w.date() == w.minimumDate():
        return None
    return w.date().toString("yyyy-MM-dd")


class ListPanel(QWidget):
    """
    Common layout of a list screen, top to bottom:
      actions row | filters row | error banner | table | empty text | stats + pager
    Screens add their own buttons to `actions` and filter widgets to `filters`.
    """

    SEARCH_PLACEHOLDER = "Search..."

    def __init__(self, parent: QWidget | None = None, page_size: int = DEFAULT_PAGE_SIZE):
        super().__init__(parent)
        root = QVBoxLayout(self)
        root.setContentsMargins(8, 8, 8, 8)
        root.setSpacing(6)

        # ---------- actions ----------
        self.actions = QHBoxLayout()
        self.actions.setSpacing(6)
        root.addLayout(self.actions)

        # ---------- filters ----------
        self.filters = QHBoxLayout()
        self.filters.setSpacing(6)
        self.search = QLineEdit(objectName="search")
        self.search.setPlaceholderText(self.SEARCH_PLACEHOLDER)
        self.search.setClearButtonEnabled(True)
        self.filters.addWidget(QLabel("Search:"))
        self.filters.addWidget(self.search, 2)
        root.addLayout(self.filters)

        # ---------- error banner ----------
        self.banner = QFrame(objectName="banner")
        self.banner.setFrameShape(QFrame.StyledPanel)
        self.banner.setStyleSheet("QFrame#banner { background: #fdecea; }")
        b = QHBoxLayout(self.banner)
        b.setContentsMargins(8, 4, 8, 4)
        self.lbl_error = QLabel("", objectName="lbl_error")
        self.lbl_error.setWordWrap(True)
        self.btn_retry = QPushButton("Retry", objectName="btn_retry")
        b.addWidget(self.lbl_error, 1)
        b.addWidget(self.btn_retry)
        self.banner.hide()
        root.addWidget(self.banner)

        # ---------- table ----------
        self.lbl_loading = QLabel("Loading...", objectName="lbl_loading")
        self.lbl_loading.hide()
        root.addWidget(self.lbl_loading)

        self.body = QVBoxLayout()
        self.table = TableView()
        self.body.addWidget(self.table, 1)
        root.addLayout(self.body, 1)

        self.lbl_empty = QLabel("", objectName="lbl_empty")
        self.lbl_empty.setAlignment(Qt.AlignCenter)
        self.lbl_empty.hide()
        root.addWidget(self.lbl_empty)

        # ---------- footer ----------
        footer = QHBoxLayout()
        self.lbl_stats = QLabel("", objectName="lbl_stats")
        footer.addWidget(self.lbl_stats, 1)
        root.addLayout(footer)

        self.pager = PaginationBar(self, page_size=page_size)
        root.addWidget(self.pager)

    def add_filter(self, label: str | None, widget: QWidget, stretch: int = 0) -> None:
        if label:
            self.filters.addWidget(QLabel(label))
        self.filters.addWidget(widget, stretch)

    def finish_filters(self) -> None:
        """Append the Clear Filters and Refresh buttons after the screen's own filters."""
        self.btn_clear = QPushButton("Clear Filters", objectName="btn_clear")
        self.btn_refresh = QPushButton("Refresh", objectName="btn_refresh")
        self.filters.addWidget(self.btn_clear)
        self.filters.addWidget(self.btn_refresh)

    def show_error(self, message: str | None) -> None:
        self.lbl_error.setText(message or "")
        self.banner.setVisible(bool(message))

    def show_empty(self, text: str | None) -> None:
        self.lbl_empty.setText(text or "")
        self.lbl_empty.setVisible(bool(text))
