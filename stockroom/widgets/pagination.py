from __future__ import annotations

from PySide6.QtCore import Signal
from PySide6.QtWidgets import QComboBox, QHBoxLayout, QLabel, QPushButton, QWidget

from ..constants import DEFAULT_PAGE_SIZE, PAGE_SIZE_CHOICES
from ..listing.paging import PageResult


class PaginationBar(QWidget):
    """First / Prev / "Page x of y" / Next / Last, plus a page size picker."""

    pageRequested = Signal(int)
    pageSizeChanged = Signal(int)

    def __init__(self, parent: QWidget | None = None, page_size: int = DEFAULT_PAGE_SIZE):
        super().__init__(parent)
        row = QHBoxLayout(self)
        row.setContentsMargins(0, 0, 0, 0)
        row.setSpacing(6)

        self.lbl_range = QLabel("", objectName="lbl_range")
        self.btn_first = QPushButton("<<", objectName="btn_first")
        self.btn_prev = QPushButton("< Prev", objectName="btn_prev")
        self.lbl_page = QLabel("", objectName="lbl_page")
        self.btn_next = QPushButton("Next >", objectName="btn_next")
        self.btn_last = QPushButton(">>", objectName="btn_last")

        self.cmb_size = QComboBox(objectName="cmb_size")
        for n in PAGE_SIZE_CHOICES:
            self.cmb_size.addItem(f"{n} / page", userData=n)
        self.set_page_size(page_size)

        row.addWidget(self.lbl_range)
        row.addStretch(1)
        row.addWidget(self.btn_first)
        row.addWidget(self.btn_prev)
        row.addWidget(self.lbl_page)
        row.addWidget(self.btn_next)
        row.addWidget(self.btn_last)
        row.addWidget(self.cmb_size)

        self._page = 1
        self._total_pages = 0

        self.btn_first.clicked.connect(lambda: self.pageRequested.emit(1))
        self.btn_prev.clicked.connect(lambda: self.pageRequested.emit(self._page - 1))
        self.btn_next.clicked.connect(lambda: self.pageRequested.emit(self._page + 1))
        self.btn_last.clicked.connect(lambda: self.pageRequested.emit(max(self._total_pages, 1)))
        self.cmb_size.currentIndexChanged.connect(self._on_size_changed)

        self.show_page(PageResult((), 0, 0, 1, self.page_size))

    @property
    def page_size(self) -> int:
        return int(self.cmb_size.currentData() or DEFAULT_PAGE_SIZE)

    def set_page_size(self, n: int) -> None:
        """Select `n` without emitting pageSizeChanged."""
        i = self.cmb_size.findData(int(n))
        if i < 0:
            self.cmb_size.addItem(f"{int(n)} / page", userData=int(n))
            i = self.cmb_size.count() - 1
        self.cmb_size.blockSignals(True)
        self.cmb_size.setCurrentIndex(i)
        self.cmb_size.blockSignals(False)

    def _on_size_changed(self, _index: int) -> None:
        self.pageSizeChanged.emit(self.page_size)

    def show_page(self, page: PageResult) -> None:
        self._page = page.page
        self._total_pages = page.total_pages
        if page.total_items:
            self.lbl_range.setText(
                f"Showing {page.first_index}-{page.last_index} of {page.total_items}"
            )
        else:
            self.lbl_range.setText("No records")
        self.lbl_page.setText(f"Page {page.page} of {max(page.total_pages, 1)}")
        has_prev = page.page > 1
        has_next = page.page < page.total_pages
        self.btn_first.setEnabled(has_prev)
        self.btn_prev.setEnabled(has_prev)
        self.btn_next.setEnabled(has_next)
        self.btn_last.setEnabled(has_next)
