from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt, Signal

from ..listing.paging import SortDirection


@dataclass(frozen=True)
class Column:
    key: str
    header: str
    fmt: Optional[Callable[[Any], str]] = None
    numeric: bool = False
    sortable: bool = True
    # derived columns compute their value from the whole record
    getter: Optional[Callable[[Mapping], Any]] = None

    def value(self, record: Mapping) -> Any:
        return self.getter(record) if self.getter is not None else record.get(self.key)

    def text(self, record: Mapping) -> str:
        value = self.value(record)
        if self.fmt is not None:
            return self.fmt(value)
        return "" if value is None else str(value)


class RecordsTableModel(QAbstractTableModel):
    """
    Shows one page of dict records. Sorting is not done here: a header click
    emits sortRequested(key, direction) and the owning session re-sorts the
    whole filtered set.
    """

    sortRequested = Signal(str, object)

    def __init__(self, columns: Sequence[Column], rows: Optional[Sequence[Mapping]] = None, parent=None):
        super().__init__(parent)
        self._columns: List[Column] = list(columns)
        self._rows: List[Mapping] = list(rows or [])

    # ---------- Qt model basics ----------

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return 0 if parent.isValid() else len(self._rows)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return 0 if parent.isValid() else len(self._columns)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole) -> Any:
        if not index.isValid():
            return None
        rec = self._rows[index.row()]
        col = self._columns[index.column()]
        if role == Qt.DisplayRole:
            return col.text(rec)
        if role == Qt.EditRole:
            return col.value(rec)
        if role == Qt.TextAlignmentRole and col.numeric:
            return int(Qt.AlignRight | Qt.AlignVCenter)
        if role == Qt.UserRole:
            return rec
        return None

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.DisplayRole):
        if orientation == Qt.Horizontal and role == Qt.DisplayRole:
            return self._columns[section].header
        return super().headerData(section, orientation, role)

    def sort(self, column: int, order: Qt.SortOrder = Qt.AscendingOrder) -> None:
        if not 0 <= column < len(self._columns):
            return
        col = self._columns[column]
        if not col.sortable:
            return
        direction = SortDirection.DESC if order == Qt.DescendingOrder else SortDirection.ASC
        self.sortRequested.emit(col.key, direction)

    # ---------- helpers ----------

    def headers(self) -> List[str]:
        return [c.header for c in self._columns]

    def column_of(self, key: str) -> int:
        for i, c in enumerate(self._columns):
            if c.key == key:
                return i
        return -1

    def at(self, row: int) -> Mapping:
        return self._rows[row]

    def replace(self, rows: Sequence[Mapping]) -> None:
        self.beginResetModel()
        self._rows = list(rows)
        self.endResetModel()

    def as_text_rows(self, records: Sequence[Mapping]) -> List[List[str]]:
        """Format arbitrary records with this model's columns (used for CSV export)."""
        return [[c.text(r) for c in self._columns] for r in records]
