from PySide6.QtWidgets import QAbstractItemView, QTableView


class TableView(QTableView):
    """
    Read-only list table. Header clicks still call model.sort(); list models
    forward that to their session instead of reordering rows themselves.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setSortingEnabled(True)
        self.setAlternatingRowColors(True)
        self.setSelectionBehavior(QTableView.SelectRows)
        self.setSelectionMode(QTableView.SingleSelection)
        self.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.setWordWrap(False)
        self.horizontalHeader().setStretchLastSection(True)
        self.verticalHeader().setVisible(False)

    def selected_row(self) -> int | None:
        sm = self.selectionModel()
        if sm is None:
            return None
        idxs = sm.selectedRows()
        return idxs[0].row() if idxs else None
