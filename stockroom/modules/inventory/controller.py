import csv
import logging
import sqlite3

from PySide6.QtWidgets import QFileDialog

from ...database.repositories.inventory_repo import InventoryRepo
from ...errors import StockroomError
from ...listing.stats import MovementStats, movement_stats
from ...utils.helpers import fmt_qty
from ...utils.ui_helpers import error, info
from ...widgets.list_panel import date_filter_value
from ..list_module import ListModule
from .model import MOVEMENT_COLUMNS, MOVEMENT_SCHEMA
from .view import MovementsView

_log = logging.getLogger(__name__)


class MovementsController(ListModule):
    """Read-only stock movement history with CSV export of the filtered set."""

    SCHEMA = MOVEMENT_SCHEMA
    COLUMNS = MOVEMENT_COLUMNS
    STATS = movement_stats
    SOURCE = "movements"
    EMPTY_TEXT = "No stock movements yet. Receivings and adjustments appear here."
    FILTERED_EMPTY_TEXT = "No stock movements match the current filters."

    def __init__(self, conn: sqlite3.Connection, events=None, **kwargs):
        super().__init__(conn, events, **kwargs)
        self.repo = InventoryRepo(conn)
        self._connect_signals()
        self._reload_products()

    # ------------------------------------------------------------------
    # ListModule hooks
    # ------------------------------------------------------------------
    def _fetch(self, conn: sqlite3.Connection) -> list[dict]:
        return InventoryRepo(conn).list_movements()

    def _build_view(self) -> MovementsView:
        return MovementsView()

    def _stats_text(self, s: MovementStats) -> str:
        if s is None:
            return ""
        return (
            f"Movements: {s.total}   |   In: {fmt_qty(s.stock_in)}   |   Out: {fmt_qty(s.stock_out)}   |   "
            f"Adjustments: {s.adjustments}   |   Net: {s.net_quantity:+g}"
        )

    def _reset_filter_widgets(self) -> None:
        v = self.view
        widgets = (v.cmb_product, v.cmb_type, v.date_from, v.date_to, v.txt_qty_min, v.txt_qty_max)
        for w in widgets:
            w.blockSignals(True)
        v.cmb_product.setCurrentIndex(0)
        v.cmb_type.setCurrentIndex(0)
        v.date_from.setDate(v.date_from.minimumDate())
        v.date_to.setDate(v.date_to.minimumDate())
        v.txt_qty_min.clear()
        v.txt_qty_max.clear()
        for w in widgets:
            w.blockSignals(False)

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------
    def _connect_signals(self):
        v = self.view
        v.btn_export.clicked.connect(self._export)
        v.cmb_product.currentIndexChanged.connect(
            lambda _=None: self.session.set_filter_field("product_id", v.cmb_product.currentData())
        )
        v.cmb_type.currentIndexChanged.connect(
            lambda _=None: self.session.set_filter_field("movement_type", v.cmb_type.currentData())
        )
        v.date_from.dateChanged.connect(lambda _=None: self._apply_dates())
        v.date_to.dateChanged.connect(lambda _=None: self._apply_dates())
        v.txt_qty_min.textChanged.connect(lambda _=None: self._apply_qty())
        v.txt_qty_max.textChanged.connect(lambda _=None: self._apply_qty())

        self.session.follow(self.events.movementsChanged, self._apply_external)
        # receivings and product edits change names and write movements elsewhere
        self.session.follow(self.events.receivingsChanged, self._refresh_external)
        self.session.follow(self.events.productsChanged, self._on_products_changed)

    def _apply_dates(self) -> None:
        v = self.view
        self.session.set_range("date", date_filter_value(v.date_from), date_filter_value(v.date_to))

    def _apply_qty(self) -> None:
        low, high = self.view.qty_range
        self.session.set_range("quantity", low, high)

    def _on_products_changed(self, change) -> None:
        self._reload_products()
        self._refresh_external(change)

    def _reload_products(self) -> None:
        try:
            products = self.repo.list_products_for_select()
        except sqlite3.Error:
            _log.warning("could not load products", exc_info=True)
            return
        self.view.set_products(products)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def export_csv(self, path: str) -> int:
        """
        Write every movement matching the current filters, in display order,
        to `path`. Returns the number of data rows written.
        """
        records = self.filtered_records()
        try:
            with open(path, "w", encoding="utf-8", newline="") as f:
                writer = csv.writer(f)
                writer.writerow(self.model.headers())
                writer.writerows(self.model.as_text_rows(records))
        except OSError as e:
            raise StockroomError(f"Failed to export CSV: {e}") from e
        _log.info("exported %d stock movements to %s", len(records), path)
        return len(records)

    def _export(self) -> None:
        if not self.filtered_records():
            info(self.view, "Nothing to export", "There are no stock movements to export.")
            return
        path, _filter = QFileDialog.getSaveFileName(
            self.view,
            "Export Stock Movements to CSV",
            "stock_movements.csv",
            "CSV Files (*.csv);;All Files (*.*)",
        )
        if not path:
            return
        try:
            n = self.export_csv(path)
        except StockroomError as e:
            error(self.view, "Error", str(e))
            return
        info(self.view, "Exported", f"Saved {n} rows to:\n{path}")
