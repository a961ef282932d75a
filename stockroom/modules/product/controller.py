import logging
import sqlite3

from ...listing.stats import ProductStats, product_stats
from ...listing.store import MutationKind
from ...database.repositories.inventory_repo import InventoryRepo
from ...database.repositories.products_repo import ProductsRepo
from ...utils.helpers import fmt_money
from ...utils.ui_helpers import confirm, info
from ...utils.validators import require_valid, validate_adjustment, validate_product
from ..list_module import ListModule
from .form import ProductForm, StockAdjustDialog
from .model import PRODUCT_COLUMNS, PRODUCT_SCHEMA
from .view import ProductView

_log = logging.getLogger(__name__)


class ProductController(ListModule):
    SCHEMA = PRODUCT_SCHEMA
    COLUMNS = PRODUCT_COLUMNS
    STATS = product_stats
    SOURCE = "products"
    EMPTY_TEXT = "No products yet. Click 'Add Product' to create one."
    FILTERED_EMPTY_TEXT = "No products match the current filters."

    def __init__(self, conn: sqlite3.Connection, events=None, **kwargs):
        super().__init__(conn, events, **kwargs)
        self.repo = ProductsRepo(conn)
        self.inventory = InventoryRepo(conn)
        self._connect_signals()
        self._reload_categories()

    # ------------------------------------------------------------------
    # ListModule hooks
    # ------------------------------------------------------------------
    def _fetch(self, conn: sqlite3.Connection) -> list[dict]:
        return ProductsRepo(conn).list_products()

    def _build_view(self) -> ProductView:
        return ProductView()

    def _stats_text(self, s: ProductStats) -> str:
        if s is None:
            return ""
        return (
            f"Products: {s.total}   |   Stock value: {fmt_money(s.total_value)}   |   "
            f"Low stock: {s.low_stock}   |   Out of stock: {s.out_of_stock}"
        )

    def _reset_filter_widgets(self) -> None:
        v = self.view
        for w in (v.cmb_category, v.cmb_unit, v.chk_low, v.chk_out):
            w.blockSignals(True)
        v.cmb_category.setCurrentIndex(0)
        v.cmb_unit.setCurrentIndex(0)
        v.chk_low.setChecked(False)
        v.chk_out.setChecked(False)
        for w in (v.cmb_category, v.cmb_unit, v.chk_low, v.chk_out):
            w.blockSignals(False)

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------
    def _connect_signals(self):
        v = self.view
        v.btn_add.clicked.connect(self._add)
        v.btn_edit.clicked.connect(self._edit)
        v.btn_delete.clicked.connect(self._delete)
        v.btn_adjust.clicked.connect(self._adjust)
        v.table.doubleClicked.connect(lambda _=None: self._edit())

        v.cmb_category.currentIndexChanged.connect(
            lambda _=None: self.session.set_filter_field("category", v.cmb_category.currentData())
        )
        v.cmb_unit.currentIndexChanged.connect(
            lambda _=None: self.session.set_filter_field("unit_type", v.cmb_unit.currentData())
        )
        # unchecked means "no filter", not "only products that are not low"
        v.chk_low.toggled.connect(
            lambda on: self.session.set_filter_field("low_stock", True if on else None)
        )
        v.chk_out.toggled.connect(
            lambda on: self.session.set_filter_field("out_of_stock", True if on else None)
        )

        self.store.loaded.connect(lambda _rows: self._reload_categories())
        self.session.follow(self.events.productsChanged, self._apply_external)

    def _reload_categories(self) -> None:
        try:
            counts = self.repo.category_counts()
        except sqlite3.Error:
            _log.warning("could not load product categories", exc_info=True)
            return
        self.view.set_categories(counts)
        chosen = self.view.cmb_category.currentData()
        if self.session.query.filters.exact.get("category") != chosen:
            self.session.set_filter_field("category", chosen)

    # ------------------------------------------------------------------
    # Operations (callable without dialogs)
    # ------------------------------------------------------------------
    def create_product(self, data: dict) -> dict | None:
        def create():
            require_valid(validate_product(data))
            return self.repo.create(**data)

        pid = self._mutate("create product", create)
        if pid is None:
            return None
        record = self.repo.record(pid)
        self._apply(MutationKind.INSERT, record)
        self._publish(self.events.productsChanged, MutationKind.INSERT, record)
        self._reload_categories()
        return record

    def update_product(self, product_id: int, data: dict) -> dict | None:
        data = {k: v for k, v in data.items() if k != "current_stock"}

        def update():
            require_valid(validate_product(data))
            self.repo.update(product_id, **data)
            return True

        done = self._mutate("update product", update)
        if not done:
            return None
        record = self.repo.record(product_id)
        self._apply(MutationKind.UPDATE, record)
        self._publish(self.events.productsChanged, MutationKind.UPDATE, record)
        self._reload_categories()
        return record

    def delete_product(self, product_id: int) -> bool:
        done = self._mutate("delete product", lambda: self.repo.delete(product_id) or True)
        if not done:
            return False
        record = {"product_id": product_id}
        self._apply(MutationKind.DELETE, record)
        self._publish(self.events.productsChanged, MutationKind.DELETE, record)
        self._reload_categories()
        return True

    def adjust_stock(self, product_id: int, delta: float, reason: str, notes: str | None = None) -> dict | None:
        def adjust():
            current = self.repo.get(product_id)
            if current is not None:
                require_valid(validate_adjustment(current.current_stock, delta, reason))
            return self.inventory.adjust_stock(product_id, delta, reason, notes)

        movement_id = self._mutate("adjust stock", adjust)
        if movement_id is None:
            return None
        record = self.repo.record(product_id)
        self._apply(MutationKind.UPDATE, record)
        self._publish(self.events.productsChanged, MutationKind.UPDATE, record)
        self._publish(
            self.events.movementsChanged, MutationKind.INSERT,
            self.inventory.get_movement(movement_id),
        )
        return record

    # ------------------------------------------------------------------
    # Dialog handlers
    # ------------------------------------------------------------------
    def _require_selection(self, what: str) -> dict | None:
        rec = self.selected_record()
        if rec is None:
            info(self.view, "Select", f"Please select a product to {what}.")
        return rec

    def _add(self):
        dlg = ProductForm(self.view, categories=self.repo.list_categories())
        if not dlg.exec():
            return
        data = dlg.payload()
        if not data:
            return
        record = self.create_product(data)
        if record:
            info(self.view, "Saved", f"Product '{record['name']}' created.")

    def _edit(self):
        rec = self._require_selection("edit")
        if rec is None:
            return
        current = self.repo.record(rec["product_id"])
        if current is None:
            info(self.view, "Missing", "This product no longer exists.")
            self.session.on_mutation_success(MutationKind.DELETE, rec)
            return
        dlg = ProductForm(self.view, initial=current, categories=self.repo.list_categories())
        if not dlg.exec():
            return
        data = dlg.payload()
        if not data:
            return
        record = self.update_product(current["product_id"], data)
        if record:
            info(self.view, "Saved", f"Product '{record['name']}' updated.")

    def _delete(self):
        rec = self._require_selection("delete")
        if rec is None:
            return
        if not confirm(self.view, "Delete product", f"Delete '{rec['name']}'? This cannot be undone."):
            return
        if self.delete_product(rec["product_id"]):
            info(self.view, "Deleted", f"Product '{rec['name']}' deleted.")

    def _adjust(self):
        rec = self._require_selection("adjust")
        if rec is None:
            return
        current = self.repo.record(rec["product_id"]) or rec
        dlg = StockAdjustDialog(self.view, product=current)
        if not dlg.exec():
            return
        p = dlg.payload()
        if not p:
            return
        record = self.adjust_stock(current["product_id"], p["delta"], p["reason"], p["notes"])
        if record:
            info(self.view, "Saved", f"Stock for '{record['name']}' is now {record['current_stock']:g}.")
