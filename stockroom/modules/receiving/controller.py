import logging
import sqlite3

from ...database.repositories.payments_repo import PaymentsRepo
from ...database.repositories.products_repo import ProductsRepo
from ...database.repositories.receivings_repo import (
    ReceivingHeader,
    ReceivingItem,
    ReceivingsRepo,
)
from ...database.repositories.vendors_repo import VendorsRepo
from ...listing.session import ListState
from ...listing.stats import ReceivingStats, receiving_stats, remaining_balance
from ...listing.store import MutationKind
from ...utils.helpers import fmt_money
from ...utils.ui_helpers import confirm, info
from ...utils.validators import require_valid, validate_payment, validate_receiving
from ...widgets.list_panel import date_filter_value
from ...widgets.records_model import RecordsTableModel
from ..list_module import ListModule
from .form import ReceivingForm
from .model import ITEM_COLUMNS, PAYMENT_COLUMNS, RECEIVING_COLUMNS, RECEIVING_SCHEMA
from .payment_form import PaymentForm
from .view import ReceivingView

_log = logging.getLogger(__name__)


class ReceivingController(ListModule):
    SCHEMA = RECEIVING_SCHEMA
    COLUMNS = RECEIVING_COLUMNS
    STATS = receiving_stats
    SOURCE = "receivings"
    EMPTY_TEXT = "No stock receivings yet. Click 'New Receiving' to record a delivery."
    FILTERED_EMPTY_TEXT = "No stock receivings match the current filters."
    items_model = None
    payments_model = None

    def __init__(self, conn: sqlite3.Connection, events=None, **kwargs):
        super().__init__(conn, events, **kwargs)
        self.repo = ReceivingsRepo(conn)
        self.payments = PaymentsRepo(conn)
        self.vendors = VendorsRepo(conn)
        self.products = ProductsRepo(conn)
        self._details_id = None

        self.items_model = RecordsTableModel(ITEM_COLUMNS, parent=self)
        self.payments_model = RecordsTableModel(PAYMENT_COLUMNS, parent=self)
        self.view.tbl_items.setModel(self.items_model)
        self.view.tbl_payments.setModel(self.payments_model)

        self._connect_signals()
        self._reload_vendors()

    # ------------------------------------------------------------------
    # ListModule hooks
    # ------------------------------------------------------------------
    def _fetch(self, conn: sqlite3.Connection) -> list[dict]:
        return ReceivingsRepo(conn).list_receivings()

    def _build_view(self) -> ReceivingView:
        return ReceivingView()

    def _stats_text(self, s: ReceivingStats) -> str:
        if s is None:
            return ""
        return (
            f"Receivings: {s.total} (pending {s.pending}, partial {s.partial}, paid {s.paid})   |   "
            f"Value: {fmt_money(s.total_value)}   |   Outstanding: {fmt_money(s.total_outstanding)}   |   "
            f"Top vendor: {s.top_vendor}   |   This month: {s.this_month}"
        )

    def _reset_filter_widgets(self) -> None:
        v = self.view
        widgets = (v.cmb_vendor, v.cmb_status, v.date_from, v.date_to, v.txt_min_total, v.chk_balance)
        for w in widgets:
            w.blockSignals(True)
        v.cmb_vendor.setCurrentIndex(0)
        v.cmb_status.setCurrentIndex(0)
        v.date_from.setDate(v.date_from.minimumDate())
        v.date_to.setDate(v.date_to.minimumDate())
        v.txt_min_total.clear()
        v.chk_balance.setChecked(False)
        for w in widgets:
            w.blockSignals(False)

    def _on_rendered(self, state: ListState) -> None:
        if self.items_model is None:
            return
        # the selected row may have moved off the page or been deleted
        self._show_details(self.selected_record())

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------
    def _connect_signals(self):
        v = self.view
        v.btn_new.clicked.connect(self._new)
        v.btn_pay.clicked.connect(self._pay)
        v.btn_delete.clicked.connect(self._delete)
        v.table.doubleClicked.connect(lambda _=None: self._pay())
        v.table.selectionModel().selectionChanged.connect(
            lambda *_: self._show_details(self.selected_record())
        )

        v.cmb_vendor.currentIndexChanged.connect(
            lambda _=None: self.session.set_filter_field("vendor_id", v.cmb_vendor.currentData())
        )
        v.cmb_status.currentIndexChanged.connect(
            lambda _=None: self.session.set_filter_field("payment_status", v.cmb_status.currentData())
        )
        v.date_from.dateChanged.connect(lambda _=None: self._apply_dates())
        v.date_to.dateChanged.connect(lambda _=None: self._apply_dates())
        v.txt_min_total.textChanged.connect(
            lambda _=None: self.session.set_range("grand_total", v.min_total, None)
        )
        v.chk_balance.toggled.connect(
            lambda on: self.session.set_filter_field("has_balance", True if on else None)
        )

        self.session.follow(self.events.receivingsChanged, self._apply_external)

    def _apply_dates(self) -> None:
        v = self.view
        self.session.set_range("date", date_filter_value(v.date_from), date_filter_value(v.date_to))

    def _reload_vendors(self) -> None:
        try:
            vendors = self.vendors.list_vendors()
        except sqlite3.Error:
            _log.warning("could not load vendors", exc_info=True)
            return
        self.view.set_vendors(vendors)

    # ------------------------------------------------------------------
    # Details pane
    # ------------------------------------------------------------------
    def _show_details(self, rec: dict | None) -> None:
        v = self.view
        if rec is None:
            self._details_id = None
            self.items_model.replace([])
            self.payments_model.replace([])
            v.lbl_header.setText("Select a receiving to see its items and payments.")
            return
        rid = rec["receiving_id"]
        try:
            items = self.repo.list_items(rid)
            payments = self.payments.list_payments(rid)
        except sqlite3.Error:
            _log.warning("could not load details for receiving %s", rid, exc_info=True)
            return
        self._details_id = rid
        self.items_model.replace(items)
        self.payments_model.replace(payments)
        v.lbl_header.setText(
            f"<b>{rec['receiving_number']}</b> from {rec.get('vendor_name') or ''} on {rec['date']}<br>"
            f"Total {fmt_money(rec.get('grand_total'))}, paid {fmt_money(rec.get('payment_amount'))}, "
            f"status {str(rec.get('payment_status') or '').title()}"
        )

    # ------------------------------------------------------------------
    # Operations (callable without dialogs)
    # ------------------------------------------------------------------
    def _publish_products(self, product_ids) -> None:
        for pid in sorted(set(product_ids)):
            record = self.products.record(pid)
            if record is not None:
                self._publish(self.events.productsChanged, MutationKind.UPDATE, record)
        # movement rows were written by the repository; let the history reload
        self._publish(self.events.movementsChanged, MutationKind.INSERT, {})

    def create_receiving(self, header: ReceivingHeader, items: list[ReceivingItem]) -> dict | None:
        def create():
            lines = [
                {"product_id": it.product_id, "quantity": it.quantity, "unit_price": it.unit_price}
                for it in items
            ]
            paid = header.payment_amount or 0.0
            require_valid(validate_receiving(header.vendor_id, lines, paid))
            if float(paid) > 0:
                total = sum(float(it.quantity) * float(it.unit_price) for it in items)
                require_valid(validate_payment(
                    paid, total, header.payment_method, header.reference_number
                ))
            return self.repo.create_receiving(header, items)

        rid = self._mutate("create stock receiving", create)
        if rid is None:
            return None
        record = self.repo.get(rid)
        self._apply(MutationKind.INSERT, record)
        self._publish(self.events.receivingsChanged, MutationKind.INSERT, record)
        self._publish_products(it.product_id for it in items)
        return record

    def record_payment(
        self,
        receiving_id: int,
        amount: float,
        method: str,
        reference_number: str | None = None,
        payment_date: str | None = None,
        notes: str | None = None,
    ) -> dict | None:
        def pay():
            current = self.repo.get(receiving_id)
            if current is not None:
                require_valid(validate_payment(
                    amount, remaining_balance(current), method, reference_number
                ))
            return self.payments.record_payment(
                receiving_id, amount, method, reference_number, payment_date, notes
            )

        payment_id = self._mutate("record payment", pay)
        if payment_id is None:
            return None
        record = self.repo.get(receiving_id)
        self._apply(MutationKind.UPDATE, record)
        self._publish(self.events.receivingsChanged, MutationKind.UPDATE, record)
        if self._details_id == receiving_id:
            self._show_details(record)
        return record

    def delete_receiving(self, receiving_id: int) -> bool:
        items = self.repo.list_items(receiving_id)
        done = self._mutate(
            "delete stock receiving", lambda: self.repo.delete_receiving(receiving_id) or True
        )
        if not done:
            return False
        record = {"receiving_id": receiving_id}
        self._apply(MutationKind.DELETE, record)
        self._publish(self.events.receivingsChanged, MutationKind.DELETE, record)
        self._publish_products(it["product_id"] for it in items)
        return True

    # ------------------------------------------------------------------
    # Dialog handlers
    # ------------------------------------------------------------------
    def _require_selection(self, what: str) -> dict | None:
        rec = self.selected_record()
        if rec is None:
            info(self.view, "Select", f"Please select a stock receiving to {what}.")
        return rec

    def _new(self):
        dlg = ReceivingForm(
            self.view,
            vendors=self.vendors.list_vendors(),
            products=self.products.list_products(),
            vendors_repo=self.vendors,
        )
        if not dlg.exec():
            self._reload_vendors()
            return
        self._reload_vendors()
        payload = dlg.payload()
        if not payload:
            return
        header, items = payload
        record = self.create_receiving(header, items)
        if record:
            info(self.view, "Saved", f"Stock receiving {record['receiving_number']} recorded.")

    def _pay(self):
        rec = self._require_selection("pay")
        if rec is None:
            return
        current = self.repo.get(rec["receiving_id"])
        if current is None:
            info(self.view, "Missing", "This stock receiving no longer exists.")
            self.session.on_mutation_success(MutationKind.DELETE, rec)
            return
        if current["payment_status"] == "paid":
            info(self.view, "Paid", f"{current['receiving_number']} is already fully paid.")
            return
        dlg = PaymentForm(self.view, receiving=current)
        if not dlg.exec():
            return
        p = dlg.payload()
        if not p:
            return
        record = self.record_payment(current["receiving_id"], **p)
        if record:
            info(self.view, "Saved", f"Payment recorded. Status is now {record['payment_status']}.")

    def _delete(self):
        rec = self._require_selection("delete")
        if rec is None:
            return
        if not confirm(
            self.view, "Delete receiving",
            f"Delete {rec['receiving_number']}? Its quantities will be taken back out of stock.",
        ):
            return
        if self.delete_receiving(rec["receiving_id"]):
            info(self.view, "Deleted", f"Stock receiving {rec['receiving_number']} deleted.")
