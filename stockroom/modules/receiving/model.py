from ...listing.filters import DATE, NUMBER, ListSchema
from ...listing.stats import has_balance, remaining_balance
from ...utils.helpers import fmt_money, fmt_qty
from ...widgets.records_model import Column

RECEIVING_SCHEMA = ListSchema(
    id_field="receiving_id",
    search_fields=("receiving_number", "vendor_name", "notes"),
    exact_fields=("vendor_id", "payment_status"),
    range_fields={
        "date": DATE,
        "grand_total": NUMBER,
    },
    flags={"has_balance": has_balance},
    default_sort_key="date",
    default_sort_desc=True,
    tie_breakers=("receiving_number", "receiving_id"),
)

RECEIVING_COLUMNS = [
    Column("receiving_number", "Receiving #"),
    Column("date", "Date"),
    Column("vendor_name", "Vendor"),
    Column("item_count", "Items", numeric=True),
    Column("grand_total", "Total", fmt=fmt_money, numeric=True),
    Column("payment_amount", "Paid", fmt=fmt_money, numeric=True),
    Column("remaining_balance", "Balance", fmt=fmt_money, numeric=True, getter=remaining_balance),
    Column("payment_status", "Status", fmt=lambda v: str(v or "").title()),
    Column("notes", "Notes"),
]

ITEM_COLUMNS = [
    Column("product_name", "Product", sortable=False),
    Column("quantity", "Qty", fmt=fmt_qty, numeric=True, sortable=False),
    Column("unit_type", "Unit", sortable=False),
    Column("unit_price", "Unit Price", fmt=fmt_money, numeric=True, sortable=False),
    Column("total_price", "Line Total", fmt=fmt_money, numeric=True, sortable=False),
]

PAYMENT_COLUMNS = [
    Column("payment_date", "Date", sortable=False),
    Column("amount", "Amount", fmt=fmt_money, numeric=True, sortable=False),
    Column("payment_method", "Method", sortable=False),
    Column("reference_number", "Reference", sortable=False),
    Column("notes", "Notes", sortable=False),
]
