from ...listing.filters import DATE, NUMBER, ListSchema
from ...utils.helpers import fmt_qty
from ...widgets.records_model import Column

MOVEMENT_TYPE_LABELS = {"in": "Stock In", "out": "Stock Out", "adjustment": "Adjustment"}

MOVEMENT_SCHEMA = ListSchema(
    id_field="movement_id",
    search_fields=("product_name", "reason", "reference_number", "notes"),
    exact_fields=("product_id", "movement_type"),
    range_fields={
        "date": DATE,
        "quantity": NUMBER,
    },
    default_sort_key="created_at",
    default_sort_desc=True,
    tie_breakers=("movement_id",),
)


def _signed_qty(m) -> float:
    """Quantity as it changed stock: 'out' rows count negative."""
    qty = float(m.get("quantity") or 0)
    return -qty if m.get("movement_type") == "out" else qty


MOVEMENT_COLUMNS = [
    Column("date", "Date"),
    Column("time", "Time", sortable=False),
    Column("product_name", "Product"),
    Column("movement_type", "Type", fmt=lambda v: MOVEMENT_TYPE_LABELS.get(v, str(v or ""))),
    Column("quantity", "Qty", fmt=fmt_qty, numeric=True),
    Column("change", "Change", fmt=lambda v: f"{v:+g}", numeric=True, sortable=False, getter=_signed_qty),
    Column("previous_stock", "Before", fmt=fmt_qty, numeric=True),
    Column("new_stock", "After", fmt=fmt_qty, numeric=True),
    Column("reason", "Reason"),
    Column("reference_number", "Reference"),
    Column("notes", "Notes", sortable=False),
]
