from ...listing.filters import DATE, NUMBER, ListSchema
from ...listing.stats import is_low_stock, is_out_of_stock, stock_value
from ...utils.helpers import fmt_money, fmt_qty
from ...widgets.records_model import Column

PRODUCT_SCHEMA = ListSchema(
    id_field="product_id",
    search_fields=("name", "category", "size", "grade", "description"),
    exact_fields=("category", "unit_type"),
    range_fields={
        "rate_per_unit": NUMBER,
        "current_stock": NUMBER,
        "updated_at": DATE,
    },
    flags={
        "low_stock": is_low_stock,
        "out_of_stock": is_out_of_stock,
    },
    default_sort_key="updated_at",
    default_sort_desc=True,
    tie_breakers=("name", "product_id"),
)


def stock_status(p) -> str:
    if is_out_of_stock(p):
        return "Out of stock"
    if is_low_stock(p):
        return "Low stock"
    return "In stock"


PRODUCT_COLUMNS = [
    Column("product_id", "ID", numeric=True),
    Column("name", "Name"),
    Column("category", "Category"),
    Column("unit_type", "Unit"),
    Column("rate_per_unit", "Rate", fmt=fmt_money, numeric=True),
    Column("current_stock", "Stock", fmt=fmt_qty, numeric=True),
    Column("min_stock_alert", "Min Alert", fmt=fmt_qty, numeric=True),
    Column("stock_value", "Value", fmt=fmt_money, numeric=True, sortable=False, getter=stock_value),
    Column("stock_status", "Status", sortable=False, getter=stock_status),
    Column("size", "Size"),
    Column("grade", "Grade"),
    Column("updated_at", "Updated", fmt=lambda v: str(v or "")[:16]),
]
