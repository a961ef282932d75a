# utils/validators.py
import math
import re

from ..constants import CHEQUE_METHODS, MONEY_EPS
from ..errors import ValidationError


def non_empty(text: str) -> bool:
    """
    True if `text` is not None/empty after stripping whitespace.
    """
    return bool(text and str(text).strip())


# ---- Numeric parsing & validators ----

def try_parse_float(x):
    """
    Best-effort parse to float.

    Returns:
        (ok: bool, value: float|None)

    ok == False means parsing failed and value is None.
    """
    try:
        return True, float(x)
    except (TypeError, ValueError):
        return False, None


def is_non_negative_number(x) -> bool:
    """
    True iff x parses to a float and value >= 0.
    """
    ok, val = try_parse_float(x)
    return bool(ok and val is not None and val >= 0)


def is_strictly_positive_number(x) -> bool:
    """
    True iff x parses to a float and value > 0.
    """
    ok, val = try_parse_float(x)
    return bool(ok and val is not None and val > 0)


# ---- Field rules ----

_DANGEROUS = re.compile(r"[<>'\"&;]")
_SQL_WORDS = re.compile(
    r"\b(DROP|DELETE|INSERT|UPDATE|CREATE|ALTER|EXEC|UNION|SELECT)\b", re.IGNORECASE
)
MAX_RATE = 999999.99


def check_product_name(name) -> str | None:
    text = str(name or "").strip()
    if not text:
        return "Product name is required"
    if len(text) < 2:
        return "Product name must be at least 2 characters"
    if len(text) > 100:
        return "Product name cannot exceed 100 characters"
    if _DANGEROUS.search(text):
        return "Product name contains invalid characters"
    if _SQL_WORDS.search(text):
        return "Invalid product name format"
    return None


def check_rate(rate) -> str | None:
    text = str(rate if rate is not None else "").strip()
    if not text:
        return "Rate per unit is required"
    ok, value = try_parse_float(text)
    if not ok or not math.isfinite(value):
        return "Rate must be a valid number"
    if value <= 0:
        return "Rate must be greater than 0"
    if value > MAX_RATE:
        return "Rate cannot exceed 999,999.99"
    if "." in text and len(text.split(".", 1)[1]) > 2:
        return "Rate can have maximum 2 decimal places"
    return None


def check_optional_text(value, label: str, max_len: int = 50) -> str | None:
    text = str(value or "")
    if not text.strip():
        return None
    if len(text) > max_len:
        return f"{label} cannot exceed {max_len} characters"
    if _DANGEROUS.search(text):
        return f"{label} contains invalid characters"
    return None


# ---- Form-level validators (return {field: message}) ----

def validate_product(data: dict) -> dict[str, str]:
    errors: dict[str, str] = {}
    for field, msg in (
        ("name", check_product_name(data.get("name"))),
        ("rate_per_unit", check_rate(data.get("rate_per_unit"))),
        ("size", check_optional_text(data.get("size"), "Size")),
        ("grade", check_optional_text(data.get("grade"), "Grade")),
    ):
        if msg:
            errors[field] = msg
    min_alert = data.get("min_stock_alert")
    if min_alert not in (None, "") and not is_non_negative_number(min_alert):
        errors["min_stock_alert"] = "Minimum stock alert must be zero or more"
    if not non_empty(data.get("unit_type")):
        errors["unit_type"] = "Unit type is required"
    return errors


def validate_adjustment(current_stock, delta, reason) -> dict[str, str]:
    errors: dict[str, str] = {}
    ok, qty = try_parse_float(delta)
    if not ok or not math.isfinite(qty):
        errors["quantity"] = "Quantity must be a valid number"
    elif abs(qty) < 1e-9:
        errors["quantity"] = "Quantity cannot be zero"
    elif float(current_stock or 0.0) + qty < -1e-9:
        errors["quantity"] = "Adjustment would make stock negative"
    if not non_empty(reason):
        errors["reason"] = "Reason is required"
    return errors


def validate_receiving(vendor_id, items: list[dict], initial_payment=0.0) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not vendor_id:
        errors["vendor_id"] = "Please select a vendor"
    if not items:
        errors["items"] = "Please add at least one item"
    for n, it in enumerate(items, start=1):
        if not it.get("product_id"):
            errors[f"items[{n}].product_id"] = f"Item {n}: product is required"
        if not is_strictly_positive_number(it.get("quantity")):
            errors[f"items[{n}].quantity"] = f"Item {n}: quantity must be greater than 0"
        if not is_strictly_positive_number(it.get("unit_price")):
            errors[f"items[{n}].unit_price"] = f"Item {n}: unit price must be greater than 0"
    if errors:
        return errors
    grand_total = sum(float(it["quantity"]) * float(it["unit_price"]) for it in items)
    ok, paid = try_parse_float(initial_payment or 0.0)
    if not ok or paid < 0:
        errors["payment_amount"] = "Payment amount must be zero or more"
    elif paid > grand_total + MONEY_EPS:
        errors["payment_amount"] = "Payment amount cannot exceed the grand total"
    return errors


def validate_payment(amount, remaining, method, reference=None) -> dict[str, str]:
    errors: dict[str, str] = {}
    ok, value = try_parse_float(amount)
    if not ok or not math.isfinite(value) or value <= 0:
        errors["amount"] = "Payment amount must be greater than 0"
    elif value > float(remaining or 0.0) + MONEY_EPS:
        errors["amount"] = "Payment amount cannot exceed remaining balance"
    if not non_empty(method):
        errors["method"] = "Please select a payment method"
    elif method in CHEQUE_METHODS and not non_empty(reference):
        errors["reference"] = "Cheque number is required for cheque payments"
    return errors


def require_valid(errors: dict[str, str]) -> None:
    """Raise ValidationError when a form validator reported anything."""
    if errors:
        raise ValidationError(errors)
