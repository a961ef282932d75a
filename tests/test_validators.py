# tests/test_validators.py
import pytest

from stockroom.errors import ValidationError
from stockroom.utils.validators import (
    require_valid,
    validate_adjustment,
    validate_payment,
    validate_product,
    validate_receiving,
)


def _product(**kw):
    data = {"name": "Steel Rod", "unit_type": "piece", "rate_per_unit": "12.50", "min_stock_alert": "0"}
    data.update(kw)
    return data


def test_valid_product():
    assert validate_product(_product()) == {}


@pytest.mark.parametrize("name, fragment", [
    ("", "required"),
    ("x", "at least 2"),
    ("a" * 101, "exceed 100"),
    ("rod<b>", "invalid characters"),
    ("drop table", "Invalid product name"),
])
def test_product_name_rules(name, fragment):
    assert fragment in validate_product(_product(name=name))["name"]


@pytest.mark.parametrize("rate, fragment", [
    ("", "required"),
    ("abc", "valid number"),
    ("0", "greater than 0"),
    ("1000000", "cannot exceed"),
    ("1.234", "2 decimal"),
    ("nan", "valid number"),
])
def test_product_rate_rules(rate, fragment):
    assert fragment in validate_product(_product(rate_per_unit=rate))["rate_per_unit"]


def test_product_min_alert_and_unit():
    errors = validate_product(_product(min_stock_alert="-1", unit_type=""))
    assert set(errors) == {"min_stock_alert", "unit_type"}


def test_adjustment_rules():
    assert validate_adjustment(5, "-5", "Damaged") == {}
    assert "zero" in validate_adjustment(5, "0", "Count")["quantity"]
    assert "negative" in validate_adjustment(5, "-6", "Count")["quantity"]
    assert "valid number" in validate_adjustment(5, "inf", "Count")["quantity"]
    assert "reason" in validate_adjustment(5, "1", "  ")


def test_receiving_rules():
    items = [{"product_id": 1, "quantity": "2", "unit_price": "5"}]
    assert validate_receiving(1, items, "10") == {}
    errors = validate_receiving(None, [], 0)
    assert set(errors) == {"vendor_id", "items"}
    bad = [{"product_id": None, "quantity": "0", "unit_price": "-1"}]
    assert len(validate_receiving(1, bad)) == 3
    assert "exceed" in validate_receiving(1, items, "10.01")["payment_amount"]


def test_payment_rules():
    assert validate_payment("50", 50, "Cash") == {}
    assert validate_payment("50.004", 50, "Cash") == {}
    assert "exceed" in validate_payment("50.01", 50, "Cash")["amount"]
    assert "greater than 0" in validate_payment("0", 50, "Cash")["amount"]
    assert "method" in validate_payment("1", 50, "")
    assert "reference" in validate_payment("1", 50, "Cheque", "")
    assert validate_payment("1", 50, "Cheque", "CHQ-001") == {}


def test_require_valid_raises_with_first_error():
    with pytest.raises(ValidationError) as ei:
        require_valid({"amount": "bad amount", "method": "no method"})
    assert ei.value.first() == ("amount", "bad amount")
    require_valid({})
