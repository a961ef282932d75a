# stockroom/listing/stats.py
"""
Summary figures over the whole filtered set (never just the visible page).
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Mapping, Optional, Sequence

from ..constants import MONEY_EPS


def _f(v) -> float:
    try:
        return float(v or 0.0)
    except (TypeError, ValueError):
        return 0.0


# ---- derived predicates (also used as list flags) ----

def stock_value(p: Mapping) -> float:
    return _f(p.get("current_stock")) * _f(p.get("rate_per_unit"))


def is_out_of_stock(p: Mapping) -> bool:
    return _f(p.get("current_stock")) <= 0


def is_low_stock(p: Mapping) -> bool:
    """At or below the alert level, but not already out of stock."""
    stock = _f(p.get("current_stock"))
    return 0 < stock <= _f(p.get("min_stock_alert"))


def remaining_balance(r: Mapping) -> float:
    if r.get("remaining_balance") is not None:
        return _f(r.get("remaining_balance"))
    return _f(r.get("grand_total")) - _f(r.get("payment_amount"))


def has_balance(r: Mapping) -> bool:
    return remaining_balance(r) > MONEY_EPS


# ---- products ----

@dataclass(frozen=True)
class ProductStats:
    total: int = 0
    total_value: float = 0.0
    low_stock: int = 0
    out_of_stock: int = 0


def product_stats(records: Sequence[Mapping]) -> ProductStats:
    return ProductStats(
        total=len(records),
        total_value=sum(stock_value(p) for p in records),
        low_stock=sum(1 for p in records if is_low_stock(p)),
        out_of_stock=sum(1 for p in records if is_out_of_stock(p)),
    )


# ---- stock receivings ----

@dataclass(frozen=True)
class ReceivingStats:
    total: int = 0
    pending: int = 0
    partial: int = 0
    paid: int = 0
    total_value: float = 0.0
    total_paid: float = 0.0
    total_outstanding: float = 0.0
    average_value: float = 0.0
    top_vendor: str = "N/A"
    this_month: int = 0


def receiving_stats(records: Sequence[Mapping], today: Optional[date] = None) -> ReceivingStats:
    today = today or date.today()
    month_start = today.replace(day=1).isoformat()

    by_status: dict[str, int] = defaultdict(int)
    by_vendor: dict[str, float] = defaultdict(float)
    total_value = total_paid = outstanding = 0.0
    this_month = 0
    for r in records:
        by_status[str(r.get("payment_status") or "")] += 1
        value = _f(r.get("grand_total"))
        total_value += value
        total_paid += _f(r.get("payment_amount"))
        outstanding += max(remaining_balance(r), 0.0)
        if r.get("vendor_name"):
            by_vendor[str(r["vendor_name"])] += value
        if str(r.get("date") or "")[:10] >= month_start:
            this_month += 1

    top_vendor = "N/A"
    if by_vendor:
        # highest total; alphabetical on ties so the answer is stable
        top_vendor = min(by_vendor.items(), key=lambda kv: (-kv[1], kv[0]))[0]

    n = len(records)
    return ReceivingStats(
        total=n,
        pending=by_status["pending"],
        partial=by_status["partial"],
        paid=by_status["paid"],
        total_value=total_value,
        total_paid=total_paid,
        total_outstanding=outstanding,
        average_value=(total_value / n) if n else 0.0,
        top_vendor=top_vendor,
        this_month=this_month,
    )


# ---- stock movements ----

@dataclass(frozen=True)
class MovementStats:
    total: int = 0
    stock_in: float = 0.0
    stock_out: float = 0.0
    adjustments: int = 0
    net_quantity: float = 0.0


def movement_stats(records: Sequence[Mapping]) -> MovementStats:
    stock_in = stock_out = net = 0.0
    adjustments = 0
    for m in records:
        qty = _f(m.get("quantity"))
        kind = m.get("movement_type")
        if kind == "in":
            stock_in += qty
            net += qty
        elif kind == "out":
            stock_out += qty
            net -= qty
        else:
            adjustments += 1
            net += qty
    return MovementStats(len(records), stock_in, stock_out, adjustments, net)
