# utils/helpers.py
from datetime import date
import logging
from typing import Union, Optional

from ..constants import MONEY_EPS

NumberLike = Union[float, int, str]

_log = logging.getLogger(__name__)


def today_str() -> str:
    """Return today's date as ISO string (YYYY-MM-DD)."""
    return date.today().isoformat()


def fmt_money(v: Optional[NumberLike], places: int = 2) -> str:
    """Thousands separators and `places` decimals; blank for None, raw text if unparsable."""
    if v is None:
        return ""
    try:
        x = float(v)
    except (TypeError, ValueError):
        _log.debug("fmt_money: %r is not a number", v)
        return str(v)
    return f"{x:,.{places}f}"


def fmt_qty(v: NumberLike) -> str:
    try:
        return f"{float(v):g}"
    except (TypeError, ValueError):
        return "" if v is None else str(v)


def payment_status_for(total: float, paid: float) -> str:
    """
    'paid' once the paid amount covers the total (within MONEY_EPS),
    'partial' for any positive payment below that, 'pending' otherwise.
    """
    total = float(total or 0.0)
    paid = float(paid or 0.0)
    if paid >= total - MONEY_EPS:
        return "paid"
    if paid > MONEY_EPS:
        return "partial"
    return "pending"
