# stockroom/database/repositories/__init__.py
"""
Repository layer public API.

Usage:
    from stockroom.database.repositories import (
        ProductsRepo, Product,
        VendorsRepo, Vendor,
        ReceivingsRepo, ReceivingHeader, ReceivingItem,
        PaymentsRepo,
        InventoryRepo,
    )

Every write raises stockroom.errors.DomainError when it breaks a business rule.
"""

# ---------------- Inventory ----------------
from .inventory_repo import InventoryRepo

# ---------------- Products -----------------
from .products_repo import ProductsRepo, Product

# --------------- Receivings ----------------
from .payments_repo import PaymentsRepo
from .receivings_repo import ReceivingsRepo, ReceivingHeader, ReceivingItem

# ----------------- Vendors -----------------
from .vendors_repo import VendorsRepo, Vendor

__all__ = [
    "InventoryRepo",
    "ProductsRepo",
    "Product",
    "PaymentsRepo",
    "ReceivingsRepo",
    "ReceivingHeader",
    "ReceivingItem",
    "VendorsRepo",
    "Vendor",
]
