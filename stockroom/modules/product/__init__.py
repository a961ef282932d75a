"""
Product module package exports.

- ProductController: product list with filters, CRUD and stock adjustments.
- ProductView, ProductForm, StockAdjustDialog: the widgets it drives.
- PRODUCT_SCHEMA, PRODUCT_COLUMNS: what the product list can filter, sort and show.
"""

from .controller import ProductController
from .form import ProductForm, StockAdjustDialog
from .model import PRODUCT_COLUMNS, PRODUCT_SCHEMA
from .view import ProductView

__all__ = [
    "ProductController",
    "ProductView",
    "ProductForm",
    "StockAdjustDialog",
    "PRODUCT_SCHEMA",
    "PRODUCT_COLUMNS",
]
