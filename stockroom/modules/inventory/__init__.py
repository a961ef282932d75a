"""
Stock movement history.

- MovementsController: filterable movement list with CSV export.
- MovementsView: its widget.
"""

from .controller import MovementsController
from .model import MOVEMENT_COLUMNS, MOVEMENT_SCHEMA
from .view import MovementsView

__all__ = ["MovementsController", "MovementsView", "MOVEMENT_SCHEMA", "MOVEMENT_COLUMNS"]
