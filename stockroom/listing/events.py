# stockroom/listing/events.py
"""
Typed change notifications between screens.

One DataEvents instance is created by the main window and handed to each
controller. Publishers emit a RecordChange after a write succeeds; list
sessions subscribe with ListSession.follow() so the connection lives only as
long as the screen.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from PySide6.QtCore import QObject, Signal

from .store import MutationKind


@dataclass(frozen=True)
class RecordChange:
    kind: MutationKind
    record: Mapping[str, Any] = field(default_factory=dict)
    source: str = ""


class DataEvents(QObject):
    productsChanged = Signal(object)    # RecordChange with a product row
    receivingsChanged = Signal(object)  # RecordChange with a stock receiving row
    movementsChanged = Signal(object)   # RecordChange with a stock movement row
