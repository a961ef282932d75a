from PySide6.QtWidgets import QCheckBox, QComboBox, QPushButton

from ...constants import UNIT_TYPES
from ...widgets.list_panel import ListPanel


class ProductView(ListPanel):
    SEARCH_PLACEHOLDER = "Search products (name, category, size, grade, description)..."

    def __init__(self, parent=None, page_size: int = 20):
        super().__init__(parent, page_size=page_size)

        # Top row: actions
        self.btn_add = QPushButton("Add Product", objectName="btn_add")
        self.btn_edit = QPushButton("Edit", objectName="btn_edit")
        self.btn_delete = QPushButton("Delete", objectName="btn_delete")
        self.btn_adjust = QPushButton("Adjust Stock", objectName="btn_adjust")
        for b in (self.btn_add, self.btn_edit, self.btn_delete, self.btn_adjust):
            self.actions.addWidget(b)
        self.actions.addStretch(1)

        # Filters
        self.cmb_category = QComboBox(objectName="cmb_category")
        self.cmb_category.setMinimumWidth(160)
        self.cmb_category.addItem("All categories", userData=None)
        self.add_filter("Category:", self.cmb_category)

        self.cmb_unit = QComboBox(objectName="cmb_unit")
        self.cmb_unit.addItem("All units", userData=None)
        for u in UNIT_TYPES:
            self.cmb_unit.addItem(u, userData=u)
        self.add_filter("Unit:", self.cmb_unit)

        self.chk_low = QCheckBox("Low stock", objectName="chk_low")
        self.chk_out = QCheckBox("Out of stock", objectName="chk_out")
        self.add_filter(None, self.chk_low)
        self.add_filter(None, self.chk_out)
        self.finish_filters()

    def set_categories(self, counts: list[dict]) -> None:
        """Refill the category combo, keeping the current choice when it still exists."""
        current = self.cmb_category.currentData()
        self.cmb_category.blockSignals(True)
        try:
            self.cmb_category.clear()
            self.cmb_category.addItem("All categories", userData=None)
            for c in counts:
                self.cmb_category.addItem(f"{c['name']} ({c['count']})", userData=c["name"])
            i = self.cmb_category.findData(current) if current is not None else 0
            self.cmb_category.setCurrentIndex(max(i, 0))
        finally:
            self.cmb_category.blockSignals(False)
