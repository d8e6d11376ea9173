"""Sidebar: view filters and the checkable tag list."""

from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QLabel,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from app.views.constants import VIEW_LABELS


class Sidebar(QWidget):
    """Left-hand navigation with view filters and tag filters."""

    viewChanged = Signal(str)  # ViewFilter value
    tagToggled = Signal(str)
    tagsCleared = Signal()

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)

        root.addWidget(QLabel("Views"))
        self.view_list = QListWidget()
        for value, label in VIEW_LABELS:
            item = QListWidgetItem(label)
            item.setData(Qt.UserRole, value)
            self.view_list.addItem(item)
        self.view_list.setCurrentRow(0)
        self.view_list.setMaximumHeight(self.view_list.sizeHintForRow(0) * len(VIEW_LABELS) + 8)
        root.addWidget(self.view_list)

        root.addWidget(QLabel("Tags"))
        self.tag_list = QListWidget()
        root.addWidget(self.tag_list, 1)

        self.clear_tags_button = QPushButton("Clear Tag Filter")
        root.addWidget(self.clear_tags_button)

        # repopulating the tag list must not echo toggles back
        self._updating = False

        self.view_list.currentItemChanged.connect(self._on_view_changed)
        self.tag_list.itemChanged.connect(self._on_tag_item_changed)
        self.clear_tags_button.clicked.connect(self.tagsCleared.emit)

    def set_tags(self, tags: list[str], active: set[str]) -> None:
        """Replace the tag list, checking the tags in `active`."""
        active_lower = {t.lower() for t in active}
        self._updating = True
        try:
            self.tag_list.clear()
            for tag in tags:
                item = QListWidgetItem(tag)
                item.setFlags(item.flags() | Qt.ItemIsUserCheckable)
                item.setCheckState(Qt.Checked if tag.lower() in active_lower else Qt.Unchecked)
                self.tag_list.addItem(item)
        finally:
            self._updating = False
        self.clear_tags_button.setEnabled(bool(active))

    def _on_view_changed(self, current: QListWidgetItem | None, _previous=None) -> None:
        if current is not None:
            self.viewChanged.emit(str(current.data(Qt.UserRole)))

    def _on_tag_item_changed(self, item: QListWidgetItem) -> None:
        if not self._updating:
            self.tagToggled.emit(item.text())
