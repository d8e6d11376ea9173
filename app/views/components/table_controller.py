"""TableController: Manages the bookmark list view and its model."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QItemSelectionModel, Qt
from PySide6.QtWidgets import QAbstractItemView, QHeaderView, QTreeView
from loguru import logger

from app.views.constants import COL_DATE, COL_TITLE, COL_URL, NUM_COLUMNS, URL_ROLE
from app.views.table_model_builder import build_model
from core.models import BookmarkRecord


class TableController:
    """Manages the flat bookmark list, model rebuilds and row lookup.

    This class encapsulates all list-related functionality including:
    - Model building with sort state preserved across refreshes
    - Mapping selected rows back to bookmark URLs
    - Header configuration
    """

    def __init__(self, view: QTreeView) -> None:
        """Initialize with a QTreeView used as a flat table.

        Args:
            view: The QTreeView widget to manage
        """
        self.view = view
        self._model = None
        self._proxy = None
        self._current_sort_column: int = COL_DATE
        self._current_sort_order: Qt.SortOrder = Qt.DescendingOrder

    def setup_view_properties(self) -> None:
        """Configure view properties and behavior."""
        self.view.setRootIsDecorated(False)
        self.view.setUniformRowHeights(True)
        self.view.setSortingEnabled(True)
        self.view.setAlternatingRowColors(True)
        self.view.setSelectionMode(QAbstractItemView.SingleSelection)
        self.view.setSelectionBehavior(QAbstractItemView.SelectRows)

    def setup_header_behavior(self, header_click_handler: Callable[[int], None]) -> None:
        """Setup header interactions and connect click handler.

        Args:
            header_click_handler: Callback for header clicks with signature (int) -> None
        """
        header = self.view.header()
        header.setSectionsMovable(True)
        header.setStretchLastSection(False)
        header.setSectionsClickable(True)
        header.setSectionResizeMode(QHeaderView.Interactive)
        header.sectionClicked.connect(header_click_handler)

    def refresh_model(self, records: list[BookmarkRecord]) -> None:
        """Build and set the model, preserving sort order and selection.

        Args:
            records: Records to display, already filtered
        """
        previous = self.selected_url()
        model, proxy = build_model(records)
        if proxy is not None:
            proxy.setParent(self.view)
            self.view.setModel(proxy)
            self._proxy = proxy
            self._model = model
            self.view.sortByColumn(self._current_sort_column, self._current_sort_order)
        else:
            self.view.setModel(model)
            self._proxy = None
            self._model = model

        header = self.view.header()
        for i in range(NUM_COLUMNS):
            if i in (COL_TITLE, COL_URL):
                continue
            self.view.resizeColumnToContents(i)
        header.resizeSection(COL_TITLE, max(220, self.view.columnWidth(COL_TITLE)))
        header.resizeSection(COL_URL, max(240, self.view.columnWidth(COL_URL)))

        if previous:
            self.select_url(previous)

    def reconnect_selection_handler(self, selection_handler: Callable) -> None:
        """Reconnect selection change handler after model reset.

        Args:
            selection_handler: Callback for selection changes
        """
        self.view.selectionModel().selectionChanged.connect(selection_handler)

    def url_at(self, index) -> str | None:
        """Bookmark URL stored on the row of `index`."""
        if index is None or not index.isValid():
            return None
        try:
            value = self.view.model().data(index, URL_ROLE)
        except Exception as e:
            logger.error("Error getting URL from index: {}", e)
            return None
        return str(value) if value else None

    def selected_url(self) -> str | None:
        """URL of the currently selected row, if any."""
        selection_model = self.view.selectionModel()
        if selection_model is None:
            return None
        rows = selection_model.selectedRows()
        return self.url_at(rows[0]) if rows else None

    def select_url(self, url: str) -> bool:
        """Select the row for `url`; return False if it is not visible."""
        model = self.view.model()
        if model is None:
            return False
        for row in range(model.rowCount()):
            index = model.index(row, 0)
            if model.data(index, URL_ROLE) == url:
                self.view.selectionModel().select(
                    index, QItemSelectionModel.ClearAndSelect | QItemSelectionModel.Rows
                )
                self.view.scrollTo(index)
                return True
        return False

    def update_sort_state(self, logical_index: int, sort_order: Qt.SortOrder) -> None:
        """Update current sort state for preservation across refreshes."""
        self._current_sort_column = logical_index
        self._current_sort_order = sort_order
        logger.debug("Sort state updated - Column: {}, Order: {}", logical_index, sort_order)

    def row_count(self) -> int:
        model = self.view.model()
        return model.rowCount() if model is not None else 0

    @property
    def model(self):
        """Get the current source model."""
        return self._model

    @property
    def proxy(self):
        """Get the current proxy model."""
        return self._proxy
