"""ContextMenuHandler: Manages the bookmark row context menu."""

from __future__ import annotations

from typing import Any, Protocol

from PySide6.QtCore import QPoint, Qt
from PySide6.QtWidgets import QMenu, QTreeView


class ActionHandlers(Protocol):
    """Protocol for action handler callbacks."""

    def open_in_browser(self, url: str) -> None:
        """Open the bookmark in the system browser."""
        ...

    def toggle_favorite(self, url: str) -> None:
        """Flip the favorite flag."""
        ...

    def refresh_screenshot(self, url: str) -> None:
        """Capture a fresh screenshot."""
        ...

    def delete_bookmark(self, url: str) -> None:
        """Delete the bookmark and its screenshot."""
        ...


class RowUrlProvider(Protocol):
    """Protocol for mapping a view index to a bookmark URL."""

    def url_at(self, index) -> str | None:
        """URL stored on the row of `index`."""
        ...


class ContextMenuHandler:
    """Manages context menu creation and action routing for bookmark rows."""

    def __init__(
        self,
        view: QTreeView,
        url_provider: RowUrlProvider,
        action_handlers: ActionHandlers,
        parent_widget: Any,
    ) -> None:
        """Initialize with the list view and action handlers.

        Args:
            view: The view to manage context menus for
            url_provider: Provider mapping indexes to URLs
            action_handlers: Handler for context menu actions
            parent_widget: Parent widget for menu creation
        """
        self.view = view
        self.url_provider = url_provider
        self.handlers = action_handlers
        self.parent = parent_widget

    def setup_context_menu(self) -> None:
        """Setup context menu policy and connect signals."""
        self.view.setContextMenuPolicy(Qt.CustomContextMenu)
        self.view.customContextMenuRequested.connect(self._on_context_menu)

    def _on_context_menu(self, point: QPoint) -> None:
        index = self.view.indexAt(point)
        url = self.url_provider.url_at(index)
        if not url:
            return  # Only show menu for valid rows

        menu = self.build_menu(url)
        menu.exec(self.view.viewport().mapToGlobal(point))

    def build_menu(self, url: str) -> QMenu:
        """Create the Bookmark actions menu for `url`."""
        menu = QMenu(self.parent)

        open_action = menu.addAction("Open in Browser")
        open_action.triggered.connect(lambda: self.handlers.open_in_browser(url))

        favorite_action = menu.addAction("Toggle Favorite")
        favorite_action.triggered.connect(lambda: self.handlers.toggle_favorite(url))

        screenshot_action = menu.addAction("Refresh Screenshot")
        screenshot_action.triggered.connect(lambda: self.handlers.refresh_screenshot(url))

        menu.addSeparator()
        delete_action = menu.addAction("Delete…")
        delete_action.triggered.connect(lambda: self.handlers.delete_bookmark(url))
        return menu
