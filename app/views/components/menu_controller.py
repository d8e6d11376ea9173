"""MenuController: Manages menu creation and action connections."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QMainWindow, QMenuBar

# Actions that need a selected bookmark
BOOKMARK_ACTIONS = ("open_in_browser", "toggle_favorite", "refresh_screenshot", "delete")


class MenuController:
    """Manages main window menu creation and action connections.

    This class encapsulates all menu-related functionality including:
    - Menu structure creation
    - Action creation and organization
    - Action-to-handler connection management
    """

    def __init__(self, main_window: QMainWindow) -> None:
        """Initialize with main window reference.

        Args:
            main_window: The QMainWindow to create menus for
        """
        self.window = main_window
        self.actions: dict[str, QAction] = {}

    def setup_menus(self) -> dict[str, QAction]:
        """Create all menus and return action references.

        Returns:
            Dictionary mapping action names to QAction instances
        """
        menubar = QMenuBar(self.window)

        # File Menu
        file_menu = menubar.addMenu("File")
        self.actions["import"] = file_menu.addAction("Import CSV…")
        self.actions["export"] = file_menu.addAction("Export CSV…")
        file_menu.addSeparator()
        self.actions["settings"] = file_menu.addAction("Settings…")
        file_menu.addSeparator()
        self.actions["exit"] = file_menu.addAction("Exit")
        self.actions["exit"].setShortcut(QKeySequence.Quit)

        # Bookmark Menu
        bookmark_menu = menubar.addMenu("Bookmark")
        self.actions["open_in_browser"] = bookmark_menu.addAction("Open in Browser")
        self.actions["toggle_favorite"] = bookmark_menu.addAction("Toggle Favorite")
        self.actions["refresh_screenshot"] = bookmark_menu.addAction("Refresh Screenshot")
        bookmark_menu.addSeparator()
        self.actions["delete"] = bookmark_menu.addAction("Delete…")
        self.actions["delete"].setShortcut(QKeySequence.Delete)

        # Tools Menu
        tools_menu = menubar.addMenu("Tools")
        self.actions["check_llm"] = tools_menu.addAction("Check LLM Service")

        # Log Menu
        log_menu = menubar.addMenu("Log")
        self.actions["open_latest_log"] = log_menu.addAction("Open Latest Log")
        log_menu.addSeparator()
        self.actions["open_log_directory"] = log_menu.addAction("Open Log Directory")

        self.window.setMenuBar(menubar)
        self.set_bookmark_actions_enabled(False)
        return self.actions

    def connect_actions(self, handlers: dict[str, Callable]) -> None:
        """Connect menu actions to their handler methods.

        Args:
            handlers: Dictionary mapping action names to handler callables
        """
        for name, action in self.actions.items():
            handler = handlers.get(name)
            if handler is not None:
                action.triggered.connect(handler)
            elif name == "exit":
                action.triggered.connect(self.window.close)

    def get_action(self, name: str) -> QAction | None:
        """Get a specific action by name."""
        return self.actions.get(name)

    def enable_action(self, name: str, enabled: bool = True) -> None:
        """Enable or disable a specific action.

        Args:
            name: Action name
            enabled: Whether to enable the action
        """
        action = self.actions.get(name)
        if action:
            action.setEnabled(enabled)

    def set_bookmark_actions_enabled(self, enabled: bool) -> None:
        """Enable the Bookmark menu actions only while a row is selected."""
        for name in BOOKMARK_ACTIONS:
            self.enable_action(name, enabled)
