"""LayoutManager: Manages main window layout and splitter behavior."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QLineEdit,
    QMainWindow,
    QPushButton,
    QSplitter,
    QVBoxLayout,
    QWidget,
)


class LayoutManager:
    """Manages main window layout and splitter behavior.

    The window is a URL/search bar on top of a three-way splitter:
    sidebar, bookmark list and preview.
    """

    SIDEBAR_STRETCH_FACTOR = 2
    TABLE_STRETCH_FACTOR = 6
    PREVIEW_STRETCH_FACTOR = 4
    SIDEBAR_WIDTH = 200
    MIN_SECTION_WIDTH = 200
    WINDOW_SIZE_RATIO = 0.7

    def __init__(self, main_window: QMainWindow) -> None:
        """Initialize with main window reference.

        Args:
            main_window: The QMainWindow to manage layout for
        """
        self.window = main_window
        self.splitter: QSplitter | None = None

    def create_top_bar(self) -> tuple[QWidget, QLineEdit, QPushButton, QLineEdit]:
        """Create the URL entry, Add button and search box row.

        Returns:
            (bar widget, url edit, add button, search edit)
        """
        bar = QWidget()
        row = QHBoxLayout(bar)
        row.setContentsMargins(0, 0, 0, 0)

        url_edit = QLineEdit()
        url_edit.setPlaceholderText("Enter a URL to bookmark…")
        add_button = QPushButton("Add")
        search_edit = QLineEdit()
        search_edit.setPlaceholderText("Search bookmarks…")
        search_edit.setClearButtonEnabled(True)

        row.addWidget(url_edit, 3)
        row.addWidget(add_button)
        row.addSpacing(12)
        row.addWidget(search_edit, 2)
        return bar, url_edit, add_button, search_edit

    def setup_main_layout(
        self, top_bar: QWidget, sidebar: QWidget, table_widget: QWidget, preview_widget: QWidget
    ) -> QWidget:
        """Create the central widget: top bar over the horizontal splitter.

        Returns:
            Central widget configured with the layout
        """
        central = QWidget(self.window)
        root = QVBoxLayout(central)
        root.addWidget(top_bar)

        self.splitter = QSplitter(Qt.Horizontal)
        self.splitter.addWidget(sidebar)
        self.splitter.addWidget(table_widget)
        self.splitter.addWidget(preview_widget)
        self.splitter.setStretchFactor(0, self.SIDEBAR_STRETCH_FACTOR)
        self.splitter.setStretchFactor(1, self.TABLE_STRETCH_FACTOR)
        self.splitter.setStretchFactor(2, self.PREVIEW_STRETCH_FACTOR)
        root.addWidget(self.splitter, 1)

        return central

    def connect_splitter_signals(self, preview_refit_callback: Callable) -> None:
        """Refit the preview whenever the splitter moves."""
        if self.splitter:
            self.splitter.splitterMoved.connect(lambda *_: preview_refit_callback())

    def apply_initial_sizes(self) -> None:
        """Give the sidebar a fixed share and split the rest between list and preview."""
        if not self.splitter:
            return
        total = max(1, self.window.width())
        rest = max(2 * self.MIN_SECTION_WIDTH, total - self.SIDEBAR_WIDTH)
        table_w = int(rest * 0.6)
        self.splitter.setSizes([self.SIDEBAR_WIDTH, table_w, rest - table_w])

    def setup_initial_window_size(self) -> None:
        """Setup initial window size based on screen dimensions."""
        screen = QApplication.primaryScreen()
        if screen is not None:
            rect = screen.availableGeometry()
            width = int(rect.width() * self.WINDOW_SIZE_RATIO)
            height = int(rect.height() * self.WINDOW_SIZE_RATIO)
            self.window.resize(width, height)

    def create_section(self) -> tuple[QWidget, QVBoxLayout]:
        """Create an empty section widget with a vertical layout."""
        widget = QWidget()
        layout = QVBoxLayout(widget)
        layout.setContentsMargins(0, 0, 0, 0)
        return widget, layout
