"""
UI/view constants centralized for reuse across view modules.

Column order here is the order shown in the bookmarks table.
"""

from __future__ import annotations

from PySide6.QtCore import Qt

HEADERS: list[str] = [
    "Favorite",
    "Title",
    "URL",
    "Tags",
    "Date",
]

COL_FAVORITE: int = 0
COL_TITLE: int = 1
COL_URL: int = 2
COL_TAGS: int = 3
COL_DATE: int = 4
NUM_COLUMNS: int = 5


# Data roles
URL_ROLE: int = Qt.UserRole  # record URL on every cell of a row
SORT_ROLE: int = Qt.UserRole + 1  # used by QSortFilterProxyModel

FAVORITE_MARK = "★"
NOT_FAVORITE_MARK = "☆"

# Sidebar view filter labels, in display order
VIEW_LABELS: list[tuple[str, str]] = [
    ("all", "All Bookmarks"),
    ("favorites", "Favorites"),
    ("today", "Today"),
    ("week", "This Week"),
]

# Preview defaults
PREVIEW_MIN_WIDTH: int = 320
NO_SCREENSHOT_TEXT = "No Screenshot"
DEFAULT_SEARCH_DEBOUNCE_MS: int = 250
STATUS_TIMEOUT_MS: int = 3000

DARK_STYLESHEET = """
QWidget { background-color: #1e1f22; color: #dcdcdc; }
QLineEdit, QTextEdit, QListWidget, QTreeView {
    background-color: #2b2d30; border: 1px solid #3c3f41; selection-background-color: #2f65ca;
}
QHeaderView::section { background-color: #2b2d30; color: #dcdcdc; border: 0; padding: 4px; }
QPushButton { background-color: #3c3f41; border: 1px solid #4e5254; padding: 4px 10px; }
QPushButton:disabled { color: #7a7a7a; }
QMenuBar, QMenu { background-color: #2b2d30; color: #dcdcdc; }
QMenu::item:selected { background-color: #2f65ca; }
"""
