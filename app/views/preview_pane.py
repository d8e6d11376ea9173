from __future__ import annotations

import os

from PySide6.QtCore import QEvent, QObject, Qt, Signal
from PySide6.QtGui import QPixmap
from PySide6.QtWidgets import (
    QLabel,
    QPushButton,
    QScrollArea,
    QTextBrowser,
    QVBoxLayout,
    QWidget,
)
from loguru import logger

from app.views.constants import NO_SCREENSHOT_TEXT, PREVIEW_MIN_WIDTH
from app.views.table_model_builder import format_date
from core.models import UNTITLED, BookmarkRecord, has_screenshot, split_tags


class PreviewPane(QWidget):
    """Encapsulates the right-side preview of the selected bookmark."""

    screenshotRequested = Signal(str)  # url

    def __init__(self, parent: QWidget | None) -> None:
        super().__init__(parent)
        self.setMinimumWidth(PREVIEW_MIN_WIDTH)

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)

        self._title = QLabel("")
        self._title.setWordWrap(True)
        self._title.setStyleSheet("font-size: 15px; font-weight: bold;")
        root.addWidget(self._title)

        self._url = QLabel("")
        self._url.setWordWrap(True)
        self._url.setTextInteractionFlags(Qt.TextBrowserInteraction)
        self._url.setOpenExternalLinks(True)
        root.addWidget(self._url)

        self.preview_area = QScrollArea()
        self.preview_area.setWidgetResizable(True)
        self.preview_area.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.preview_area.setAlignment(Qt.AlignLeft | Qt.AlignTop)

        self._image_label = QLabel(NO_SCREENSHOT_TEXT)
        self._image_label.setAlignment(Qt.AlignCenter)
        self._image_label.setMinimumHeight(180)
        self.preview_area.setWidget(self._image_label)
        root.addWidget(self.preview_area, 3)

        self.take_screenshot_button = QPushButton("Take Screenshot")
        self.take_screenshot_button.clicked.connect(self._on_take_screenshot)
        root.addWidget(self.take_screenshot_button)

        self._tags = QLabel("")
        self._tags.setWordWrap(True)
        root.addWidget(self._tags)

        self._description = QTextBrowser()
        self._description.setOpenExternalLinks(True)
        root.addWidget(self._description, 2)

        # state
        self._record: BookmarkRecord | None = None
        self._pixmap: QPixmap | None = None
        self._busy = False

        self.preview_area.viewport().installEventFilter(self)
        self.clear()

    # Public API
    @property
    def current_url(self) -> str | None:
        return self._record.url if self._record else None

    def show_record(self, record: BookmarkRecord | None) -> None:
        """Display `record`, or the empty state when None."""
        if record is None:
            self.clear()
            return
        self._record = record
        self._title.setText(record.title or UNTITLED)
        self._url.setText(f'<a href="{record.url}">{record.url}</a>')
        tags = split_tags(record.tags)
        self._tags.setText("Tags: " + ", ".join(tags) if tags else "Tags: (none)")
        date_text = format_date(record.date)
        body = record.description or "(no description)"
        self._description.setPlainText(f"{body}\n\nAdded: {date_text}" if date_text else body)
        self._load_screenshot(record)

    def clear(self) -> None:
        self._record = None
        self._pixmap = None
        self._title.setText("Select a bookmark")
        self._url.setText("")
        self._tags.setText("")
        self._description.clear()
        self._image_label.setPixmap(QPixmap())
        self._image_label.setText(NO_SCREENSHOT_TEXT)
        self.take_screenshot_button.setVisible(False)

    def set_busy(self, busy: bool) -> None:
        """Reflect a running screenshot capture for the shown record."""
        self._busy = busy
        self.take_screenshot_button.setEnabled(not busy)
        self.take_screenshot_button.setText("Capturing…" if busy else "Take Screenshot")

    def refit(self) -> None:
        if self._pixmap is None or self._pixmap.isNull():
            return
        width = max(1, self.preview_area.viewport().width() - 4)
        scaled = self._pixmap.scaledToWidth(width, Qt.SmoothTransformation)
        self._image_label.setPixmap(scaled)

    # Internals
    def _load_screenshot(self, record: BookmarkRecord) -> None:
        self._pixmap = None
        self._image_label.setPixmap(QPixmap())
        if not has_screenshot(record):
            if record.screenshot:
                logger.warning("Screenshot missing on disk: {}", record.screenshot)
            self._image_label.setText(NO_SCREENSHOT_TEXT)
            self.take_screenshot_button.setVisible(True)
            return

        pm = QPixmap(os.path.normpath(record.screenshot))
        if pm.isNull():
            logger.warning("Could not load screenshot: {}", record.screenshot)
            self._image_label.setText(NO_SCREENSHOT_TEXT)
            self.take_screenshot_button.setVisible(True)
            return
        self._pixmap = pm
        self._image_label.setText("")
        # refresh stays available for stale captures
        self.take_screenshot_button.setVisible(True)
        self.refit()

    def _on_take_screenshot(self) -> None:
        if self._record is not None and not self._busy:
            self.screenshotRequested.emit(self._record.url)

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:  # type: ignore[override]
        if obj is self.preview_area.viewport() and event.type() == QEvent.Resize:
            self.refit()
        return super().eventFilter(obj, event)
