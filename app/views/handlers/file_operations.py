"""FileOperationsHandler: Handles CSV import/export, deletion and opening bookmarks."""

from __future__ import annotations

from typing import Any, Protocol

from PySide6.QtCore import QObject, QUrl
from PySide6.QtGui import QDesktopServices
from PySide6.QtWidgets import QDialog, QFileDialog, QMessageBox
from loguru import logger

from app.views.dialogs.delete_confirm_dialog import DeleteConfirmDialog


class StatusReporter(Protocol):
    """Protocol for status reporting callback."""

    def show_status(self, message: str, timeout: int = 3000) -> None:
        """Show status message."""
        ...


class FileOperationsHandler:
    """Handles bookmark file workflows.

    This class encapsulates:
    - CSV import and export through file dialogs
    - Bookmark deletion with optional confirmation
    - Opening a bookmark in the system browser
    """

    def __init__(
        self,
        vm: Any,
        settings: Any,
        parent_widget: QObject,
        status_reporter: StatusReporter,
    ) -> None:
        """Initialize with required services and callbacks.

        Args:
            vm: ViewModel instance for bookmark operations
            settings: Settings instance for configuration
            parent_widget: Parent widget for dialogs
            status_reporter: Callback for status messages
        """
        self.vm = vm
        self.settings = settings
        self.parent = parent_widget
        self.status_reporter = status_reporter

    def import_csv(self) -> None:
        """Handle CSV import with file dialog and error reporting."""
        path, _ = QFileDialog.getOpenFileName(self.parent, "Import CSV", "", "CSV Files (*.csv)")
        if not path:
            return

        result = self.vm.import_csv(path)
        if result.success:
            logger.info("Imported CSV: {} | rows={} total={}", path, result.data, self.vm.bookmark_count)
            self.status_reporter.show_status(result.message)
        else:
            QMessageBox.critical(self.parent, "Import Error", result.message)
            self.status_reporter.show_status("Import failed")

    def export_csv(self) -> None:
        """Handle CSV export with validation and error reporting."""
        if not self.vm.bookmark_count:
            QMessageBox.information(self.parent, "Export", "No bookmarks to export.")
            return

        path, _ = QFileDialog.getSaveFileName(
            self.parent, "Export CSV", "bookmarks_export.csv", "CSV Files (*.csv)"
        )
        if not path:
            return

        result = self.vm.export_csv(path)
        if result.success:
            QMessageBox.information(self.parent, "Export", result.message)
            self.status_reporter.show_status("Export completed")
        else:
            QMessageBox.critical(self.parent, "Export Error", result.message)
            self.status_reporter.show_status("Export failed")

    def delete_bookmark(self, url: str | None) -> None:
        """Delete the bookmark for `url`, asking first when configured.

        Args:
            url: URL of the bookmark to delete
        """
        if not url:
            QMessageBox.information(self.parent, "Delete", "No bookmark selected.")
            return
        record = self.vm.find(url)
        if record is None:
            QMessageBox.information(self.parent, "Delete", "Bookmark no longer exists.")
            return

        if self.settings is not None and bool(self.settings.get("delete.confirm", True)):
            dlg = DeleteConfirmDialog(record, self.parent)
            if dlg.exec() != QDialog.Accepted:
                return
            if dlg.dont_ask_again:
                try:
                    self.settings.set("delete.confirm", False)
                except OSError as ex:
                    logger.error("Could not persist delete confirmation preference: {}", ex)

        result = self.vm.delete_bookmark(url)
        if result.success:
            self.status_reporter.show_status(result.message)
            delete_result = result.data
            if delete_result is not None and delete_result.screenshot_error:
                QMessageBox.warning(self.parent, "Delete", result.message)
        else:
            QMessageBox.critical(self.parent, "Delete Error", result.message)

    def open_in_browser(self, url: str | None) -> None:
        """Open `url` in the default browser."""
        if not url:
            return
        if not QDesktopServices.openUrl(QUrl(url)):
            logger.warning("Could not open URL in browser: {}", url)
            self.status_reporter.show_status(f"Could not open {url}")
