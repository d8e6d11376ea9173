"""DialogHandler: Coordinates the settings dialog and applies its result."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from PySide6.QtCore import QObject
from PySide6.QtWidgets import QApplication, QDialog, QMessageBox
from loguru import logger

from app.views.constants import DARK_STYLESHEET
from app.views.dialogs.settings_dialog import SettingsDialog

# snapshot key -> settings key
SNAPSHOT_KEYS: dict[str, str] = {
    "headless": "capture.headless",
    "llmApiUrl": "llm.api_url",
    "llmModel": "llm.model",
    "llmApiKey": "llm.api_key",
}


def apply_theme(dark_mode: bool) -> None:
    """Apply or clear the dark stylesheet on the running application."""
    app = QApplication.instance()
    if app is not None:
        app.setStyleSheet(DARK_STYLESHEET if dark_mode else "")


class DialogHandler:
    """Coordinates dialog operations and user interactions.

    This class encapsulates:
    - Showing the settings dialog pre-filled from the current settings
    - Persisting changed values
    - Asking the owner to rebuild the capture and LLM services
    """

    def __init__(
        self,
        parent_widget: QObject,
        settings: Any,
        services_changed: Callable[[], None],
    ) -> None:
        """Initialize with parent widget and settings.

        Args:
            parent_widget: Parent widget for dialogs
            settings: `JsonSettings` instance
            services_changed: Called after capture/LLM options were saved
        """
        self.parent = parent_widget
        self.settings = settings
        self.services_changed = services_changed

    def show_settings_dialog(self) -> bool:
        """Show the settings dialog; return True if anything was saved."""
        if self.settings is None:
            QMessageBox.information(self.parent, "Settings", "Settings are not available.")
            return False

        dark_mode = bool(self.settings.get("ui.dark_mode", False))
        snapshot = self.settings.settings_snapshot()
        dlg = SettingsDialog(snapshot, dark_mode=dark_mode, parent=self.parent)
        if dlg.exec() != QDialog.Accepted:
            return False

        values = dlg.values()
        changed = [k for k in SNAPSHOT_KEYS if values.get(k) != snapshot.get(k)]
        try:
            for key in changed:
                self.settings.set(SNAPSHOT_KEYS[key], values[key])
            if values["darkMode"] != dark_mode:
                self.settings.set("ui.dark_mode", values["darkMode"])
        except OSError as ex:
            logger.error("Saving settings failed: {}", ex)
            QMessageBox.critical(self.parent, "Settings", f"Failed to save settings:\n{ex}")
            return False

        if values["darkMode"] != dark_mode:
            apply_theme(values["darkMode"])
        if changed:
            logger.info("Settings changed: {}", ", ".join(changed))
            self.services_changed()
        return bool(changed) or values["darkMode"] != dark_mode
