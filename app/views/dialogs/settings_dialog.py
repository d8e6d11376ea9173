from __future__ import annotations

from typing import Any

from PySide6.QtWidgets import (
    QCheckBox,
    QDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
)


class SettingsDialog(QDialog):
    """Edit capture and LLM options.

    `values()` returns the edited options in the settings snapshot shape
    plus `darkMode`.
    """

    def __init__(self, snapshot: dict[str, Any], dark_mode: bool = False, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setMinimumWidth(460)

        root = QVBoxLayout(self)
        form = QFormLayout()

        self.headless_box = QCheckBox("Run the browser without a window")
        self.headless_box.setChecked(bool(snapshot.get("headless", True)))
        form.addRow("Headless capture", self.headless_box)

        self.url_edit = QLineEdit(str(snapshot.get("llmApiUrl", "") or ""))
        self.url_edit.setPlaceholderText("http://localhost:11434/api/chat")
        form.addRow("LLM API URL", self.url_edit)

        self.model_edit = QLineEdit(str(snapshot.get("llmModel", "") or ""))
        self.model_edit.setPlaceholderText("llama3.1:latest")
        form.addRow("LLM model", self.model_edit)

        key_row = QHBoxLayout()
        self.key_edit = QLineEdit(str(snapshot.get("llmApiKey", "") or ""))
        self.key_edit.setEchoMode(QLineEdit.Password)
        self.key_edit.setPlaceholderText("Only needed for cloud providers")
        self.btn_show_key = QPushButton("Show")
        self.btn_show_key.setCheckable(True)
        key_row.addWidget(self.key_edit)
        key_row.addWidget(self.btn_show_key)
        form.addRow("API key", key_row)

        self.dark_box = QCheckBox("Use dark theme")
        self.dark_box.setChecked(bool(dark_mode))
        form.addRow("Appearance", self.dark_box)

        root.addLayout(form)

        hint = QLabel("Leave the API key empty to use the LLM_API_KEY environment variable.")
        hint.setWordWrap(True)
        root.addWidget(hint)

        btns = QHBoxLayout()
        self.btn_save = QPushButton("Save")
        self.btn_cancel = QPushButton("Cancel")
        btns.addStretch(1)
        btns.addWidget(self.btn_save)
        btns.addWidget(self.btn_cancel)
        root.addLayout(btns)

        self.btn_save.setDefault(True)
        self.btn_save.clicked.connect(self.accept)
        self.btn_cancel.clicked.connect(self.reject)
        self.btn_show_key.toggled.connect(self._on_toggle_key)

    def _on_toggle_key(self, checked: bool) -> None:
        self.key_edit.setEchoMode(QLineEdit.Normal if checked else QLineEdit.Password)
        self.btn_show_key.setText("Hide" if checked else "Show")

    def values(self) -> dict[str, Any]:
        return {
            "headless": self.headless_box.isChecked(),
            "llmApiUrl": self.url_edit.text().strip(),
            "llmModel": self.model_edit.text().strip(),
            "llmApiKey": self.key_edit.text().strip(),
            "darkMode": self.dark_box.isChecked(),
        }
