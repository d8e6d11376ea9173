from __future__ import annotations

from PySide6.QtWidgets import (
    QCheckBox,
    QDialog,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
)

from core.models import UNTITLED, BookmarkRecord


class DeleteConfirmDialog(QDialog):
    """Ask before deleting a bookmark and its screenshot."""

    def __init__(self, record: BookmarkRecord, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Confirm Delete")

        root = QVBoxLayout(self)

        title = QLabel("Delete this bookmark?")
        title.setStyleSheet("font-weight: bold;")
        root.addWidget(title)

        name = QLabel(record.title or UNTITLED)
        name.setWordWrap(True)
        root.addWidget(name)
        url = QLabel(record.url)
        url.setWordWrap(True)
        root.addWidget(url)

        if record.screenshot:
            note = QLabel("Its screenshot will be moved to the recycle bin.")
            root.addWidget(note)

        self.dont_ask_box = QCheckBox("Don't ask again")
        root.addWidget(self.dont_ask_box)

        btns = QHBoxLayout()
        self.btn_ok = QPushButton("Delete")
        self.btn_cancel = QPushButton("Cancel")
        btns.addWidget(self.btn_ok)
        btns.addStretch(1)
        btns.addWidget(self.btn_cancel)
        root.addLayout(btns)

        self.btn_cancel.setDefault(True)
        self.btn_ok.clicked.connect(self.accept)
        self.btn_cancel.clicked.connect(self.reject)

    @property
    def dont_ask_again(self) -> bool:
        return self.dont_ask_box.isChecked()
