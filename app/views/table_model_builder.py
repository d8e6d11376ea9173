from __future__ import annotations

from collections.abc import Iterable

from PySide6.QtCore import QSortFilterProxyModel, Qt
from PySide6.QtGui import QStandardItem, QStandardItemModel

from app.views.constants import (
    COL_DATE,
    COL_FAVORITE,
    COL_TITLE,
    FAVORITE_MARK,
    HEADERS,
    NOT_FAVORITE_MARK,
    SORT_ROLE,
    URL_ROLE,
)
from core.models import UNTITLED, BookmarkRecord, parse_iso


def format_date(value: str) -> str:
    """Local `YYYY-MM-DD HH:MM` for an ISO timestamp, or the raw text."""
    dt = parse_iso(value)
    if dt is None:
        return value or ""
    return dt.astimezone().strftime("%Y-%m-%d %H:%M")


def build_model(
    records: Iterable[BookmarkRecord],
) -> tuple[QStandardItemModel, QSortFilterProxyModel | None]:
    """Builds the flat bookmark model and a proxy for sorting with roles.

    Returns (model, proxy). Proxy can be None on failure.
    """
    model = QStandardItemModel()
    model.setHorizontalHeaderLabels(HEADERS)

    for rec in records:
        title = rec.title or UNTITLED
        row = [
            QStandardItem(FAVORITE_MARK if rec.favorite else NOT_FAVORITE_MARK),
            QStandardItem(title),
            QStandardItem(rec.url),
            QStandardItem(rec.tags),
            QStandardItem(format_date(rec.date)),
        ]
        row[COL_FAVORITE].setData(1 if rec.favorite else 0, SORT_ROLE)
        row[COL_FAVORITE].setTextAlignment(Qt.AlignCenter)
        row[COL_TITLE].setData(title.lower(), SORT_ROLE)
        row[COL_TITLE].setToolTip(rec.description or title)
        dt = parse_iso(rec.date)
        # undated rows sort as oldest
        row[COL_DATE].setData(dt.timestamp() if dt else float("-inf"), SORT_ROLE)
        for col, it in enumerate(row):
            it.setEditable(False)
            it.setData(rec.url, URL_ROLE)
            if col not in (COL_FAVORITE, COL_TITLE, COL_DATE):
                it.setData(it.text().lower(), SORT_ROLE)
        model.appendRow(row)

    try:
        proxy = QSortFilterProxyModel()
        proxy.setSortRole(SORT_ROLE)
        proxy.setSortCaseSensitivity(Qt.CaseInsensitive)
        proxy.setSourceModel(model)
    except Exception:
        proxy = None

    return model, proxy
