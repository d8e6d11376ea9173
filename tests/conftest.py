from __future__ import annotations

from pathlib import Path

import pytest

from core.models import BookmarkRecord
from infrastructure.csv_repository import CsvBookmarkRepository


@pytest.fixture
def csv_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "bookmarks.csv"


@pytest.fixture
def repo(csv_path: Path) -> CsvBookmarkRepository:
    return CsvBookmarkRepository(csv_path)


@pytest.fixture
def make_record():
    def _make(url: str = "https://example.com", **fields) -> BookmarkRecord:
        defaults = {
            "title": "Example",
            "description": "An example page",
            "tags": "example, test",
            "date": "2024-05-01T10:00:00.000Z",
            "favorite": False,
            "screenshot": "",
        }
        defaults.update(fields)
        return BookmarkRecord(url=url, **defaults)

    return _make


def write_csv(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path
