from __future__ import annotations

import re
from datetime import timezone

from core.errors import StoreError
from core.models import (
    BookmarkRecord,
    field_changes,
    format_favorite,
    has_screenshot,
    now_iso,
    parse_favorite,
    parse_iso,
    record_from_row,
    record_to_row,
    split_tags,
)
from infrastructure.utils import normalize_url, resolve_data_dir, screenshot_filename, url_hash


def test_parse_and_format_favorite():
    assert parse_favorite(True) is True
    assert parse_favorite("True") is True
    assert parse_favorite(" true ") is True
    assert parse_favorite("false") is False
    assert parse_favorite("") is False
    assert parse_favorite(None) is False
    assert format_favorite(True) == "true"
    assert format_favorite("FALSE") == "false"


def test_now_iso_format_and_parse():
    stamp = now_iso()
    assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z", stamp)
    dt = parse_iso(stamp)
    assert dt is not None and dt.tzinfo is not None


def test_parse_iso_lenient():
    assert parse_iso("") is None
    assert parse_iso("not a date") is None
    naive = parse_iso("2024-05-01T10:00:00")
    assert naive is not None and naive.tzinfo == timezone.utc


def test_split_tags():
    assert split_tags(" a, b ,,c ") == ["a", "b", "c"]
    assert split_tags("") == []
    assert split_tags(None) == []


def test_record_from_partial_row_defaults():
    rec = record_from_row({"URL": " https://x "})
    assert rec == BookmarkRecord(url="https://x")
    row = record_to_row(rec)
    assert list(row) == ["URL", "Title", "Description", "Tags", "Date", "Favorite", "Screenshot"]
    assert row["Favorite"] == "false"


def test_field_changes_accepts_headers_and_attributes():
    changes = field_changes({"URL": "u", "title": "T", "Favorite": "true", "Unknown": 1})
    assert changes == {"url": "u", "title": "T", "favorite": True}


def test_has_screenshot(tmp_path):
    shot = tmp_path / "a.png"
    assert not has_screenshot(BookmarkRecord(url="u", screenshot=str(shot)))
    shot.write_bytes(b"png")
    assert has_screenshot(BookmarkRecord(url="u", screenshot=str(shot)))
    assert not has_screenshot(BookmarkRecord(url="u"))


def test_normalize_url():
    assert normalize_url("example.com") == "https://example.com"
    assert normalize_url("  http://example.com ") == "http://example.com"
    assert normalize_url("HTTPS://Example.com") == "HTTPS://Example.com"


def test_screenshot_filename_shape_and_uniqueness():
    name = screenshot_filename("https://example.com", epoch_ms=1700000000123)
    assert re.fullmatch(r"1700000000123_[0-9a-f]{10}\.png", name)
    assert url_hash("https://a.example") != url_hash("https://b.example")
    assert screenshot_filename("https://a", 1) != screenshot_filename("https://a", 2)


def test_resolve_data_dir_expands_user(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert resolve_data_dir("~/bm") == tmp_path / "bm"
    assert resolve_data_dir("").name == "BookmarkManager"


def test_error_message_includes_cause():
    try:
        try:
            raise OSError("disk full")
        except OSError as inner:
            raise StoreError("Failed to save bookmarks") from inner
    except StoreError as ex:
        assert ex.message == "Failed to save bookmarks Cause: disk full"
