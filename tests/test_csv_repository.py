from __future__ import annotations

import os
import stat
import sys

import pytest

from conftest import write_csv
from core.errors import RecordValidationError, StoreError, StoreParseError
from core.models import CSV_HEADERS, BookmarkRecord
from infrastructure.csv_repository import CsvBookmarkRepository, read_records

HEADER_LINE = ",".join(CSV_HEADERS)


def test_construction_creates_header_only_file(repo, csv_path):
    assert csv_path.exists()
    assert csv_path.read_text(encoding="utf-8").strip() == HEADER_LINE
    assert repo.load_all() == []


def test_construction_fails_when_folder_cannot_be_created(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a folder", encoding="utf-8")
    with pytest.raises(StoreError):
        CsvBookmarkRepository(blocker / "bookmarks.csv")


def test_load_all_recreates_missing_file(repo, csv_path):
    csv_path.unlink()
    assert repo.load_all() == []
    assert csv_path.exists()


def test_upsert_then_load_round_trips_all_fields(repo, make_record):
    rec = make_record(
        "https://a.example",
        title='Quotes "and", commas',
        description="line one\nline two",
        tags="ai, ml",
        favorite=True,
        screenshot="/tmp/shot.png",
    )
    repo.upsert(rec)
    loaded = repo.load_all()
    assert loaded == [rec]


def test_favorite_is_written_as_text(repo, csv_path, make_record):
    repo.upsert(make_record(favorite=True))
    repo.upsert(make_record("https://b.example", favorite=False))
    text = csv_path.read_text(encoding="utf-8")
    assert ",true," in text
    assert ",false," in text


def test_favorite_text_variants_normalize(csv_path):
    write_csv(
        csv_path,
        f"{HEADER_LINE}\n"
        "https://a,A,,,2024-01-01T00:00:00Z,TRUE,\n"
        "https://b,B,,,2024-01-01T00:00:00Z,yes,\n",
    )
    repo = CsvBookmarkRepository(csv_path)
    favs = {r.url: r.favorite for r in repo.load_all()}
    assert favs == {"https://a": True, "https://b": False}


def test_upsert_same_url_merges_fields(repo):
    repo.upsert({"URL": "https://x", "Title": "First", "Tags": "one", "Description": "keep me"})
    repo.upsert({"URL": "https://x", "Title": "Second"})
    records = repo.load_all()
    assert len(records) == 1
    assert records[0].title == "Second"
    assert records[0].tags == "one"
    assert records[0].description == "keep me"


def test_upsert_record_without_date_keeps_stored_date(repo):
    repo.upsert(BookmarkRecord(url="https://x", title="One", date="2024-05-01T10:00:00.000Z"))
    saved = repo.upsert(BookmarkRecord(url="https://x", title="Two"))
    stored = repo.load_all()[0]
    assert stored.title == "Two"
    assert stored.date == "2024-05-01T10:00:00.000Z"
    assert saved.date == stored.date


def test_upsert_sets_date_for_new_record(repo):
    saved = repo.upsert({"URL": "https://x"})
    assert saved.date.endswith("Z")
    assert repo.load_all()[0].date == saved.date


def test_upsert_without_url_is_rejected(repo, csv_path):
    before = csv_path.read_text(encoding="utf-8")
    with pytest.raises(RecordValidationError):
        repo.upsert({"Title": "no url"})
    assert csv_path.read_text(encoding="utf-8") == before


def test_replace_all_empty_leaves_header_only(repo, csv_path, make_record):
    repo.upsert(make_record())
    repo.replace_all([])
    assert repo.load_all() == []
    assert csv_path.read_text(encoding="utf-8").strip() == HEADER_LINE


def test_replace_all_rejects_non_sequence(repo):
    with pytest.raises(RecordValidationError):
        repo.replace_all({"URL": "https://x"})  # type: ignore[arg-type]


def test_replace_all_fills_missing_fields(repo, csv_path):
    repo.replace_all([{"URL": "https://x", "Favorite": True}])
    rows = csv_path.read_text(encoding="utf-8").splitlines()
    assert rows[0] == HEADER_LINE
    assert rows[1] == "https://x,,,,,true,"


def test_rows_without_url_are_skipped(csv_path):
    write_csv(
        csv_path,
        f"{HEADER_LINE}\n,Orphan,,,,false,\nhttps://ok,Ok,,,,false,\n",
    )
    assert [r.url for r in read_records(csv_path)] == ["https://ok"]


def test_malformed_row_aborts_read(csv_path):
    write_csv(csv_path, f'{HEADER_LINE}\nhttps://a,A,,,,false,\nhttps://b,"B,,,\n')
    with pytest.raises(StoreParseError):
        read_records(csv_path)


def test_row_with_extra_columns_aborts_read(csv_path):
    write_csv(csv_path, f"{HEADER_LINE}\nhttps://a,A,,,,false,,extra\n")
    with pytest.raises(StoreParseError):
        read_records(csv_path)


def test_non_utf8_file_raises_parse_error(csv_path):
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    csv_path.write_bytes(b"URL,Title\nhttps://a.example,Caf\xe9\n")
    with pytest.raises(StoreParseError, match="not UTF-8"):
        read_records(csv_path)


def test_search(repo, make_record):
    repo.upsert(make_record("https://py.example", title="Python Tips", tags="python"))
    repo.upsert(make_record("https://rs.example", title="Rust Book", tags="rust"))
    assert len(repo.search("")) == 2
    assert len(repo.search(None)) == 2
    assert len(repo.search("   ")) == 2
    assert [r.url for r in repo.search("PYTHON")] == ["https://py.example"]
    assert repo.search("XYZ-no-match") == []


def test_filter_by_tags_is_whole_tag_and_case_insensitive(repo, make_record):
    repo.upsert(make_record("https://a", tags="AI, ml"))
    repo.upsert(make_record("https://b", tags="airplane"))
    assert [r.url for r in repo.filter_by_tags(["ai"])] == ["https://a"]
    assert len(repo.filter_by_tags([])) == 2


def test_export_does_not_mutate_store(repo, csv_path, make_record, tmp_path):
    repo.upsert(make_record("https://a"))
    before = csv_path.read_text(encoding="utf-8")
    target = tmp_path / "out.csv"
    assert repo.export_to(target) == 1
    assert csv_path.read_text(encoding="utf-8") == before
    assert target.read_text(encoding="utf-8").splitlines()[0] == HEADER_LINE


def test_import_merges_by_url_and_returns_rows_read(repo, make_record, tmp_path):
    repo.upsert(make_record("https://a", title="Old A"))
    repo.upsert(make_record("https://b"))
    source = write_csv(
        tmp_path / "import.csv",
        f"{HEADER_LINE}\n"
        "https://a,New A,,,2024-01-01T00:00:00Z,false,\n"
        "https://c,C,,,2024-01-01T00:00:00Z,false,\n"
        "https://d,D,,,2024-01-01T00:00:00Z,true,\n",
    )
    count = repo.import_from(source)
    records = repo.load_all()
    assert count == 3
    assert len(records) == 2 + 3 - 1
    assert [r.url for r in records] == ["https://a", "https://b", "https://c", "https://d"]
    assert records[0].title == "New A"


def test_import_missing_file_raises(repo, tmp_path):
    with pytest.raises(StoreError):
        repo.import_from(tmp_path / "nope.csv")


def test_import_malformed_file_leaves_store_untouched(repo, csv_path, make_record, tmp_path):
    repo.upsert(make_record("https://a"))
    before = csv_path.read_text(encoding="utf-8")
    source = write_csv(tmp_path / "bad.csv", f'{HEADER_LINE}\nhttps://x,"broken\n')
    with pytest.raises(StoreParseError):
        repo.import_from(source)
    assert csv_path.read_text(encoding="utf-8") == before


def test_remove_returns_record(repo, make_record):
    repo.upsert(make_record("https://a"))
    removed = repo.remove("https://a")
    assert removed is not None and removed.url == "https://a"
    assert repo.load_all() == []
    assert repo.remove("https://a") is None


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
def test_rewrite_keeps_store_permissions(repo, csv_path, make_record):
    os.chmod(csv_path, 0o644)
    repo.upsert(make_record("https://a"))
    assert stat.S_IMODE(csv_path.stat().st_mode) == 0o644


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
def test_export_uses_umask_default_mode(repo, make_record, tmp_path):
    repo.upsert(make_record("https://a"))
    target = tmp_path / "export.csv"
    umask = os.umask(0o022)
    try:
        repo.export_to(target)
    finally:
        os.umask(umask)
    assert stat.S_IMODE(target.stat().st_mode) == 0o644
