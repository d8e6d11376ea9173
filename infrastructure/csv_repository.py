"""CSV persistence for bookmark records.

The store owns a single CSV file with a fixed header. Every mutation reloads
the whole collection and rewrites the file through `replace_all`, which
writes to a temporary file and moves it into place.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import csv
from dataclasses import replace
import os
from pathlib import Path
import stat
import tempfile
import threading
from typing import Any

from loguru import logger

from core.errors import RecordValidationError, StoreError, StoreParseError
from core.models import (
    CSV_HEADERS,
    BookmarkRecord,
    field_changes,
    now_iso,
    record_from_row,
    record_to_row,
)
from core.services.filter_service import filter_by_tags, search_records


def read_records(csv_path: str | Path) -> list[BookmarkRecord]:
    """Parse bookmark rows from `csv_path`.

    Rows without a URL are skipped with a warning. A malformed row aborts the
    read with `StoreParseError`; no partial result is returned.
    """
    path = Path(csv_path)
    records: list[BookmarkRecord] = []
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f, strict=True)
            try:
                for row in reader:
                    if None in row or any(v is None for v in row.values()):
                        raise StoreParseError(
                            f"Failed to parse {path}: line {reader.line_num} does not have "
                            f"{len(reader.fieldnames or [])} columns"
                        )
                    record = record_from_row(row)
                    if not record.url:
                        logger.warning("Skipping row without URL: {} line {}", path, reader.line_num)
                        continue
                    records.append(record)
            except csv.Error as ex:
                raise StoreParseError(
                    f"Failed to parse {path}: line {reader.line_num}: {ex}"
                ) from ex
            except UnicodeDecodeError as ex:
                raise StoreParseError(f"Failed to parse {path}: not UTF-8 text") from ex
    except OSError as ex:
        raise StoreError(f"Failed to read bookmarks file {path}") from ex
    return records


def _file_mode(path: Path) -> int:
    """Permission bits for `path`: kept if it exists, else the umask default."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_records(csv_path: str | Path, records: Iterable[BookmarkRecord]) -> int:
    """Write `records` to `csv_path` with canonical headers; return the row count.

    The file is replaced atomically via a temporary file in the same folder.
    The target keeps its permission bits; a new file gets the umask default.
    """
    path = Path(csv_path)
    count = 0
    tmp_name: str | None = None
    try:
        mode = _file_mode(path)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_HEADERS)
            writer.writeheader()
            for item in records:
                writer.writerow(record_to_row(item))
                count += 1
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as ex:
        raise StoreError(f"Failed to save bookmarks to file {path}") from ex
    finally:
        if tmp_name and os.path.exists(tmp_name):
            try:
                os.remove(tmp_name)
            except OSError as cleanup_ex:
                logger.warning("Could not remove temp file {}: {}", tmp_name, cleanup_ex)
    return count


def _coerce_record(item: Any) -> BookmarkRecord:
    """Normalize a record or mapping to a fully-populated `BookmarkRecord`."""
    if isinstance(item, BookmarkRecord):
        record = replace(item, favorite=bool(item.favorite))
    elif isinstance(item, Mapping):
        record = record_from_row(item)
    else:
        raise RecordValidationError(
            f"Invalid bookmark: expected a record or mapping, got {type(item).__name__}"
        )
    if not record.url:
        raise RecordValidationError("Cannot save bookmark without a URL.")
    return record


class CsvBookmarkRepository:
    """Load and save bookmark records in a CSV file."""

    def __init__(self, csv_path: str | Path) -> None:
        """Bind the store to `csv_path`, creating folder and header-only file.

        Raises:
            StoreError: the folder or file cannot be created.
        """
        self._path = Path(csv_path).resolve()
        self._lock = threading.RLock()
        self._ensure_file()

    @property
    def path(self) -> Path:
        """Absolute path of the backing CSV file."""
        return self._path

    def _ensure_file(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            if not self._path.exists():
                with self._path.open("w", encoding="utf-8", newline="") as f:
                    csv.writer(f).writerow(CSV_HEADERS)
                logger.info("Created bookmarks file at: {}", self._path)
        except OSError as ex:
            raise StoreError(f"Failed to create or access bookmarks file {self._path}") from ex

    def load_all(self) -> list[BookmarkRecord]:
        """Return every stored record; recreate the file if it has vanished."""
        if not self._path.exists():
            logger.warning("Bookmarks file not found at {}, recreating", self._path)
            self._ensure_file()
            return []
        return read_records(self._path)

    def replace_all(self, records: list[BookmarkRecord] | tuple) -> list[BookmarkRecord]:
        """Rewrite the file with exactly `records`; return what was written."""
        if not isinstance(records, (list, tuple)):
            raise RecordValidationError(
                f"Invalid data provided to replace_all: expected a list, got {type(records).__name__}"
            )
        normalized = [_coerce_record(r) for r in records]
        with self._lock:
            write_records(self._path, normalized)
        return normalized

    def upsert(self, record: BookmarkRecord | Mapping[str, Any]) -> BookmarkRecord:
        """Insert `record`, or merge it over the stored record with the same URL.

        A `BookmarkRecord` replaces every field; a mapping only replaces the
        keys it contains, so `{"URL": u, "Favorite": True}` flips one flag.
        An empty Date never overwrites the stored one.
        """
        if isinstance(record, BookmarkRecord):
            changes = field_changes(record_to_row(record))
        elif isinstance(record, Mapping):
            changes = field_changes(record)
        else:
            raise RecordValidationError(
                f"Invalid bookmark: expected a record or mapping, got {type(record).__name__}"
            )
        url = changes.get("url", "")
        if not url:
            raise RecordValidationError("Cannot save bookmark without a URL.")

        with self._lock:
            records = self.load_all()
            index = next((i for i, r in enumerate(records) if r.url == url), -1)
            if index >= 0:
                # Date is set at creation; an update without one keeps it
                if "date" in changes and not changes["date"]:
                    del changes["date"]
                merged = replace(records[index], **changes)
                records[index] = merged
                logger.info("Updated bookmark: {}", url)
            else:
                merged = record_from_row(changes)
                if not merged.date:
                    merged.date = now_iso()
                records.append(merged)
                logger.info("Added new bookmark: {}", url)
            self.replace_all(records)
        return merged

    def get(self, url: str) -> BookmarkRecord | None:
        """Return the stored record for `url`, if any."""
        return next((r for r in self.load_all() if r.url == url), None)

    def remove(self, url: str) -> BookmarkRecord | None:
        """Remove the record with `url`; return it, or None if it was absent."""
        with self._lock:
            records = self.load_all()
            removed = next((r for r in records if r.url == url), None)
            if removed is None:
                logger.warning("Bookmark to delete not found in CSV: {}", url)
            self.replace_all([r for r in records if r.url != url])
        return removed

    def search(self, query: str | None) -> list[BookmarkRecord]:
        """Records whose URL, title, description or tags contain `query`."""
        return search_records(self.load_all(), query)

    def filter_by_tags(self, tags: Iterable[str] | None) -> list[BookmarkRecord]:
        """Records carrying at least one of `tags`."""
        return filter_by_tags(self.load_all(), tags)

    def export_to(self, target_path: str | Path) -> int:
        """Write the full collection to `target_path`; return the row count."""
        if not target_path:
            raise RecordValidationError("Export path must be provided.")
        records = self.load_all()
        count = write_records(target_path, records)
        logger.info("Exported {} bookmarks to {}", count, target_path)
        return count

    def import_from(self, source_path: str | Path) -> int:
        """Merge records from `source_path` by URL; return rows read from the source."""
        source = Path(source_path)
        if not source.exists():
            raise StoreError(f"Import file not found: {source}")
        imported = read_records(source)
        if not imported:
            logger.info("Import file contained no valid bookmarks: {}", source)
            return 0

        with self._lock:
            current = self.load_all()
            by_url: dict[str, BookmarkRecord] = {r.url: r for r in current}
            added = updated = 0
            for item in imported:
                if item.url in by_url:
                    updated += 1
                else:
                    added += 1
                # dict keeps first-insertion order, so updates stay in place
                by_url[item.url] = item
            self.replace_all(list(by_url.values()))

        logger.info(
            "Import complete: {} | added={} updated={} total={}",
            source,
            added,
            updated,
            len(by_url),
        )
        return len(imported)
