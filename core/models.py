"""Core domain model for bookmark records.

A record maps one-to-one onto a row of the bookmarks CSV. The helpers in this
module are the single place where rows are normalized, so the store, the
import path and the view-model all agree on defaults.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
import os
from typing import Any

CSV_HEADERS = [
    "URL",
    "Title",
    "Description",
    "Tags",
    "Date",
    "Favorite",
    "Screenshot",
]

# CSV column -> dataclass attribute
FIELD_MAP: dict[str, str] = {
    "URL": "url",
    "Title": "title",
    "Description": "description",
    "Tags": "tags",
    "Date": "date",
    "Favorite": "favorite",
    "Screenshot": "screenshot",
}

UNTITLED = "Untitled"


@dataclass
class BookmarkRecord:
    """A single bookmark row."""

    url: str
    title: str = ""
    description: str = ""
    tags: str = ""
    date: str = ""
    favorite: bool = False
    screenshot: str = ""


def parse_favorite(value: Any) -> bool:
    """Parse a favorite flag stored as text ("true"/"false") or a bool."""
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"true", "1"}


def format_favorite(value: Any) -> str:
    """Return the on-disk text for a favorite flag."""
    return "true" if parse_favorite(value) else "false"


def now_iso() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a `Z` suffix."""
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def parse_iso(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; return None when empty or invalid.

    Naive values are assumed to be UTC so they compare with aware ones.
    """
    if not value:
        return None
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def split_tags(tags: str | None) -> list[str]:
    """Split a comma-separated tag string into trimmed, non-empty tags."""
    if not tags:
        return []
    return [t.strip() for t in str(tags).split(",") if t.strip()]


def field_changes(data: Mapping[str, Any]) -> dict[str, Any]:
    """Map a partial row (CSV headers or attribute names) to attribute changes.

    Unknown keys are ignored. Text values are stripped; `favorite` is coerced
    to bool.
    """
    changes: dict[str, Any] = {}
    attrs = set(FIELD_MAP.values())
    for key, value in data.items():
        attr = FIELD_MAP.get(key) or (key if key in attrs else None)
        if attr is None:
            continue
        if attr == "favorite":
            changes[attr] = parse_favorite(value)
        else:
            changes[attr] = "" if value is None else str(value).strip()
    return changes


def record_from_row(row: Mapping[str, Any]) -> BookmarkRecord:
    """Build a fully-populated record from a CSV row or partial mapping."""
    changes = field_changes(row)
    return BookmarkRecord(
        url=changes.get("url", ""),
        title=changes.get("title", ""),
        description=changes.get("description", ""),
        tags=changes.get("tags", ""),
        date=changes.get("date", ""),
        favorite=changes.get("favorite", False),
        screenshot=changes.get("screenshot", ""),
    )


def record_to_row(record: BookmarkRecord) -> dict[str, str]:
    """Return the CSV row for `record` with every header present."""
    return {
        "URL": record.url or "",
        "Title": record.title or "",
        "Description": record.description or "",
        "Tags": record.tags or "",
        "Date": record.date or "",
        "Favorite": format_favorite(record.favorite),
        "Screenshot": record.screenshot or "",
    }


def has_screenshot(record: BookmarkRecord) -> bool:
    """True when the record points at a screenshot file that exists."""
    return bool(record.screenshot) and os.path.isfile(record.screenshot)
