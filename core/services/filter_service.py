"""Search and filter rules for bookmark collections, decoupled from storage and UI.

Both the CSV store and the main view-model use these functions so that a
search typed in the UI and a search issued against the store agree.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from enum import Enum

from core.models import BookmarkRecord, parse_iso, split_tags


class ViewFilter(str, Enum):
    """Sidebar view filters."""

    ALL = "all"
    FAVORITES = "favorites"
    TODAY = "today"
    WEEK = "week"


def matches_query(record: BookmarkRecord, query: str) -> bool:
    """Case-insensitive substring match over URL, title, description and tags."""
    needle = query.lower()
    return any(
        needle in (value or "").lower()
        for value in (record.url, record.title, record.description, record.tags)
    )


def search_records(records: Iterable[BookmarkRecord], query: str | None) -> list[BookmarkRecord]:
    """Return records matching `query`; a blank or missing query returns all."""
    items = list(records)
    term = (query or "").strip()
    if not term:
        return items
    return [r for r in items if matches_query(r, term)]


def filter_by_tags(records: Iterable[BookmarkRecord], tags: Iterable[str] | None) -> list[BookmarkRecord]:
    """Return records carrying at least one of `tags`.

    Tags are compared whole after trimming, case-insensitively: "ai" matches
    "AI, ml" but not "airplane". An empty tag set returns all records.
    """
    items = list(records)
    wanted = {str(t).strip().lower() for t in (tags or []) if str(t).strip()}
    if not wanted:
        return items
    result: list[BookmarkRecord] = []
    for record in items:
        own = {t.lower() for t in split_tags(record.tags)}
        if own & wanted:
            result.append(record)
    return result


def filter_by_view(
    records: Iterable[BookmarkRecord],
    view: ViewFilter,
    now: datetime | None = None,
) -> list[BookmarkRecord]:
    """Apply a sidebar view filter.

    `TODAY` keeps records dated since local midnight, `WEEK` since local
    midnight seven days ago. Records with unparseable dates are excluded from
    both.
    """
    items = list(records)
    if view == ViewFilter.ALL:
        return items
    if view == ViewFilter.FAVORITES:
        return [r for r in items if r.favorite]

    local_now = (now or datetime.now(timezone.utc)).astimezone()
    start_of_day = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    cutoff = start_of_day if view == ViewFilter.TODAY else start_of_day - timedelta(days=7)

    result: list[BookmarkRecord] = []
    for record in items:
        dt = parse_iso(record.date)
        if dt is not None and dt >= cutoff:
            result.append(record)
    return result


def collect_tags(records: Iterable[BookmarkRecord]) -> list[str]:
    """Return the sorted set of distinct tags (case preserved, first seen wins)."""
    seen: dict[str, str] = {}
    for record in records:
        for tag in split_tags(record.tags):
            seen.setdefault(tag.lower(), tag)
    return sorted(seen.values(), key=str.lower)
