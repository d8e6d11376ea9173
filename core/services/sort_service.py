"""Sorting service for bookmark collections.

Records are ordered by their creation timestamp. Values that do not parse
sort after every dated record, keeping their relative order.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from core.models import BookmarkRecord, parse_iso


class SortService:
    """Provides sorting utilities for `BookmarkRecord` lists."""

    def sort_by_date(
        self, records: Iterable[BookmarkRecord], newest_first: bool = True
    ) -> list[BookmarkRecord]:
        """Return a new list sorted by `date`.

        Args:
            records: Records to sort; not mutated.
            newest_first: Descending order when True.
        """
        dated: list[tuple[datetime, BookmarkRecord]] = []
        undated: list[BookmarkRecord] = []
        for item in records:
            dt = parse_iso(item.date)
            if dt is None:
                undated.append(item)
            else:
                dated.append((dt, item))

        # sort() is stable, so equal timestamps keep file order
        dated.sort(key=lambda x: x[0], reverse=newest_first)
        return [it for _, it in dated] + undated
