"""Core service interfaces and shared result structures.

This module defines simple dataclasses returned across the infrastructure
and UI layers, so neither side depends on the other's exception types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from core.models import BookmarkRecord


@dataclass
class OperationResult:
    """Outcome of a controller operation.

    Attributes:
        success: Whether the operation completed.
        message: Human-readable summary or error text.
        data: Optional payload (a record, a count, a path, ...).
    """

    success: bool
    message: str = ""
    data: Any = None

    @classmethod
    def ok(cls, message: str = "", data: Any = None) -> OperationResult:
        """Successful result."""
        return cls(True, message, data)

    @classmethod
    def fail(cls, message: str, data: Any = None) -> OperationResult:
        """Failed result."""
        return cls(False, message, data)


@dataclass
class DeleteResult:
    """Outcome of deleting one bookmark.

    Attributes:
        url: URL of the bookmark that was requested for deletion.
        removed: True if a row was removed from the store.
        screenshot_removed: True if a screenshot file was deleted.
        screenshot_error: Reason the screenshot could not be deleted, if any.
    """

    url: str
    removed: bool
    screenshot_removed: bool = False
    screenshot_error: str | None = None


@dataclass
class ServiceStatus:
    """Reachability of the configured LLM endpoint."""

    available: bool
    details: str = ""
    error: str | None = None


class IBookmarkStore(Protocol):
    """Interface of the record store used by the view-model."""

    def load_all(self) -> list[BookmarkRecord]:
        """Return every stored record."""
        ...

    def upsert(self, record: Any) -> BookmarkRecord:
        """Insert or merge a record keyed by URL."""
        ...

    def remove(self, url: str) -> BookmarkRecord | None:
        """Remove the record with `url`."""
        ...

    def export_to(self, path: str) -> int:
        """Write all records to `path`."""
        ...

    def import_from(self, path: str) -> int:
        """Merge records from `path`."""
        ...


class ILLMClient(Protocol):
    """Interface of the tag/description generator."""

    def generate_tags(self, url: str, content: str) -> str:
        """Return comma-separated tags, or "" on failure."""
        ...

    def generate_description(self, url: str, content: str) -> str:
        """Return a short description, or "" on failure."""
        ...

    def check_service(self) -> ServiceStatus:
        """Return endpoint availability."""
        ...
