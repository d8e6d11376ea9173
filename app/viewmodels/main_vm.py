"""ViewModel orchestrating the bookmark store, capture pipeline and LLM client."""

from __future__ import annotations

from collections.abc import Callable, Iterable
import os

from loguru import logger

from core.errors import BookmarkError
from core.models import BookmarkRecord
from core.services.filter_service import (
    ViewFilter,
    collect_tags,
    filter_by_tags,
    filter_by_view,
    search_records,
)
from core.services.interfaces import IBookmarkStore, ILLMClient, OperationResult
from core.services.sort_service import SortService
from infrastructure.utils import normalize_url


class MainVM:
    """Main application view-model.

    Holds an in-memory cache of the store plus the current search, view and
    tag filters. Every public operation returns an `OperationResult`; store,
    capture and LLM errors never escape to the UI.
    """

    def __init__(
        self,
        repo: IBookmarkStore,
        capture_service,
        llm_client: ILLMClient | None,
        delete_service,
        sorter: SortService | None = None,
    ) -> None:
        """Create a MainVM.

        Args:
            repo: Store providing `load_all`, `upsert`, `remove`, `export_to`
                and `import_from`.
            capture_service: Pipeline with `capture(url)` and `take_screenshot(url)`.
            llm_client: Client used for the service check; may be None.
            delete_service: Service with `delete_bookmark(repo, url)` and
                `remove_screenshot(path)`.
            sorter: Sorting service (defaults to `SortService`).
        """
        self._repo = repo
        self._capture = capture_service
        self._llm = llm_client
        self._deleter = delete_service
        self._sorter = sorter or SortService()
        self._subscribers: list[Callable[[], None]] = []

        self.records: list[BookmarkRecord] = []
        self.search_query: str = ""
        self.view_filter: ViewFilter = ViewFilter.ALL
        self.active_tags: set[str] = set()

    # Wiring
    @property
    def repo(self) -> IBookmarkStore:
        """The backing store."""
        return self._repo

    @property
    def capture_service(self):
        """Current capture pipeline."""
        return self._capture

    def subscribe(self, callback: Callable[[], None]) -> None:
        """Register a callback fired after every successful change or reload."""
        self._subscribers.append(callback)

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback()
            except Exception as ex:  # pylint: disable=broad-exception-caught
                logger.error("Store-changed subscriber failed: {}", ex)

    def replace_services(self, capture_service, llm_client: ILLMClient | None) -> None:
        """Swap in services rebuilt after a settings change."""
        self._capture = capture_service
        self._llm = llm_client
        logger.info("Capture and LLM services replaced")

    # Store operations
    def reload(self) -> OperationResult:
        """Reload the cache from the store."""
        try:
            self.records = list(self._repo.load_all())
        except BookmarkError as ex:
            logger.error("Failed to load bookmarks: {}", ex.message)
            return OperationResult.fail(f"Failed to load bookmarks: {ex.message}")
        self._prune_active_tags()
        self._notify()
        return OperationResult.ok(f"Loaded {len(self.records)} bookmarks", len(self.records))

    def add_bookmark(self, url: str) -> OperationResult:
        """Capture `url` and store the resulting record."""
        if not (url or "").strip():
            return OperationResult.fail("Please enter a URL.")
        target = normalize_url(url)
        try:
            record = self._capture.capture(target)
        except BookmarkError as ex:
            logger.error("Capture failed for {}: {}", target, ex.message)
            return OperationResult.fail(ex.message)
        return self.save_captured(record)

    def save_captured(self, record: BookmarkRecord) -> OperationResult:
        """Upsert a record produced by the capture pipeline and refresh the cache.

        Re-adding a stored URL replaces its fields; a screenshot it no longer
        references is removed.
        """
        try:
            previous = self._lookup(record.url)
            saved = self._repo.upsert(record)
        except BookmarkError as ex:
            logger.error("Failed to save bookmark {}: {}", record.url, ex.message)
            return OperationResult.fail(f"Failed to save bookmark: {ex.message}")
        if (
            previous is not None
            and previous.screenshot
            and (
                not saved.screenshot
                or os.path.normpath(previous.screenshot) != os.path.normpath(saved.screenshot)
            )
        ):
            self._deleter.remove_screenshot(previous.screenshot)
        self.reload()
        return OperationResult.ok(f"Bookmark added: {saved.title or saved.url}", saved)

    def find(self, url: str) -> BookmarkRecord | None:
        """Return the cached record for `url`."""
        return next((r for r in self.records if r.url == url), None)

    def toggle_favorite(self, url: str) -> OperationResult:
        """Flip the stored favorite flag of `url`, leaving other fields untouched."""
        try:
            current = self._lookup(url)
            if current is None:
                return OperationResult.fail(f"Bookmark not found: {url}")
            saved = self._repo.upsert({"URL": url, "Favorite": not current.favorite})
        except BookmarkError as ex:
            logger.error("Failed to toggle favorite for {}: {}", url, ex.message)
            return OperationResult.fail(f"Failed to update favorite: {ex.message}")
        self.reload()
        state = "added to" if saved.favorite else "removed from"
        return OperationResult.ok(f"Bookmark {state} favorites", saved)

    def refresh_screenshot(self, url: str) -> OperationResult:
        """Take a new screenshot for `url` and point the record at it."""
        try:
            if self.find(url) is None and self._lookup(url) is None:
                return OperationResult.fail(f"Bookmark not found: {url}")
            new_path = self._capture.take_screenshot(url)
        except BookmarkError as ex:
            logger.error("Screenshot refresh failed for {}: {}", url, ex.message)
            return OperationResult.fail(ex.message)
        return self.apply_screenshot(url, new_path)

    def apply_screenshot(self, url: str, new_path: str) -> OperationResult:
        """Store `new_path` as the screenshot of `url` and drop the old file.

        An empty `new_path` means the capture failed; the record is left as is.
        """
        if not new_path:
            return OperationResult.fail(f"Failed to capture a screenshot of {url}")
        try:
            current = self._lookup(url)
            if current is None:
                self._deleter.remove_screenshot(new_path)
                return OperationResult.fail(f"Bookmark not found: {url}")
            old_path = current.screenshot
            saved = self._repo.upsert({"URL": url, "Screenshot": new_path})
        except BookmarkError as ex:
            logger.error("Failed to update screenshot for {}: {}", url, ex.message)
            return OperationResult.fail(f"Failed to update screenshot: {ex.message}")

        if old_path and os.path.normpath(old_path) != os.path.normpath(new_path):
            self._deleter.remove_screenshot(old_path)
        self.reload()
        return OperationResult.ok("Screenshot updated", saved)

    def delete_bookmark(self, url: str) -> OperationResult:
        """Delete the bookmark row for `url` and its screenshot file."""
        try:
            result = self._deleter.delete_bookmark(self._repo, url)
        except BookmarkError as ex:
            logger.error("Failed to delete bookmark {}: {}", url, ex.message)
            return OperationResult.fail(f"Failed to delete bookmark: {ex.message}")
        self.reload()
        if not result.removed:
            return OperationResult.fail(f"Bookmark not found: {url}", result)
        message = "Bookmark deleted"
        if result.screenshot_error:
            message += f" (screenshot could not be removed: {result.screenshot_error})"
        return OperationResult.ok(message, result)

    def import_csv(self, path: str) -> OperationResult:
        """Merge bookmarks from the CSV at `path`."""
        if not path:
            return OperationResult.fail("No import file selected.")
        try:
            count = self._repo.import_from(path)
        except BookmarkError as ex:
            logger.error("Import failed for {}: {}", path, ex.message)
            return OperationResult.fail(f"Import failed: {ex.message}")
        self.reload()
        return OperationResult.ok(f"Imported {count} bookmarks", count)

    def export_csv(self, path: str) -> OperationResult:
        """Write every bookmark to the CSV at `path`."""
        if not path:
            return OperationResult.fail("No export file selected.")
        try:
            count = self._repo.export_to(path)
        except BookmarkError as ex:
            logger.error("Export failed for {}: {}", path, ex.message)
            return OperationResult.fail(f"Export failed: {ex.message}")
        return OperationResult.ok(f"Exported {count} bookmarks to {path}", count)

    def check_llm_service(self) -> OperationResult:
        """Probe the configured LLM endpoint."""
        if self._llm is None:
            return OperationResult.fail("LLM client is not configured.")
        status = self._llm.check_service()
        if status.available:
            return OperationResult.ok(f"LLM service available: {status.details}", status)
        return OperationResult.fail(f"LLM service unavailable: {status.error}", status)

    def _lookup(self, url: str) -> BookmarkRecord | None:
        return next((r for r in self._repo.load_all() if r.url == url), None)

    # View state
    def set_search_query(self, query: str) -> None:
        self.search_query = query or ""

    def set_view_filter(self, view: ViewFilter | str) -> None:
        self.view_filter = ViewFilter(view)

    def toggle_tag(self, tag: str) -> bool:
        """Add or remove `tag` from the active tag filter; return True if now active."""
        key = (tag or "").strip()
        if not key:
            return False
        existing = next((t for t in self.active_tags if t.lower() == key.lower()), None)
        if existing is not None:
            self.active_tags.discard(existing)
            return False
        self.active_tags.add(key)
        return True

    def clear_tags(self) -> None:
        self.active_tags.clear()

    def _prune_active_tags(self) -> None:
        known = {t.lower() for t in self.all_tags()}
        self.active_tags = {t for t in self.active_tags if t.lower() in known}

    def all_tags(self) -> list[str]:
        """Sorted unique tags across the cache."""
        return collect_tags(self.records)

    def visible_records(self) -> list[BookmarkRecord]:
        """Cached records after search, view and tag filters, newest first."""
        items: Iterable[BookmarkRecord] = search_records(self.records, self.search_query)
        items = filter_by_view(items, self.view_filter)
        items = filter_by_tags(items, self.active_tags)
        return self._sorter.sort_by_date(items, newest_first=True)

    @property
    def bookmark_count(self) -> int:
        """Number of bookmarks currently cached."""
        return len(self.records)
