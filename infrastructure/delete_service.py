"""Bookmark deletion service.

Removes the row from the store first, then disposes of the screenshot file
by moving it to the recycle bin. Screenshot failures are logged and reported
in the result; they never undo or block the row removal.
"""

from __future__ import annotations

import os

from loguru import logger
from send2trash import send2trash

from core.services.interfaces import DeleteResult, IBookmarkStore


class DeleteService:
    """Coordinates bookmark row and screenshot removal."""

    def __init__(self, use_recycle_bin: bool = True) -> None:
        self.use_recycle_bin = bool(use_recycle_bin)
        self.last_error: str | None = None

    def remove_screenshot(self, path: str | None) -> bool:
        """Dispose of the screenshot at `path`; return True if a file was removed.

        Empty paths and missing files are a no-op. Errors are logged and kept
        in `last_error`.
        """
        self.last_error = None
        if not path:
            return False
        normalized_path = os.path.normpath(path)
        if not os.path.exists(normalized_path):
            logger.warning("Screenshot file not found, skipping delete: {}", normalized_path)
            return False

        if self.use_recycle_bin:
            try:
                send2trash(normalized_path)
                logger.info("Moved screenshot to recycle bin: {}", normalized_path)
                return True
            except (UnicodeEncodeError, OSError) as ex:
                logger.warning(
                    "Failed to recycle {}: {}; deleting permanently", normalized_path, ex
                )

        try:
            os.remove(normalized_path)
            logger.info("Deleted screenshot file: {}", normalized_path)
            return True
        except OSError as ex:
            logger.error("Error deleting screenshot file {}: {}", normalized_path, ex)
            self.last_error = str(ex)
            return False

    def delete_bookmark(self, repo: IBookmarkStore, url: str) -> DeleteResult:
        """Remove the bookmark for `url` and then its screenshot.

        Args:
            repo: Store that owns the row.
            url: URL of the bookmark to delete.

        Raises:
            StoreError: the store could not be rewritten; nothing was removed.
        """
        removed = repo.remove(url)
        result = DeleteResult(url=url, removed=removed is not None)
        if removed is None or not removed.screenshot:
            return result

        result.screenshot_removed = self.remove_screenshot(removed.screenshot)
        result.screenshot_error = self.last_error
        logger.info(
            "Deleted bookmark {} (screenshot_removed={})", url, result.screenshot_removed
        )
        return result
