"""Exception types shared by the store, the capture pipeline and the LLM client.

The view-model turns every one of these into an `OperationResult`, so the UI
only needs the message text.
"""

from __future__ import annotations


class BookmarkError(Exception):
    """Base class for all bookmark manager errors."""

    @property
    def message(self) -> str:
        """Human-readable message, including the originating cause if any."""
        text = str(self)
        cause = self.__cause__
        if cause is not None and str(cause) and str(cause) not in text:
            return f"{text} Cause: {cause}"
        return text


class StoreError(BookmarkError):
    """The CSV store could not be created, read or written."""


class StoreParseError(StoreError):
    """A row in a CSV source is malformed; the whole read was aborted."""


class RecordValidationError(BookmarkError, ValueError):
    """A record or collection was rejected before any I/O."""


class CaptureError(BookmarkError):
    """A capture failed outside the per-step containment."""


class LLMRequestError(BookmarkError):
    """An LLM endpoint call failed (network, timeout, status, payload)."""
