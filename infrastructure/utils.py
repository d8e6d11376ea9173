"""Utilities for URL normalization, screenshot naming and app data paths.

These helpers are shared by the capture pipeline, the settings loader and the
entry point. They do not raise on bad input; callers get a usable default.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
import sys
import time

APP_DIR_NAME = "BookmarkManager"
URL_HASH_LENGTH = 10


def normalize_url(url: str) -> str:
    """Strip whitespace and prepend `https://` when no http(s) scheme is present."""
    text = (url or "").strip()
    lowered = text.lower()
    if not lowered.startswith(("http://", "https://")):
        text = "https://" + text
    return text


def url_hash(url: str, length: int = URL_HASH_LENGTH) -> str:
    """Short, filesystem-safe hash of `url`."""
    return hashlib.sha1(url.encode("utf-8", errors="ignore")).hexdigest()[:length]


def screenshot_filename(url: str, epoch_ms: int | None = None) -> str:
    """Return `<epoch-millis>_<url-hash>.png` for a capture of `url`."""
    if epoch_ms is None:
        epoch_ms = int(time.time() * 1000)
    return f"{epoch_ms}_{url_hash(url)}.png"


def get_app_data_dir() -> Path:
    """Per-user application data directory.

    Windows: `%LOCALAPPDATA%/BookmarkManager`; macOS:
    `~/Library/Application Support/BookmarkManager`; otherwise
    `$XDG_DATA_HOME/BookmarkManager` (default `~/.local/share`).
    """
    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
        return Path(base) / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    base = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / APP_DIR_NAME


def resolve_data_dir(configured: str | None) -> Path:
    """Return `configured` (env vars and `~` expanded) or the app data dir."""
    if configured:
        return Path(os.path.expanduser(os.path.expandvars(configured)))
    return get_app_data_dir()
