"""Logging initialization utilities using loguru."""

from __future__ import annotations

import os
from pathlib import Path
import subprocess
import sys

from loguru import logger

from infrastructure.utils import get_app_data_dir


def init_logging(log_dir: str | None = None) -> None:
    """Initialize rotating file logging under the given directory."""
    log_path = Path(log_dir) if log_dir else Path(get_log_directory())
    log_path.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        str(log_path / "app_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level="INFO",
    )


def get_log_directory() -> str:
    """Get the main log directory path."""
    return str(get_app_data_dir() / "logs")


def find_latest_log_file(log_dir: str | None = None) -> Path | None:
    """Find the latest log file in the specified directory."""
    if log_dir is None:
        log_dir = get_log_directory()

    try:
        log_path = Path(log_dir)
        if not log_path.exists():
            return None

        log_files = list(log_path.glob("app_*.log"))
        if not log_files:
            return None

        return max(log_files, key=lambda p: p.stat().st_mtime)
    except (OSError, ValueError):
        return None


def _open_with_system(target: str) -> bool:
    try:
        if os.name == "nt":
            os.startfile(target)  # type: ignore[attr-defined]
        elif sys.platform == "darwin":
            subprocess.run(["open", target], check=True)
        else:
            subprocess.run(["xdg-open", target], check=True)
        return True
    except (OSError, subprocess.CalledProcessError):
        return False


def open_file_in_default_app(file_path: str) -> bool:
    """Open a file in the default application for its type."""
    return _open_with_system(file_path)


def open_directory_in_explorer(dir_path: str) -> bool:
    """Open a directory in the file explorer."""
    return _open_with_system(dir_path)


def open_latest_log() -> bool:
    """Open the latest log file in the default application."""
    log_file = find_latest_log_file()
    if log_file:
        return open_file_in_default_app(str(log_file))
    return False


def open_log_directory() -> bool:
    """Open the log directory in the file explorer."""
    log_dir = get_log_directory()
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    return open_directory_in_explorer(log_dir)
