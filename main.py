from __future__ import annotations

import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication, QMessageBox
from dotenv import load_dotenv
from loguru import logger

from app.viewmodels.main_vm import MainVM
from app.views.main_window import MainWindow
from core.errors import BookmarkError
from infrastructure.csv_repository import CsvBookmarkRepository
from infrastructure.delete_service import DeleteService
from infrastructure.llm_client import LLMClient
from infrastructure.logging import init_logging
from infrastructure.page_capture import PageCaptureService
from infrastructure.settings import JsonSettings
from infrastructure.utils import get_app_data_dir, resolve_data_dir

BASE_DIR = Path(__file__).parent
USER_SETTINGS_FILE = "settings.user.json"


def build_services(settings: JsonSettings, screenshot_dir: Path) -> tuple[PageCaptureService, LLMClient]:
    """Create the LLM client and capture pipeline from current settings."""
    llm = LLMClient.from_settings(settings)
    capture = PageCaptureService.from_settings(settings, screenshot_dir, llm)
    return capture, llm


def main() -> int:
    init_logging()
    load_dotenv(BASE_DIR / ".env")
    settings = JsonSettings(BASE_DIR / "settings.json", get_app_data_dir() / USER_SETTINGS_FILE)

    app = QApplication(sys.argv)
    app.setApplicationName("Bookmark Manager")

    data_dir = resolve_data_dir(settings.get("storage.data_dir", ""))
    csv_path = data_dir / (settings.get("storage.csv_file", "bookmarks.csv") or "bookmarks.csv")
    screenshot_dir = data_dir / (settings.get("storage.screenshot_dir", "screenshots") or "screenshots")
    logger.info("Data directory: {}", data_dir)

    try:
        repo = CsvBookmarkRepository(csv_path)
        capture, llm = build_services(settings, screenshot_dir)
    except BookmarkError as ex:
        logger.critical("Startup failed: {}", ex.message)
        QMessageBox.critical(None, "Bookmark Manager", f"Startup failed:\n{ex.message}")
        return 1

    deleter = DeleteService(use_recycle_bin=bool(settings.get("delete.use_recycle_bin", True)))
    vm = MainVM(repo, capture, llm, deleter)

    win = MainWindow(
        vm=vm,
        settings=settings,
        services_factory=lambda: build_services(settings, screenshot_dir),
    )
    result = vm.reload()
    if not result.success:
        QMessageBox.warning(win, "Bookmark Manager", result.message)
    win.show()
    win.check_llm_on_startup()

    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
