"""MainWindow composed of specialized controllers and handlers.

The window only wires widgets to the view-model; bookmark rules live in
`MainVM` and the services behind it.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from PySide6.QtCore import QTimer, Signal
from PySide6.QtWidgets import QMainWindow, QMessageBox, QTreeView
from loguru import logger

from app.views.capture_tasks import KIND_CAPTURE, CaptureTaskRunner
from app.views.components.menu_controller import MenuController
from app.views.components.table_controller import TableController
from app.views.constants import DEFAULT_SEARCH_DEBOUNCE_MS, STATUS_TIMEOUT_MS
from app.views.handlers.context_menu import ContextMenuHandler
from app.views.handlers.dialog_handler import DialogHandler, apply_theme
from app.views.handlers.file_operations import FileOperationsHandler
from app.views.layout.layout_manager import LayoutManager
from app.views.preview_pane import PreviewPane
from app.views.widgets.sidebar import Sidebar
from core.services.filter_service import ViewFilter
from infrastructure.logging import open_latest_log, open_log_directory
from infrastructure.utils import normalize_url


class MainWindow(QMainWindow):
    """Main application window."""

    # Emitted from capture worker threads
    captureFinished = Signal(str, str, object, str)  # token, url, payload, error
    serviceChecked = Signal(object)  # OperationResult

    def __init__(
        self,
        vm: Any,
        settings: Any | None = None,
        services_factory: Callable[[], tuple[Any, Any]] | None = None,
    ) -> None:
        """Initialize MainWindow with all services and components.

        Args:
            vm: ViewModel instance for bookmark operations
            settings: Settings instance for configuration
            services_factory: Returns a fresh (capture_service, llm_client)
                pair built from the current settings
        """
        super().__init__()
        self._vm = vm
        self._settings = settings
        self._services_factory = services_factory

        self._setup_components()
        self._setup_ui()
        self._connect_signals()
        self.statusBar().showMessage("Ready", STATUS_TIMEOUT_MS)

    def _setup_components(self) -> None:
        """Setup all extracted components and controllers."""
        self.table = QTreeView()
        self.table_controller = TableController(self.table)
        self.menu_controller = MenuController(self)
        self.layout_manager = LayoutManager(self)
        self.status_reporter = StatusReporterImpl(self)

        self.file_operations = FileOperationsHandler(
            vm=self._vm,
            settings=self._settings,
            parent_widget=self,
            status_reporter=self.status_reporter,
        )
        self.dialog_handler = DialogHandler(
            parent_widget=self,
            settings=self._settings,
            services_changed=self._rebuild_services,
        )
        self.action_handlers = ActionHandlersImpl(self)
        self.context_menu_handler = ContextMenuHandler(
            view=self.table,
            url_provider=self.table_controller,
            action_handlers=self.action_handlers,
            parent_widget=self,
        )
        self._runner = CaptureTaskRunner(service=self._vm.capture_service, receiver=self)
        self._llm_check_popup = False

    def _setup_ui(self) -> None:
        """Setup the main UI components and layout."""
        self.setWindowTitle("Bookmark Manager")

        self.table_controller.setup_view_properties()

        top_bar, self.url_edit, self.add_button, self.search_edit = (
            self.layout_manager.create_top_bar()
        )
        self.sidebar = Sidebar()

        table_widget, table_layout = self.layout_manager.create_section()
        table_layout.addWidget(self.table)

        preview_widget, preview_layout = self.layout_manager.create_section()
        self._preview = PreviewPane(preview_widget)
        preview_layout.addWidget(self._preview)

        central = self.layout_manager.setup_main_layout(
            top_bar, self.sidebar, table_widget, preview_widget
        )
        self.setCentralWidget(central)
        self.layout_manager.connect_splitter_signals(self._preview.refit)
        self.layout_manager.setup_initial_window_size()
        self.layout_manager.apply_initial_sizes()

        self.menu_controller.setup_menus()
        self.context_menu_handler.setup_context_menu()

        debounce_ms = DEFAULT_SEARCH_DEBOUNCE_MS
        if self._settings is not None:
            try:
                debounce_ms = int(self._settings.get("ui.search_debounce_ms", debounce_ms))
            except (TypeError, ValueError):
                debounce_ms = DEFAULT_SEARCH_DEBOUNCE_MS
        self._search_timer = QTimer(self)
        self._search_timer.setSingleShot(True)
        self._search_timer.setInterval(debounce_ms)

        if self._settings is not None and bool(self._settings.get("ui.dark_mode", False)):
            apply_theme(True)

    def _connect_signals(self) -> None:
        """Connect all signal/slot relationships."""
        handlers = {
            "import": self.file_operations.import_csv,
            "export": self.file_operations.export_csv,
            "settings": self.dialog_handler.show_settings_dialog,
            "exit": self.close,
            "open_in_browser": lambda: self.action_handlers.open_in_browser(self._selected_url()),
            "toggle_favorite": lambda: self.action_handlers.toggle_favorite(self._selected_url()),
            "refresh_screenshot": lambda: self.action_handlers.refresh_screenshot(
                self._selected_url()
            ),
            "delete": lambda: self.action_handlers.delete_bookmark(self._selected_url()),
            "check_llm": self.on_check_llm,
            "open_latest_log": self._open_latest_log,
            "open_log_directory": self._open_log_directory,
        }
        self.menu_controller.connect_actions(handlers)

        self.add_button.clicked.connect(self.on_add_bookmark)
        self.url_edit.returnPressed.connect(self.on_add_bookmark)
        self.search_edit.textChanged.connect(lambda *_: self._search_timer.start())
        self._search_timer.timeout.connect(self._on_search_timeout)

        self.sidebar.viewChanged.connect(self._on_view_changed)
        self.sidebar.tagToggled.connect(self._on_tag_toggled)
        self.sidebar.tagsCleared.connect(self._on_tags_cleared)

        self.table_controller.setup_header_behavior(self._on_header_clicked)
        self.table.doubleClicked.connect(
            lambda idx: self.file_operations.open_in_browser(self.table_controller.url_at(idx))
        )
        self._preview.screenshotRequested.connect(self.action_handlers.refresh_screenshot)

        self.captureFinished.connect(self._on_capture_finished)
        self.serviceChecked.connect(self._on_service_checked)
        self._vm.subscribe(self.refresh_view)

    # Public API

    def refresh_view(self) -> None:
        """Rebuild the sidebar tags, the list and the preview from the VM."""
        self.sidebar.set_tags(self._vm.all_tags(), self._vm.active_tags)
        self.table_controller.refresh_model(self._vm.visible_records())
        self.table_controller.reconnect_selection_handler(self.on_selection_changed)
        self.on_selection_changed()
        self.statusBar().showMessage(
            f"{self.table_controller.row_count()} of {self._vm.bookmark_count} bookmarks",
            STATUS_TIMEOUT_MS,
        )

    def check_llm_on_startup(self) -> None:
        """Probe the LLM endpoint in the background and report in the status bar."""
        self.statusBar().showMessage("Checking LLM service…")
        self._runner.request_service_check(self._vm)

    # Menu and widget handlers

    def on_add_bookmark(self) -> None:
        text = self.url_edit.text().strip()
        if not text:
            self.status_reporter.show_status("Please enter a URL.")
            return
        url = normalize_url(text)
        token = self._runner.request_capture(url)
        logger.info("Capture requested: {}", token)
        self.add_button.setEnabled(False)
        self.url_edit.setEnabled(False)
        self.statusBar().showMessage(f"Processing {url}…")

    def on_check_llm(self) -> None:
        self._llm_check_popup = True
        self.statusBar().showMessage("Checking LLM service…")
        self._runner.request_service_check(self._vm)

    def on_selection_changed(self, *_: Any) -> None:
        url = self._selected_url()
        self.menu_controller.set_bookmark_actions_enabled(bool(url))
        record = self._vm.find(url) if url else None
        self._preview.show_record(record)
        if record is not None:
            self._preview.set_busy(self._runner.is_pending(f"screenshot|{record.url}"))

    # Bookmark actions (menu, context menu and preview)

    def toggle_favorite(self, url: str | None) -> None:
        if not url:
            return
        result = self._vm.toggle_favorite(url)
        self._report(result, "Favorite")

    def refresh_screenshot(self, url: str | None) -> None:
        if not url:
            return
        self._runner.request_screenshot(url)
        if self._preview.current_url == url:
            self._preview.set_busy(True)
        self.statusBar().showMessage(f"Capturing screenshot of {url}…")

    # Slots

    def _on_capture_finished(self, token: str, url: str, payload: Any, error: str) -> None:
        self._runner.finish(token)
        kind = token.split("|", 1)[0]
        if kind == KIND_CAPTURE:
            self.add_button.setEnabled(True)
            self.url_edit.setEnabled(True)
            if error:
                QMessageBox.critical(self, "Add Bookmark", error)
                self.status_reporter.show_status("Capture failed")
                return
            result = self._vm.save_captured(payload)
            if result.success:
                self.url_edit.clear()
                self.table_controller.select_url(url)
            self._report(result, "Add Bookmark")
            return

        if self._preview.current_url == url:
            self._preview.set_busy(False)
        if error:
            QMessageBox.critical(self, "Refresh Screenshot", error)
            return
        self._report(self._vm.apply_screenshot(url, payload or ""), "Refresh Screenshot")

    def _on_service_checked(self, result: Any) -> None:
        self.status_reporter.show_status(result.message, timeout=8000)
        if self._llm_check_popup:
            self._llm_check_popup = False
            if result.success:
                QMessageBox.information(self, "LLM Service", result.message)
            else:
                QMessageBox.warning(self, "LLM Service", result.message)

    def _on_search_timeout(self) -> None:
        self._vm.set_search_query(self.search_edit.text())
        self.refresh_view()

    def _on_view_changed(self, value: str) -> None:
        self._vm.set_view_filter(ViewFilter(value))
        self.refresh_view()

    def _on_tag_toggled(self, tag: str) -> None:
        self._vm.toggle_tag(tag)
        self.refresh_view()

    def _on_tags_cleared(self) -> None:
        self._vm.clear_tags()
        self.refresh_view()

    def _on_header_clicked(self, logical_index: int) -> None:
        order = self.table.header().sortIndicatorOrder()
        self.table_controller.update_sort_state(logical_index, order)

    # Private methods

    def _selected_url(self) -> str | None:
        return self.table_controller.selected_url()

    def _report(self, result: Any, title: str) -> None:
        if result.success:
            self.status_reporter.show_status(result.message)
        else:
            QMessageBox.warning(self, title, result.message)

    def _rebuild_services(self) -> None:
        if self._services_factory is None:
            return
        try:
            capture_service, llm_client = self._services_factory()
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("Rebuilding services failed: {}", ex)
            QMessageBox.critical(self, "Settings", f"Could not apply settings:\n{ex}")
            return
        self._vm.replace_services(capture_service, llm_client)
        self._runner.set_service(capture_service)
        self.check_llm_on_startup()

    def _open_latest_log(self) -> None:
        if not open_latest_log():
            QMessageBox.information(self, "Log", "No log file found.")

    def _open_log_directory(self) -> None:
        if not open_log_directory():
            QMessageBox.information(self, "Log", "Could not open the log directory.")


# Helper implementation classes


class StatusReporterImpl:
    """Implementation of StatusReporter protocol."""

    def __init__(self, main_window: QMainWindow):
        self.window = main_window

    def show_status(self, message: str, timeout: int = STATUS_TIMEOUT_MS) -> None:
        """Show status message in status bar."""
        self.window.statusBar().showMessage(message, timeout)


class ActionHandlersImpl:
    """Implementation of ActionHandlers protocol for menus and the context menu."""

    def __init__(self, main_window: MainWindow):
        self.window = main_window

    def open_in_browser(self, url: str | None) -> None:
        self.window.file_operations.open_in_browser(url)

    def toggle_favorite(self, url: str | None) -> None:
        self.window.toggle_favorite(url)

    def refresh_screenshot(self, url: str | None) -> None:
        self.window.refresh_screenshot(url)

    def delete_bookmark(self, url: str | None) -> None:
        self.window.file_operations.delete_bookmark(url)
