from __future__ import annotations

from typing import Any

from PySide6.QtCore import QObject, QRunnable, QThreadPool
from loguru import logger

from core.errors import BookmarkError

KIND_CAPTURE = "capture"
KIND_SCREENSHOT = "screenshot"


class _CaptureTask(QRunnable):
    """QRunnable for background page capture.

    Emits `receiver.captureFinished(token, url, payload, error)` upon
    completion. The receiver is expected to own a Qt
    `Signal(str, str, object, str)` named `captureFinished`. `payload` is a
    `BookmarkRecord` for full captures and a screenshot path for screenshot
    refreshes; `error` is empty on success.
    """

    def __init__(
        self, *, url: str, kind: str, service: Any, receiver: QObject, token: str
    ) -> None:
        super().__init__()
        self._url = url
        self._kind = kind
        self._service = service
        self._receiver = receiver
        self._token = token

    def run(self) -> None:  # type: ignore[override]
        payload: Any = None
        error = ""
        try:
            if self._kind == KIND_CAPTURE:
                payload = self._service.capture(self._url)
            else:
                payload = self._service.take_screenshot(self._url)
        except BookmarkError as ex:
            logger.error("Capture task failed for {}: {}", self._url, ex.message)
            error = ex.message
        except Exception as ex:  # pragma: no cover - GUI background task
            logger.exception("Unexpected capture task failure for {}: {}", self._url, ex)
            error = f"Failed to process URL {self._url}. Cause: {ex}"
        try:
            self._receiver.captureFinished.emit(  # type: ignore[attr-defined]
                self._token, self._url, payload, error
            )
        except RuntimeError as ex:  # pragma: no cover - receiver destroyed
            logger.warning("Capture result dropped for {}: {}", self._url, ex)


class _ServiceCheckTask(QRunnable):
    """Probe the LLM endpoint off the GUI thread.

    Emits `receiver.serviceChecked(result)` with the `OperationResult` of
    `vm.check_llm_service()`.
    """

    def __init__(self, *, vm: Any, receiver: QObject) -> None:
        super().__init__()
        self._vm = vm
        self._receiver = receiver

    def run(self) -> None:  # type: ignore[override]
        result = self._vm.check_llm_service()
        try:
            self._receiver.serviceChecked.emit(result)  # type: ignore[attr-defined]
        except RuntimeError as ex:  # pragma: no cover - receiver destroyed
            logger.warning("LLM check result dropped: {}", ex)


class CaptureTaskRunner:
    """Dispatches capture tasks to the global thread pool.

    Tokens have the form "{kind}|{url}" with kind "capture" or "screenshot".
    """

    def __init__(self, *, service: Any, receiver: QObject) -> None:
        self._service = service
        self._receiver = receiver
        self._pool = QThreadPool.globalInstance()
        self._pending: set[str] = set()

    def set_service(self, service: Any) -> None:
        """Use `service` for tasks started from now on."""
        self._service = service

    def is_pending(self, token: str) -> bool:
        return token in self._pending

    def finish(self, token: str) -> None:
        """Forget a completed token."""
        self._pending.discard(token)

    def request_capture(self, url: str) -> str:
        """Request a full capture of `url`. Returns the token string."""
        return self._start(url, KIND_CAPTURE)

    def request_screenshot(self, url: str) -> str:
        """Request a screenshot-only capture of `url`. Returns the token string."""
        return self._start(url, KIND_SCREENSHOT)

    def request_service_check(self, vm: Any) -> None:
        """Run `vm.check_llm_service()` in the pool."""
        self._pool.start(_ServiceCheckTask(vm=vm, receiver=self._receiver))

    def _start(self, url: str, kind: str) -> str:
        token = f"{kind}|{url}"
        if self._service is None or token in self._pending:
            return token
        self._pending.add(token)
        task = _CaptureTask(
            url=url, kind=kind, service=self._service, receiver=self._receiver, token=token
        )
        self._pool.start(task)
        return token
