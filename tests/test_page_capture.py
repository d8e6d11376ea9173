from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from playwright.sync_api import Error as PlaywrightError

from core.errors import CaptureError
from infrastructure import page_capture
from infrastructure.page_capture import (
    EXTRACTION_FAILED,
    MAX_TEXT_CHARS,
    NOISE_SELECTOR,
    SCREENSHOT_CLIP,
    VIEWPORT,
    PageCaptureService,
)


class FakePage:
    def __init__(
        self,
        title: str = "Example Domain",
        text: str = "Hello world",
        goto_error: Exception | None = None,
        title_error: Exception | None = None,
        text_error: Exception | None = None,
        screenshot_error: Exception | None = None,
        partial_write: bool = False,
    ) -> None:
        self._title = title
        self._text = text
        self._goto_error = goto_error
        self._title_error = title_error
        self._text_error = text_error
        self._screenshot_error = screenshot_error
        self._partial_write = partial_write
        self.goto_calls: list[tuple[str, dict]] = []
        self.hidden_selectors: list[str] = []
        self.screenshot_kwargs: dict = {}
        self.text_requested = False
        self.text_args = None
        self.events: list[str] = []

    def goto(self, url, **kwargs):
        self.events.append("goto")
        self.goto_calls.append((url, kwargs))
        if self._goto_error:
            raise self._goto_error

    def title(self):
        self.events.append("title")
        if self._title_error:
            raise self._title_error
        return self._title

    def evaluate(self, script, arg=None):
        if script == page_capture._HIDE_SCRIPT:
            self.events.append("hide")
            self.hidden_selectors = list(arg)
            return None
        self.events.append("text")
        self.text_args = arg
        self.text_requested = True
        if self._text_error:
            raise self._text_error
        return self._text[: arg[1]]

    def wait_for_timeout(self, ms):
        return None

    def screenshot(self, path, **kwargs):
        self.events.append("screenshot")
        self.screenshot_kwargs = kwargs
        if self._partial_write:
            Path(path).write_bytes(b"partial")
        if self._screenshot_error:
            raise self._screenshot_error
        Path(path).write_bytes(b"\x89PNG fake")


class FakeBrowser:
    def __init__(self, page: FakePage, close_error: Exception | None = None) -> None:
        self.page = page
        self.closed = False
        self.context_kwargs: dict = {}
        self._close_error = close_error

    def new_context(self, **kwargs):
        self.context_kwargs = kwargs
        context = MagicMock()
        context.new_page.return_value = self.page
        return context

    def close(self):
        self.closed = True
        if self._close_error:
            raise self._close_error


def _fake_playwright(browser: FakeBrowser | None, launch_error: Exception | None = None):
    pw = MagicMock()
    if launch_error:
        pw.chromium.launch.side_effect = launch_error
    else:
        pw.chromium.launch.return_value = browser
    cm = MagicMock()
    cm.__enter__.return_value = pw
    cm.__exit__.return_value = False
    return MagicMock(return_value=cm), pw


@pytest.fixture
def llm():
    client = MagicMock()
    client.generate_tags.return_value = "ai, python"
    client.generate_description.return_value = "A page about things."
    return client


def _service(tmp_path, llm=None, **kwargs) -> PageCaptureService:
    return PageCaptureService(tmp_path / "shots", llm_client=llm, **kwargs)


def test_constructor_creates_screenshot_dir(tmp_path):
    service = _service(tmp_path)
    assert service.screenshot_dir.is_dir()


def test_constructor_fails_before_browser_when_dir_unusable(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(CaptureError):
        PageCaptureService(blocker / "shots")


def test_capture_happy_path(tmp_path, llm):
    browser = FakeBrowser(FakePage(text="x" * (MAX_TEXT_CHARS + 500)))
    factory, pw = _fake_playwright(browser)
    with patch("infrastructure.page_capture.sync_playwright", factory):
        record = _service(tmp_path, llm).capture("example.com")

    assert record.url == "https://example.com"
    assert record.title == "Example Domain"
    assert record.tags == "ai, python"
    assert record.description == "A page about things."
    assert record.favorite is False
    assert record.date.endswith("Z")
    assert Path(record.screenshot).is_file()
    assert Path(record.screenshot).parent == (tmp_path / "shots").resolve()

    assert browser.closed
    assert browser.context_kwargs["viewport"] == VIEWPORT
    assert "Mozilla/5.0" in browser.context_kwargs["user_agent"]
    url, goto_kwargs = browser.page.goto_calls[0]
    assert url == "https://example.com"
    assert goto_kwargs["wait_until"] == "networkidle"
    assert browser.page.screenshot_kwargs["clip"] == SCREENSHOT_CLIP
    assert browser.page.screenshot_kwargs["full_page"] is False
    assert "#onetrust-consent-sdk" in browser.page.hidden_selectors
    pw.chromium.launch.assert_called_once()

    content = llm.generate_tags.call_args.args[1]
    assert content.startswith("Title: Example Domain")
    assert content.endswith("x" * MAX_TEXT_CHARS)
    assert "x" * (MAX_TEXT_CHARS + 1) not in content


def test_navigation_timeout_is_soft(tmp_path, llm):
    page = FakePage(goto_error=PlaywrightError("Timeout 35000ms exceeded"))
    browser = FakeBrowser(page)
    factory, _ = _fake_playwright(browser)
    with patch("infrastructure.page_capture.sync_playwright", factory):
        record = _service(tmp_path, llm).capture("https://slow.example")
    assert record.title == "Example Domain"
    assert browser.closed


def test_title_failure_falls_back_to_untitled_and_llm_failure_is_empty(tmp_path):
    llm = MagicMock()
    llm.generate_tags.side_effect = RuntimeError("llm down")
    llm.generate_description.return_value = ""
    page = FakePage(
        goto_error=PlaywrightError("Timeout"),
        title_error=PlaywrightError("Execution context was destroyed"),
    )
    browser = FakeBrowser(page)
    factory, _ = _fake_playwright(browser)
    with patch("infrastructure.page_capture.sync_playwright", factory):
        record = _service(tmp_path, llm).capture("https://slow.example")
    assert record.title == "Untitled"
    assert record.tags == ""
    assert record.description == ""
    llm.generate_description.assert_called_once()


def test_extraction_failure_uses_sentinel(tmp_path, llm):
    browser = FakeBrowser(FakePage(text_error=PlaywrightError("boom")))
    factory, _ = _fake_playwright(browser)
    with patch("infrastructure.page_capture.sync_playwright", factory):
        _service(tmp_path, llm).capture("https://x.example")
    assert EXTRACTION_FAILED in llm.generate_tags.call_args.args[1]


def test_screenshot_failure_leaves_no_file(tmp_path, llm):
    page = FakePage(screenshot_error=PlaywrightError("crashed"), partial_write=True)
    browser = FakeBrowser(page)
    factory, _ = _fake_playwright(browser)
    with patch("infrastructure.page_capture.sync_playwright", factory):
        record = _service(tmp_path, llm).capture("https://x.example")
    assert record.screenshot == ""
    assert list((tmp_path / "shots").iterdir()) == []
    assert record.tags == "ai, python"
    assert browser.closed


def test_close_failure_is_not_propagated(tmp_path, llm):
    browser = FakeBrowser(FakePage(), close_error=PlaywrightError("already closed"))
    factory, _ = _fake_playwright(browser)
    with patch("infrastructure.page_capture.sync_playwright", factory):
        record = _service(tmp_path, llm).capture("https://x.example")
    assert record.title == "Example Domain"


def test_launch_failure_raises_capture_error_with_url(tmp_path, llm):
    factory, _ = _fake_playwright(None, launch_error=PlaywrightError("Executable doesn't exist"))
    with patch("infrastructure.page_capture.sync_playwright", factory):
        with pytest.raises(CaptureError) as exc_info:
            _service(tmp_path, llm).capture("https://x.example")
    assert "https://x.example" in str(exc_info.value)
    assert "Executable doesn't exist" in str(exc_info.value)
    llm.generate_tags.assert_not_called()


def test_unexpected_step_error_still_closes_browser(tmp_path):
    page = FakePage()
    page.screenshot = MagicMock(side_effect=PlaywrightError("Target closed"))
    page.wait_for_timeout = MagicMock(side_effect=PlaywrightError("Target closed"))
    browser = FakeBrowser(page)
    factory, _ = _fake_playwright(browser)
    with patch("infrastructure.page_capture.sync_playwright", factory):
        record = _service(tmp_path).capture("https://x.example")
    assert browser.closed
    assert record.screenshot == ""


def test_capture_without_llm_client(tmp_path):
    browser = FakeBrowser(FakePage())
    factory, _ = _fake_playwright(browser)
    with patch("infrastructure.page_capture.sync_playwright", factory):
        record = _service(tmp_path).capture("https://x.example")
    assert record.tags == "" and record.description == ""


def test_take_screenshot_skips_extraction(tmp_path, llm):
    page = FakePage()
    browser = FakeBrowser(page)
    factory, _ = _fake_playwright(browser)
    with patch("infrastructure.page_capture.sync_playwright", factory):
        path = _service(tmp_path, llm).take_screenshot("example.com")
    assert Path(path).is_file()
    assert page.goto_calls[0][0] == "https://example.com"
    assert not page.text_requested
    llm.generate_tags.assert_not_called()
    assert browser.closed


def test_take_screenshot_returns_empty_on_failure(tmp_path):
    page = FakePage(screenshot_error=PlaywrightError("crashed"))
    factory, _ = _fake_playwright(FakeBrowser(page))
    with patch("infrastructure.page_capture.sync_playwright", factory):
        assert _service(tmp_path).take_screenshot("https://x.example") == ""


def test_each_capture_uses_its_own_session(tmp_path):
    browsers = [FakeBrowser(FakePage()), FakeBrowser(FakePage())]
    factory, pw = _fake_playwright(None)
    pw.chromium.launch.side_effect = browsers
    with patch("infrastructure.page_capture.sync_playwright", factory):
        service = _service(tmp_path)
        first = service.take_screenshot("https://a.example")
        second = service.take_screenshot("https://a.example")
    assert first != second
    assert all(b.closed for b in browsers)
    assert factory.call_count == 2


def test_from_settings_merges_hide_selectors(tmp_path):
    settings = MagicMock()
    values = {
        "capture.headless": False,
        "capture.navigation_timeout_ms": 30000,
        "capture.hide_selectors": {"#my-banner": "site banner"},
    }
    settings.get.side_effect = lambda key, default=None: values.get(key, default)
    service = PageCaptureService.from_settings(settings, tmp_path / "shots", None)
    assert service.headless is False
    assert service.hide_selectors["#my-banner"] == "site banner"
    assert "#onetrust-consent-sdk" in service.hide_selectors


def test_text_is_read_from_live_page_between_hiding_and_screenshot(tmp_path, llm):
    page = FakePage()
    factory, _ = _fake_playwright(FakeBrowser(page))
    with patch("infrastructure.page_capture.sync_playwright", factory):
        _service(tmp_path, llm).capture("https://x.example")

    assert page.events == ["goto", "title", "hide", "text", "screenshot"]
    assert page.text_args == [NOISE_SELECTOR, MAX_TEXT_CHARS]
    script = page_capture._TEXT_SCRIPT
    assert "cloneNode" not in script
    assert "body.innerText" in script
    assert "removeProperty('display')" in script
