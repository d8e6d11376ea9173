"""Headless-browser capture of a URL: title, visible text, screenshot, LLM enrichment.

Each capture launches its own Playwright Chromium instance and closes it on
every exit path. Navigation, extraction and screenshot failures are
contained at their own step; only a failure to start the browser aborts the
capture with `CaptureError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
import time
from typing import Any

from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, sync_playwright

from core.errors import CaptureError
from core.models import UNTITLED, BookmarkRecord, now_iso
from core.services.interfaces import ILLMClient
from infrastructure.utils import normalize_url, screenshot_filename

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
VIEWPORT = {"width": 1280, "height": 800}
# 16:9 region anchored at the viewport's top-left
SCREENSHOT_CLIP = {"x": 0, "y": 0, "width": 1280, "height": 720}
LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-features=site-per-process",
]
DEFAULT_NAVIGATION_TIMEOUT_MS = 35000
HIDE_SETTLE_MS = 250
MAX_TEXT_CHARS = 3000
EXTRACTION_FAILED = "Failed to extract page content"

# selector -> what it targets
DEFAULT_HIDE_SELECTORS: dict[str, str] = {
    "#onetrust-consent-sdk": "OneTrust consent SDK",
    ".cookie-banner": "generic cookie banner",
    ".cookie-notice": "generic cookie notice",
    '[id*="cookie"]': "elements with cookie in the id",
    '[class*="consent"]': "elements with consent in the class",
    '[id*="consent"]': "elements with consent in the id",
    '[class*="banner"]': "elements with banner in the class",
    '[class*="notice"]': "elements with notice in the class",
    "#usercentrics-root": "Usercentrics consent widget",
    ".cc-banner": "Cookie Consent by Insites",
    ".fc-consent-root": "Google Funding Choices",
}

NOISE_SELECTOR = "nav, footer, script, style, noscript, svg, aside"

_HIDE_SCRIPT = """(selectors) => {
    for (const selector of selectors) {
        document.querySelectorAll(selector).forEach((el) => {
            if (el && el.style) {
                el.style.display = 'none';
                el.style.visibility = 'hidden';
            }
        });
    }
}"""

# innerText only honours layout on attached nodes, so noise is hidden in
# place and restored after the read.
_TEXT_SCRIPT = """([noise, limit]) => {
    const body = document.body;
    if (!body) return '';
    const hidden = [];
    body.querySelectorAll(noise).forEach((el) => {
        if (el && el.style) {
            hidden.push([el, el.style.getPropertyValue('display'),
                         el.style.getPropertyPriority('display')]);
            el.style.setProperty('display', 'none', 'important');
        }
    });
    try {
        const text = (body.innerText || '').replace(/\\n{3,}/g, '\\n\\n').trim();
        return text.substring(0, limit);
    } finally {
        for (const [el, value, priority] of hidden) {
            if (value) el.style.setProperty('display', value, priority);
            else el.style.removeProperty('display');
        }
    }
}"""


class PageCaptureService:
    """Capture pages and turn them into bookmark records."""

    def __init__(
        self,
        screenshot_dir: str | Path,
        llm_client: ILLMClient | None = None,
        headless: bool = True,
        navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
        hide_selectors: Mapping[str, str] | None = None,
    ) -> None:
        """Create the screenshot folder and keep the capture options.

        Raises:
            CaptureError: the screenshot folder cannot be created.
        """
        self._dir = Path(screenshot_dir).resolve()
        self._llm = llm_client
        self.headless = bool(headless)
        self._nav_timeout = int(navigation_timeout_ms or DEFAULT_NAVIGATION_TIMEOUT_MS)
        self._hide_selectors: dict[str, str] = dict(DEFAULT_HIDE_SELECTORS)
        if hide_selectors:
            self._hide_selectors.update(hide_selectors)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as ex:
            raise CaptureError(f"Failed to create screenshot directory {self._dir}") from ex

    @classmethod
    def from_settings(
        cls, settings: Any, screenshot_dir: str | Path, llm_client: ILLMClient | None
    ) -> PageCaptureService:
        """Build the service from `capture.*` settings."""
        raw_selectors = settings.get("capture.hide_selectors", {})
        extra = (
            {str(k): str(v) for k, v in raw_selectors.items()}
            if isinstance(raw_selectors, dict)
            else {}
        )
        try:
            timeout = int(
                settings.get("capture.navigation_timeout_ms", DEFAULT_NAVIGATION_TIMEOUT_MS)
            )
        except (TypeError, ValueError):
            timeout = DEFAULT_NAVIGATION_TIMEOUT_MS
        return cls(
            screenshot_dir=screenshot_dir,
            llm_client=llm_client,
            headless=bool(settings.get("capture.headless", True)),
            navigation_timeout_ms=timeout,
            hide_selectors=extra,
        )

    @property
    def screenshot_dir(self) -> Path:
        """Folder that receives capture screenshots."""
        return self._dir

    @property
    def hide_selectors(self) -> dict[str, str]:
        """Selector -> intent mapping used to hide consent overlays."""
        return dict(self._hide_selectors)

    # Public API
    def capture(self, url: str) -> BookmarkRecord:
        """Navigate to `url`, extract content, screenshot it and ask the LLM for tags.

        Raises:
            CaptureError: the browser session could not be started.
        """
        url = normalize_url(url)
        logger.info("Capturing {} (headless={})", url, self.headless)
        title, text, shot_path = self._run_session(url, extract=True)

        content = f"Title: {title}\n\nContent Snippet:\n{text}"
        tags, description = self._enrich(url, content)

        return BookmarkRecord(
            url=url,
            title=title or UNTITLED,
            description=description or "",
            tags=tags or "",
            date=now_iso(),
            favorite=False,
            screenshot=shot_path if shot_path and Path(shot_path).is_file() else "",
        )

    def take_screenshot(self, url: str) -> str:
        """Capture only a fresh screenshot of `url`; return its path or "".

        Raises:
            CaptureError: the browser session could not be started.
        """
        url = normalize_url(url)
        logger.info("Taking screenshot of {} (headless={})", url, self.headless)
        _, _, shot_path = self._run_session(url, extract=False)
        return shot_path if shot_path and Path(shot_path).is_file() else ""

    # Session
    def _run_session(self, url: str, extract: bool) -> tuple[str, str, str]:
        """Run one isolated browser session; return (title, text, screenshot path)."""
        title, text, shot_path = UNTITLED, "", ""
        try:
            with sync_playwright() as pw:
                browser = pw.chromium.launch(headless=self.headless, args=LAUNCH_ARGS)
                try:
                    context = browser.new_context(user_agent=USER_AGENT, viewport=VIEWPORT)
                    page = context.new_page()
                    self._navigate(page, url)
                    if extract:
                        title = self._read_title(page, url)
                    self._hide_overlays(page)
                    if extract:
                        text = self._extract_text(page, url)
                    shot_path = self._screenshot(page, url)
                finally:
                    self._close(browser, url)
        except PlaywrightError as ex:
            logger.error("Browser session failed for {}: {}", url, ex)
            raise CaptureError(f"Failed to process URL {url}. Cause: {ex}") from ex
        return title, text, shot_path

    def _navigate(self, page: Page, url: str) -> None:
        try:
            page.goto(url, wait_until="networkidle", timeout=self._nav_timeout)
        except PlaywrightError as ex:
            logger.warning("Navigation warning for {}: {}. Proceeding...", url, ex)

    def _read_title(self, page: Page, url: str) -> str:
        try:
            return page.title() or UNTITLED
        except PlaywrightError as ex:
            logger.warning("Could not get title for {}: {}", url, ex)
            return UNTITLED

    def _hide_overlays(self, page: Page) -> None:
        try:
            page.evaluate(_HIDE_SCRIPT, list(self._hide_selectors))
            page.wait_for_timeout(HIDE_SETTLE_MS)
        except PlaywrightError as ex:
            logger.warning("Could not hide cookie banners: {}", ex)

    def _extract_text(self, page: Page, url: str) -> str:
        try:
            return str(page.evaluate(_TEXT_SCRIPT, [NOISE_SELECTOR, MAX_TEXT_CHARS]) or "")
        except PlaywrightError as ex:
            logger.error("Error extracting text from {}: {}", url, ex)
            return EXTRACTION_FAILED

    def _next_screenshot_path(self, url: str) -> Path:
        epoch_ms = int(time.time() * 1000)
        path = self._dir / screenshot_filename(url, epoch_ms)
        # same URL twice within one millisecond
        while path.exists():
            epoch_ms += 1
            path = self._dir / screenshot_filename(url, epoch_ms)
        return path

    def _screenshot(self, page: Page, url: str) -> str:
        path = self._next_screenshot_path(url)
        try:
            page.screenshot(path=str(path), full_page=False, clip=SCREENSHOT_CLIP)
        except (PlaywrightError, OSError) as ex:
            logger.error("Screenshot error for {}: {}", url, ex)
            try:
                path.unlink(missing_ok=True)
            except OSError as cleanup_ex:
                logger.warning("Could not remove partial screenshot {}: {}", path, cleanup_ex)
            return ""
        logger.info("Screenshot saved to: {}", path)
        return str(path)

    def _close(self, browser: Any, url: str) -> None:
        try:
            browser.close()
        except PlaywrightError as ex:
            logger.error("Error closing browser for {}: {}", url, ex)

    # Enrichment
    def _enrich(self, url: str, content: str) -> tuple[str, str]:
        """Return (tags, description); each defaults to "" on failure."""
        if self._llm is None:
            logger.warning("LLM client not available during processing of {}", url)
            return "", ""
        tags = description = ""
        try:
            tags = self._llm.generate_tags(url, content)
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("LLM error (tags) for {}: {}", url, ex)
        try:
            description = self._llm.generate_description(url, content)
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("LLM error (description) for {}: {}", url, ex)
        return tags or "", description or ""
