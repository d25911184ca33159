"""Playwright implementation of the BrowserDriver capability interface."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from leadscraper.core.browser import BrowserDriver
from leadscraper.core.config import Settings, get_settings
from leadscraper.core.errors import BrowserError, BrowserTimeoutError

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
)
VIEWPORT = {"width": 1920, "height": 1080}
LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]
ACTION_TIMEOUT_MS = 5000


@contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    try:
        yield
    except PlaywrightTimeoutError as exc:
        raise BrowserTimeoutError(f"{action} timed out: {exc}") from exc
    except PlaywrightError as exc:
        raise BrowserError(f"{action} failed: {exc}") from exc


class PlaywrightDriver(BrowserDriver):
    """Chromium driven through the sync Playwright API.

    Every `open` starts a dedicated Playwright instance, browser and context, so
    cookies and storage never leak between jobs. The sync API is bound to the
    thread that started it; open, use and close a driver on one worker thread.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        user_agent: str = USER_AGENT,
        viewport: Optional[Dict[str, int]] = None,
    ) -> None:
        self.headless = headless
        self.user_agent = user_agent
        self.viewport = viewport or dict(VIEWPORT)
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    @property
    def page(self):
        if self._page is None:
            raise BrowserError("browser session is not open")
        return self._page

    def open(self) -> None:
        with _translate_errors("launch"):
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(headless=self.headless, args=LAUNCH_ARGS)
            self._context = self._browser.new_context(user_agent=self.user_agent, viewport=self.viewport)
            self._page = self._context.new_page()
            self._page.set_default_timeout(ACTION_TIMEOUT_MS)

    def close(self) -> None:
        for name in ("_context", "_browser"):
            resource = getattr(self, name)
            if resource is None:
                continue
            try:
                resource.close()
            except PlaywrightError as exc:
                logger.warning("Failed to close %s: %s", name.strip("_"), exc)
            setattr(self, name, None)
        self._page = None
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except Exception as exc:
                logger.warning("Failed to stop playwright: %s", exc)
            self._playwright = None

    def navigate(self, url: str, timeout: float) -> None:
        with _translate_errors(f"navigate to {url}"):
            self.page.goto(url, timeout=timeout * 1000, wait_until="domcontentloaded")

    def wait_for_element(self, selector: str, timeout: float) -> None:
        with _translate_errors(f"wait for {selector}"):
            self.page.wait_for_selector(selector, timeout=timeout * 1000)

    def read_text(self, selector: str) -> str:
        with _translate_errors(f"read text of {selector}"):
            element = self.page.query_selector(selector)
            if element is None:
                raise BrowserError(f"no element matches {selector}")
            return element.text_content() or ""

    def read_attribute(self, selector: str, name: str) -> Optional[str]:
        with _translate_errors(f"read {name} of {selector}"):
            element = self.page.query_selector(selector)
            if element is None:
                raise BrowserError(f"no element matches {selector}")
            return element.get_attribute(name)

    def element_attribute(self, element: Any, name: str) -> Optional[str]:
        with _translate_errors(f"read {name} of element"):
            return element.get_attribute(name)

    def click(self, element: Any) -> None:
        with _translate_errors("click"):
            element.click(timeout=ACTION_TIMEOUT_MS)

    def scroll(self, container: str) -> None:
        with _translate_errors(f"scroll {container}"):
            self.page.eval_on_selector(container, "el => el.scrollTo(0, el.scrollHeight)")

    def list_elements(self, selector: str) -> List[Any]:
        with _translate_errors(f"list {selector}"):
            return self.page.query_selector_all(selector)


def playwright_driver_factory(settings: Optional[Settings] = None):
    """Return a zero-argument factory producing fresh PlaywrightDrivers."""
    settings = settings or get_settings()

    def factory() -> PlaywrightDriver:
        return PlaywrightDriver(headless=settings.headless)

    return factory
