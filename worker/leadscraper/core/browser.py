"""Browser capability interface and the per-job session built on top of it."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional
from urllib.parse import quote_plus

from leadscraper.core.config import Settings, get_settings
from leadscraper.core.errors import BrowserError, BrowserTimeoutError, SessionTimeoutError

logger = logging.getLogger(__name__)

LISTING_SELECTOR = 'a[href^="https://www.google.com/maps/place"]'
FEED_SELECTOR = 'div[role="feed"]'
CONSENT_BUTTON_SELECTOR = 'button[aria-label="Accept all"]'


class BrowserDriver(ABC):
    """Narrow set of automation capabilities the pipeline relies on.

    Timeouts are expressed in seconds. Implementations raise
    BrowserTimeoutError when a wait expires and BrowserError for any other
    automation failure.
    """

    @abstractmethod
    def open(self) -> None:
        """Launch a fresh, isolated browser context."""

    @abstractmethod
    def close(self) -> None:
        """Release every resource acquired by `open`. Must be idempotent."""

    @abstractmethod
    def navigate(self, url: str, timeout: float) -> None:
        ...

    @abstractmethod
    def wait_for_element(self, selector: str, timeout: float) -> None:
        ...

    @abstractmethod
    def read_text(self, selector: str) -> str:
        ...

    @abstractmethod
    def read_attribute(self, selector: str, name: str) -> Optional[str]:
        ...

    @abstractmethod
    def element_attribute(self, element: Any, name: str) -> Optional[str]:
        """Read an attribute of an element returned by `list_elements`."""

    @abstractmethod
    def click(self, element: Any) -> None:
        ...

    @abstractmethod
    def scroll(self, container: str) -> None:
        ...

    @abstractmethod
    def list_elements(self, selector: str) -> List[Any]:
        ...


DriverFactory = Callable[[], BrowserDriver]


def build_search_url(maps_url: str, query: str, location: str) -> str:
    return f"{maps_url.rstrip('/')}/search/{quote_plus(f'{query} in {location}')}"


class BrowserSession:
    """One browser context scoped to a single job.

    Use as a context manager so the driver is closed on every exit path:

        with BrowserSession(driver_factory()) as session:
            session.navigate_and_search("bakeries", "Boston")
    """

    def __init__(self, driver: BrowserDriver, *, settings: Optional[Settings] = None) -> None:
        self.driver = driver
        self.settings = settings or get_settings()
        self._opened = False

    def open(self) -> "BrowserSession":
        logger.info("Launching browser session")
        self._opened = True
        self.driver.open()
        return self

    def navigate_and_search(self, query: str, location: str) -> None:
        """Load the search results for `query in location` within the session deadline."""
        timeout = self.settings.navigation_timeout
        deadline = time.monotonic() + timeout
        url = build_search_url(self.settings.maps_url, query, location)

        try:
            logger.info("Navigating to %s", url)
            self.driver.navigate(url, timeout)
            self._dismiss_consent()
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise BrowserTimeoutError("deadline exhausted during navigation")
            logger.info("Waiting for search results to load")
            self.driver.wait_for_element(LISTING_SELECTOR, remaining)
        except BrowserTimeoutError as exc:
            raise SessionTimeoutError(
                f"Search for '{query}' in '{location}' did not load within {timeout:g}s"
            ) from exc

    def _dismiss_consent(self) -> None:
        try:
            buttons = self.driver.list_elements(CONSENT_BUTTON_SELECTOR)
            if buttons:
                logger.info("Dismissing cookie consent prompt")
                self.driver.click(buttons[0])
        except BrowserError as exc:
            logger.debug("Consent prompt could not be dismissed: %s", exc)

    def close(self) -> None:
        if not self._opened:
            return
        logger.info("Cleaning up browser resources")
        self._opened = False
        try:
            self.driver.close()
        except BrowserError as exc:
            logger.warning("Browser cleanup failed: %s", exc)

    def __enter__(self) -> "BrowserSession":
        try:
            return self.open()
        except BaseException:
            self.close()
            raise

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        self.close()
