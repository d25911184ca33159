import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

# Ensure the `leadscraper` package is importable when running pytest from the worker directory.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from leadscraper.core.browser import (  # noqa: E402
    CONSENT_BUTTON_SELECTOR,
    FEED_SELECTOR,
    LISTING_SELECTOR,
    BrowserDriver,
)
from leadscraper.core.config import Settings  # noqa: E402
from leadscraper.core.errors import BrowserError, BrowserTimeoutError  # noqa: E402
from leadscraper.etl.extract import SELECTORS  # noqa: E402

FIELD_BY_SELECTOR = {selector: key for key, selector in SELECTORS.items()}


@dataclass(frozen=True)
class FakeHandle:
    index: int


class FakeMapsDriver(BrowserDriver):
    """In-memory stand-in for a Maps results page.

    Listings become visible in batches as the feed is scrolled. A listing dict
    maps field keys from SELECTORS to the text shown in its detail panel;
    `broken=True` means the panel never renders, `click_fails=True` means
    the click is intercepted and `stale_panel=True` means the click is
    accepted but the previous listing's panel stays on screen.
    """

    def __init__(self, listings, *, initial=3, batch=3, fail_navigation=False, consent=False, scroll_fails=False):
        self.listings = list(listings)
        self.visible = min(initial, len(self.listings))
        self.batch = batch
        self.fail_navigation = fail_navigation
        self.consent = consent
        self.scroll_fails = scroll_fails
        self.opened = False
        self.closed = False
        self.scrolls = 0
        self.visited = []
        self.clicked = []
        self.consent_dismissed = False
        self.current = None

    def open(self):
        self.opened = True

    def close(self):
        self.closed = True

    def navigate(self, url, timeout):
        self.visited.append((url, timeout))
        if self.fail_navigation:
            raise BrowserTimeoutError("navigation timed out")

    def wait_for_element(self, selector, timeout):
        if selector == LISTING_SELECTOR:
            if not self.listings:
                raise BrowserTimeoutError("no listings rendered")
            return
        listing = self._current_listing()
        key = FIELD_BY_SELECTOR.get(selector)
        if listing.get("broken") or not listing.get(key):
            raise BrowserTimeoutError(f"{selector} not found")

    def read_text(self, selector):
        value = self._current_listing().get(FIELD_BY_SELECTOR.get(selector))
        if value is None:
            raise BrowserError(f"no element matches {selector}")
        return value

    def read_attribute(self, selector, name):
        key = FIELD_BY_SELECTOR.get(selector)
        value = self._current_listing().get(key)
        if key != "website" or value is None:
            raise BrowserError(f"no element matches {selector}")
        return value

    def element_attribute(self, element, name):
        if name != "aria-label":
            return None
        return self.listings[element.index].get("name")

    def click(self, element):
        if element == "consent":
            self.consent_dismissed = True
            return
        self.clicked.append(element.index)
        if self.listings[element.index].get("click_fails"):
            raise BrowserError("click intercepted")
        if self.listings[element.index].get("stale_panel"):
            return
        self.current = element.index

    def scroll(self, container):
        assert container == FEED_SELECTOR
        if self.scroll_fails:
            raise BrowserError("feed not found")
        self.scrolls += 1
        self.visible = min(len(self.listings), self.visible + self.batch)

    def list_elements(self, selector):
        if selector == LISTING_SELECTOR:
            return [FakeHandle(index) for index in range(self.visible)]
        if selector == CONSENT_BUTTON_SELECTOR and self.consent and not self.consent_dismissed:
            return ["consent"]
        return []

    def _current_listing(self):
        if self.current is None:
            raise BrowserError("no listing is open")
        return self.listings[self.current]


def build_listing(index, **overrides):
    listing = {
        "name": f"Bakery {index}",
        "address": f"{index} Main St, Boston, MA",
        "website": f"https://bakery{index}.example.com/",
        "phone": f"(617) 555-01{index:02d}",
        "review_count": "(1,234)",
        "rating": "4.5",
        "introduction": "Fresh bread every morning",
        "category": "Bakery",
        "hours": "Open ⋅ Closes 6 PM",
    }
    listing.update(overrides)
    return listing


class ImmediateExecutor:
    """Runs submitted work inline so background jobs finish before assertions."""

    def __init__(self):
        self.submitted = []

    def submit(self, fn, *args, **kwargs):
        self.submitted.append((fn, args))
        fn(*args, **kwargs)

    def shutdown(self, wait=True):
        pass


class RecordingExecutor(ImmediateExecutor):
    """Accepts work without running it, like a saturated worker pool."""

    def submit(self, fn, *args, **kwargs):
        self.submitted.append((fn, args))


@pytest.fixture
def settings():
    return Settings(scroll_settle_delay=0, item_delay=0, max_scroll_attempts=5)


@pytest.fixture
def make_listings():
    def _make(count, **overrides):
        return [build_listing(index, **overrides) for index in range(count)]

    return _make


@pytest.fixture
def make_driver():
    return FakeMapsDriver


@pytest.fixture
def immediate_executor():
    return ImmediateExecutor()


@pytest.fixture
def recording_executor():
    return RecordingExecutor()
