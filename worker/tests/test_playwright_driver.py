import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from leadscraper.core.config import Settings
from leadscraper.core.errors import BrowserError, BrowserTimeoutError
from leadscraper.vendors import playwright_driver


class DummyElement:
    def __init__(self, text="", attributes=None, click_error=None):
        self.text = text
        self.attributes = attributes or {}
        self.click_error = click_error
        self.clicks = []

    def text_content(self):
        return self.text

    def get_attribute(self, name):
        return self.attributes.get(name)

    def click(self, timeout=None):
        self.clicks.append(timeout)
        if self.click_error:
            raise self.click_error


class DummyPage:
    def __init__(self, elements=None):
        self.elements = elements or {}
        self.calls = []

    def goto(self, url, timeout=None, wait_until=None):
        self.calls.append(("goto", url, timeout, wait_until))

    def wait_for_selector(self, selector, timeout=None):
        self.calls.append(("wait", selector, timeout))
        if selector not in self.elements:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded")

    def query_selector(self, selector):
        return self.elements.get(selector)

    def query_selector_all(self, selector):
        found = self.elements.get(selector)
        return list(found) if isinstance(found, list) else []

    def eval_on_selector(self, selector, expression):
        self.calls.append(("eval", selector, expression))
        if selector not in self.elements:
            raise PlaywrightError(f"failed to find element matching selector {selector}")


class DummyClosable:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class DummyPlaywright:
    def __init__(self):
        self.stopped = False

    def stop(self):
        self.stopped = True


def _driver_with(page):
    driver = playwright_driver.PlaywrightDriver()
    driver._page = page
    return driver


def test_navigate_converts_seconds_to_milliseconds():
    page = DummyPage()

    _driver_with(page).navigate("https://maps.example.com", 60)

    assert page.calls == [("goto", "https://maps.example.com", 60000, "domcontentloaded")]


def test_wait_timeout_is_translated():
    driver = _driver_with(DummyPage())

    with pytest.raises(BrowserTimeoutError):
        driver.wait_for_element("h1.DUwDvf", 2)


def test_read_text_and_attribute():
    page = DummyPage(
        {
            "h1": DummyElement(text="Acme Bakery"),
            "a.site": DummyElement(attributes={"href": "https://acme.example.com"}),
        }
    )
    driver = _driver_with(page)

    assert driver.read_text("h1") == "Acme Bakery"
    assert driver.read_attribute("a.site", "href") == "https://acme.example.com"
    assert driver.read_attribute("a.site", "title") is None


def test_read_missing_element_raises_browser_error():
    driver = _driver_with(DummyPage())

    with pytest.raises(BrowserError):
        driver.read_text("h1")
    with pytest.raises(BrowserError):
        driver.read_attribute("a.site", "href")


def test_click_interception_is_translated():
    element = DummyElement(click_error=PlaywrightError("element intercepts pointer events"))

    with pytest.raises(BrowserError) as excinfo:
        _driver_with(DummyPage()).click(element)

    assert not isinstance(excinfo.value, BrowserTimeoutError)
    assert element.clicks == [playwright_driver.ACTION_TIMEOUT_MS]


def test_scroll_and_list_elements():
    handles = [DummyElement(), DummyElement()]
    page = DummyPage({'div[role="feed"]': DummyElement(), "a.place": handles})
    driver = _driver_with(page)

    driver.scroll('div[role="feed"]')

    assert driver.list_elements("a.place") == handles
    assert page.calls[0][0] == "eval"
    with pytest.raises(BrowserError):
        driver.scroll("div.missing")


def test_unopened_driver_raises():
    with pytest.raises(BrowserError):
        playwright_driver.PlaywrightDriver().read_text("h1")


def test_close_releases_everything_and_is_idempotent():
    driver = playwright_driver.PlaywrightDriver()
    context, browser, pw = DummyClosable(), DummyClosable(), DummyPlaywright()
    driver._context, driver._browser, driver._playwright = context, browser, pw
    driver._page = DummyPage()

    driver.close()
    driver.close()

    assert context.closed and browser.closed and pw.stopped
    assert driver._page is None


def test_factory_builds_fresh_drivers():
    factory = playwright_driver.playwright_driver_factory(Settings(headless=False))

    first, second = factory(), factory()

    assert first is not second
    assert first.headless is False


def test_close_survives_playwright_stop_failure():
    class BrokenPlaywright:
        def stop(self):
            raise RuntimeError("event loop is closed")

    driver = playwright_driver.PlaywrightDriver()
    browser = DummyClosable()
    driver._browser, driver._playwright = browser, BrokenPlaywright()

    driver.close()

    assert browser.closed
    assert driver._playwright is None


def test_element_attribute_reads_listing_label():
    element = DummyElement(attributes={"aria-label": "Acme Bakery"})

    assert _driver_with(DummyPage()).element_attribute(element, "aria-label") == "Acme Bakery"
