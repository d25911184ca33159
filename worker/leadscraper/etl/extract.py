"""Read raw business details from the Maps place panel."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Optional

from leadscraper.core.browser import BrowserSession
from leadscraper.core.config import Settings
from leadscraper.core.errors import BrowserError, ExtractionFieldError, ItemProcessingError
from leadscraper.core.models import RawRecord

logger = logging.getLogger(__name__)

SELECTORS = {
    "name": "h1.DUwDvf",
    "address": 'button[data-item-id="address"] div.fontBodyMedium',
    "website": 'a[data-item-id="authority"]',
    "phone": 'button[data-item-id^="phone:tel:"] div.fontBodyMedium',
    "review_count": "div.F7nice span[aria-label]",
    "rating": 'div.F7nice span[aria-hidden="true"]',
    "introduction": "div.WeS02d div.PYvSYb",
    "category": "div.LBgpqf button.DkEaL",
    "hours": 'button[data-item-id="oh"] div.fontBodyMedium',
}

PANEL_POLL_INTERVAL = 0.25

_NON_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_number(text: Optional[str]) -> float:
    """Strip everything but digits and dots and parse the leading number.

    >>> parse_number("4.5 stars")
    4.5
    >>> parse_number("(1,234)")
    1234.0
    >>> parse_number("No rating")
    0.0
    """
    cleaned = _NON_NUMERIC.sub("", text or "")
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0))


@dataclass(frozen=True)
class FieldResult:
    """Outcome of reading one field: either a value or the error that prevented it."""

    value: Optional[str] = None
    error: Optional[ExtractionFieldError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: Optional[str]) -> Optional[str]:
        return self.value if self.ok else default


class RecordExtractor:
    """Open one listing in the results feed and read its detail panel."""

    def __init__(self, session: BrowserSession, *, settings: Optional[Settings] = None) -> None:
        self.session = session
        self.settings = settings or session.settings

    def _heading(self) -> Optional[str]:
        try:
            return self.session.driver.read_text(SELECTORS["name"]).strip()
        except BrowserError:
            return None

    def _label(self, handle: Any) -> Optional[str]:
        try:
            label = self.session.driver.element_attribute(handle, "aria-label")
        except BrowserError:
            return None
        return label.strip() if label else None

    def open_listing(self, handle: Any) -> None:
        """Click a listing and wait until its own detail panel is showing.

        The previous listing's panel stays on the page until the new one
        renders, so a visible heading is not enough: it must differ from the
        heading shown before the click or match the listing's label.
        """
        driver = self.session.driver
        timeout = self.settings.detail_timeout
        previous = self._heading()
        label = self._label(handle)
        try:
            driver.click(handle)
            deadline = time.monotonic() + timeout
            while True:
                driver.wait_for_element(SELECTORS["name"], max(deadline - time.monotonic(), 0))
                heading = driver.read_text(SELECTORS["name"]).strip()
                if heading != previous or (label is not None and heading == label):
                    return
                if time.monotonic() >= deadline:
                    raise ItemProcessingError(f"detail panel still shows {previous!r} after {timeout:g}s")
                time.sleep(PANEL_POLL_INTERVAL)
        except BrowserError as exc:
            raise ItemProcessingError(f"detail panel did not load: {exc}") from exc

    def read_field(self, selector: str) -> FieldResult:
        driver = self.session.driver
        try:
            driver.wait_for_element(selector, self.settings.field_timeout)
            return FieldResult(value=driver.read_text(selector))
        except BrowserError as exc:
            logger.debug("Failed to extract text for selector %s: %s", selector, exc)
            return FieldResult(error=ExtractionFieldError(selector, str(exc)))

    def read_link(self, selector: str, attribute: str = "href") -> FieldResult:
        # Websites are optional, so the link is looked up without waiting.
        try:
            value = self.session.driver.read_attribute(selector, attribute)
        except BrowserError as exc:
            logger.debug("No %s attribute for selector %s: %s", attribute, selector, exc)
            return FieldResult(error=ExtractionFieldError(selector, str(exc)))
        if value is None:
            return FieldResult(error=ExtractionFieldError(selector, f"missing {attribute} attribute"))
        return FieldResult(value=value)

    def extract(self) -> RawRecord:
        """Read every field of the open detail panel; failed fields stay None."""
        fields = {key: self.read_field(selector) for key, selector in SELECTORS.items() if key != "website"}
        website = self.read_link(SELECTORS["website"])

        record = RawRecord(
            name=fields["name"].unwrap_or(None),
            address=fields["address"].unwrap_or(None),
            website=website.unwrap_or(None),
            phone=fields["phone"].unwrap_or(None),
            review_count_text=fields["review_count"].unwrap_or(None),
            rating_text=fields["rating"].unwrap_or(None),
            introduction=fields["introduction"].unwrap_or(None),
            category=fields["category"].unwrap_or(None),
            hours=fields["hours"].unwrap_or(None),
        )
        missing = [key for key, result in fields.items() if not result.ok]
        logger.info(
            "Extracted %r (website=%s, missing=%s)",
            record.name,
            website.ok,
            ",".join(missing) or "none",
        )
        return record

    def extract_listing(self, handle: Any, position: int) -> Optional[RawRecord]:
        """Open and read one listing, returning None when the listing cannot be opened."""
        try:
            self.open_listing(handle)
            return self.extract()
        except ItemProcessingError as exc:
            logger.error("Error processing listing %s: %s", position, exc)
            return None
        finally:
            if self.settings.item_delay > 0:
                time.sleep(self.settings.item_delay)
