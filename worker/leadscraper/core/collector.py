"""Incremental discovery of listing handles in the lazily loaded results feed."""

from __future__ import annotations

import logging
import time
from typing import Any, List, Optional

from leadscraper.core.browser import FEED_SELECTOR, LISTING_SELECTOR, BrowserSession
from leadscraper.core.config import Settings
from leadscraper.core.errors import BrowserError

logger = logging.getLogger(__name__)


class ResultCollector:
    """Scroll the results feed until `limit` listings are visible or loading stalls.

    The feed has no "finished loading" event, so every attempt scrolls, sleeps
    for the settle delay and re-counts. The loop stops when:

    * the count reaches `limit` (the handles are truncated to `limit`);
    * the count did not grow since the previous attempt (plateau);
    * the attempt budget is spent.

    Returning fewer than `limit` handles is a normal outcome, never an error.
    """

    def __init__(self, session: BrowserSession, *, settings: Optional[Settings] = None) -> None:
        self.session = session
        self.settings = settings or session.settings

    def collect(self, limit: int) -> List[Any]:
        if limit <= 0:
            return []

        driver = self.session.driver
        max_attempts = self.settings.max_scroll_attempts
        previous_count: Optional[int] = None
        best: List[Any] = []

        for attempt in range(1, max_attempts + 1):
            try:
                driver.scroll(FEED_SELECTOR)
            except BrowserError as exc:
                logger.error("Could not scroll results feed: %s", exc)
                return self._largest(best, self._visible(), limit)

            time.sleep(self.settings.scroll_settle_delay)
            listings = self._visible()
            count = len(listings)
            best = self._largest(best, listings, limit)
            logger.info(
                "Scroll attempt %s/%s: current=%s desired=%s", attempt, max_attempts, count, limit
            )

            if count >= limit:
                logger.info("Reached desired number of listings (found=%s, desired=%s)", count, limit)
                return best

            if previous_count is not None and count <= previous_count:
                logger.info("No new listings after scrolling; reached end of results (found=%s)", len(best))
                return best

            previous_count = count

        logger.info("Scroll budget exhausted (found=%s, desired=%s)", len(best), limit)
        return best

    def _visible(self) -> List[Any]:
        try:
            return self.session.driver.list_elements(LISTING_SELECTOR)
        except BrowserError as exc:
            logger.error("Could not list results: %s", exc)
            return []

    @staticmethod
    def _largest(best: List[Any], listings: List[Any], limit: int) -> List[Any]:
        """Keep the largest set of handles seen so far, truncated to `limit`."""
        return listings[:limit] if len(listings) > len(best) else best
