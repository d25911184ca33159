"""Exception hierarchy shared by the scraping pipeline and the HTTP layer."""

from __future__ import annotations


class ScraperError(RuntimeError):
    """Base class for every error raised by the scraper."""


class ValidationError(ScraperError):
    """Raised when a scrape request is missing a query or location."""


class NotFoundError(ScraperError):
    """Raised when a job id is unknown to the store."""


class DuplicateJobError(ScraperError):
    """Raised when a job id is created twice."""


class JobStateError(ScraperError):
    """Raised on an attempt to move a job out of a terminal status."""


class BrowserError(ScraperError):
    """Raised by a browser driver when an automation step fails."""


class BrowserTimeoutError(BrowserError):
    """Raised by a browser driver when a navigation or element wait expires."""


class SessionTimeoutError(ScraperError):
    """Raised when loading the search results exceeds the session deadline."""


class ExtractionFieldError(ScraperError):
    """A single detail-panel field could not be read."""

    def __init__(self, selector: str, reason: str) -> None:
        super().__init__(f"{selector}: {reason}")
        self.selector = selector
        self.reason = reason


class ItemProcessingError(ScraperError):
    """A listing could not be opened, so its detail panel never rendered."""


class JobExecutionError(ScraperError):
    """Wraps an unexpected failure that reached the top of a background job."""
