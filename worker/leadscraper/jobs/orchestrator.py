"""Job lifecycle: accept a scrape request, run it in the background, record the outcome."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, List, Optional, Tuple

from leadscraper.core.browser import BrowserSession, DriverFactory
from leadscraper.core.collector import ResultCollector
from leadscraper.core.config import Settings, get_settings
from leadscraper.core.errors import JobExecutionError, ScraperError, ValidationError
from leadscraper.core.job_store import JobStore
from leadscraper.core.models import Business, Job, RawRecord
from leadscraper.etl.extract import RecordExtractor
from leadscraper.etl.transform import to_businesses

logger = logging.getLogger(__name__)


def validate_request(query: Any, location: Any, limit: Any, *, default_limit: int) -> Tuple[str, str, int]:
    """Normalise a scrape request or raise ValidationError."""
    for value in (query, location):
        if value is not None and not isinstance(value, str):
            raise ValidationError("Query and location must be strings")
    query = (query or "").strip()
    location = (location or "").strip()
    if not query or not location:
        raise ValidationError("Query and location are required and cannot be empty")

    if limit is None:
        return query, location, default_limit
    try:
        parsed_limit = int(str(limit).strip())
    except ValueError as exc:
        raise ValidationError("limit must be a positive integer") from exc
    if parsed_limit <= 0:
        raise ValidationError("limit must be a positive integer")
    return query, location, parsed_limit


def describe_failure(exc: BaseException) -> str:
    if isinstance(exc, JobExecutionError):
        return str(exc)
    return f"{type(exc).__name__}: {exc}"


class JobOrchestrator:
    """Create jobs and execute their scraping pipeline off the request path.

    Each job runs exactly once on the executor with its own browser session.
    Jobs that arrive while every worker is busy wait in the executor queue and
    stay pending until picked up.
    """

    def __init__(
        self,
        store: JobStore,
        driver_factory: DriverFactory,
        *,
        settings: Optional[Settings] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self.store = store
        self.driver_factory = driver_factory
        self.settings = settings or get_settings()
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.settings.max_concurrent_jobs,
            thread_name_prefix="scrape-job",
        )

    def submit(self, query: Any, location: Any, limit: Any = None) -> str:
        query, location, limit = validate_request(
            query, location, limit, default_limit=self.settings.default_limit
        )
        job = Job.new(query, location, limit)
        self.store.create(job)

        logger.info("Queueing scrape job %s: query=%s location=%s limit=%s", job.id, query, location, limit)
        self._executor.submit(self.run_job, job.id)
        return job.id

    def run_job(self, job_id: str) -> None:
        """Execute a stored pending job and write its terminal state. Never raises."""
        try:
            job = self.store.get(job_id)
        except ScraperError as exc:
            logger.error("Cannot run job %s: %s", job_id, exc)
            return
        if job.is_terminal:
            logger.warning("Job %s is already %s; not running it again", job_id, job.status.value)
            return

        try:
            businesses = self.scrape(job.query, job.location, job.limit)
            finished = job.complete(businesses)
            logger.info("Job %s completed with %s businesses", job_id, finished.results_count)
        except Exception as exc:  # noqa: BLE001
            if not isinstance(exc, ScraperError):
                exc = JobExecutionError(describe_failure(exc))
            logger.exception("Job %s failed: %s", job_id, exc)
            finished = job.fail(describe_failure(exc))

        try:
            self.store.update(finished)
        except ScraperError as exc:
            logger.error("Failed to record outcome of job %s: %s", job_id, exc)

    def scrape(self, query: str, location: str, limit: int) -> List[Business]:
        """Run the full pipeline synchronously and return validated businesses."""
        logger.info("Starting scraping job query=%s location=%s limit=%s", query, location, limit)

        records: List[RawRecord] = []
        with BrowserSession(self.driver_factory(), settings=self.settings) as session:
            session.navigate_and_search(query, location)
            listings = ResultCollector(session, settings=self.settings).collect(limit)
            logger.info("Found %s total listings", len(listings))

            extractor = RecordExtractor(session, settings=self.settings)
            for position, handle in enumerate(listings, start=1):
                logger.info("Processing listing %s/%s", position, len(listings))
                raw = extractor.extract_listing(handle, position)
                if raw is not None:
                    records.append(raw)

        businesses = to_businesses(records)
        success_rate = (len(businesses) / len(listings) * 100) if listings else 0.0
        logger.info(
            "Scraping completed: total_results=%s success_rate=%.1f%%", len(businesses), success_rate
        )
        return businesses

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
