"""Client utilities for the scraping jobs HTTP API."""

import logging
import time
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10


def _build_session() -> requests.Session:
    session = requests.Session()
    # Only idempotent polling is retried; a retried POST would start a second job.
    retries = Retry(
        total=3,
        backoff_factor=1,
        status_forcelist=(502, 503, 504),
        allowed_methods=("GET",),
    )
    session.mount("http://", HTTPAdapter(max_retries=retries))
    session.mount("https://", HTTPAdapter(max_retries=retries))
    return session


_SESSION = _build_session()


class JobsApiError(RuntimeError):
    """Raised when the jobs API rejects a request or a job ends in failure."""


def _error_message(response: Any) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    return payload.get("error") or f"HTTP {response.status_code}"


def submit_scrape(base_url: str, query: str, location: str, limit: Optional[int] = None) -> str:
    body: Dict[str, Any] = {"query": query, "location": location}
    if limit is not None:
        body["limit"] = limit
    response = _SESSION.post(f"{base_url.rstrip('/')}/api/scrape", json=body, timeout=REQUEST_TIMEOUT)
    if response.status_code >= 400:
        raise JobsApiError(_error_message(response))
    job_id = response.json()["jobId"]
    logger.info("Submitted scrape job %s", job_id)
    return job_id


def get_job(base_url: str, job_id: str) -> Dict[str, Any]:
    response = _SESSION.get(f"{base_url.rstrip('/')}/api/jobs/{job_id}", timeout=REQUEST_TIMEOUT)
    if response.status_code >= 400:
        raise JobsApiError(_error_message(response))
    return response.json()


def get_businesses(base_url: str, job_id: str) -> Dict[str, Any]:
    response = _SESSION.get(f"{base_url.rstrip('/')}/api/jobs/{job_id}/businesses", timeout=REQUEST_TIMEOUT)
    if response.status_code >= 400:
        raise JobsApiError(_error_message(response))
    return response.json()


def wait_for_businesses(
    base_url: str,
    job_id: str,
    *,
    poll_interval: float = 2.0,
    timeout: float = 600.0,
) -> Dict[str, Any]:
    """Poll until the job completes and return its businesses payload."""
    deadline = time.monotonic() + timeout
    while True:
        payload = get_businesses(base_url, job_id)
        if payload.get("status") != "pending":
            return payload
        if time.monotonic() >= deadline:
            raise JobsApiError(f"Job {job_id} still pending after {timeout:g}s")
        logger.debug("Job %s pending; polling again in %ss", job_id, poll_interval)
        time.sleep(poll_interval)
