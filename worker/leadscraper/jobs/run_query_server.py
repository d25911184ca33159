"""HTTP entrypoint that accepts Maps scraping jobs and serves their results."""

from __future__ import annotations

import logging
import os
import threading
from typing import Any, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from leadscraper.core.config import get_settings
from leadscraper.core.errors import NotFoundError, ScraperError, ValidationError
from leadscraper.core.job_store import InMemoryJobStore
from leadscraper.core.models import JobStatus
from leadscraper.jobs.orchestrator import JobOrchestrator
from leadscraper.vendors.playwright_driver import playwright_driver_factory

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & orchestrator ----------
app = Flask(__name__)
CORS(app, resources={r"/api/*": {"origins": list(get_settings().cors_origins)}}, supports_credentials=True)

_orchestrator: Optional[JobOrchestrator] = None
_orchestrator_lock = threading.Lock()


def get_orchestrator() -> JobOrchestrator:
    """Build the process-wide orchestrator on first use."""
    global _orchestrator
    if _orchestrator is not None:
        return _orchestrator
    with _orchestrator_lock:
        if _orchestrator is None:
            settings = get_settings()
            _orchestrator = JobOrchestrator(
                store=InMemoryJobStore(),
                driver_factory=playwright_driver_factory(settings),
                settings=settings,
            )
            logger.info("Job orchestrator initialised (max_concurrent_jobs=%s)", settings.max_concurrent_jobs)
    return _orchestrator


# ---------- Errors ----------


def _error_response(message: str, status: int) -> Any:
    return jsonify({"error": message, "status": status}), status


@app.errorhandler(ValidationError)
def handle_validation_error(exc: ValidationError) -> Any:
    return _error_response(str(exc), 400)


@app.errorhandler(NotFoundError)
def handle_not_found(exc: NotFoundError) -> Any:
    return _error_response(str(exc), 404)


@app.errorhandler(HTTPException)
def handle_http_error(exc: HTTPException) -> Any:
    return _error_response(exc.name, exc.code or 500)


@app.errorhandler(ScraperError)
def handle_scraper_error(exc: ScraperError) -> Any:
    logger.error("API error: %s", exc)
    return _error_response(str(exc) or "Internal Server Error", 500)


# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "port": settings.port,
                "max_concurrent_jobs": settings.max_concurrent_jobs,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.post("/api/scrape")
def enqueue_scrape() -> Any:
    """
    Start a scraping job.
    Required JSON fields: query, location
    Optional: limit (positive int, default 10)
    """
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    job_id = get_orchestrator().submit(
        payload.get("query"),
        payload.get("location"),
        payload.get("limit"),
    )
    return jsonify({"message": "Scraping job started", "jobId": job_id}), 201


@app.get("/api/jobs/<job_id>")
def get_job(job_id: str) -> Any:
    job = get_orchestrator().store.get(job_id)
    return jsonify(job.to_dict()), 200


@app.get("/api/jobs/<job_id>/businesses")
def get_job_businesses(job_id: str) -> Any:
    job = get_orchestrator().store.get(job_id)

    if job.status is JobStatus.PENDING:
        return jsonify({"status": job.status.value, "message": "Scraping is still in progress"}), 200

    if job.status is JobStatus.FAILED:
        return _error_response(f"Job failed: {job.error}", 500)

    return (
        jsonify(
            {
                "status": job.status.value,
                "businesses": [business.to_dict() for business in job.businesses],
                "total": job.results_count,
            }
        ),
        200,
    )


def main() -> None:
    settings = get_settings()
    logger.info("[BOOT] Binding on 0.0.0.0:%d", settings.port)
    app.run(host="0.0.0.0", port=settings.port, threaded=True)


if __name__ == "__main__":
    main()
