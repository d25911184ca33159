"""CLI job to scrape Maps listings, either in-process or through a running API server."""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from leadscraper.core.config import ConfigError, get_settings
from leadscraper.core.errors import ScraperError
from leadscraper.core.job_store import InMemoryJobStore
from leadscraper.jobs.orchestrator import JobOrchestrator, validate_request
from leadscraper.vendors import jobs_api
from leadscraper.vendors.playwright_driver import playwright_driver_factory

logger = logging.getLogger(__name__)


def run_local(query: str, location: str, limit: Optional[int]) -> List[Dict[str, Any]]:
    settings = get_settings()
    query, location, limit = validate_request(query, location, limit, default_limit=settings.default_limit)
    orchestrator = JobOrchestrator(
        store=InMemoryJobStore(),
        driver_factory=playwright_driver_factory(settings),
        settings=settings,
    )
    try:
        businesses = orchestrator.scrape(query, location, limit)
    finally:
        orchestrator.shutdown(wait=False)
    return [business.to_dict() for business in businesses]


def run_remote(server: str, query: str, location: str, limit: Optional[int], poll_interval: float) -> List[Dict[str, Any]]:
    job_id = jobs_api.submit_scrape(server, query, location, limit)
    logger.info("Waiting for job %s on %s", job_id, server)
    payload = jobs_api.wait_for_businesses(server, job_id, poll_interval=poll_interval)
    return payload.get("businesses", [])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Scrape business listings from Google Maps")
    parser.add_argument("--query", dest="query", required=True, help="What to search for, e.g. 'bakeries'")
    parser.add_argument("--location", dest="location", required=True, help="Where to search, e.g. 'Boston'")
    parser.add_argument(
        "--limit",
        dest="limit",
        type=int,
        default=get_settings().default_limit,
        help="Maximum number of businesses to return",
    )
    parser.add_argument("--server", dest="server", help="Base URL of a running scraper API; scrape locally if omitted")
    parser.add_argument(
        "--poll-interval",
        dest="poll_interval",
        type=float,
        default=2.0,
        help="Seconds between status polls when using --server",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.server:
            businesses = run_remote(args.server, args.query, args.location, args.limit, args.poll_interval)
        else:
            businesses = run_local(args.query, args.location, args.limit)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    except (ScraperError, jobs_api.JobsApiError) as exc:
        logger.error("Scrape failed: %s", exc)
        raise SystemExit(1) from exc

    json.dump({"businesses": businesses, "total": len(businesses)}, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


if __name__ == "__main__":
    main()
