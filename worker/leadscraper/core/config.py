"""Application configuration helpers.

Every knob of the scraping engine is read from the environment (optionally via a
`.env` file) so the same build can run headless in a container or headed on a
developer laptop.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = ("http://localhost:5173", "http://127.0.0.1:5173")
MIN_SCROLL_ATTEMPTS = 5
MAX_SCROLL_ATTEMPTS = 10


class ConfigError(RuntimeError):
    """Raised when an environment value cannot be parsed."""


@dataclass(frozen=True)
class Settings:
    port: int = 8080
    max_concurrent_jobs: int = 4
    headless: bool = True
    maps_url: str = "https://www.google.com/maps"
    navigation_timeout: float = 60.0
    detail_timeout: float = 5.0
    field_timeout: float = 2.0
    max_scroll_attempts: int = MIN_SCROLL_ATTEMPTS
    scroll_settle_delay: float = 2.0
    item_delay: float = 2.0
    default_limit: int = 10
    cors_origins: Tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


def _env_origins(name: str) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if not raw:
        return DEFAULT_CORS_ORIGINS
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


def _clamp_scroll_attempts(value: int) -> int:
    clamped = max(MIN_SCROLL_ATTEMPTS, min(MAX_SCROLL_ATTEMPTS, value))
    if clamped != value:
        logger.warning(
            "SCRAPER_SCROLL_ATTEMPTS=%s is outside %s-%s; using %s.",
            value,
            MIN_SCROLL_ATTEMPTS,
            MAX_SCROLL_ATTEMPTS,
            clamped,
        )
    return clamped


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    max_concurrent_jobs = _env_int("WORKER_MAX_JOBS", 4)
    if max_concurrent_jobs < 1:
        logger.warning("WORKER_MAX_JOBS=%s is not positive; using 1.", max_concurrent_jobs)
        max_concurrent_jobs = 1

    default_limit = _env_int("SCRAPER_DEFAULT_LIMIT", 10)
    if default_limit < 1:
        raise ConfigError("SCRAPER_DEFAULT_LIMIT must be a positive integer")

    return Settings(
        port=_env_int("PORT", 8080),
        max_concurrent_jobs=max_concurrent_jobs,
        headless=os.getenv("SCRAPER_HEADLESS", "true").lower() in {"1", "true", "yes"},
        maps_url=os.getenv("SCRAPER_MAPS_URL", "https://www.google.com/maps").rstrip("/"),
        navigation_timeout=_env_float("SCRAPER_NAVIGATION_TIMEOUT", 60.0),
        detail_timeout=_env_float("SCRAPER_DETAIL_TIMEOUT", 5.0),
        field_timeout=_env_float("SCRAPER_FIELD_TIMEOUT", 2.0),
        max_scroll_attempts=_clamp_scroll_attempts(_env_int("SCRAPER_SCROLL_ATTEMPTS", MIN_SCROLL_ATTEMPTS)),
        scroll_settle_delay=_env_float("SCRAPER_SETTLE_DELAY", 2.0),
        item_delay=_env_float("SCRAPER_ITEM_DELAY", 2.0),
        default_limit=default_limit,
        cors_origins=_env_origins("CORS_ORIGINS"),
    )
