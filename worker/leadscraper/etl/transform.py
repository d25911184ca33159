"""Utilities for transforming extracted place panels into Business records."""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from leadscraper.core.models import Business, LeadStatus, RawRecord, utcnow
from leadscraper.etl.extract import parse_number

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def to_business(raw: RawRecord, now: Optional[datetime] = None) -> Optional[Business]:
    name = _clean(raw.name)
    if not name:
        return None

    timestamp = now or utcnow()
    review_count = None
    if raw.review_count_text is not None:
        review_count = int(parse_number(raw.review_count_text))
    average_rating = None
    if raw.rating_text is not None:
        average_rating = parse_number(raw.rating_text)

    return Business(
        name=name,
        address=_clean(raw.address) or "",
        website=_clean(raw.website) or "",
        phone=_clean(raw.phone) or "",
        review_count=review_count,
        average_rating=average_rating,
        introduction=_clean(raw.introduction),
        store_type=_clean(raw.category),
        opening_hours=_clean(raw.hours),
        status=LeadStatus.NEW,
        created_at=timestamp,
        updated_at=timestamp,
    )


def to_businesses(records: Iterable[RawRecord], now: Optional[datetime] = None) -> List[Business]:
    businesses: List[Business] = []
    for position, raw in enumerate(records, start=1):
        business = to_business(raw, now=now)
        if business is None:
            logger.warning("Skipping listing %s - no business name found", position)
            continue
        businesses.append(business)
    return businesses
