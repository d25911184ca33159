"""Core data models shared by the Maps scraping pipeline."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from leadscraper.core.errors import JobStateError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class JobStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    FOLLOWING_UP = "following_up"
    CONVERTED = "converted"
    NOT_INTERESTED = "not_interested"


@dataclass(slots=True)
class RawRecord:
    """Unvalidated detail-panel text for one listing; any field may be missing."""

    name: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    review_count_text: Optional[str] = None
    rating_text: Optional[str] = None
    introduction: Optional[str] = None
    category: Optional[str] = None
    hours: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Business:
    """Normalized business lead produced by the validator."""

    name: str
    created_at: datetime
    updated_at: datetime
    address: str = ""
    website: str = ""
    phone: str = ""
    review_count: Optional[int] = None
    average_rating: Optional[float] = None
    introduction: Optional[str] = None
    store_type: Optional[str] = None
    opening_hours: Optional[str] = None
    status: LeadStatus = LeadStatus.NEW

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "address": self.address,
            "website": self.website,
            "phone": self.phone,
            "status": self.status.value,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }
        optional = {
            "reviewCount": self.review_count,
            "averageRating": self.average_rating,
            "introduction": self.introduction,
            "storeType": self.store_type,
            "openingHours": self.opening_hours,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload


@dataclass(frozen=True, slots=True)
class Job:
    """Snapshot of one scraping request.

    Jobs are immutable; `complete` and `fail` return the terminal snapshot that
    replaces the pending one in the job store.
    """

    id: str
    query: str
    location: str
    limit: int
    status: JobStatus = JobStatus.PENDING
    results_count: int = 0
    businesses: Tuple[Business, ...] = ()
    error: Optional[str] = None
    started_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @classmethod
    def new(cls, query: str, location: str, limit: int) -> "Job":
        return cls(id=str(uuid.uuid4()), query=query, location=location, limit=limit)

    @property
    def is_terminal(self) -> bool:
        return self.status is not JobStatus.PENDING

    def complete(self, businesses: Iterable[Business], at: Optional[datetime] = None) -> "Job":
        self._ensure_pending(JobStatus.COMPLETED)
        results = tuple(businesses)
        return replace(
            self,
            status=JobStatus.COMPLETED,
            businesses=results,
            results_count=len(results),
            completed_at=at or utcnow(),
        )

    def fail(self, error: str, at: Optional[datetime] = None) -> "Job":
        self._ensure_pending(JobStatus.FAILED)
        return replace(
            self,
            status=JobStatus.FAILED,
            error=error.strip() or "Unknown error occurred",
            completed_at=at or utcnow(),
        )

    def _ensure_pending(self, target: JobStatus) -> None:
        if self.is_terminal:
            raise JobStateError(f"Job {self.id} is already {self.status.value}; cannot move to {target.value}")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "status": self.status.value,
            "query": self.query,
            "location": self.location,
            "limit": self.limit,
            "resultsCount": self.results_count,
            "startedAt": _isoformat(self.started_at),
        }
        if self.completed_at is not None:
            payload["completedAt"] = _isoformat(self.completed_at)
        if self.status is JobStatus.COMPLETED:
            payload["businesses"] = [business.to_dict() for business in self.businesses]
        if self.status is JobStatus.FAILED:
            payload["error"] = self.error
        return payload
