"""Job repository shared by the HTTP handlers and background workers."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict

from leadscraper.core.errors import DuplicateJobError, JobStateError, NotFoundError
from leadscraper.core.models import Job

logger = logging.getLogger(__name__)


class JobStore(ABC):
    """Mapping from job id to the latest Job snapshot."""

    @abstractmethod
    def create(self, job: Job) -> None:
        """Insert a new job; raises DuplicateJobError if the id exists."""

    @abstractmethod
    def get(self, job_id: str) -> Job:
        """Return the stored job; raises NotFoundError for unknown ids."""

    @abstractmethod
    def update(self, job: Job) -> None:
        """Replace the stored snapshot for `job.id`."""


class InMemoryJobStore(JobStore):
    """Process-local store. Jobs live until the process exits."""

    def __init__(self) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    def create(self, job: Job) -> None:
        with self._lock:
            if job.id in self._jobs:
                raise DuplicateJobError(f"Job {job.id} already exists")
            self._jobs[job.id] = job
        logger.debug("Created job %s", job.id)

    def get(self, job_id: str) -> Job:
        with self._lock:
            job = self._jobs.get(job_id)
        if job is None:
            raise NotFoundError("Job not found")
        return job

    def update(self, job: Job) -> None:
        with self._lock:
            current = self._jobs.get(job.id)
            if current is None:
                raise NotFoundError("Job not found")
            if current.is_terminal:
                raise JobStateError(f"Job {job.id} is already {current.status.value}")
            self._jobs[job.id] = job
        logger.debug("Updated job %s status=%s", job.id, job.status.value)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
