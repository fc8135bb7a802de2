"""
Jobs storage layer.

Defines the persistence contract the lifecycle service relies on, plus an
in-memory backend for tests and local development. The Supabase backend
lives with the HTTP service.
"""

import copy
import logging
import threading
from typing import Dict, Iterable, List, Optional, Protocol, Union

from lockerdrop.jobs.models import Job, JobStateTransition, JobStatus
from lockerdrop.types import VersionConflictError, utc_now

logger = logging.getLogger(__name__)

JOBS_TABLE = "jobs"

# Fields fixed at creation time; update_job never writes them
IMMUTABLE_FIELDS = frozenset(
    {
        "id",
        "customer_id",
        "customer_wallet",
        "delivery_address",
        "delivery_address_plain",
        "pickup_confirmation_code",
        "delivery_confirmation_code",
        "created_at",
    }
)


class JobStorage(Protocol):
    """Protocol for job persistence backends."""

    def save_job(self, job: Job) -> str:
        """Insert a new job. Returns the job ID."""
        ...

    def get_job(self, job_id: str, include_address: bool = False) -> Optional[Job]:
        """Get a job by ID.

        The plaintext delivery address is only populated when
        include_address is True.
        """
        ...

    def list_jobs(
        self,
        status: Optional[Union[JobStatus, str]] = None,
        customer_id: Optional[str] = None,
        gig_worker_id: Optional[str] = None,
        paid: Optional[bool] = None,
        party_ids: Optional[Iterable[str]] = None,
        order_by: str = "created_at",
        descending: bool = True,
        limit: int = 100,
        offset: int = 0,
        include_address: bool = False,
    ) -> List[Job]:
        """List jobs with optional filters.

        party_ids matches jobs where any of customer_id, customer_wallet,
        gig_worker_id or gig_worker_wallet is one of the given values.
        """
        ...

    def list_rated_jobs(self, gig_worker_id: str) -> List[Job]:
        """All jobs for a worker that carry a rating."""
        ...

    def update_job(self, job: Job, expected_version: int) -> Job:
        """Persist a modified job if its stored version still matches.

        Bumps the version. Raises VersionConflictError if another writer
        got there first. Returns the stored job.
        """
        ...

    def save_transition(self, transition: JobStateTransition) -> str:
        """Save a state transition record. Returns the transition ID."""
        ...

    def get_transitions(self, job_id: str) -> List[JobStateTransition]:
        """Get all state transitions for a job, oldest first."""
        ...


def _without_address(job: Job) -> Job:
    clone = copy.deepcopy(job)
    clone.delivery_address_plain = None
    return clone


class InMemoryJobStorage:
    """In-memory job storage for testing and local development.

    Stores private copies so callers can't mutate persisted state by
    accident, and serializes writes so compare-and-set is atomic.
    """

    def __init__(self):
        """Initialize empty storage."""
        self._jobs: Dict[str, Job] = {}
        self._transitions: Dict[str, List[JobStateTransition]] = {}
        self._lock = threading.Lock()

    def _read(self, job: Job, include_address: bool) -> Job:
        return copy.deepcopy(job) if include_address else _without_address(job)

    # === Jobs ===

    def save_job(self, job: Job) -> str:
        """Insert a new job."""
        with self._lock:
            if job.id in self._jobs:
                raise ValueError(f"Job {job.id} already exists")
            self._jobs[job.id] = copy.deepcopy(job)
            self._transitions.setdefault(job.id, [])
        return job.id

    def get_job(self, job_id: str, include_address: bool = False) -> Optional[Job]:
        """Get a job by ID."""
        job = self._jobs.get(job_id)
        if job is None:
            return None
        return self._read(job, include_address)

    def list_jobs(
        self,
        status: Optional[Union[JobStatus, str]] = None,
        customer_id: Optional[str] = None,
        gig_worker_id: Optional[str] = None,
        paid: Optional[bool] = None,
        party_ids: Optional[Iterable[str]] = None,
        order_by: str = "created_at",
        descending: bool = True,
        limit: int = 100,
        offset: int = 0,
        include_address: bool = False,
    ) -> List[Job]:
        """List jobs with optional filters."""
        jobs = list(self._jobs.values())

        if status is not None:
            status_val = status.value if isinstance(status, JobStatus) else status
            jobs = [j for j in jobs if j.status == status_val]
        if customer_id is not None:
            jobs = [j for j in jobs if j.customer_id == customer_id]
        if gig_worker_id is not None:
            jobs = [j for j in jobs if j.gig_worker_id == gig_worker_id]
        if paid is not None:
            jobs = [j for j in jobs if j.paid == paid]
        if party_ids is not None:
            ids = set(party_ids)
            jobs = [
                j
                for j in jobs
                if {j.customer_id, j.customer_wallet, j.gig_worker_id, j.gig_worker_wallet} & ids
            ]

        fallback = utc_now()
        if order_by == "amount":
            jobs.sort(key=lambda j: j.amount, reverse=descending)
        else:
            jobs.sort(key=lambda j: getattr(j, order_by) or fallback, reverse=descending)

        return [self._read(j, include_address) for j in jobs[offset : offset + limit]]

    def list_rated_jobs(self, gig_worker_id: str) -> List[Job]:
        """All rated jobs for a worker."""
        return [
            _without_address(j)
            for j in self._jobs.values()
            if j.gig_worker_id == gig_worker_id and j.gig_worker_rating is not None
        ]

    def update_job(self, job: Job, expected_version: int) -> Job:
        """Compare-and-set update of mutable job fields."""
        with self._lock:
            current = self._jobs.get(job.id)
            if current is None:
                raise VersionConflictError(JOBS_TABLE, job.id, expected_version, -1)
            if current.version != expected_version:
                raise VersionConflictError(JOBS_TABLE, job.id, expected_version, current.version)

            stored = copy.deepcopy(job)
            for name in IMMUTABLE_FIELDS:
                setattr(stored, name, copy.deepcopy(getattr(current, name)))
            stored.version = expected_version + 1
            stored.updated_at = utc_now()
            self._jobs[job.id] = stored

        logger.debug(f"Job {job.id} updated to version {stored.version}")
        return _without_address(stored)

    # === Transitions ===

    def save_transition(self, transition: JobStateTransition) -> str:
        """Save a state transition record."""
        with self._lock:
            self._transitions.setdefault(transition.job_id, []).append(copy.deepcopy(transition))
        return transition.id

    def get_transitions(self, job_id: str) -> List[JobStateTransition]:
        """Get all state transitions for a job."""
        transitions = self._transitions.get(job_id, [])
        fallback = utc_now()
        return sorted(
            (copy.deepcopy(t) for t in transitions), key=lambda t: t.created_at or fallback
        )
