"""Database utilities for Supabase integration.

Supabase-backed implementations of the lockerdrop storage protocols, and
the FastAPI dependencies that wire them into a ``JobService``.
"""

from dataclasses import fields
from typing import Annotated, Iterable

from fastapi import Depends

from supabase import Client, create_client

from lockerdrop.config import MarketplaceConfig
from lockerdrop.jobs import JobService
from lockerdrop.jobs.models import Job, JobStateTransition, JobStatus, PaymentDetails
from lockerdrop.jobs.storage import IMMUTABLE_FIELDS
from lockerdrop.lockers import Locker, LockerStatus
from lockerdrop.types import StorageError, VersionConflictError, utc_now
from lockerdrop.workers import ReputationService, WorkerProfile

from .config import Settings, get_settings
from .logging_config import get_logger

logger = get_logger("lockerdrop.database")

_supabase_client: Client | None = None


def get_supabase_client(settings: Settings | None = None) -> Client:
    """Get cached Supabase client."""
    global _supabase_client
    if _supabase_client is None:
        if settings is None:
            settings = get_settings()
        _supabase_client = create_client(settings.supabase_url, settings.supabase_secret_key)
    return _supabase_client


def get_db(settings: Annotated[Settings, Depends(get_settings)]) -> Client:
    """FastAPI dependency for Supabase client."""
    return get_supabase_client(settings)


# Type alias for dependency injection
Database = Annotated[Client, Depends(get_db)]


# =============================================================================
# Table Names
# =============================================================================

JOBS_TABLE = "jobs"
JOB_TRANSITIONS_TABLE = "job_state_transitions"
USERS_TABLE = "users"
LOCKERS_TABLE = "lockers"

PLAIN_ADDRESS_COLUMN = "delivery_address_plain"

# Every job column except the plaintext address. Payment details are
# flattened into the row.
JOB_COLUMNS = [
    f.name for f in fields(Job) if f.name not in (PLAIN_ADDRESS_COLUMN, "payment")
] + [f.name for f in fields(PaymentDetails)]


def _job_columns(include_address: bool) -> str:
    if include_address:
        return "*"
    return ",".join(JOB_COLUMNS)


def _quote_filter_value(value: str) -> str:
    """Quote a value for a PostgREST logic filter so it stays a single operand."""
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _any_column_equals(columns: Iterable[str], values: Iterable[str]) -> str:
    """Build an ``or=`` filter matching any column against any value."""
    return ",".join(
        f"{col}.eq.{_quote_filter_value(value)}" for col in columns for value in values
    )


def _row_to_job(row: dict, include_address: bool) -> Job:
    job = Job.from_dict(row)
    if not include_address:
        job.delivery_address_plain = None
    return job


# =============================================================================
# Jobs
# =============================================================================


class SupabaseJobStorage:
    """Job storage on a Supabase ``jobs`` table.

    Updates use optimistic locking: ``UPDATE ... WHERE version = expected``.
    An update that matches no row means either the job is gone or another
    writer bumped the version first.
    """

    def __init__(self, db: Client):
        self.db = db

    def save_job(self, job: Job) -> str:
        try:
            result = self.db.table(JOBS_TABLE).insert(job.to_dict(include_address=True)).execute()
        except Exception as e:
            raise StorageError(f"Failed to insert job {job.id}: {e}") from e
        if not result.data:
            raise StorageError(f"Insert of job {job.id} returned no row")
        return result.data[0]["id"]

    def get_job(self, job_id: str, include_address: bool = False) -> Job | None:
        result = (
            self.db.table(JOBS_TABLE)
            .select(_job_columns(include_address))
            .eq("id", job_id)
            .execute()
        )
        if not result.data:
            return None
        return _row_to_job(result.data[0], include_address)

    def list_jobs(
        self,
        status: JobStatus | str | None = None,
        customer_id: str | None = None,
        gig_worker_id: str | None = None,
        paid: bool | None = None,
        party_ids: Iterable[str] | None = None,
        order_by: str = "created_at",
        descending: bool = True,
        limit: int = 100,
        offset: int = 0,
        include_address: bool = False,
    ) -> list[Job]:
        query = self.db.table(JOBS_TABLE).select(_job_columns(include_address))

        if status is not None:
            query = query.eq("status", status.value if isinstance(status, JobStatus) else status)
        if customer_id is not None:
            query = query.eq("customer_id", customer_id)
        if gig_worker_id is not None:
            query = query.eq("gig_worker_id", gig_worker_id)
        if paid is not None:
            query = query.eq("paid", paid)
        if party_ids is not None:
            ids = sorted(set(party_ids))
            if not ids:
                return []
            columns = ("customer_id", "customer_wallet", "gig_worker_id", "gig_worker_wallet")
            query = query.or_(_any_column_equals(columns, ids))

        query = query.order(order_by, desc=descending).range(offset, offset + limit - 1)
        result = query.execute()
        return [_row_to_job(row, include_address) for row in result.data or []]

    def list_rated_jobs(self, gig_worker_id: str) -> list[Job]:
        try:
            result = (
                self.db.table(JOBS_TABLE)
                .select(_job_columns(False))
                .eq("gig_worker_id", gig_worker_id)
                .not_.is_("gig_worker_rating", "null")
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to load rated jobs for {gig_worker_id}: {e}") from e
        return [_row_to_job(row, False) for row in result.data or []]

    def update_job(self, job: Job, expected_version: int) -> Job:
        data = {
            key: value
            for key, value in job.to_dict(include_address=False).items()
            if key not in IMMUTABLE_FIELDS
        }
        data["version"] = expected_version + 1
        data["updated_at"] = utc_now().isoformat()

        result = (
            self.db.table(JOBS_TABLE)
            .update(data)
            .eq("id", job.id)
            .eq("version", expected_version)
            .execute()
        )
        if result.data:
            return _row_to_job(result.data[0], False)

        current = self.get_job(job.id)
        actual = current.version if current else -1
        logger.warning(
            f"Optimistic lock failed on job {job.id}: "
            f"expected version {expected_version}, found {actual}"
        )
        raise VersionConflictError(JOBS_TABLE, job.id, expected_version, actual)

    def save_transition(self, transition: JobStateTransition) -> str:
        try:
            self.db.table(JOB_TRANSITIONS_TABLE).insert(transition.to_dict()).execute()
        except Exception as e:
            raise StorageError(f"Failed to record transition for job {transition.job_id}: {e}") from e
        return transition.id

    def get_transitions(self, job_id: str) -> list[JobStateTransition]:
        result = (
            self.db.table(JOB_TRANSITIONS_TABLE)
            .select("*")
            .eq("job_id", job_id)
            .order("created_at")
            .execute()
        )
        return [JobStateTransition.from_dict(row) for row in result.data or []]


# =============================================================================
# Workers
# =============================================================================


WORKER_LOOKUP_COLUMNS = ("id", "wallet_address", "email")


class SupabaseWorkerStorage:
    """Worker profiles on the ``users`` table."""

    def __init__(self, db: Client):
        self.db = db

    def find_worker(self, identifier: str) -> WorkerProfile | None:
        if not identifier:
            return None
        try:
            result = (
                self.db.table(USERS_TABLE)
                .select("*")
                .or_(_any_column_equals(WORKER_LOOKUP_COLUMNS, [identifier]))
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to look up worker {identifier}: {e}") from e
        return WorkerProfile.from_dict(result.data[0]) if result.data else None

    def save_worker(self, worker: WorkerProfile) -> str:
        try:
            self.db.table(USERS_TABLE).upsert(worker.to_dict()).execute()
        except Exception as e:
            raise StorageError(f"Failed to save worker {worker.id}: {e}") from e
        return worker.id

    def update_rating(self, worker_id: str, rating: float) -> bool:
        try:
            result = (
                self.db.table(USERS_TABLE)
                .update({"rating": rating, "updated_at": utc_now().isoformat()})
                .eq("id", worker_id)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to update rating for {worker_id}: {e}") from e
        return bool(result.data)

    def increment_completed_jobs(self, worker_id: str) -> bool:
        # Server-side increment, see supabase/migrations
        try:
            result = self.db.rpc("increment_completed_jobs", {"p_user_id": worker_id}).execute()
        except Exception as e:
            raise StorageError(f"Failed to increment completed jobs for {worker_id}: {e}") from e
        return bool(result.data)


# =============================================================================
# Lockers
# =============================================================================


class SupabaseLockerRepository:
    """Read-only access to the ``lockers`` table."""

    def __init__(self, db: Client):
        self.db = db

    def list_lockers(self, status: str | None = LockerStatus.ACTIVE.value) -> list[Locker]:
        query = self.db.table(LOCKERS_TABLE).select("*")
        if status is not None:
            query = query.eq("status", status)
        result = query.order("name").execute()
        return [Locker.from_dict(row) for row in result.data or []]

    def get_locker(self, locker_id: str) -> Locker | None:
        result = self.db.table(LOCKERS_TABLE).select("*").eq("id", locker_id).execute()
        return Locker.from_dict(result.data[0]) if result.data else None


# =============================================================================
# Dependencies
# =============================================================================


def get_worker_storage(db: Database) -> SupabaseWorkerStorage:
    return SupabaseWorkerStorage(db)


def get_locker_repository(db: Database) -> SupabaseLockerRepository:
    return SupabaseLockerRepository(db)


def get_job_service(
    db: Database,
    settings: Annotated[Settings, Depends(get_settings)],
) -> JobService:
    """FastAPI dependency building a JobService over Supabase."""
    job_storage = SupabaseJobStorage(db)
    reputation = ReputationService(job_storage, SupabaseWorkerStorage(db))
    config = MarketplaceConfig(
        platform_fee_rate=settings.platform_fee_rate,
        default_package_size=settings.default_package_size,
        confirmation_code_digits=settings.confirmation_code_digits,
    )
    return JobService(job_storage, reputation=reputation, config=config)
