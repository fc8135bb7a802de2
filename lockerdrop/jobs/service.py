"""
Job lifecycle service.

Implements the delivery job state machine:

    open --accept--> accepted --pickup--> picked_up --deliver--> delivered
      |                 |
      cancel            decline (back to open)
      v
    cancelled

Payment confirmation flips ``paid`` without leaving ``open``; rating is
a one-time annotation on a delivered job.

Every mutating operation is read-modify-write against a single job and
persists through a version check, so of two concurrent writers exactly
one wins and the other sees a conflict. Nothing is written when a rule
rejects the operation.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from lockerdrop.addresses import seal_delivery_address
from lockerdrop.codes import codes_match, generate_code_pair
from lockerdrop.config import MarketplaceConfig
from lockerdrop.identity import Actor
from lockerdrop.jobs.models import (
    Job,
    JobStateTransition,
    JobStatus,
    PackageSize,
    new_job_id,
)
from lockerdrop.jobs.storage import JobStorage
from lockerdrop.logging_config import log_rejected, log_transition
from lockerdrop.types import Coordinates, LockerDropError, StorageError, VersionConflictError, utc_now

if TYPE_CHECKING:
    from lockerdrop.workers.reputation import ReputationService

logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================


class JobServiceError(LockerDropError):
    """Base error for job lifecycle operations."""

    pass


class JobValidationError(JobServiceError):
    """Malformed or missing input. The caller has to fix the request."""

    pass


class JobNotFoundError(JobServiceError):
    """Job ID does not resolve."""

    pass


class UnauthorizedError(JobServiceError):
    """Actor has no rights over this job."""

    pass


class InvalidTransitionError(JobServiceError):
    """Operation is not valid for the job's current state."""

    pass


# =============================================================================
# Results
# =============================================================================


@dataclass
class AcceptResult:
    """Outcome of accepting a job. The locker code goes to the worker only."""

    job: Job
    locker_code: str


@dataclass
class PickupResult:
    """Outcome of a confirmed pickup, carrying the address disclosure."""

    job: Job
    delivery_address: Optional[str]
    delivery_instructions: Optional[str]


@dataclass
class DeliveryResult:
    """Outcome of a confirmed delivery."""

    job: Job
    payout: float


CoordinatesInput = Union[Coordinates, Dict[str, Any], None]


def _coords(value: CoordinatesInput) -> Optional[Coordinates]:
    if value is None or isinstance(value, Coordinates):
        return value
    return Coordinates.from_dict(value)


# =============================================================================
# Service
# =============================================================================


class JobService:
    """Job lifecycle operations."""

    def __init__(
        self,
        storage: JobStorage,
        reputation: Optional["ReputationService"] = None,
        config: Optional[MarketplaceConfig] = None,
    ):
        self.storage = storage
        self.reputation = reputation
        self.config = config or MarketplaceConfig()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _load(self, job_id: str, include_address: bool = False) -> Job:
        job = self.storage.get_job(job_id, include_address=include_address) if job_id else None
        if job is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        return job

    def _reject(self, error: JobServiceError, job_id: str, operation: str, actor: Optional[Actor]):
        log_rejected(job_id, operation, actor.id if actor else None, str(error))
        raise error

    def _commit(
        self,
        job: Job,
        from_status: str,
        actor_id: Optional[str],
        tx_hash: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Job:
        """Persist a modified job against the version it was read at."""
        try:
            saved = self.storage.update_job(job, expected_version=job.version)
        except VersionConflictError as e:
            current = self.storage.get_job(job.id)
            if current is None:
                raise JobNotFoundError(f"Job {job.id} not found") from e
            logger.warning(
                f"Concurrent modification on job {job.id}: "
                f"expected version {e.expected_version}, found {e.actual_version}"
            )
            raise InvalidTransitionError(
                f"Job was modified by another request (status: {current.status}). "
                "Please refresh and try again."
            ) from e

        self._record_transition(saved.id, from_status, saved.status, actor_id, tx_hash, metadata)
        return saved

    def _record_transition(
        self,
        job_id: str,
        from_status: Optional[str],
        to_status: str,
        actor_id: Optional[str],
        tx_hash: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        transition = JobStateTransition(
            id=str(uuid.uuid4()),
            job_id=job_id,
            from_status=from_status,
            to_status=to_status,
            actor_id=actor_id,
            tx_hash=tx_hash,
            metadata=metadata or {},
            created_at=utc_now(),
        )
        try:
            self.storage.save_transition(transition)
        except StorageError as e:
            # The job itself is already committed
            logger.warning(f"Failed to record transition for job {job_id}: {e}")
        log_transition(job_id, from_status, to_status, actor_id, tx=tx_hash)

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_job(
        self,
        customer: Actor,
        locker_location: str,
        locker_code: str,
        delivery_address: str,
        amount: float,
        customer_wallet: Optional[str] = None,
        package_size: Optional[Union[PackageSize, str]] = None,
        platform_fee: Optional[float] = None,
        locker_coords: CoordinatesInput = None,
        delivery_coords: CoordinatesInput = None,
        delivery_instructions: Optional[str] = None,
        distance_km: Optional[float] = None,
    ) -> Job:
        """Create an open, unpaid delivery job.

        Args:
            customer: The customer posting the job
            locker_location: Human-readable locker location
            locker_code: Code that opens the locker compartment
            delivery_address: Plaintext destination address
            amount: Gross price of the job
            customer_wallet: Wallet to bill (defaults to the actor's wallet)
            package_size: small, medium or large (defaults to small)
            platform_fee: Fee retained by the platform (defaults to 10% of amount)

        Returns:
            The created job, without its plaintext address

        Raises:
            JobValidationError: If required fields are missing or invalid
        """
        customer_wallet = customer_wallet or (customer.wallet if customer else None)
        required = {
            "customer_id": customer.id if customer else None,
            "customer_wallet": customer_wallet,
            "locker_location": locker_location,
            "locker_code": locker_code,
            "delivery_address": delivery_address,
            "amount": amount,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise JobValidationError(f"Missing required fields: {', '.join(missing)}")

        if amount <= 0:
            raise JobValidationError("Amount must be positive")

        if platform_fee is None:
            platform_fee = round(amount * self.config.platform_fee_rate, 2)

        size = package_size or self.config.default_package_size
        digest, plain = seal_delivery_address(delivery_address)
        pickup_code, delivery_code = generate_code_pair(self.config.confirmation_code_digits)
        now = utc_now()

        try:
            job = Job(
                id=new_job_id(),
                customer_id=customer.id,
                customer_wallet=customer_wallet,
                locker_location=locker_location,
                locker_code=locker_code,
                delivery_address=digest,
                delivery_address_plain=plain,
                amount=amount,
                platform_fee=platform_fee,
                package_size=size,
                locker_coords=_coords(locker_coords),
                delivery_coords=_coords(delivery_coords),
                delivery_instructions=delivery_instructions,
                distance_km=distance_km or 0.0,
                status=JobStatus.OPEN,
                paid=False,
                pickup_confirmation_code=pickup_code,
                delivery_confirmation_code=delivery_code,
                created_at=now,
                updated_at=now,
            )
        except ValueError as e:
            raise JobValidationError(str(e)) from e

        self.storage.save_job(job)
        self._record_transition(job.id, None, job.status, customer.id)

        logger.info(f"Job created | id={job.id} | customer={customer.id} | amount={amount}")
        return self._load(job.id)

    # -------------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------------

    def confirm_payment(
        self,
        job_id: str,
        transaction_hash: str,
        actor: Optional[Actor] = None,
        contract_job_id: Optional[str] = None,
        contract_address: Optional[str] = None,
        network: Optional[str] = None,
        chain_id: Optional[int] = None,
        cryptocurrency: Optional[str] = None,
        token_symbol: Optional[str] = None,
        amount_crypto: Optional[float] = None,
    ) -> Job:
        """Record that the customer paid into escrow.

        The job stays open so workers can accept it.

        Raises:
            JobValidationError: If no transaction hash is given
            JobNotFoundError: If the job doesn't exist
            InvalidTransitionError: If already paid or no longer open
        """
        if not transaction_hash:
            raise JobValidationError("Transaction hash required")

        job = self._load(job_id)
        if job.paid:
            self._reject(
                InvalidTransitionError("Payment already processed for this job"),
                job_id, "pay", actor,
            )
        if not job.is_open:
            self._reject(
                InvalidTransitionError("Job already processed or cancelled"), job_id, "pay", actor
            )

        job.paid = True
        job.paid_at = utc_now()
        job.payment.transaction_hash = transaction_hash
        if contract_job_id:
            job.payment.contract_job_id = contract_job_id
        if contract_address:
            job.payment.contract_address = contract_address
        if network:
            job.payment.network = network
        if chain_id is not None:
            job.payment.chain_id = chain_id
        if cryptocurrency:
            job.payment.cryptocurrency = cryptocurrency
        if token_symbol:
            job.payment.token_symbol = token_symbol
        if amount_crypto is not None:
            job.payment.amount_crypto = float(amount_crypto)

        return self._commit(
            job,
            JobStatus.OPEN.value,
            actor.id if actor else None,
            tx_hash=transaction_hash,
            metadata={"event": "payment_confirmed"},
        )

    # -------------------------------------------------------------------------
    # Worker flow
    # -------------------------------------------------------------------------

    def accept_job(
        self,
        job_id: str,
        worker: Actor,
        gig_worker_name: Optional[str] = None,
        gig_worker_wallet: Optional[str] = None,
    ) -> AcceptResult:
        """Assign an open job to a worker.

        Raises:
            JobValidationError: If the worker has no wallet
            JobNotFoundError: If the job doesn't exist
            InvalidTransitionError: If the job is not open
            UnauthorizedError: If the worker is the job's own customer
        """
        wallet = gig_worker_wallet or (worker.wallet if worker else None)
        if worker is None or not wallet:
            raise JobValidationError("Gig worker ID and wallet required")

        job = self._load(job_id)
        if not job.can_transition_to(JobStatus.ACCEPTED):
            self._reject(InvalidTransitionError("Job is not available"), job_id, "accept", worker)

        if worker.is_customer(job) or wallet in (job.customer_id, job.customer_wallet):
            self._reject(
                UnauthorizedError("You cannot accept your own order"), job_id, "accept", worker
            )

        from_status = job.status
        job.gig_worker_id = worker.id
        job.gig_worker_wallet = wallet
        job.gig_worker_name = gig_worker_name or self.config.anonymous_worker_name
        job.status = JobStatus.ACCEPTED.value
        job.accepted_at = utc_now()

        saved = self._commit(job, from_status, worker.id)
        logger.info(f"Job accepted | id={job_id} | worker={worker.id}")
        return AcceptResult(job=saved, locker_code=saved.locker_code)

    def decline_job(self, job_id: str, worker: Actor) -> Job:
        """Give an accepted job back to the marketplace.

        Raises:
            JobNotFoundError: If the job doesn't exist
            InvalidTransitionError: If the job is not accepted
            UnauthorizedError: If the caller is not the assigned worker
        """
        if worker is None:
            raise JobValidationError("Gig worker ID required")

        job = self._load(job_id)
        if job.status != JobStatus.ACCEPTED.value:
            self._reject(
                InvalidTransitionError("Can only decline jobs in accepted status"),
                job_id, "decline", worker,
            )
        if not worker.is_assigned_worker(job):
            self._reject(
                UnauthorizedError("Unauthorized - not assigned to you"), job_id, "decline", worker
            )

        from_status = job.status
        job.gig_worker_id = None
        job.gig_worker_wallet = None
        job.gig_worker_name = None
        job.status = JobStatus.OPEN.value
        job.accepted_at = None

        return self._commit(job, from_status, worker.id, metadata={"event": "declined"})

    def confirm_pickup(self, job_id: str, worker: Actor) -> PickupResult:
        """Confirm the package left the locker.

        This is where the plaintext delivery address is handed to the
        worker.

        Raises:
            JobNotFoundError: If the job doesn't exist
            InvalidTransitionError: If the job is not accepted
            UnauthorizedError: If the caller is not the assigned worker
        """
        if worker is None:
            raise JobValidationError("Gig worker ID required")

        job = self._load(job_id, include_address=True)
        if job.status != JobStatus.ACCEPTED.value:
            self._reject(
                InvalidTransitionError("Job must be in accepted status"), job_id, "pickup", worker
            )
        if not worker.is_assigned_worker(job):
            self._reject(
                UnauthorizedError("Unauthorized - not assigned to you"), job_id, "pickup", worker
            )

        plain_address = job.delivery_address_plain
        from_status = job.status
        job.status = JobStatus.PICKED_UP.value
        job.picked_up_at = utc_now()

        saved = self._commit(job, from_status, worker.id)
        return PickupResult(
            job=saved,
            delivery_address=plain_address,
            delivery_instructions=saved.delivery_instructions,
        )

    def confirm_delivery(
        self,
        job_id: str,
        worker: Actor,
        delivery_confirmation_code: Optional[str],
    ) -> DeliveryResult:
        """Confirm the package reached the recipient.

        The worker must present the delivery code the customer holds.

        Raises:
            JobNotFoundError: If the job doesn't exist
            InvalidTransitionError: If the job is not picked up
            UnauthorizedError: If the caller is not the assigned worker
            JobValidationError: If the confirmation code doesn't match
        """
        if worker is None:
            raise JobValidationError("Gig worker ID required")

        job = self._load(job_id)
        if job.status != JobStatus.PICKED_UP.value:
            self._reject(
                InvalidTransitionError("Job must be in picked_up status"), job_id, "deliver", worker
            )
        if not worker.is_assigned_worker(job):
            self._reject(UnauthorizedError("Unauthorized"), job_id, "deliver", worker)

        if not codes_match(job.delivery_confirmation_code, delivery_confirmation_code):
            self._reject(
                JobValidationError(
                    "Invalid delivery confirmation code. Get this code from the customer."
                ),
                job_id, "deliver", worker,
            )

        from_status = job.status
        job.status = JobStatus.DELIVERED.value
        job.delivered_at = utc_now()

        saved = self._commit(job, from_status, worker.id)

        if self.reputation is not None:
            try:
                self.reputation.increment_completed(saved.gig_worker_id)
            except StorageError as e:
                logger.warning(f"Completed-jobs update failed for job {job_id}: {e}")

        logger.info(f"Job delivered | id={job_id} | worker={worker.id} | payout={saved.payout}")
        return DeliveryResult(job=saved, payout=saved.payout)

    # -------------------------------------------------------------------------
    # Customer flow
    # -------------------------------------------------------------------------

    def cancel_job(self, job_id: str, customer: Actor, reason: Optional[str] = None) -> Job:
        """Cancel a job before any worker has accepted it.

        Raises:
            JobNotFoundError: If the job doesn't exist
            UnauthorizedError: If the caller is not the customer
            InvalidTransitionError: If the job is no longer open
        """
        job = self._load(job_id)
        if customer is None or not customer.is_customer(job):
            self._reject(UnauthorizedError("Unauthorized"), job_id, "cancel", customer)
        if not job.is_open:
            self._reject(
                InvalidTransitionError("Can only cancel jobs that are open"),
                job_id, "cancel", customer,
            )

        from_status = job.status
        job.status = JobStatus.CANCELLED.value
        job.cancelled_at = utc_now()

        metadata = {"reason": reason} if reason else None
        return self._commit(job, from_status, customer.id, metadata=metadata)

    def rate_worker(self, job_id: str, customer: Actor, rating: int) -> Job:
        """Rate the worker of a delivered job, once.

        Raises:
            JobValidationError: If the rating is outside 1-5
            JobNotFoundError: If the job doesn't exist
            UnauthorizedError: If the caller is not the customer
            InvalidTransitionError: If not delivered or already rated
        """
        if (
            isinstance(rating, bool)
            or not isinstance(rating, int)
            or not self.config.min_rating <= rating <= self.config.max_rating
        ):
            raise JobValidationError(
                f"Rating must be between {self.config.min_rating} and {self.config.max_rating}"
            )

        job = self._load(job_id)
        if customer is None or not customer.is_customer(job):
            self._reject(UnauthorizedError("Unauthorized"), job_id, "rate", customer)
        if job.status != JobStatus.DELIVERED.value:
            self._reject(
                InvalidTransitionError("Can only rate delivered jobs"), job_id, "rate", customer
            )
        if job.is_rated:
            self._reject(InvalidTransitionError("Job already rated"), job_id, "rate", customer)

        job.gig_worker_rating = rating
        saved = self._commit(
            job, job.status, customer.id, metadata={"event": "rated", "rating": rating}
        )

        if self.reputation is not None and saved.gig_worker_id:
            try:
                self.reputation.recompute_rating(saved.gig_worker_id)
            except StorageError as e:
                logger.warning(f"Rating recompute failed for worker {saved.gig_worker_id}: {e}")

        return saved

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_job(self, job_id: str, include_address: bool = False) -> Job:
        """Get a job by ID.

        Raises:
            JobNotFoundError: If the job doesn't exist
        """
        return self._load(job_id, include_address=include_address)

    def list_jobs(
        self,
        status: Optional[Union[JobStatus, str]] = None,
        customer_id: Optional[str] = None,
        gig_worker_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
        include_address: bool = False,
    ) -> List[Job]:
        """List jobs, newest first."""
        return self.storage.list_jobs(
            status=status,
            customer_id=customer_id,
            gig_worker_id=gig_worker_id,
            limit=limit,
            offset=offset,
            include_address=include_address,
        )

    def list_available_jobs(self, limit: int = 100, offset: int = 0) -> List[Job]:
        """Open, paid jobs for workers to pick from, best paid first."""
        return self.storage.list_jobs(
            status=JobStatus.OPEN,
            paid=True,
            order_by="amount",
            descending=True,
            limit=limit,
            offset=offset,
            include_address=False,
        )

    def list_jobs_for_actor(self, actor: Actor, limit: int = 100, offset: int = 0) -> List[Job]:
        """Jobs where the actor is customer or worker, newest first.

        Loaded with the plaintext address; callers must project each job
        through ``lockerdrop.privacy.project_job`` before returning it.
        """
        return self.storage.list_jobs(
            party_ids=actor.identifiers,
            limit=limit,
            offset=offset,
            include_address=True,
        )

    def get_job_history(
        self, job_id: str, actor: Optional[Actor] = None
    ) -> List[JobStateTransition]:
        """Get the audit trail of a job, oldest first.

        When an actor is given, only the job's parties may read it.
        """
        job = self._load(job_id)
        if actor is not None and not actor.is_party(job):
            raise UnauthorizedError("Unauthorized")
        return self.storage.get_transitions(job_id)
