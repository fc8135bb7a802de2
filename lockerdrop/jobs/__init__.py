"""Delivery jobs subsystem.

Models:
- Job: One locker-to-door delivery
- JobStatus: Job lifecycle status
- PackageSize: Parcel size class
- PaymentDetails: On-chain payment metadata
- JobStateTransition: Audit log entry for state changes

Storage:
- JobStorage: persistence protocol
- InMemoryJobStorage: in-memory backend

Service:
- JobService: Job operations (create, pay, accept, pickup, deliver, etc.)
"""

from lockerdrop.jobs.models import (
    ASSIGNED_STATUSES,
    VALID_JOB_TRANSITIONS,
    Job,
    JobStateTransition,
    JobStatus,
    PackageSize,
    PaymentDetails,
)
from lockerdrop.jobs.service import (
    AcceptResult,
    DeliveryResult,
    InvalidTransitionError,
    JobNotFoundError,
    JobService,
    JobServiceError,
    JobValidationError,
    PickupResult,
    UnauthorizedError,
)
from lockerdrop.jobs.storage import InMemoryJobStorage, JobStorage

__all__ = [
    # Models
    "Job",
    "JobStatus",
    "PackageSize",
    "PaymentDetails",
    "JobStateTransition",
    "VALID_JOB_TRANSITIONS",
    "ASSIGNED_STATUSES",
    # Storage
    "JobStorage",
    "InMemoryJobStorage",
    # Service
    "JobService",
    "JobServiceError",
    "JobValidationError",
    "JobNotFoundError",
    "InvalidTransitionError",
    "UnauthorizedError",
    "AcceptResult",
    "PickupResult",
    "DeliveryResult",
]
