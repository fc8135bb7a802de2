"""
Job data models.

A job is one delivery from a parcel locker to a customer's address. The
models here are plain dataclasses; lifecycle rules live in the service.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Set, Union

from lockerdrop.types import Coordinates, format_datetime, parse_datetime


class JobStatus(str, Enum):
    """Job lifecycle status."""

    OPEN = "open"
    ACCEPTED = "accepted"
    PICKED_UP = "picked_up"
    DELIVERED = "delivered"
    DISPUTED = "disputed"
    CANCELLED = "cancelled"


class PackageSize(str, Enum):
    """Parcel size class, drives the price multiplier."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


# Decline is the only backwards edge (accepted -> open).
# Disputed is reserved: nothing moves a job there yet.
VALID_JOB_TRANSITIONS: Dict[JobStatus, Set[JobStatus]] = {
    JobStatus.OPEN: {JobStatus.ACCEPTED, JobStatus.CANCELLED},
    JobStatus.ACCEPTED: {JobStatus.OPEN, JobStatus.PICKED_UP},
    JobStatus.PICKED_UP: {JobStatus.DELIVERED},
    JobStatus.DELIVERED: set(),
    JobStatus.DISPUTED: set(),
    JobStatus.CANCELLED: set(),
}

# Statuses in which a worker occupies the job
ASSIGNED_STATUSES = frozenset(
    {JobStatus.ACCEPTED.value, JobStatus.PICKED_UP.value, JobStatus.DELIVERED.value}
)

_STATUS_VALUES = {s.value for s in JobStatus}
_SIZE_VALUES = {s.value for s in PackageSize}


def _enum_value(value: Union[str, Enum, None]) -> Optional[str]:
    return value.value if isinstance(value, Enum) else value


def new_job_id() -> str:
    return str(uuid.uuid4())


@dataclass
class PaymentDetails:
    """On-chain payment metadata recorded when a job is paid.

    Informational only: settlement is not verified here.
    """

    transaction_hash: Optional[str] = None
    contract_job_id: Optional[str] = None
    contract_address: Optional[str] = None
    network: Optional[str] = None
    chain_id: Optional[int] = None
    cryptocurrency: Optional[str] = None
    token_symbol: Optional[str] = None
    amount_crypto: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transaction_hash": self.transaction_hash,
            "contract_job_id": self.contract_job_id,
            "contract_address": self.contract_address,
            "network": self.network,
            "chain_id": self.chain_id,
            "cryptocurrency": self.cryptocurrency,
            "token_symbol": self.token_symbol,
            "amount_crypto": self.amount_crypto,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PaymentDetails":
        data = data or {}
        amount_crypto = data.get("amount_crypto")
        chain_id = data.get("chain_id")
        return cls(
            transaction_hash=data.get("transaction_hash"),
            contract_job_id=data.get("contract_job_id"),
            contract_address=data.get("contract_address"),
            network=data.get("network"),
            chain_id=int(chain_id) if chain_id is not None else None,
            cryptocurrency=data.get("cryptocurrency"),
            token_symbol=data.get("token_symbol"),
            amount_crypto=float(amount_crypto) if amount_crypto is not None else None,
        )


@dataclass
class Job:
    """A delivery job.

    ``delivery_address`` always holds the SHA-256 digest of the address.
    The plaintext lives in ``delivery_address_plain``, which storage
    backends leave out of reads unless explicitly asked for it.
    """

    id: str
    customer_id: str
    customer_wallet: str
    locker_location: str
    locker_code: str
    delivery_address: str
    amount: float

    delivery_address_plain: Optional[str] = None
    package_size: str = PackageSize.MEDIUM.value
    platform_fee: float = 0.0
    locker_coords: Optional[Coordinates] = None
    delivery_coords: Optional[Coordinates] = None
    delivery_instructions: Optional[str] = None
    distance_km: float = 0.0

    gig_worker_id: Optional[str] = None
    gig_worker_wallet: Optional[str] = None
    gig_worker_name: Optional[str] = None

    paid: bool = False
    paid_at: Optional[datetime] = None
    payment: PaymentDetails = field(default_factory=PaymentDetails)

    status: str = JobStatus.OPEN.value
    pickup_confirmation_code: Optional[str] = None
    delivery_confirmation_code: Optional[str] = None
    gig_worker_rating: Optional[int] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    picked_up_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    version: int = 1

    def __post_init__(self):
        self.status = _enum_value(self.status)
        self.package_size = _enum_value(self.package_size)

        if self.status not in _STATUS_VALUES:
            raise ValueError(f"Invalid status: {self.status}")
        if self.package_size not in _SIZE_VALUES:
            raise ValueError(f"Invalid package size: {self.package_size}")
        if self.amount is None or self.amount <= 0:
            raise ValueError("Amount must be positive")
        if self.platform_fee < 0:
            raise ValueError("Platform fee cannot be negative")
        if self.platform_fee > self.amount:
            raise ValueError("Platform fee cannot exceed amount")
        if self.gig_worker_rating is not None and not 1 <= self.gig_worker_rating <= 5:
            raise ValueError("Rating must be between 1 and 5")

    # === Lifecycle helpers ===

    def can_transition_to(self, new_status: Union[JobStatus, str]) -> bool:
        """Check whether the state machine allows moving to new_status."""
        target = JobStatus(_enum_value(new_status))
        return target in VALID_JOB_TRANSITIONS[JobStatus(self.status)]

    @property
    def is_open(self) -> bool:
        return self.status == JobStatus.OPEN.value

    @property
    def is_available(self) -> bool:
        """Open and paid, i.e. listed for workers."""
        return self.is_open and self.paid

    @property
    def is_terminal(self) -> bool:
        return not VALID_JOB_TRANSITIONS[JobStatus(self.status)]

    @property
    def is_rated(self) -> bool:
        return self.gig_worker_rating is not None

    @property
    def payout(self) -> float:
        """What the gig worker receives: amount minus platform fee."""
        return round(self.amount - self.platform_fee, 2)

    # === Serialization ===

    def to_dict(self, include_address: bool = True) -> Dict[str, Any]:
        """Serialize to a flat dictionary (storage/API shape)."""
        data = {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_wallet": self.customer_wallet,
            "locker_location": self.locker_location,
            "locker_code": self.locker_code,
            "locker_coords": self.locker_coords.to_dict() if self.locker_coords else None,
            "package_size": self.package_size,
            "delivery_address": self.delivery_address,
            "delivery_coords": self.delivery_coords.to_dict() if self.delivery_coords else None,
            "delivery_instructions": self.delivery_instructions,
            "distance_km": self.distance_km,
            "gig_worker_id": self.gig_worker_id,
            "gig_worker_wallet": self.gig_worker_wallet,
            "gig_worker_name": self.gig_worker_name,
            "amount": self.amount,
            "platform_fee": self.platform_fee,
            "paid": self.paid,
            "paid_at": format_datetime(self.paid_at),
            "status": self.status,
            "pickup_confirmation_code": self.pickup_confirmation_code,
            "delivery_confirmation_code": self.delivery_confirmation_code,
            "gig_worker_rating": self.gig_worker_rating,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
            "accepted_at": format_datetime(self.accepted_at),
            "picked_up_at": format_datetime(self.picked_up_at),
            "delivered_at": format_datetime(self.delivered_at),
            "cancelled_at": format_datetime(self.cancelled_at),
            "version": self.version,
        }
        data.update(self.payment.to_dict())
        if include_address:
            data["delivery_address_plain"] = self.delivery_address_plain
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        """Build a Job from a storage row.

        Address fields are taken as stored; nothing is re-digested here.
        """
        return cls(
            id=data["id"],
            customer_id=data["customer_id"],
            customer_wallet=data["customer_wallet"],
            locker_location=data["locker_location"],
            locker_code=data["locker_code"],
            delivery_address=data["delivery_address"],
            amount=float(data["amount"]),
            delivery_address_plain=data.get("delivery_address_plain"),
            package_size=data.get("package_size") or PackageSize.MEDIUM.value,
            platform_fee=float(data.get("platform_fee") or 0.0),
            locker_coords=Coordinates.from_dict(data.get("locker_coords")),
            delivery_coords=Coordinates.from_dict(data.get("delivery_coords")),
            delivery_instructions=data.get("delivery_instructions"),
            distance_km=float(data.get("distance_km") or 0.0),
            gig_worker_id=data.get("gig_worker_id"),
            gig_worker_wallet=data.get("gig_worker_wallet"),
            gig_worker_name=data.get("gig_worker_name"),
            paid=bool(data.get("paid", False)),
            paid_at=parse_datetime(data.get("paid_at")),
            payment=PaymentDetails.from_dict(data),
            status=data.get("status") or JobStatus.OPEN.value,
            pickup_confirmation_code=data.get("pickup_confirmation_code"),
            delivery_confirmation_code=data.get("delivery_confirmation_code"),
            gig_worker_rating=data.get("gig_worker_rating"),
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
            accepted_at=parse_datetime(data.get("accepted_at")),
            picked_up_at=parse_datetime(data.get("picked_up_at")),
            delivered_at=parse_datetime(data.get("delivered_at")),
            cancelled_at=parse_datetime(data.get("cancelled_at")),
            version=int(data.get("version") or 1),
        )


@dataclass
class JobStateTransition:
    """Audit log entry for a job state change.

    ``from_status`` is None for the creation entry. Payment confirmation
    is recorded as an open -> open entry carrying the transaction hash.
    """

    id: str
    job_id: str
    to_status: str
    actor_id: Optional[str] = None
    from_status: Optional[str] = None
    tx_hash: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None

    def __post_init__(self):
        self.to_status = _enum_value(self.to_status)
        self.from_status = _enum_value(self.from_status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "job_id": self.job_id,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "actor_id": self.actor_id,
            "tx_hash": self.tx_hash,
            "metadata": self.metadata,
            "created_at": format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JobStateTransition":
        return cls(
            id=data["id"],
            job_id=data["job_id"],
            from_status=data.get("from_status"),
            to_status=data["to_status"],
            actor_id=data.get("actor_id"),
            tx_hash=data.get("tx_hash"),
            metadata=data.get("metadata") or {},
            created_at=parse_datetime(data.get("created_at")),
        )
