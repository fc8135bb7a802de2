"""Actor identity.

Requests arrive authenticated either by wallet or by email-derived
account. The boundary resolves the caller once into an ``Actor`` and the
lifecycle rules compare against that.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, FrozenSet, Optional

if TYPE_CHECKING:
    from lockerdrop.jobs.models import Job


@dataclass(frozen=True)
class Actor:
    """An authenticated caller.

    ``id`` is the primary identifier. ``wallet`` and ``email`` are optional
    aliases that may also appear in stored party fields. Identifiers are
    opaque: comparison is exact string equality.
    """

    id: str
    wallet: Optional[str] = None
    email: Optional[str] = None

    def __post_init__(self):
        if not self.id or not str(self.id).strip():
            raise ValueError("Actor id cannot be empty")

    @property
    def identifiers(self) -> FrozenSet[str]:
        return frozenset(v for v in (self.id, self.wallet, self.email) if v)

    def matches(self, *values: Optional[str]) -> bool:
        """True if any of the given values is one of this actor's identifiers."""
        ids = self.identifiers
        return any(v is not None and v in ids for v in values)

    def is_customer(self, job: "Job") -> bool:
        return self.matches(job.customer_id, job.customer_wallet)

    def is_assigned_worker(self, job: "Job") -> bool:
        return self.matches(job.gig_worker_id, job.gig_worker_wallet)

    def is_party(self, job: "Job") -> bool:
        return self.is_customer(job) or self.is_assigned_worker(job)
