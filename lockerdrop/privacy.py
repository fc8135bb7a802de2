"""Delivery address confidentiality.

The customer's delivery address is the most sensitive thing we store.
Storage keeps only a digest in the default-visible field (see
``lockerdrop.addresses``); this module decides, per caller, whether the
plaintext may leave the system.

Usage:
    from lockerdrop.privacy import project_job

    body = project_job(job, actor)
    # "delivery_address_plain" only present for the assigned worker
    # once the job has been accepted.
"""

from typing import Any, Dict, Optional

from lockerdrop.addresses import digest_address, is_address_digest, seal_delivery_address
from lockerdrop.identity import Actor
from lockerdrop.jobs.models import ASSIGNED_STATUSES, Job

PLAIN_ADDRESS_FIELD = "delivery_address_plain"

__all__ = [
    "PLAIN_ADDRESS_FIELD",
    "can_view_delivery_address",
    "digest_address",
    "is_address_digest",
    "project_job",
    "seal_delivery_address",
]


def can_view_delivery_address(job: Job, actor: Optional[Actor]) -> bool:
    """Only the assigned worker sees the address, and only while assigned."""
    if actor is None:
        return False
    return job.status in ASSIGNED_STATUSES and actor.is_assigned_worker(job)


def project_job(job: Job, actor: Optional[Actor]) -> Dict[str, Any]:
    """Build the representation of a job that ``actor`` may see.

    Fields the actor is not entitled to are removed, not blanked:
    - the plaintext address (see ``can_view_delivery_address``)
    - the pickup code, outside customer and assigned worker
    - the delivery code, outside the customer
    """
    data = job.to_dict(include_address=True)

    if not can_view_delivery_address(job, actor) or job.delivery_address_plain is None:
        data.pop(PLAIN_ADDRESS_FIELD, None)

    is_customer = actor is not None and actor.is_customer(job)
    is_worker = actor is not None and actor.is_assigned_worker(job)

    if not (is_customer or is_worker):
        data.pop("pickup_confirmation_code", None)
    if not is_customer:
        data.pop("delivery_confirmation_code", None)

    return data
