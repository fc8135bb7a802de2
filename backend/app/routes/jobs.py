"""Jobs routes.

Endpoints for the delivery job lifecycle. Handlers are thin: they
resolve the caller, delegate to ``JobService`` and project every job
through the address filter before it leaves the API.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from lockerdrop.jobs import JobService
from lockerdrop.jobs.models import Job, JobStatus
from lockerdrop.privacy import project_job

from ..auth import CurrentActor, OptionalActor
from ..database import get_job_service
from ..logging_config import get_logger, log_job_event
from ..models import (
    AcceptJobRequest,
    CancelJobRequest,
    DeliverJobRequest,
    ErrorResponse,
    JobCreateRequest,
    PaymentConfirmRequest,
    RateJobRequest,
)
from ..rate_limit import limiter

logger = get_logger("lockerdrop.jobs")
router = APIRouter(
    prefix="/jobs",
    tags=["jobs"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)

Jobs = Annotated[JobService, Depends(get_job_service)]


def _job_list(jobs: list[Job], actor) -> dict:
    projected = [project_job(job, actor) for job in jobs]
    return {"success": True, "count": len(projected), "jobs": projected}


# =============================================================================
# Queries
# =============================================================================


@router.get("")
@limiter.limit("60/minute")
def list_jobs(
    request: Request,
    jobs: Jobs,
    actor: OptionalActor,
    status_filter: JobStatus | None = Query(None, alias="status"),
    customer_id: str | None = Query(None),
    gig_worker_id: str | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """List jobs, newest first, with optional filters."""
    logger.info(f"GET /jobs | status={status_filter} | customer={customer_id} | worker={gig_worker_id}")
    found = jobs.list_jobs(
        status=status_filter,
        customer_id=customer_id,
        gig_worker_id=gig_worker_id,
        limit=limit,
        offset=offset,
        include_address=True,
    )
    return _job_list(found, actor)


@router.get("/available")
@limiter.limit("60/minute")
def list_available_jobs(
    request: Request,
    jobs: Jobs,
    actor: OptionalActor,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """Paid, open jobs waiting for a worker, best paid first."""
    logger.info("GET /jobs/available")
    return _job_list(jobs.list_available_jobs(limit=limit, offset=offset), actor)


@router.get("/mine")
@limiter.limit("60/minute")
def list_my_jobs(
    request: Request,
    jobs: Jobs,
    actor: CurrentActor,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """Jobs where the caller is the customer or the worker.

    The assigned worker sees the delivery address once the job is accepted.
    """
    logger.info(f"GET /jobs/mine | actor={actor.id}")
    return _job_list(jobs.list_jobs_for_actor(actor, limit=limit, offset=offset), actor)


@router.get("/{job_id}")
@limiter.limit("60/minute")
def get_job(request: Request, job_id: str, jobs: Jobs, actor: OptionalActor):
    """Get a single job, filtered for the caller."""
    logger.info(f"GET /jobs/{job_id} | actor={actor.id if actor else None}")
    job = jobs.get_job(job_id, include_address=True)
    return {"success": True, "job": project_job(job, actor)}


@router.get("/{job_id}/history")
@limiter.limit("30/minute")
def get_job_history(request: Request, job_id: str, jobs: Jobs, actor: CurrentActor):
    """State transition audit trail. Parties only."""
    logger.info(f"GET /jobs/{job_id}/history | actor={actor.id}")
    history = jobs.get_job_history(job_id, actor=actor)
    return {"success": True, "history": [t.to_dict() for t in history]}


# =============================================================================
# Customer actions
# =============================================================================


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
def create_job(request: Request, body: JobCreateRequest, jobs: Jobs, actor: CurrentActor):
    """
    Post a new delivery job.

    The caller becomes the customer. The job starts open and unpaid; it
    is listed for workers once payment is confirmed.
    """
    logger.info(f"POST /jobs | customer={actor.id} | amount={body.amount}")
    job = jobs.create_job(
        customer=actor,
        customer_wallet=body.customer_wallet,
        locker_location=body.locker_location,
        locker_code=body.locker_code,
        delivery_address=body.delivery_address,
        amount=body.amount,
        package_size=body.package_size,
        platform_fee=body.platform_fee,
        locker_coords=body.locker_coords.model_dump() if body.locker_coords else None,
        delivery_coords=body.delivery_coords.model_dump() if body.delivery_coords else None,
        delivery_instructions=body.delivery_instructions,
        distance_km=body.distance_km,
    )
    log_job_event("create", job.id, actor.id)
    return {
        "success": True,
        "job": project_job(job, actor),
        "message": "Job created successfully",
    }


@router.post("/{job_id}/pay")
@limiter.limit("10/minute")
def confirm_payment(
    request: Request, job_id: str, body: PaymentConfirmRequest, jobs: Jobs, actor: CurrentActor
):
    """
    Record that the job's escrow was funded on-chain.

    The transaction is recorded as reported; it is not verified here.
    """
    logger.info(f"POST /jobs/{job_id}/pay | actor={actor.id} | tx={body.transaction_hash}")
    job = jobs.confirm_payment(job_id, actor=actor, **body.model_dump())
    log_job_event("pay", job_id, actor.id, f"tx={body.transaction_hash}")
    return {
        "success": True,
        "job": project_job(job, actor),
        "message": "Payment confirmed - funds in escrow",
    }


@router.post("/{job_id}/cancel")
@limiter.limit("10/minute")
def cancel_job(
    request: Request,
    job_id: str,
    jobs: Jobs,
    actor: CurrentActor,
    body: CancelJobRequest | None = None,
):
    """Cancel an open job. No refund is issued by this endpoint."""
    logger.info(f"POST /jobs/{job_id}/cancel | actor={actor.id}")
    job = jobs.cancel_job(job_id, actor, reason=body.reason if body else None)
    log_job_event("cancel", job_id, actor.id)
    return {
        "success": True,
        "job": project_job(job, actor),
        "message": "Job cancelled successfully",
    }


@router.post("/{job_id}/rate")
@limiter.limit("10/minute")
def rate_job(request: Request, job_id: str, body: RateJobRequest, jobs: Jobs, actor: CurrentActor):
    """Rate the worker of a delivered job (1-5, once)."""
    logger.info(f"POST /jobs/{job_id}/rate | actor={actor.id} | rating={body.rating}")
    job = jobs.rate_worker(job_id, actor, body.rating)
    log_job_event("rate", job_id, actor.id, f"rating={body.rating}")
    return {
        "success": True,
        "job": project_job(job, actor),
        "message": "Rating submitted successfully",
    }


# =============================================================================
# Worker actions
# =============================================================================


@router.post("/{job_id}/accept")
@limiter.limit("10/minute")
def accept_job(
    request: Request,
    job_id: str,
    jobs: Jobs,
    actor: CurrentActor,
    body: AcceptJobRequest | None = None,
):
    """
    Take an open job.

    The response carries the locker code the worker needs for pickup.
    """
    logger.info(f"POST /jobs/{job_id}/accept | worker={actor.id}")
    body = body or AcceptJobRequest()
    result = jobs.accept_job(
        job_id,
        actor,
        gig_worker_name=body.gig_worker_name,
        gig_worker_wallet=body.gig_worker_wallet,
    )
    log_job_event("accept", job_id, actor.id)
    return {
        "success": True,
        "job": project_job(result.job, actor),
        "locker_code": result.locker_code,
        "message": "Job accepted successfully",
    }


@router.post("/{job_id}/decline")
@limiter.limit("10/minute")
def decline_job(request: Request, job_id: str, jobs: Jobs, actor: CurrentActor):
    """Hand an accepted job back to the marketplace."""
    logger.info(f"POST /jobs/{job_id}/decline | worker={actor.id}")
    job = jobs.decline_job(job_id, actor)
    log_job_event("decline", job_id, actor.id)
    return {
        "success": True,
        "job": project_job(job, actor),
        "message": "Job declined and returned to available jobs",
    }


@router.post("/{job_id}/pickup")
@limiter.limit("10/minute")
def confirm_pickup(request: Request, job_id: str, jobs: Jobs, actor: CurrentActor):
    """Confirm the parcel left the locker. Discloses the delivery address."""
    logger.info(f"POST /jobs/{job_id}/pickup | worker={actor.id}")
    result = jobs.confirm_pickup(job_id, actor)
    log_job_event("pickup", job_id, actor.id)
    return {
        "success": True,
        "job": project_job(result.job, actor),
        "delivery_address": result.delivery_address,
        "delivery_instructions": result.delivery_instructions,
        "message": "Pickup confirmed",
    }


@router.post("/{job_id}/deliver")
@limiter.limit("10/minute")
def confirm_delivery(
    request: Request, job_id: str, body: DeliverJobRequest, jobs: Jobs, actor: CurrentActor
):
    """Confirm delivery with the code the customer shared with the recipient."""
    logger.info(f"POST /jobs/{job_id}/deliver | worker={actor.id}")
    result = jobs.confirm_delivery(job_id, actor, body.delivery_confirmation_code)
    log_job_event("deliver", job_id, actor.id, f"payout={result.payout}")
    return {
        "success": True,
        "job": project_job(result.job, actor),
        "payout": result.payout,
        "message": "Delivery confirmed! Payment will be processed.",
    }
