"""Worker profile routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from lockerdrop.workers import WorkerStorage

from ..database import get_worker_storage
from ..logging_config import get_logger
from ..rate_limit import limiter

logger = get_logger("lockerdrop.workers")
router = APIRouter(prefix="/workers", tags=["workers"])

Workers = Annotated[WorkerStorage, Depends(get_worker_storage)]


@router.get("/{identifier}")
@limiter.limit("60/minute")
def get_worker_profile(request: Request, identifier: str, workers: Workers):
    """Public reputation of a worker, looked up by id or wallet address.

    Email is never exposed and is not accepted as a lookup key here.
    """
    logger.info(f"GET /workers/{identifier}")
    worker = workers.find_worker(identifier)
    if worker is None or identifier == worker.email:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Worker not found")
    return {
        "success": True,
        "worker": {
            "id": worker.id,
            "wallet_address": worker.wallet_address,
            "display_name": worker.display_name,
            "rating": worker.rating,
            "completed_jobs": worker.completed_jobs,
            "total_jobs": worker.total_jobs,
        },
    }
