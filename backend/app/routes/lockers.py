"""Locker routes. Public, read-only."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from lockerdrop.lockers import LockerRepository, LockerStatus, lockers_within_radius
from lockerdrop.types import Coordinates

from ..database import get_locker_repository
from ..logging_config import get_logger
from ..rate_limit import limiter

logger = get_logger("lockerdrop.lockers")
router = APIRouter(prefix="/lockers", tags=["lockers"])

Lockers = Annotated[LockerRepository, Depends(get_locker_repository)]


@router.get("")
@limiter.limit("60/minute")
def list_lockers(
    request: Request,
    lockers: Lockers,
    status_filter: LockerStatus = Query(LockerStatus.ACTIVE, alias="status"),
    lat: float | None = Query(None, ge=-90, le=90),
    lng: float | None = Query(None, ge=-180, le=180),
    radius: float | None = Query(None, ge=0, description="Radius in km"),
):
    """
    List lockers, sorted by name.

    Only active lockers unless another status is asked for. With lat, lng
    and radius all given, only lockers within radius km are returned.
    """
    logger.info(f"GET /lockers | status={status_filter.value} | radius={radius}")
    found = lockers.list_lockers(status=status_filter.value)
    if lat is not None and lng is not None and radius is not None:
        found = lockers_within_radius(found, Coordinates(lat=lat, lng=lng), radius)
    return {
        "success": True,
        "count": len(found),
        "lockers": [locker.to_dict() for locker in found],
    }


@router.get("/{locker_id}")
@limiter.limit("60/minute")
def get_locker(request: Request, locker_id: str, lockers: Lockers):
    """Get a single locker."""
    logger.info(f"GET /lockers/{locker_id}")
    locker = lockers.get_locker(locker_id)
    if locker is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Locker not found")
    return {"success": True, "locker": locker.to_dict()}
