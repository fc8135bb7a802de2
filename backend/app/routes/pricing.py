"""Pricing routes. Public, no authentication."""

from fastapi import APIRouter, HTTPException, Request, status

from lockerdrop.pricing import calculate_delivery_price, estimate_price, pricing_rates

from ..logging_config import get_logger
from ..models import PriceCalculateRequest, PriceEstimateRequest
from ..rate_limit import limiter

logger = get_logger("lockerdrop.pricing")
router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post("/calculate")
@limiter.limit("60/minute")
def calculate_price(request: Request, body: PriceCalculateRequest):
    """Price a delivery from package size and distance."""
    logger.info(f"POST /pricing/calculate | size={body.package_size} | km={body.distance_km}")
    pricing = calculate_delivery_price(body.package_size, body.distance_km)
    return {"success": True, "pricing": pricing.to_dict()}


@router.post("/estimate")
@limiter.limit("60/minute")
def estimate(request: Request, body: PriceEstimateRequest):
    """Price a delivery from package size and locker/destination coordinates."""
    logger.info(f"POST /pricing/estimate | size={body.package_size}")
    try:
        pricing = estimate_price(
            body.package_size, body.locker_coords.model_dump(), body.delivery_coords.model_dump()
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"success": True, "pricing": pricing.to_dict()}


@router.get("/rates")
def rates():
    """Public rate card."""
    return {"success": True, "rates": pricing_rates()}
