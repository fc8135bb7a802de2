"""Pydantic models for API requests and responses."""

from typing import Literal

from pydantic import BaseModel, Field

PackageSizeName = Literal["small", "medium", "large"]

TX_HASH_PATTERN = r"^0x[a-fA-F0-9]{64}$"


# =============================================================================
# Shared
# =============================================================================

class CoordinatesIn(BaseModel):
    """A point in decimal degrees."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class ErrorResponse(BaseModel):
    """Error envelope returned by every failing endpoint."""
    success: Literal[False] = False
    error: str


# =============================================================================
# Job Models
# =============================================================================

class JobCreateRequest(BaseModel):
    """Request to post a delivery job."""
    locker_location: str = Field(..., min_length=1)
    locker_code: str = Field(..., min_length=1)
    delivery_address: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    customer_wallet: str | None = None  # Defaults to the token's wallet claim
    package_size: PackageSizeName | None = None
    platform_fee: float | None = Field(None, ge=0)
    locker_coords: CoordinatesIn | None = None
    delivery_coords: CoordinatesIn | None = None
    delivery_instructions: str | None = None
    distance_km: float | None = Field(None, ge=0)


class PaymentConfirmRequest(BaseModel):
    """Escrow payment metadata reported by the client after funding."""
    transaction_hash: str = Field(..., pattern=TX_HASH_PATTERN)
    contract_job_id: str | None = None
    contract_address: str | None = None
    network: str | None = None
    chain_id: int | None = None
    cryptocurrency: str | None = None
    token_symbol: str | None = None
    amount_crypto: float | None = Field(None, ge=0)


class AcceptJobRequest(BaseModel):
    """Request to take an open job."""
    gig_worker_name: str | None = Field(None, max_length=100)
    gig_worker_wallet: str | None = None  # Defaults to the token's wallet claim


class DeliverJobRequest(BaseModel):
    """Proof of delivery: the code the customer gave the recipient."""
    delivery_confirmation_code: str = Field(..., min_length=1)


class CancelJobRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class RateJobRequest(BaseModel):
    # Bounds are enforced by the job service so the message is consistent
    rating: int


# =============================================================================
# Pricing Models
# =============================================================================

class PriceCalculateRequest(BaseModel):
    """Price by package size and known distance."""
    package_size: str = Field(..., min_length=1)
    distance_km: float = Field(..., ge=0)


class PriceEstimateRequest(BaseModel):
    """Price by package size and the two end points."""
    package_size: str = Field(..., min_length=1)
    locker_coords: CoordinatesIn
    delivery_coords: CoordinatesIn
