"""
Delivery pricing.

Price is a starting fee plus a per-kilometre charge, scaled by package
size, with the platform fee added on top:

    total = (BASE_FEE + distance_km * PRICE_PER_KM) * multiplier * (1 + fee rate)

All monetary outputs are rounded to 2 decimal places. Distances between
coordinates use the haversine great-circle formula.
"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Union

from lockerdrop.jobs.models import PackageSize
from lockerdrop.types import Coordinates

EARTH_RADIUS_KM = 6371.0

BASE_FEE = 1.00
PRICE_PER_KM = 1.00
PLATFORM_FEE_RATE = 0.10

SIZE_MULTIPLIERS: Dict[str, float] = {
    PackageSize.SMALL.value: 1.0,
    PackageSize.MEDIUM.value: 1.5,
    PackageSize.LARGE.value: 2.0,
}

SIZE_DESCRIPTIONS: Dict[str, str] = {
    PackageSize.SMALL.value: "Letter size",
    PackageSize.MEDIUM.value: "Shoebox size, up to 2.5kg",
    PackageSize.LARGE.value: "5kg+",
}


@dataclass
class PriceBreakdown:
    """Itemized delivery price."""

    package_size: str
    distance_km: float
    base_fee: float
    distance_price: float
    base_cost: float
    size_multiplier: float
    subtotal: float
    platform_fee: float
    total: float
    gig_worker_payout: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def size_multiplier(package_size: Union[PackageSize, str, None]) -> float:
    """Multiplier for a package size. Unknown sizes price as small."""
    key = package_size.value if isinstance(package_size, PackageSize) else package_size
    return SIZE_MULTIPLIERS.get(key, SIZE_MULTIPLIERS[PackageSize.SMALL.value])


def calculate_delivery_price(
    package_size: Union[PackageSize, str],
    distance_km: float,
    fee_rate: float = PLATFORM_FEE_RATE,
) -> PriceBreakdown:
    """Price a delivery of the given size over the given distance.

    Args:
        package_size: small, medium or large
        distance_km: Distance in kilometres (non-negative)
        fee_rate: Platform fee as a share of the subtotal

    Raises:
        ValueError: If distance_km is negative
    """
    if distance_km < 0:
        raise ValueError("Distance cannot be negative")

    multiplier = size_multiplier(package_size)
    distance_price = distance_km * PRICE_PER_KM
    base_cost = BASE_FEE + distance_price
    subtotal = base_cost * multiplier
    platform_fee = subtotal * fee_rate
    total = subtotal + platform_fee

    size = package_size.value if isinstance(package_size, PackageSize) else package_size
    return PriceBreakdown(
        package_size=size,
        distance_km=round(distance_km, 2),
        base_fee=round(BASE_FEE, 2),
        distance_price=round(distance_price, 2),
        base_cost=round(base_cost, 2),
        size_multiplier=multiplier,
        subtotal=round(subtotal, 2),
        platform_fee=round(platform_fee, 2),
        total=round(total, 2),
        gig_worker_payout=round(total - platform_fee, 2),
    )


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points, in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_between(origin: Coordinates, destination: Coordinates) -> float:
    return haversine_km(origin.lat, origin.lng, destination.lat, destination.lng)


def estimate_price(
    package_size: Union[PackageSize, str],
    origin: Union[Coordinates, Dict[str, Any]],
    destination: Union[Coordinates, Dict[str, Any]],
    fee_rate: float = PLATFORM_FEE_RATE,
) -> PriceBreakdown:
    """Price a delivery from locker coordinates to destination coordinates.

    Raises:
        ValueError: If either point is missing or out of range
    """
    start = _as_coordinates(origin)
    end = _as_coordinates(destination)
    if start is None or end is None:
        raise ValueError("Both origin and destination coordinates are required")
    return calculate_delivery_price(package_size, distance_between(start, end), fee_rate)


def _as_coordinates(value: Union[Coordinates, Dict[str, Any], None]) -> Optional[Coordinates]:
    if value is None or isinstance(value, Coordinates):
        return value
    return Coordinates.from_dict(value)


def _example(distance_km: float, package_size: str) -> str:
    price = calculate_delivery_price(package_size, distance_km)
    return (
        f"(€{BASE_FEE:g} + €{distance_km * PRICE_PER_KM:g}) × {price.size_multiplier:.1f}"
        f" + {PLATFORM_FEE_RATE:.0%} = €{price.total:.2f}"
    )


def pricing_rates() -> Dict[str, Any]:
    """Public rate card, with a few worked examples."""
    return {
        "base_fee": f"€{BASE_FEE:.2f}",
        "price_per_km": f"€{PRICE_PER_KM:.2f}",
        "package_sizes": {
            size: {"multiplier": SIZE_MULTIPLIERS[size], "description": SIZE_DESCRIPTIONS[size]}
            for size in SIZE_MULTIPLIERS
        },
        "formula": "Total = (€1 + distance×€1) × multiplier + 10% platform fee",
        "examples": {
            "1km_small": _example(1, PackageSize.SMALL.value),
            "1km_medium": _example(1, PackageSize.MEDIUM.value),
            "5km_large": _example(5, PackageSize.LARGE.value),
        },
        "platform_fee": f"{PLATFORM_FEE_RATE:.0%} of subtotal",
    }
