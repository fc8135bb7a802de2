"""
Parcel lockers.

Lockers are reference data: jobs name a locker by location and code but
never hold a reference to a Locker record.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Protocol

from lockerdrop.pricing import distance_between
from lockerdrop.types import Coordinates, format_datetime, parse_datetime

DEFAULT_CAPACITY = 20

LOCKER_FEATURES = frozenset({"24/7", "climate-controlled", "secure", "indoor", "outdoor"})


class LockerStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


@dataclass
class Locker:
    """A parcel locker site."""

    id: str
    name: str
    address: str
    coords: Coordinates
    code: Optional[str] = None
    capacity: int = DEFAULT_CAPACITY
    available_slots: int = DEFAULT_CAPACITY
    status: str = LockerStatus.ACTIVE.value
    opens_at: str = "00:00"
    closes_at: str = "23:59"
    features: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if isinstance(self.status, LockerStatus):
            self.status = self.status.value
        if self.status not in {s.value for s in LockerStatus}:
            raise ValueError(f"Invalid locker status: {self.status}")
        if self.capacity < 0:
            raise ValueError("Capacity cannot be negative")
        if not 0 <= self.available_slots <= self.capacity:
            raise ValueError("Available slots must be between 0 and capacity")
        unknown = set(self.features) - LOCKER_FEATURES
        if unknown:
            raise ValueError(f"Unknown locker features: {', '.join(sorted(unknown))}")

    @property
    def is_active(self) -> bool:
        return self.status == LockerStatus.ACTIVE.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "address": self.address,
            "lat": self.coords.lat,
            "lng": self.coords.lng,
            "capacity": self.capacity,
            "available_slots": self.available_slots,
            "status": self.status,
            "operating_hours": {"open": self.opens_at, "close": self.closes_at},
            "features": list(self.features),
            "created_at": format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Locker":
        hours = data.get("operating_hours") or {}
        capacity = data.get("capacity")
        capacity = DEFAULT_CAPACITY if capacity is None else int(capacity)
        slots = data.get("available_slots")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            address=data["address"],
            coords=Coordinates(lat=float(data["lat"]), lng=float(data["lng"])),
            code=data.get("code"),
            capacity=capacity,
            available_slots=capacity if slots is None else int(slots),
            status=data.get("status") or LockerStatus.ACTIVE.value,
            opens_at=hours.get("open") or "00:00",
            closes_at=hours.get("close") or "23:59",
            features=list(data.get("features") or []),
            created_at=parse_datetime(data.get("created_at")),
        )


def lockers_within_radius(
    lockers: Iterable[Locker], origin: Coordinates, radius_km: float
) -> List[Locker]:
    """Lockers no further than radius_km from origin, in input order."""
    if radius_km < 0:
        raise ValueError("Radius cannot be negative")
    return [locker for locker in lockers if distance_between(origin, locker.coords) <= radius_km]


class LockerRepository(Protocol):
    """Read access to locker reference data."""

    def list_lockers(self, status: Optional[str] = LockerStatus.ACTIVE.value) -> List[Locker]:
        """Lockers with the given status (all if None), sorted by name."""
        ...

    def get_locker(self, locker_id: str) -> Optional[Locker]:
        ...


class InMemoryLockerRepository:
    """Locker repository backed by a dict, for tests and local development."""

    def __init__(self, lockers: Iterable[Locker] = ()):
        self._lockers: Dict[str, Locker] = {locker.id: locker for locker in lockers}

    def add(self, locker: Locker) -> None:
        self._lockers[locker.id] = locker

    def list_lockers(self, status: Optional[str] = LockerStatus.ACTIVE.value) -> List[Locker]:
        lockers = [lk for lk in self._lockers.values() if status is None or lk.status == status]
        return sorted(lockers, key=lambda lk: lk.name)

    def get_locker(self, locker_id: str) -> Optional[Locker]:
        return self._lockers.get(locker_id)
