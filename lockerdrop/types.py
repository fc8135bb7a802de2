"""
Shared types for lockerdrop.

Small value objects and errors used across the jobs, workers and lockers
subsystems.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# === Shared Utility Functions ===


def utc_now() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO datetime string (or pass through a datetime).

    Returns None for empty values. Raises ValueError for malformed strings.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to ISO format, passing None through."""
    return value.isoformat() if value else None


# === Value Objects ===


@dataclass(frozen=True)
class Coordinates:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float

    def __post_init__(self):
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lng}")

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Coordinates"]:
        if not data or data.get("lat") is None or data.get("lng") is None:
            return None
        return cls(lat=float(data["lat"]), lng=float(data["lng"]))


# === Errors ===


class LockerDropError(Exception):
    """Base for all lockerdrop errors."""

    pass


class StorageError(LockerDropError):
    """Raised by storage backends on persistence failures."""

    pass


class VersionConflictError(LockerDropError):
    """Raised when a record's version doesn't match the expected version.

    This indicates a concurrent modification - another request updated the
    record between when we read it and when we tried to save our changes.
    """

    def __init__(self, table: str, record_id: str, expected_version: int, actual_version: int):
        self.table = table
        self.record_id = record_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Version conflict on {table}/{record_id}: "
            f"expected version {expected_version}, found {actual_version}"
        )
