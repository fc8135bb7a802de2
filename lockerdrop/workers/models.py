"""Worker profile model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from lockerdrop.types import format_datetime, parse_datetime

DEFAULT_RATING = 5.0


@dataclass
class WorkerProfile:
    """Reputation record for a marketplace user.

    Workers are looked up by any of their identifiers: jobs store whatever
    identifier the worker authenticated with (wallet address or email).
    """

    id: str
    wallet_address: Optional[str] = None
    email: Optional[str] = None
    display_name: Optional[str] = None
    rating: float = DEFAULT_RATING
    total_jobs: int = 0
    completed_jobs: int = 0
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not 0 <= self.rating <= 5:
            raise ValueError(f"Rating out of range: {self.rating}")
        if self.completed_jobs < 0 or self.total_jobs < 0:
            raise ValueError("Job counters cannot be negative")

    def matches(self, identifier: str) -> bool:
        return identifier in (self.id, self.wallet_address, self.email)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "wallet_address": self.wallet_address,
            "email": self.email,
            "display_name": self.display_name,
            "rating": self.rating,
            "total_jobs": self.total_jobs,
            "completed_jobs": self.completed_jobs,
            "updated_at": format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkerProfile":
        rating = data.get("rating")
        return cls(
            id=data["id"],
            wallet_address=data.get("wallet_address"),
            email=data.get("email"),
            display_name=data.get("display_name"),
            rating=float(rating) if rating is not None else DEFAULT_RATING,
            total_jobs=int(data.get("total_jobs") or 0),
            completed_jobs=int(data.get("completed_jobs") or 0),
            updated_at=parse_datetime(data.get("updated_at")),
        )
