"""Marketplace configuration.

Defaults mirror the production marketplace rules. Every value can be
overridden from the environment with a ``LOCKERDROP_`` prefix, e.g.
``LOCKERDROP_PLATFORM_FEE_RATE=0.12``.
"""

import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional


@dataclass
class MarketplaceConfig:
    """Tunable rules for the job lifecycle."""

    # Share of the job amount retained by the platform when the customer
    # does not quote a fee explicitly.
    platform_fee_rate: float = 0.10
    # Package size assumed by job creation when none is given. The entity
    # itself defaults to "medium"; creation has always used "small".
    default_package_size: str = "small"
    confirmation_code_digits: int = 4
    min_rating: int = 1
    max_rating: int = 5
    anonymous_worker_name: str = "Anonymous Worker"

    def __post_init__(self):
        if not 0 <= self.platform_fee_rate < 1:
            raise ValueError(f"platform_fee_rate must be in [0, 1), got {self.platform_fee_rate}")
        if self.confirmation_code_digits < 1:
            raise ValueError("confirmation_code_digits must be at least 1")
        if self.min_rating > self.max_rating:
            raise ValueError("min_rating cannot exceed max_rating")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "MarketplaceConfig":
        """Build a config from LOCKERDROP_* environment variables."""
        environ = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            raw = environ.get(f"LOCKERDROP_{f.name.upper()}")
            if raw is None:
                continue
            if f.type in (float, "float"):
                overrides[f.name] = float(raw)
            elif f.type in (int, "int"):
                overrides[f.name] = int(raw)
            else:
                overrides[f.name] = raw
        return cls(**overrides)
