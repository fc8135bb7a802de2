"""
LockerDrop - parcel locker delivery marketplace.

Customers post locker-to-door deliveries, gig workers carry them.
"""

from .identity import Actor
from .jobs import JobService

try:
    from importlib.metadata import version

    __version__ = version("lockerdrop")
except Exception:
    __version__ = "0.0.0"

__all__ = ["Actor", "JobService"]
