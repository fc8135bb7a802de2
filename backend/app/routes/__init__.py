"""API routes."""

from .jobs import router as jobs_router
from .lockers import router as lockers_router
from .pricing import router as pricing_router
from .workers import router as workers_router

__all__ = [
    "jobs_router",
    "pricing_router",
    "lockers_router",
    "workers_router",
]
