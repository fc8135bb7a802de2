"""Worker reputation subsystem.

Models:
- WorkerProfile: rating and job counters for a marketplace user

Storage:
- WorkerStorage: persistence protocol
- InMemoryWorkerStorage: in-memory backend

Service:
- ReputationService: rating recompute and completion counting
"""

from lockerdrop.workers.models import DEFAULT_RATING, WorkerProfile
from lockerdrop.workers.reputation import ReputationService
from lockerdrop.workers.storage import InMemoryWorkerStorage, WorkerStorage

__all__ = [
    "WorkerProfile",
    "DEFAULT_RATING",
    "WorkerStorage",
    "InMemoryWorkerStorage",
    "ReputationService",
]
