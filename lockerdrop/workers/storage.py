"""Worker profile storage."""

import copy
import threading
from typing import Dict, Optional, Protocol

from lockerdrop.types import utc_now
from lockerdrop.workers.models import WorkerProfile


class WorkerStorage(Protocol):
    """Protocol for worker profile backends."""

    def find_worker(self, identifier: str) -> Optional[WorkerProfile]:
        """Find a worker by id, wallet address or email."""
        ...

    def save_worker(self, worker: WorkerProfile) -> str:
        """Insert or replace a worker profile. Returns its ID."""
        ...

    def update_rating(self, worker_id: str, rating: float) -> bool:
        """Overwrite the aggregate rating. False if the worker is unknown."""
        ...

    def increment_completed_jobs(self, worker_id: str) -> bool:
        """Add one completed job. False if the worker is unknown."""
        ...


class InMemoryWorkerStorage:
    """In-memory worker storage for testing and local development."""

    def __init__(self):
        self._workers: Dict[str, WorkerProfile] = {}
        self._lock = threading.Lock()

    def find_worker(self, identifier: str) -> Optional[WorkerProfile]:
        for worker in self._workers.values():
            if worker.matches(identifier):
                return copy.deepcopy(worker)
        return None

    def save_worker(self, worker: WorkerProfile) -> str:
        with self._lock:
            self._workers[worker.id] = copy.deepcopy(worker)
        return worker.id

    def update_rating(self, worker_id: str, rating: float) -> bool:
        with self._lock:
            worker = self._workers.get(worker_id)
            if worker is None:
                return False
            worker.rating = rating
            worker.updated_at = utc_now()
        return True

    def increment_completed_jobs(self, worker_id: str) -> bool:
        with self._lock:
            worker = self._workers.get(worker_id)
            if worker is None:
                return False
            worker.completed_jobs += 1
            worker.updated_at = utc_now()
        return True
