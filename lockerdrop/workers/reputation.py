"""
Worker reputation aggregation.

Ratings are recomputed from every rated job on each new rating rather
than folded in incrementally.
"""

import logging
from typing import Optional

from lockerdrop.jobs.storage import JobStorage
from lockerdrop.workers.storage import WorkerStorage

logger = logging.getLogger(__name__)


class ReputationService:
    """Maintains worker rating and completion counters."""

    def __init__(self, job_storage: JobStorage, worker_storage: WorkerStorage):
        self.job_storage = job_storage
        self.worker_storage = worker_storage

    def recompute_rating(self, gig_worker_id: str) -> Optional[float]:
        """Recompute a worker's average rating across all rated jobs.

        Returns the new rating, or None when nothing changed (unknown
        worker, or no rated jobs yet).
        """
        worker = self.worker_storage.find_worker(gig_worker_id)
        if worker is None:
            logger.info(f"No profile for worker {gig_worker_id}, skipping rating recompute")
            return None

        rated = self.job_storage.list_rated_jobs(gig_worker_id)
        if not rated:
            return None

        average = round(sum(j.gig_worker_rating for j in rated) / len(rated), 2)
        self.worker_storage.update_rating(worker.id, average)
        logger.info(
            f"Worker rating recomputed | worker={worker.id} | rating={average} | jobs={len(rated)}"
        )
        return average

    def increment_completed(self, gig_worker_id: str) -> bool:
        """Count one more completed delivery. Unknown workers are a no-op."""
        worker = self.worker_storage.find_worker(gig_worker_id)
        if worker is None:
            logger.info(f"No profile for worker {gig_worker_id}, completed count not updated")
            return False
        return self.worker_storage.increment_completed_jobs(worker.id)
