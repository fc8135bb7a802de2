"""Tests for worker reputation aggregation."""

import pytest

from lockerdrop.jobs.models import Job
from lockerdrop.jobs.storage import InMemoryJobStorage
from lockerdrop.workers import InMemoryWorkerStorage, ReputationService, WorkerProfile


def delivered_job(job_id: str, worker_id: str, rating=None) -> Job:
    return Job(
        id=job_id,
        customer_id="customer-1",
        customer_wallet="0xcustomer1",
        locker_location="Locker",
        locker_code="L-1",
        delivery_address="e" * 64,
        amount=10.0,
        status="delivered",
        gig_worker_id=worker_id,
        gig_worker_rating=rating,
    )


@pytest.fixture
def jobs():
    return InMemoryJobStorage()


@pytest.fixture
def workers():
    storage = InMemoryWorkerStorage()
    storage.save_worker(WorkerProfile(id="worker-1", wallet_address="0xworker1"))
    return storage


@pytest.fixture
def reputation(jobs, workers):
    return ReputationService(jobs, workers)


class TestWorkerProfile:
    def test_defaults(self):
        profile = WorkerProfile(id="w")
        assert profile.rating == 5.0
        assert profile.completed_jobs == 0

    def test_matches_any_identifier(self):
        profile = WorkerProfile(id="w", wallet_address="0xw", email="w@example.com")
        assert profile.matches("0xw")
        assert profile.matches("w@example.com")
        assert not profile.matches("other")

    def test_invalid_rating(self):
        with pytest.raises(ValueError):
            WorkerProfile(id="w", rating=5.5)

    def test_round_trip(self):
        profile = WorkerProfile(id="w", display_name="Nikos", rating=4.25, completed_jobs=3)
        assert WorkerProfile.from_dict(profile.to_dict()) == profile


class TestRecomputeRating:
    """Tests for rating recompute."""

    def test_mean_of_rated_jobs(self, jobs, workers, reputation):
        for i, rating in enumerate([5, 4, 4]):
            jobs.save_job(delivered_job(f"job-{i}", "worker-1", rating))
        jobs.save_job(delivered_job("job-unrated", "worker-1"))

        assert reputation.recompute_rating("worker-1") == 4.33
        assert workers.find_worker("worker-1").rating == 4.33

    def test_lookup_by_wallet(self, jobs, workers, reputation):
        """Test jobs recorded under the wallet still update the profile."""
        jobs.save_job(delivered_job("job-1", "0xworker1", 3))

        assert reputation.recompute_rating("0xworker1") == 3.0
        assert workers.find_worker("worker-1").rating == 3.0

    def test_no_rated_jobs_is_noop(self, jobs, workers, reputation):
        jobs.save_job(delivered_job("job-1", "worker-1"))

        assert reputation.recompute_rating("worker-1") is None
        assert workers.find_worker("worker-1").rating == 5.0

    def test_unknown_worker_is_noop(self, jobs, reputation):
        jobs.save_job(delivered_job("job-1", "ghost", 1))
        assert reputation.recompute_rating("ghost") is None


class TestCompletedJobs:
    def test_increment(self, workers, reputation):
        assert reputation.increment_completed("worker-1")
        assert reputation.increment_completed("0xworker1")
        assert workers.find_worker("worker-1").completed_jobs == 2

    def test_unknown_worker(self, reputation):
        assert reputation.increment_completed("ghost") is False
