"""Pytest configuration and fixtures."""

import os
import secrets

import pytest

# Generate a unique test secret for this test run to prevent token forgery
_TEST_JWT_SECRET = f"test-only-{secrets.token_urlsafe(32)}"

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET_KEY", _TEST_JWT_SECRET)

from app.database import get_job_service, get_locker_repository, get_worker_storage  # noqa: E402
from app.main import app  # noqa: E402
from app.rate_limit import limiter  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from lockerdrop.jobs import InMemoryJobStorage, JobService  # noqa: E402
from lockerdrop.lockers import InMemoryLockerRepository, Locker, LockerStatus  # noqa: E402
from lockerdrop.types import Coordinates  # noqa: E402
from lockerdrop.workers import (  # noqa: E402
    InMemoryWorkerStorage,
    ReputationService,
    WorkerProfile,
)


def _token_headers(subject: str, wallet: str | None = None, email: str | None = None) -> dict:
    from app.auth import create_access_token
    from app.config import get_settings

    token = create_access_token(subject, get_settings(), wallet=wallet, email=email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Each test starts with empty rate-limit buckets."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def job_storage():
    return InMemoryJobStorage()


@pytest.fixture
def worker_storage():
    storage = InMemoryWorkerStorage()
    storage.save_worker(
        WorkerProfile(
            id="worker-1",
            wallet_address="0xworker1",
            email="courier@example.com",
            display_name="Nikos",
            rating=4.5,
            completed_jobs=12,
            total_jobs=14,
        )
    )
    return storage


@pytest.fixture
def locker_repository():
    return InMemoryLockerRepository(
        [
            Locker(
                id="locker-syntagma",
                name="Syntagma Square Locker",
                code="SYN-001",
                address="Syntagma Square, Athens 105 63, Greece",
                coords=Coordinates(37.9755, 23.7348),
                capacity=30,
                available_slots=28,
                features=["24/7", "secure"],
            ),
            Locker(
                id="locker-airport",
                name="Athens Airport Locker",
                code="ATH-999",
                address="Athens International Airport, Spata 190 04, Greece",
                coords=Coordinates(37.9364, 23.9445),
            ),
            Locker(
                id="locker-piraeus",
                name="Piraeus Port Locker",
                address="Akti Miaouli, Piraeus 185 38, Greece",
                coords=Coordinates(37.9420, 23.6465),
                status=LockerStatus.MAINTENANCE,
            ),
        ]
    )


@pytest.fixture
def job_service(job_storage, worker_storage):
    return JobService(job_storage, reputation=ReputationService(job_storage, worker_storage))


@pytest.fixture
def client(job_service, worker_storage, locker_repository):
    """Test client wired to in-memory storage."""
    app.dependency_overrides[get_job_service] = lambda: job_service
    app.dependency_overrides[get_worker_storage] = lambda: worker_storage
    app.dependency_overrides[get_locker_repository] = lambda: locker_repository
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def customer_headers():
    return _token_headers("customer-1", wallet="0xcustomer1", email="buyer@example.com")


@pytest.fixture
def worker_headers():
    return _token_headers("worker-1", wallet="0xworker1")


@pytest.fixture
def other_worker_headers():
    return _token_headers("worker-2", wallet="0xworker2")
