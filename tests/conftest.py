"""
Pytest fixtures and test configuration for lockerdrop tests.
"""

import pytest

from lockerdrop.config import MarketplaceConfig
from lockerdrop.identity import Actor
from lockerdrop.jobs import InMemoryJobStorage, JobService
from lockerdrop.workers import InMemoryWorkerStorage, ReputationService, WorkerProfile

DELIVERY_ADDRESS = "Ermou 12, Athens 105 63"


@pytest.fixture
def job_storage():
    """In-memory job storage."""
    return InMemoryJobStorage()


@pytest.fixture
def worker_storage():
    """In-memory worker storage with one registered courier."""
    storage = InMemoryWorkerStorage()
    storage.save_worker(
        WorkerProfile(
            id="worker-1",
            wallet_address="0xworker1",
            email="courier@example.com",
            display_name="Nikos",
        )
    )
    return storage


@pytest.fixture
def reputation(job_storage, worker_storage):
    return ReputationService(job_storage, worker_storage)


@pytest.fixture
def config():
    return MarketplaceConfig()


@pytest.fixture
def service(job_storage, reputation, config):
    """Job service wired to in-memory storage."""
    return JobService(storage=job_storage, reputation=reputation, config=config)


@pytest.fixture
def customer():
    return Actor(id="customer-1", wallet="0xcustomer1", email="buyer@example.com")


@pytest.fixture
def worker():
    return Actor(id="worker-1", wallet="0xworker1")


@pytest.fixture
def other_worker():
    return Actor(id="worker-2", wallet="0xworker2")


@pytest.fixture
def make_job(service, customer):
    """Factory creating jobs for the default customer."""

    def _make(**overrides):
        owner = overrides.pop("customer", customer)
        params = {
            "locker_location": "Syntagma Square Locker",
            "locker_code": "SYN-001",
            "delivery_address": DELIVERY_ADDRESS,
            "amount": 10.0,
        }
        params.update(overrides)
        return service.create_job(customer=owner, **params)

    return _make


@pytest.fixture
def paid_job(service, make_job):
    """An open job whose payment has been confirmed."""
    job = make_job()
    return service.confirm_payment(job.id, transaction_hash="0x" + "ab" * 32)
