"""Tests for the Supabase storage adapters, against a mocked client."""

from unittest.mock import MagicMock

import pytest
from app.database import (
    JOB_COLUMNS,
    SupabaseJobStorage,
    SupabaseLockerRepository,
    SupabaseWorkerStorage,
)

from lockerdrop.identity import Actor
from lockerdrop.jobs import InMemoryJobStorage, JobService
from lockerdrop.jobs.models import Job
from lockerdrop.types import StorageError, VersionConflictError
from lockerdrop.workers import InMemoryWorkerStorage, ReputationService, WorkerProfile

CUSTOMER = Actor(id="customer-1", wallet="0xcustomer1")
WORKER = Actor(id="worker-1", wallet="0xworker1")


def job_row(**overrides) -> dict:
    job = Job(
        id="job-1",
        customer_id="customer-1",
        customer_wallet="0xcustomer1",
        locker_location="Syntagma Square Locker",
        locker_code="SYN-001",
        delivery_address="d" * 64,
        delivery_address_plain="Ermou 12",
        amount=10.0,
    )
    row = job.to_dict(include_address=True)
    row.update(overrides)
    return row


@pytest.fixture
def db():
    return MagicMock()


class TestJobColumns:
    def test_plaintext_address_excluded(self):
        assert "delivery_address_plain" not in JOB_COLUMNS
        assert "delivery_address" in JOB_COLUMNS
        assert "transaction_hash" in JOB_COLUMNS
        assert "payment" not in JOB_COLUMNS


class TestSupabaseJobStorage:
    def test_get_job_without_address(self, db):
        db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [
            job_row()
        ]

        job = SupabaseJobStorage(db).get_job("job-1")

        assert job.delivery_address_plain is None
        selected = db.table.return_value.select.call_args[0][0]
        assert "delivery_address_plain" not in selected

    def test_get_job_with_address(self, db):
        db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [
            job_row()
        ]

        job = SupabaseJobStorage(db).get_job("job-1", include_address=True)

        assert job.delivery_address_plain == "Ermou 12"
        db.table.return_value.select.assert_called_with("*")

    def test_get_missing_job(self, db):
        db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = []
        assert SupabaseJobStorage(db).get_job("nope") is None

    def test_update_checks_version(self, db):
        update = db.table.return_value.update
        update.return_value.eq.return_value.eq.return_value.execute.return_value.data = [
            job_row(version=3, status="accepted")
        ]
        job = Job.from_dict(job_row(version=2, status="accepted"))

        saved = SupabaseJobStorage(db).update_job(job, expected_version=2)

        assert saved.version == 3
        data = update.call_args[0][0]
        assert data["version"] == 3
        assert "customer_id" not in data
        assert "delivery_address" not in data
        assert "delivery_address_plain" not in data
        update.return_value.eq.return_value.eq.assert_called_with("version", 2)

    def test_update_conflict(self, db):
        db.table.return_value.update.return_value.eq.return_value.eq.return_value.execute.return_value.data = []  # noqa: E501
        db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [
            job_row(version=5)
        ]
        job = Job.from_dict(job_row(version=4))

        with pytest.raises(VersionConflictError) as exc:
            SupabaseJobStorage(db).update_job(job, expected_version=4)

        assert exc.value.expected_version == 4
        assert exc.value.actual_version == 5

    def test_insert_failure_wrapped(self, db):
        db.table.return_value.insert.return_value.execute.side_effect = RuntimeError("boom")

        with pytest.raises(StorageError, match="Failed to insert job"):
            SupabaseJobStorage(db).save_job(Job.from_dict(job_row()))

    def test_empty_party_filter(self, db):
        assert SupabaseJobStorage(db).list_jobs(party_ids=[]) == []


class TestSupabaseWorkerStorage:
    def test_increment_uses_rpc(self, db):
        db.rpc.return_value.execute.return_value.data = [{"completed_jobs": 3}]

        assert SupabaseWorkerStorage(db).increment_completed_jobs("worker-1")

        db.rpc.assert_called_once_with("increment_completed_jobs", {"p_user_id": "worker-1"})

    def test_find_by_any_identifier(self, db):
        query = db.table.return_value.select.return_value.or_
        query.return_value.limit.return_value.execute.return_value.data = [
            {"id": "worker-1", "wallet_address": "0xworker1", "rating": "4.75"}
        ]

        worker = SupabaseWorkerStorage(db).find_worker("0xworker1")

        assert worker.id == "worker-1"
        assert worker.rating == 4.75
        assert 'wallet_address.eq."0xworker1"' in query.call_args[0][0]

    def test_empty_identifier(self, db):
        assert SupabaseWorkerStorage(db).find_worker("") is None
        db.table.assert_not_called()


class TestSupabaseLockerRepository:
    def test_list_active(self, db):
        query = db.table.return_value.select.return_value.eq.return_value.order
        query.return_value.execute.return_value.data = [
            {"id": "l-1", "name": "Syntagma", "address": "Athens", "lat": 37.9755, "lng": 23.7348}
        ]

        lockers = SupabaseLockerRepository(db).list_lockers()

        assert [lk.id for lk in lockers] == ["l-1"]
        db.table.return_value.select.return_value.eq.assert_called_with("status", "active")


class TestJobServiceDependency:
    def test_settings_flow_into_marketplace_config(self, db):
        from app.config import Settings
        from app.database import get_job_service

        settings = Settings(
            supabase_url="https://test.supabase.co",
            jwt_secret_key="test",
            platform_fee_rate=0.2,
            confirmation_code_digits=6,
        )

        service = get_job_service(db, settings)

        assert isinstance(service.storage, SupabaseJobStorage)
        assert service.config.platform_fee_rate == 0.2
        assert service.config.confirmation_code_digits == 6
        assert service.reputation is not None

    def test_client_built_from_secret_key(self, monkeypatch):
        """Test the client is created with the server-side secret key."""
        from app import database
        from app.config import Settings

        monkeypatch.setattr(database, "_supabase_client", None)
        create = MagicMock(return_value="client")
        monkeypatch.setattr(database, "create_client", create)
        settings = Settings(
            supabase_url="https://test.supabase.co",
            supabase_secret_key="server-key",
            jwt_secret_key="test",
        )

        assert database.get_supabase_client(settings) == "client"
        create.assert_called_once_with("https://test.supabase.co", "server-key")


class TestFilterQuoting:
    """Tests that caller-supplied values can't add clauses to ``or=`` filters."""

    def test_comma_in_worker_identifier(self, db):
        query = db.table.return_value.select.return_value.or_
        query.return_value.limit.return_value.execute.return_value.data = []
        identifier = "nobody,email.eq.victim@example.com"

        assert SupabaseWorkerStorage(db).find_worker(identifier) is None

        assert query.call_args[0][0] == (
            'id.eq."nobody,email.eq.victim@example.com",'
            'wallet_address.eq."nobody,email.eq.victim@example.com",'
            'email.eq."nobody,email.eq.victim@example.com"'
        )

    def test_quotes_and_backslashes_escaped(self, db):
        query = db.table.return_value.select.return_value.or_
        query.return_value.limit.return_value.execute.return_value.data = []

        SupabaseWorkerStorage(db).find_worker('a"),id.eq.\\x')

        assert query.call_args[0][0].startswith('id.eq."a\\"),id.eq.\\\\x",')

    def test_party_ids_quoted(self, db):
        query = db.table.return_value.select.return_value.or_
        query.return_value.order.return_value.range.return_value.execute.return_value.data = []

        SupabaseJobStorage(db).list_jobs(party_ids=["0xabc,status.eq.open"])

        clauses = query.call_args[0][0]
        assert 'customer_id.eq."0xabc,status.eq.open"' in clauses
        assert 'gig_worker_wallet.eq."0xabc,status.eq.open"' in clauses


class TestReadFailures:
    """Tests for wrapping client failures on reads used after a commit."""

    def test_find_worker_failure_wrapped(self, db):
        query = db.table.return_value.select.return_value.or_
        query.return_value.limit.return_value.execute.side_effect = RuntimeError("connection reset")

        with pytest.raises(StorageError, match="Failed to look up worker"):
            SupabaseWorkerStorage(db).find_worker("worker-1")

    def test_list_rated_jobs_failure_wrapped(self, db):
        chain = db.table.return_value.select.return_value.eq.return_value.not_.is_
        chain.return_value.execute.side_effect = RuntimeError("connection reset")

        with pytest.raises(StorageError, match="Failed to load rated jobs"):
            SupabaseJobStorage(db).list_rated_jobs("worker-1")


class TestReputationOutage:
    """A committed delivery or rating survives a failing reputation update."""

    def delivered(self, service, job_storage):
        job = service.create_job(
            customer=CUSTOMER,
            locker_location="Syntagma Square Locker",
            locker_code="SYN-001",
            delivery_address="Ermou 12, Athens 105 63",
            amount=10.0,
        )
        service.confirm_payment(job.id, transaction_hash="0x" + "ab" * 32)
        service.accept_job(job.id, WORKER)
        service.confirm_pickup(job.id, WORKER)
        code = job_storage.get_job(job.id).delivery_confirmation_code
        return service.confirm_delivery(job.id, WORKER, code)

    def test_delivery_succeeds_when_worker_lookup_fails(self, db):
        query = db.table.return_value.select.return_value.or_
        query.return_value.limit.return_value.execute.side_effect = RuntimeError(
            "postgrest: connection reset"
        )
        job_storage = InMemoryJobStorage()
        service = JobService(
            job_storage, reputation=ReputationService(job_storage, SupabaseWorkerStorage(db))
        )

        result = self.delivered(service, job_storage)

        assert result.job.status == "delivered"
        assert job_storage.get_job(result.job.id).status == "delivered"

    def test_rating_succeeds_when_rated_jobs_query_fails(self, db):
        chain = db.table.return_value.select.return_value.eq.return_value.not_.is_
        chain.return_value.execute.side_effect = RuntimeError("postgrest: connection reset")
        job_storage = InMemoryJobStorage()
        workers = InMemoryWorkerStorage()
        workers.save_worker(WorkerProfile(id="worker-1", wallet_address="0xworker1"))
        service = JobService(
            job_storage, reputation=ReputationService(SupabaseJobStorage(db), workers)
        )
        delivered = self.delivered(service, job_storage).job

        rated = service.rate_worker(delivered.id, CUSTOMER, 5)

        assert rated.gig_worker_rating == 5
        assert job_storage.get_job(delivered.id).gig_worker_rating == 5
        assert workers.find_worker("worker-1").rating == 5.0
