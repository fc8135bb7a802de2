"""Tests for locker reference data."""

import pytest

from lockerdrop.lockers import (
    InMemoryLockerRepository,
    Locker,
    LockerStatus,
    lockers_within_radius,
)
from lockerdrop.types import Coordinates

SYNTAGMA = Locker(
    id="l-1",
    name="Syntagma Square Locker",
    code="SYN-001",
    address="Syntagma Square, Athens 105 63, Greece",
    coords=Coordinates(37.9755, 23.7348),
    capacity=30,
    available_slots=28,
    features=["24/7", "secure", "indoor"],
)
AIRPORT = Locker(
    id="l-2",
    name="Athens Airport Locker",
    code="ATH-999",
    address="Athens International Airport, Spata 190 04, Greece",
    coords=Coordinates(37.9364, 23.9445),
    capacity=50,
    available_slots=45,
)
KOLONAKI = Locker(
    id="l-3",
    name="Kolonaki Center",
    address="Kolonaki Square, Athens 106 73, Greece",
    coords=Coordinates(37.9790, 23.7420),
    status=LockerStatus.MAINTENANCE,
)


class TestLocker:
    """Tests for the Locker model."""

    def test_defaults(self):
        assert KOLONAKI.capacity == 20
        assert KOLONAKI.available_slots == 20
        assert KOLONAKI.status == "maintenance"
        assert not KOLONAKI.is_active

    def test_round_trip(self):
        assert Locker.from_dict(SYNTAGMA.to_dict()) == SYNTAGMA

    def test_from_row_defaults(self):
        locker = Locker.from_dict(
            {"id": 7, "name": "New", "address": "Somewhere", "lat": "37.9", "lng": "23.7"}
        )

        assert locker.id == "7"
        assert locker.capacity == 20
        assert locker.available_slots == 20
        assert locker.opens_at == "00:00"
        assert locker.closes_at == "23:59"

    def test_invalid_status(self):
        with pytest.raises(ValueError, match="status"):
            Locker(id="x", name="x", address="x", coords=Coordinates(0, 0), status="closed")

    def test_slots_over_capacity(self):
        with pytest.raises(ValueError, match="slots"):
            Locker(
                id="x", name="x", address="x", coords=Coordinates(0, 0),
                capacity=5, available_slots=6,
            )

    def test_unknown_feature(self):
        with pytest.raises(ValueError, match="features"):
            Locker(id="x", name="x", address="x", coords=Coordinates(0, 0), features=["drone"])


class TestRadius:
    """Tests for radius filtering."""

    def test_city_centre(self):
        near = lockers_within_radius([SYNTAGMA, AIRPORT, KOLONAKI], Coordinates(37.9755, 23.7348), 2)
        assert [locker.id for locker in near] == ["l-1", "l-3"]

    def test_wide_radius(self):
        near = lockers_within_radius([SYNTAGMA, AIRPORT], Coordinates(37.9755, 23.7348), 50)
        assert len(near) == 2

    def test_negative_radius(self):
        with pytest.raises(ValueError):
            lockers_within_radius([SYNTAGMA], Coordinates(0, 0), -1)


class TestRepository:
    def test_active_only_by_default(self):
        repo = InMemoryLockerRepository([SYNTAGMA, AIRPORT, KOLONAKI])

        names = [locker.name for locker in repo.list_lockers()]

        assert names == ["Athens Airport Locker", "Syntagma Square Locker"]

    def test_other_status(self):
        repo = InMemoryLockerRepository([SYNTAGMA, KOLONAKI])
        assert [locker.id for locker in repo.list_lockers("maintenance")] == ["l-3"]
        assert len(repo.list_lockers(None)) == 2

    def test_get(self):
        repo = InMemoryLockerRepository([SYNTAGMA])
        assert repo.get_locker("l-1") is SYNTAGMA
        assert repo.get_locker("missing") is None
