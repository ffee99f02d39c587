# tests/trip_rules_test.py
from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.business_objects import (
    Driver, DriverStatus, EntityKind, Trip, TripStatus, Vehicle, VehicleStatus,
)
from src.rules.base import Outcome, RejectedOperation, RejectionReason as R
from src.rules.trip_rules import (
    TRIP_TRANSITIONS,
    find_active_trip,
    validate_cancellation,
    validate_completion,
    validate_dispatch,
    validate_status_transition,
    validate_trip_creation,
)
from src.store.entity_store import EntityStore

TODAY = date(2026, 3, 10)


# ───────────────────────── helpers to build a tiny fleet ───────────────────────── #

def build_store(*, vehicle_status=VehicleStatus.AVAILABLE, driver_status=DriverStatus.AVAILABLE,
                license_expiry=date(2027, 1, 1)) -> EntityStore:
    store = EntityStore()
    store.put(EntityKind.VEHICLE, Vehicle(
        vehicle_id="v1", name="Volvo FH16", model="FH16", license_plate="TRK-001",
        capacity_kg=25000.0, odometer_km=45000.0, status=vehicle_status,
    ))
    store.put(EntityKind.DRIVER, Driver(
        driver_id="d1", name="Dana Cohen", license_category="CE",
        license_expiry=license_expiry, status=driver_status,
    ))
    return store


def build_trip(status=TripStatus.DRAFT, trip_id="t1", **kw) -> Trip:
    data = dict(
        trip_id=trip_id, vehicle_id="v1", driver_id="d1", cargo_weight_kg=20000.0,
        pickup_location="Warehouse A", delivery_location="Port Terminal",
        created_at=datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc), status=status,
    )
    data.update(kw)
    return Trip(**data)


# ───────────────────────── creation ───────────────────────── #

def test_creation_accepts_cargo_equal_to_capacity():
    out = validate_trip_creation(build_store(), "v1", "d1", 25000.0, TODAY)
    assert out.ok


def test_creation_rejects_cargo_over_capacity_with_message():
    out = validate_trip_creation(build_store(), "v1", "d1", 30000.0, TODAY)
    assert out.reason == R.CAPACITY_EXCEEDED
    assert out.message == "Cargo (30000kg) exceeds vehicle capacity (25000kg)"


def test_creation_rejects_unknown_entities():
    out = validate_trip_creation(build_store(), "v404", "d1", 100.0, TODAY)
    assert out.reason == R.ENTITY_NOT_FOUND
    assert out.message == "Vehicle or driver not found"


def test_creation_rejects_unavailable_vehicle_before_driver():
    store = build_store(vehicle_status=VehicleStatus.IN_SHOP, driver_status=DriverStatus.SUSPENDED)
    out = validate_trip_creation(store, "v1", "d1", 100.0, TODAY)
    assert out.reason == R.RESOURCE_UNAVAILABLE
    assert out.message == "Vehicle is not available"


def test_creation_rejects_unavailable_driver():
    out = validate_trip_creation(build_store(driver_status=DriverStatus.OFF_DUTY), "v1", "d1", 100.0, TODAY)
    assert out.reason == R.RESOURCE_UNAVAILABLE
    assert out.message == "Driver is not available"


def test_license_expiring_today_is_valid_yesterday_is_not():
    assert validate_trip_creation(build_store(license_expiry=TODAY), "v1", "d1", 1.0, TODAY).ok

    out = validate_trip_creation(build_store(license_expiry=date(2026, 3, 9)), "v1", "d1", 1.0, TODAY)
    assert out.reason == R.LICENSE_EXPIRED
    assert out.message == "Driver license has expired"


def test_expired_license_checked_before_capacity():
    store = build_store(license_expiry=date(2020, 1, 1))
    out = validate_trip_creation(store, "v1", "d1", 999999.0, TODAY)
    assert out.reason == R.LICENSE_EXPIRED


def test_negative_cargo_is_invalid_input():
    out = validate_trip_creation(build_store(), "v1", "d1", -1.0, TODAY)
    assert out.reason == R.INVALID_INPUT


@pytest.mark.parametrize("cargo", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_cargo_is_invalid_input(cargo):
    out = validate_trip_creation(build_store(), "v1", "d1", cargo, TODAY)
    assert out.reason == R.INVALID_INPUT


def test_draft_trip_holds_vehicle_and_driver():
    store = build_store()
    store.put(EntityKind.TRIP, build_trip(TripStatus.DRAFT))
    out = validate_trip_creation(store, "v1", "d1", 100.0, TODAY)
    assert out.reason == R.RESOURCE_UNAVAILABLE
    assert "t1" in out.message

    assert find_active_trip(store, driver_id="d1").trip_id == "t1"
    assert find_active_trip(store, vehicle_id="v1", exclude="t1") is None


def test_terminal_trips_do_not_hold_resources():
    store = build_store()
    store.put(EntityKind.TRIP, build_trip(TripStatus.COMPLETED, trip_id="t1"))
    store.put(EntityKind.TRIP, build_trip(TripStatus.CANCELLED, trip_id="t2"))
    assert validate_trip_creation(store, "v1", "d1", 100.0, TODAY).ok


# ───────────────────────── transitions ───────────────────────── #

def test_transition_table_is_exhaustive():
    assert set(TRIP_TRANSITIONS) == set(TripStatus)
    assert TRIP_TRANSITIONS[TripStatus.COMPLETED] == frozenset()
    assert TRIP_TRANSITIONS[TripStatus.CANCELLED] == frozenset()

    for source in TripStatus:
        for target in TripStatus:
            out = validate_status_transition(build_trip(source), target)
            assert out.ok == (target in TRIP_TRANSITIONS[source])
            if not out.ok:
                assert out.reason == R.INVALID_TRANSITION
        # terminal means nowhere left to go
        assert build_trip(source).is_terminal == (not TRIP_TRANSITIONS[source])


def test_dispatch_rechecks_vehicle_availability():
    store = build_store(vehicle_status=VehicleStatus.IN_SHOP)
    out = validate_dispatch(store, build_trip(TripStatus.DRAFT))
    assert out.reason == R.RESOURCE_UNAVAILABLE
    assert "In Shop" in out.message


def test_dispatch_requires_draft():
    out = validate_dispatch(build_store(), build_trip(TripStatus.DISPATCHED))
    assert out.reason == R.INVALID_TRANSITION


def test_completion_odometer_must_increase_when_strict():
    store = build_store()
    trip = build_trip(TripStatus.DISPATCHED)
    assert validate_completion(store, trip, 45000.0).reason == R.INVALID_ODOMETER
    assert validate_completion(store, trip, 45000.5).ok
    assert validate_completion(store, trip, 45000.0, strict_odometer=False).ok
    assert validate_completion(store, trip, -5.0, strict_odometer=False).reason == R.INVALID_ODOMETER


@pytest.mark.parametrize("strict", [True, False])
@pytest.mark.parametrize("reading", [float("nan"), float("inf")])
def test_completion_rejects_non_finite_odometer(strict, reading):
    out = validate_completion(build_store(), build_trip(TripStatus.DISPATCHED), reading, strict_odometer=strict)
    assert out.reason == R.INVALID_ODOMETER


def test_completion_skips_odometer_check_for_deleted_vehicle():
    store = build_store()
    store.delete(EntityKind.VEHICLE, "v1")
    assert validate_completion(store, build_trip(TripStatus.DISPATCHED), 10.0).ok


def test_cancellation_only_from_active_states():
    assert validate_cancellation(build_trip(TripStatus.DRAFT)).ok
    assert validate_cancellation(build_trip(TripStatus.DISPATCHED)).ok
    assert validate_cancellation(build_trip(TripStatus.COMPLETED)).reason == R.INVALID_TRANSITION


# ───────────────────────── Outcome ───────────────────────── #

def test_outcome_unwrap_raises_on_rejection():
    out = Outcome.reject(R.CAPACITY_EXCEEDED, "too heavy")
    assert not out
    with pytest.raises(RejectedOperation) as exc:
        out.unwrap()
    assert exc.value.rejection.reason == R.CAPACITY_EXCEEDED
    assert str(exc.value) == "CapacityExceeded: too heavy"

    assert Outcome.accept("t1").unwrap() == "t1"
