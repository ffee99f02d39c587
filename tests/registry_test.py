# tests/registry_test.py
from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from src.business_objects import (
    DriverStatus, EntityKind, Expense, FuelLog, MaintenanceLog, MaintenanceType,
    Vehicle, VehicleStatus, VehicleType,
)
from src.business_objects.config import FleetConfig
from src.fleet_metrics.reports import vehicle_cost_rows
from src.lifecycle.clock import FixedClock, RandomIdGenerator, SequentialIdGenerator
from src.lifecycle.engine import FleetEngine
from src.rules.base import RejectionReason as R
from src.store.entity_store import EntityStore
from scripts.utils import build_engine as scripts_build_engine


def build_engine(id_generator=None) -> FleetEngine:
    return FleetEngine(
        store=EntityStore(),
        clock=FixedClock(datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)),
        id_generator=id_generator or SequentialIdGenerator(),
    )


# ───────────────────────── vehicles ───────────────────────── #

def test_add_vehicle_assigns_prefixed_id():
    engine = build_engine()
    out = engine.add_vehicle("Volvo FH16", "FH16", "TRK-001", 25000, 45000, type="Truck")
    assert out.ok and out.value == "v001"
    v = engine.store.get(EntityKind.VEHICLE, "v001")
    assert v.status == VehicleStatus.AVAILABLE
    assert v.type == VehicleType.TRUCK


def test_duplicate_plate_rejected_case_insensitive():
    engine = build_engine()
    engine.add_vehicle("A", "m", "TRK-001", 1000)
    out = engine.add_vehicle("B", "m", "  trk-001 ", 1000)
    assert out.reason == R.DUPLICATE_LICENSE_PLATE
    assert out.message == "License plate already exists"
    assert engine.store.count(EntityKind.VEHICLE) == 1


def test_retired_plate_can_be_reissued():
    engine = build_engine()
    vid = engine.add_vehicle("Old", "m", "TRK-001", 1000).unwrap()
    engine.update_vehicle(vid, status="Retired")
    assert engine.add_vehicle("New", "m", "TRK-001", 1000).ok


def test_invalid_vehicle_fields():
    engine = build_engine()
    assert engine.add_vehicle("", "m", "X-1", 1000).reason == R.INVALID_INPUT
    assert engine.add_vehicle("A", "m", "X-1", 0).reason == R.INVALID_INPUT
    assert engine.add_vehicle("A", "m", "X-1", 100, -5).reason == R.INVALID_INPUT
    assert engine.add_vehicle("A", "m", "X-1", 100, type="Boat").reason == R.INVALID_INPUT
    assert engine.store.count(EntityKind.VEHICLE) == 0


def test_update_vehicle_rejects_unknown_fields_and_id_change():
    engine = build_engine()
    vid = engine.add_vehicle("A", "m", "X-1", 1000).unwrap()
    assert engine.update_vehicle(vid, colour="red").reason == R.INVALID_INPUT
    assert engine.update_vehicle(vid, vehicle_id="v999").reason == R.INVALID_INPUT
    assert engine.update_vehicle("v404", name="B").reason == R.ENTITY_NOT_FOUND
    assert engine.update_vehicle(vid, name="B", region="North").ok
    assert engine.store.get(EntityKind.VEHICLE, vid).name == "B"


def test_update_vehicle_cannot_steal_active_plate():
    engine = build_engine()
    engine.add_vehicle("A", "m", "X-1", 1000)
    vid = engine.add_vehicle("B", "m", "X-2", 1000).unwrap()
    assert engine.update_vehicle(vid, license_plate="x-1").reason == R.DUPLICATE_LICENSE_PLATE
    # re-saving its own plate is fine
    assert engine.update_vehicle(vid, license_plate="X-2").ok


def test_manual_status_edit_is_logged_as_warning(caplog):
    engine = build_engine()
    vid = engine.add_vehicle("A", "m", "X-1", 1000).unwrap()
    with caplog.at_level(logging.WARNING, logger="src.lifecycle.engine"):
        engine.update_vehicle(vid, status="In Shop")
    assert any("status set manually" in r.getMessage() for r in caplog.records)


def test_delete_vehicle_does_not_cascade():
    engine = build_engine()
    vid = engine.add_vehicle("A", "m", "X-1", 1000).unwrap()
    fid = engine.add_fuel_log(vid, 50, 90).unwrap()

    assert engine.delete_vehicle(vid).ok
    assert engine.store.get(EntityKind.VEHICLE, vid) is None
    assert engine.store.get(EntityKind.FUEL, fid) is not None
    assert engine.delete_vehicle(vid).reason == R.ENTITY_NOT_FOUND


# ───────────────────────── drivers ───────────────────────── #

def test_add_driver_and_score_bounds():
    engine = build_engine()
    out = engine.add_driver("Dana", "CE", "2027-06-30")
    assert out.ok
    d = engine.store.get(EntityKind.DRIVER, out.value)
    assert d.license_expiry == date(2027, 6, 30)
    assert d.status == DriverStatus.AVAILABLE

    assert engine.add_driver("X", "C", "2027-01-01", safety_score=101).reason == R.INVALID_INPUT
    assert engine.add_driver("X", "C", "2027-01-01", completion_rate=-1).reason == R.INVALID_INPUT
    assert engine.add_driver("X", "C", "not-a-date").reason == R.INVALID_INPUT


def test_update_and_delete_driver():
    engine = build_engine()
    did = engine.add_driver("Dana", "CE", date(2027, 6, 30)).unwrap()
    assert engine.update_driver(did, phone="+1-555-0100", status="Off Duty").ok
    d = engine.store.get(EntityKind.DRIVER, did)
    assert d.status == DriverStatus.OFF_DUTY
    assert d.phone == "+1-555-0100"
    assert engine.delete_driver(did).ok
    assert engine.delete_driver(did).reason == R.ENTITY_NOT_FOUND


# ───────────────────────── ledgers ───────────────────────── #

def test_fuel_and_expense_validation():
    engine = build_engine()
    vid = engine.add_vehicle("A", "m", "X-1", 1000).unwrap()

    fid = engine.add_fuel_log(vid, 120.5, 210.0, date="2026-01-15", odometer_at_fill_km=30000).unwrap()
    assert engine.store.get(EntityKind.FUEL, fid).date == date(2026, 1, 15)
    assert engine.add_fuel_log("v404", 10, 10).reason == R.ENTITY_NOT_FOUND
    assert engine.add_fuel_log(vid, -1, 10).reason == R.INVALID_INPUT

    eid = engine.add_expense(vid, "Tolls", 35.5).unwrap()
    assert engine.store.get(EntityKind.EXPENSE, eid).date == date(2026, 2, 1)
    assert engine.add_expense(vid, "Tolls", -3).reason == R.INVALID_INPUT
    assert engine.add_expense(vid, " ", 3).reason == R.INVALID_INPUT


def test_non_finite_amounts_are_invalid():
    engine = build_engine()
    nan, inf = float("nan"), float("inf")
    assert engine.add_vehicle("A", "m", "X-1", nan).reason == R.INVALID_INPUT
    assert engine.add_vehicle("A", "m", "X-1", inf).reason == R.INVALID_INPUT
    assert engine.add_vehicle("A", "m", "X-1", 1000, nan).reason == R.INVALID_INPUT
    assert engine.store.count(EntityKind.VEHICLE) == 0

    vid = engine.add_vehicle("A", "m", "X-1", 1000).unwrap()
    assert engine.add_fuel_log(vid, nan, 10).reason == R.INVALID_INPUT
    assert engine.add_fuel_log(vid, 10, inf).reason == R.INVALID_INPUT
    assert engine.add_fuel_log(vid, 10, 10, odometer_at_fill_km=nan).reason == R.INVALID_INPUT
    assert engine.add_expense(vid, "Tolls", nan).reason == R.INVALID_INPUT
    assert engine.update_vehicle(vid, odometer_km=nan).reason == R.INVALID_INPUT
    assert engine.store.count(EntityKind.FUEL) == 0
    assert engine.store.count(EntityKind.EXPENSE) == 0


# ───────────────────────── ids ───────────────────────── #

def test_random_ids_are_unique_and_prefixed():
    engine = build_engine(RandomIdGenerator(seed=7))
    ids = {engine.add_vehicle(f"V{i}", "m", f"P-{i}", 1000).unwrap() for i in range(50)}
    assert len(ids) == 50
    assert all(i.startswith("v") and len(i) == 8 for i in ids)


def test_id_collision_is_retried():
    class Stuttering:
        def __init__(self):
            self.calls = 0

        def __call__(self, kind):
            self.calls += 1
            return f"{kind.prefix}1" if self.calls <= 2 else f"{kind.prefix}2"

    engine = build_engine(Stuttering())
    assert engine.add_vehicle("A", "m", "X-1", 1000).value == "v1"
    assert engine.add_vehicle("B", "m", "X-2", 1000).value == "v2"


def test_deleted_id_is_never_reissued():
    engine = build_engine()
    engine.add_vehicle("A", "m", "X-1", 1000)
    gone = engine.add_vehicle("B", "m", "X-2", 1000).unwrap()
    engine.add_fuel_log(gone, 50, 999)
    engine.delete_vehicle(gone)

    new = engine.add_vehicle("C", "m", "X-3", 1000).unwrap()
    assert new != gone
    # the deleted vehicle's fuel history stays orphaned
    rows = {r["vehicle_id"]: r for r in vehicle_cost_rows(engine.snapshot())}
    assert rows[new]["fuel_cost"] == 0.0
    assert gone not in rows


def test_referenced_but_missing_id_is_not_issued():
    store = EntityStore()
    store.put(EntityKind.VEHICLE, Vehicle(vehicle_id="v001", name="A", model="m", license_plate="X-1",
                                          capacity_kg=1000.0, odometer_km=0.0))
    store.put(EntityKind.FUEL, FuelLog(log_id="f001", vehicle_id="v002", liters=10.0, cost=999.0,
                                       date=date(2026, 1, 2)))
    engine = FleetEngine(store=store, clock=FixedClock(datetime(2026, 2, 1, tzinfo=timezone.utc)),
                         id_generator=SequentialIdGenerator())
    assert engine.add_vehicle("B", "m", "X-2", 1000).value == "v003"


def test_sequential_ids_continue_after_loaded_store():
    store = EntityStore()
    store.put(EntityKind.VEHICLE, Vehicle(vehicle_id="v001", name="A", model="m", license_plate="X-1",
                                          capacity_kg=1000.0, odometer_km=0.0))
    for n in range(1, 71):
        store.put(EntityKind.MAINTENANCE, MaintenanceLog(
            log_id=f"m{n:03d}", vehicle_id="v001", type=MaintenanceType.OIL_CHANGE,
            cost=50.0, date=date(2026, 1, 1), completed=True,
        ))
    store.put(EntityKind.EXPENSE, Expense(expense_id="e-manual", vehicle_id="v001", category="Tolls",
                                          amount=5.0, date=date(2026, 1, 1)))
    clock = FixedClock(datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc))
    engine = scripts_build_engine(store, FleetConfig(), clock)

    assert engine.open_maintenance("v001", "Oil Change", 50.0).value == "m071"
    assert engine.add_vehicle("B", "m", "X-2", 1000).value == "v002"
    # non-sequential ids do not move the counter
    assert engine.add_expense("v001", "Parking", 3.0).value == "e001"
