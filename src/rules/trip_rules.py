# src/rules/trip_rules.py
from __future__ import annotations

import math
from datetime import date
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional

from src.business_objects import EntityKind, Trip, TripStatus
from .base import ACCEPTED, Outcome, RejectionReason, StoreView

R = RejectionReason


# Exhaustive trip state machine. Terminal states map to the empty set.
TRIP_TRANSITIONS: Mapping[TripStatus, FrozenSet[TripStatus]] = MappingProxyType({
    TripStatus.DRAFT: frozenset({TripStatus.DISPATCHED, TripStatus.CANCELLED}),
    TripStatus.DISPATCHED: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
})


def _num(x: float) -> str:
    """Render 25000.0 as '25000' and 12.5 as '12.5' for messages."""
    x = float(x)
    return str(int(x)) if x.is_integer() else f"{x:.2f}".rstrip("0").rstrip(".")


def find_active_trip(
    view: StoreView,
    *,
    vehicle_id: Optional[str] = None,
    driver_id: Optional[str] = None,
    exclude: Optional[str] = None,
) -> Optional[Trip]:
    """First Draft/Dispatched trip referencing the given vehicle or driver."""
    for trip in view.list(EntityKind.TRIP):
        if not trip.is_active or trip.trip_id == exclude:
            continue
        if vehicle_id is not None and trip.vehicle_id == vehicle_id:
            return trip
        if driver_id is not None and trip.driver_id == driver_id:
            return trip
    return None


# ───────────────────────────── creation ───────────────────────────── #

def validate_trip_creation(
    view: StoreView,
    vehicle_id: str,
    driver_id: str,
    cargo_weight_kg: float,
    today: date,
) -> Outcome:
    """
    Gate for create_trip. Checks run in a fixed order so the first failing rule
    determines the reason:

      0) cargo weight must be a finite number >= 0    → InvalidInput
      1) vehicle and driver must resolve              → EntityNotFound
      2) vehicle must be Available                    → ResourceUnavailable
      3) driver must be Available                     → ResourceUnavailable
      4) license_expiry must not be before `today`    → LicenseExpired
      5) cargo weight ≤ vehicle capacity              → CapacityExceeded
      6) no other active trip holds vehicle or driver → ResourceUnavailable
    """
    if not math.isfinite(cargo_weight_kg):
        return Outcome.reject(R.INVALID_INPUT, "Cargo weight must be a number")
    if not cargo_weight_kg >= 0:
        return Outcome.reject(R.INVALID_INPUT, "Cargo weight cannot be negative")

    vehicle = view.get(EntityKind.VEHICLE, vehicle_id)
    driver = view.get(EntityKind.DRIVER, driver_id)
    if vehicle is None or driver is None:
        return Outcome.reject(R.ENTITY_NOT_FOUND, "Vehicle or driver not found")

    if not vehicle.is_available:
        return Outcome.reject(R.RESOURCE_UNAVAILABLE, "Vehicle is not available")
    if not driver.is_available:
        return Outcome.reject(R.RESOURCE_UNAVAILABLE, "Driver is not available")

    if driver.license_expired(today):
        return Outcome.reject(R.LICENSE_EXPIRED, "Driver license has expired")

    if not cargo_weight_kg <= vehicle.capacity_kg:
        return Outcome.reject(
            R.CAPACITY_EXCEEDED,
            f"Cargo ({_num(cargo_weight_kg)}kg) exceeds vehicle capacity ({_num(vehicle.capacity_kg)}kg)",
        )

    # A Draft trip leaves statuses untouched, so status alone cannot see it.
    held = find_active_trip(view, vehicle_id=vehicle_id)
    if held is not None:
        return Outcome.reject(
            R.RESOURCE_UNAVAILABLE, f"Vehicle is already assigned to trip {held.trip_id}"
        )
    held = find_active_trip(view, driver_id=driver_id)
    if held is not None:
        return Outcome.reject(
            R.RESOURCE_UNAVAILABLE, f"Driver is already assigned to trip {held.trip_id}"
        )

    return ACCEPTED


# ───────────────────────────── transitions ───────────────────────────── #

def validate_status_transition(trip: Trip, target: TripStatus) -> Outcome:
    if target in TRIP_TRANSITIONS[trip.status]:
        return ACCEPTED
    return Outcome.reject(
        R.INVALID_TRANSITION,
        f"Trip {trip.trip_id} cannot move from {trip.status.value} to {target.value}",
    )


def validate_dispatch(view: StoreView, trip: Trip) -> Outcome:
    """Draft → Dispatched, re-checking that both resources are still free."""
    outcome = validate_status_transition(trip, TripStatus.DISPATCHED)
    if not outcome.ok:
        return outcome

    vehicle = view.get(EntityKind.VEHICLE, trip.vehicle_id)
    driver = view.get(EntityKind.DRIVER, trip.driver_id)
    if vehicle is None or driver is None:
        return Outcome.reject(R.ENTITY_NOT_FOUND, "Vehicle or driver not found")

    # Draft held no reservation; the vehicle may have gone to the shop since.
    if not vehicle.is_available:
        return Outcome.reject(
            R.RESOURCE_UNAVAILABLE,
            f"Vehicle {vehicle.name} is no longer available (current status: {vehicle.status.value})",
        )
    if not driver.is_available:
        return Outcome.reject(
            R.RESOURCE_UNAVAILABLE,
            f"Driver {driver.name} is no longer available (current status: {driver.status.value})",
        )
    return ACCEPTED


def validate_completion(
    view: StoreView,
    trip: Trip,
    final_odometer_km: float,
    *,
    strict_odometer: bool = True,
) -> Outcome:
    """
    Dispatched → Completed.
    With strict_odometer the reading must be strictly greater than the
    vehicle's last known odometer. A deleted vehicle skips the check.
    """
    outcome = validate_status_transition(trip, TripStatus.COMPLETED)
    if not outcome.ok:
        return outcome

    if not math.isfinite(final_odometer_km):
        return Outcome.reject(R.INVALID_ODOMETER, "Odometer reading must be a number")
    if not final_odometer_km >= 0:
        return Outcome.reject(R.INVALID_ODOMETER, "Odometer reading cannot be negative")

    vehicle = view.get(EntityKind.VEHICLE, trip.vehicle_id)
    if strict_odometer and vehicle is not None and not final_odometer_km > vehicle.odometer_km:
        return Outcome.reject(
            R.INVALID_ODOMETER,
            f"Final odometer ({_num(final_odometer_km)} km) must be greater than "
            f"the vehicle odometer ({_num(vehicle.odometer_km)} km)",
        )
    return ACCEPTED


def validate_cancellation(trip: Trip) -> Outcome:
    return validate_status_transition(trip, TripStatus.CANCELLED)
