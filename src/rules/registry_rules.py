# src/rules/registry_rules.py
from __future__ import annotations

import math

from src.business_objects import Driver, EntityKind, Expense, FuelLog, Vehicle
from .base import ACCEPTED, Outcome, RejectionReason, StoreView

R = RejectionReason


def _non_negative(*values: float) -> bool:
    return all(math.isfinite(v) and v >= 0 for v in values)


def validate_vehicle_record(view: StoreView, vehicle: Vehicle) -> Outcome:
    """
    Registration checks for a vehicle.
    License plates must be unique among non-Retired vehicles (case/whitespace
    insensitive); a retired vehicle's plate can be reissued.
    """
    if not vehicle.name.strip() or not vehicle.license_plate.strip():
        return Outcome.reject(R.INVALID_INPUT, "Please fill in all required fields")
    if not (math.isfinite(vehicle.capacity_kg) and vehicle.capacity_kg > 0):
        return Outcome.reject(R.INVALID_INPUT, "Capacity must be a number greater than 0 kg")
    if not _non_negative(vehicle.odometer_km):
        return Outcome.reject(R.INVALID_INPUT, "Odometer must be a non-negative number")

    if not vehicle.is_active:
        return ACCEPTED

    key = vehicle.plate_key()
    for other in view.list(EntityKind.VEHICLE):
        if other.vehicle_id == vehicle.vehicle_id or not other.is_active:
            continue
        if other.plate_key() == key:
            return Outcome.reject(R.DUPLICATE_LICENSE_PLATE, "License plate already exists")
    return ACCEPTED


def validate_driver_record(view: StoreView, driver: Driver) -> Outcome:
    if not driver.name.strip():
        return Outcome.reject(R.INVALID_INPUT, "Please fill in all required fields")
    if not (0.0 <= driver.completion_rate <= 100.0):
        return Outcome.reject(R.INVALID_INPUT, "Completion rate must be in [0,100]")
    if not (0.0 <= driver.safety_score <= 100.0):
        return Outcome.reject(R.INVALID_INPUT, "Safety score must be in [0,100]")
    if not driver.total_trips >= 0:
        return Outcome.reject(R.INVALID_INPUT, "Total trips cannot be negative")
    return ACCEPTED


def validate_fuel_log(view: StoreView, log: FuelLog) -> Outcome:
    if not view.contains(EntityKind.VEHICLE, log.vehicle_id):
        return Outcome.reject(R.ENTITY_NOT_FOUND, f"Vehicle {log.vehicle_id} not found")
    if not _non_negative(log.liters, log.cost):
        return Outcome.reject(R.INVALID_INPUT, "Liters and cost must be non-negative numbers")
    if not _non_negative(log.odometer_at_fill_km):
        return Outcome.reject(R.INVALID_INPUT, "Odometer must be a non-negative number")
    return ACCEPTED


def validate_expense(view: StoreView, expense: Expense) -> Outcome:
    if not view.contains(EntityKind.VEHICLE, expense.vehicle_id):
        return Outcome.reject(R.ENTITY_NOT_FOUND, f"Vehicle {expense.vehicle_id} not found")
    if not _non_negative(expense.amount):
        return Outcome.reject(R.INVALID_INPUT, "Expense amount must be a non-negative number")
    if not expense.category.strip():
        return Outcome.reject(R.INVALID_INPUT, "Please fill in all required fields")
    return ACCEPTED
