# src/rules/maintenance_rules.py
from __future__ import annotations

import math
from typing import List

from src.business_objects import EntityKind, MaintenanceLog, TripStatus, VehicleStatus
from .base import ACCEPTED, Outcome, RejectionReason, StoreView

R = RejectionReason


def other_open_logs(view: StoreView, vehicle_id: str, exclude_log_id: str) -> List[MaintenanceLog]:
    return [
        log for log in view.list(EntityKind.MAINTENANCE)
        if log.vehicle_id == vehicle_id and not log.completed and log.log_id != exclude_log_id
    ]


def validate_open_maintenance(
    view: StoreView,
    vehicle_id: str,
    cost: float,
    *,
    block_during_trip: bool = True,
) -> Outcome:
    vehicle = view.get(EntityKind.VEHICLE, vehicle_id)
    if vehicle is None:
        return Outcome.reject(R.ENTITY_NOT_FOUND, f"Vehicle {vehicle_id} not found")
    if not (math.isfinite(cost) and cost >= 0):
        return Outcome.reject(R.INVALID_INPUT, "Maintenance cost must be a non-negative number")
    if vehicle.status == VehicleStatus.RETIRED:
        return Outcome.reject(R.RESOURCE_UNAVAILABLE, f"Vehicle {vehicle.name} is retired")

    if block_during_trip:
        on_road = vehicle.status == VehicleStatus.ON_TRIP or any(
            t.vehicle_id == vehicle_id and t.status == TripStatus.DISPATCHED
            for t in view.list(EntityKind.TRIP)
        )
        if on_road:
            return Outcome.reject(
                R.RESOURCE_UNAVAILABLE,
                f"Vehicle {vehicle.name} is on an active trip and cannot go to the shop",
            )
    return ACCEPTED


def validate_close_maintenance(log: MaintenanceLog) -> Outcome:
    if log.completed:
        return Outcome.reject(
            R.INVALID_TRANSITION, f"Maintenance log {log.log_id} is already completed"
        )
    return ACCEPTED
