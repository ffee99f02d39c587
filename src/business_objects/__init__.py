"""
Domain model package for the fleet operations core.

This package defines the core business objects:
- Vehicle
- Driver
- Trip
- MaintenanceLog
- FuelLog
- Expense

It also exposes the closed status enums and coercion helpers from common.py.
"""

from .common import (
    VehicleStatus,
    DriverStatus,
    TripStatus,
    MaintenanceType,
    VehicleType,
    FuelType,
    EntityKind,
)
from .vehicle import Vehicle
from .driver import Driver
from .trip import Trip, ACTIVE_TRIP_STATUSES, TERMINAL_TRIP_STATUSES
from .maintenance_log import MaintenanceLog
from .fuel_log import FuelLog
from .expense import Expense

ENTITY_TYPES = {
    EntityKind.VEHICLE: Vehicle,
    EntityKind.DRIVER: Driver,
    EntityKind.TRIP: Trip,
    EntityKind.MAINTENANCE: MaintenanceLog,
    EntityKind.FUEL: FuelLog,
    EntityKind.EXPENSE: Expense,
}

ID_FIELDS = {
    EntityKind.VEHICLE: "vehicle_id",
    EntityKind.DRIVER: "driver_id",
    EntityKind.TRIP: "trip_id",
    EntityKind.MAINTENANCE: "log_id",
    EntityKind.FUEL: "log_id",
    EntityKind.EXPENSE: "expense_id",
}

__all__ = [
    # common
    "VehicleStatus",
    "DriverStatus",
    "TripStatus",
    "MaintenanceType",
    "VehicleType",
    "FuelType",
    "EntityKind",
    # entities
    "Vehicle",
    "Driver",
    "Trip",
    "MaintenanceLog",
    "FuelLog",
    "Expense",
    # lookup tables
    "ENTITY_TYPES",
    "ID_FIELDS",
    "ACTIVE_TRIP_STATUSES",
    "TERMINAL_TRIP_STATUSES",
]
