from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional


class VehicleStatus(str, Enum):
    """Operational state of a vehicle."""
    AVAILABLE = "Available"
    ON_TRIP = "On Trip"
    IN_SHOP = "In Shop"
    RETIRED = "Retired"


class DriverStatus(str, Enum):
    """Duty state of a driver."""
    AVAILABLE = "Available"
    ON_DUTY = "On Duty"
    OFF_DUTY = "Off Duty"
    SUSPENDED = "Suspended"


class TripStatus(str, Enum):
    """
    Trip lifecycle states.
    Draft → Dispatched → Completed, with Draft/Dispatched → Cancelled.
    """
    DRAFT = "Draft"
    DISPATCHED = "Dispatched"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class MaintenanceType(str, Enum):
    """Service categories for maintenance logs."""
    OIL_CHANGE = "Oil Change"
    TIRE_ROTATION = "Tire Rotation"
    BRAKE_SERVICE = "Brake Service"
    ENGINE_REPAIR = "Engine Repair"
    TRANSMISSION = "Transmission"
    GENERAL_INSPECTION = "General Inspection"
    BODY_WORK = "Body Work"


class VehicleType(str, Enum):
    TRUCK = "Truck"
    VAN = "Van"
    SEDAN = "Sedan"
    SUV = "SUV"


class FuelType(str, Enum):
    DIESEL = "Diesel"
    GASOLINE = "Gasoline"
    ELECTRIC = "Electric"
    HYBRID = "Hybrid"


class EntityKind(str, Enum):
    """
    The six collections held by the entity store.
    Each kind has a one-letter id prefix (see `prefix`).
    """
    VEHICLE = "vehicle"
    DRIVER = "driver"
    TRIP = "trip"
    MAINTENANCE = "maintenance"
    FUEL = "fuel"
    EXPENSE = "expense"

    @property
    def prefix(self) -> str:
        return _ID_PREFIXES[self]


_ID_PREFIXES = {
    EntityKind.VEHICLE: "v",
    EntityKind.DRIVER: "d",
    EntityKind.TRIP: "t",
    EntityKind.MAINTENANCE: "m",
    EntityKind.FUEL: "f",
    EntityKind.EXPENSE: "e",
}


def parse_enum(enum_cls, value):
    """
    Coerce a value into `enum_cls`, accepting members, values ("On Trip")
    or member names ("ON_TRIP"). Raises ValueError for anything else.
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        pass
    key = str(value).strip().upper().replace(" ", "_")
    try:
        return enum_cls[key]
    except KeyError:
        raise ValueError(f"'{value}' is not a valid {enum_cls.__name__}.") from None


# -------------------------
# Helper: date coercion
# -------------------------

def as_date(value) -> date:
    """Accept a date, a datetime or an ISO 'YYYY-MM-DD' string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise ValueError(f"Expected an ISO date 'YYYY-MM-DD'. Got '{value}'.") from e


def as_datetime(value) -> datetime:
    """Accept a datetime or an ISO timestamp string (a trailing 'Z' is allowed)."""
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ValueError(f"Expected an ISO timestamp. Got '{value}'.") from e


def as_optional_datetime(value) -> Optional[datetime]:
    return None if value in (None, "") else as_datetime(value)
