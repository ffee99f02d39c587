from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Tuple, Union

from src.lifecycle.policy import LifecyclePolicy


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# -------------------------
# Helper: range validation
# -------------------------

def _validate_range(rng: Tuple[float, float], *, field_name: str, low: float = 0.0, strict: bool = True) -> None:
    lo, hi = rng
    ok = (low < lo <= hi) if strict else (low <= lo <= hi)
    if not ok:
        op = "<" if strict else "<="
        raise ValueError(f"{field_name} must satisfy {low:g} {op} min <= max.")


def _validate_fraction(value: float, *, field_name: str) -> None:
    if not (0.0 <= value <= 1.0):
        raise ValueError(f"{field_name} must be in [0,1].")


# -------------------------
# Vehicles config
# -------------------------

@dataclass
class VehicleGenConfig:
    """
    Controls generation of the vehicle registry.
    in_shop_fraction vehicles get an open maintenance log; retired_fraction
    vehicles are Retired (they keep their plate but leave the active fleet).
    """
    num_vehicles: int = 8
    capacity_kg: Tuple[float, float] = (1500.0, 30000.0)
    odometer_km: Tuple[float, float] = (5000.0, 250000.0)
    year: Tuple[int, int] = (2012, 2024)
    in_shop_fraction: float = 0.15
    retired_fraction: float = 0.10
    regions: List[str] = field(default_factory=lambda: ["North", "South", "East", "West", "Central"])

    def validate(self) -> None:
        if self.num_vehicles < 0:
            raise ValueError("vehicles.num_vehicles must be >= 0.")
        _validate_range(self.capacity_kg, field_name="vehicles.capacity_kg")
        _validate_range(self.odometer_km, field_name="vehicles.odometer_km", strict=False)
        lo, hi = self.year
        if not (1900 <= lo <= hi):
            raise ValueError("vehicles.year must satisfy 1900 <= min <= max.")
        _validate_fraction(self.in_shop_fraction, field_name="vehicles.in_shop_fraction")
        _validate_fraction(self.retired_fraction, field_name="vehicles.retired_fraction")
        if self.in_shop_fraction + self.retired_fraction > 1.0:
            raise ValueError("vehicles.in_shop_fraction + retired_fraction must be <= 1.")
        if not self.regions:
            raise ValueError("vehicles.regions must not be empty.")


# -------------------------
# Drivers config
# -------------------------

@dataclass
class DriverGenConfig:
    """
    Controls generation of drivers.
    - expired_fraction: license_expiry lands before `today`
    - suspended_fraction / off_duty_fraction: initial duty status
    """
    num_drivers: int = 10
    expired_fraction: float = 0.10
    suspended_fraction: float = 0.10
    off_duty_fraction: float = 0.10
    license_categories: List[str] = field(default_factory=lambda: ["B", "C", "CE", "D"])
    safety_score: Tuple[float, float] = (60.0, 100.0)
    completion_rate: Tuple[float, float] = (70.0, 100.0)
    total_trips: Tuple[int, int] = (0, 400)

    def validate(self) -> None:
        if self.num_drivers < 0:
            raise ValueError("drivers.num_drivers must be >= 0.")
        for name in ("expired_fraction", "suspended_fraction", "off_duty_fraction"):
            _validate_fraction(getattr(self, name), field_name=f"drivers.{name}")
        if self.suspended_fraction + self.off_duty_fraction > 1.0:
            raise ValueError("drivers.suspended_fraction + off_duty_fraction must be <= 1.")
        if not self.license_categories:
            raise ValueError("drivers.license_categories must not be empty.")
        for name in ("safety_score", "completion_rate"):
            lo, hi = getattr(self, name)
            if not (0.0 <= lo <= hi <= 100.0):
                raise ValueError(f"drivers.{name} must satisfy 0 <= min <= max <= 100.")
        _validate_range(self.total_trips, field_name="drivers.total_trips", strict=False)


# -------------------------
# Trips config (simulated day)
# -------------------------

@dataclass
class TripGenConfig:
    """
    Controls the simulated day that scripts/run.py drives through the engine.
    Trips are never written directly; they are created, dispatched and closed
    through FleetEngine so every one of them went through legal transitions.
    - load_fraction: cargo as a fraction of the chosen vehicle's capacity
    - complete_fraction / cancel_fraction: what happens after dispatch
    - overload_attempts: deliberately oversized requests (expected rejections)
    """
    num_trips: int = 6
    load_fraction: Tuple[float, float] = (0.3, 0.95)
    distance_km: Tuple[float, float] = (20.0, 600.0)
    complete_fraction: float = 0.6
    cancel_fraction: float = 0.2
    overload_attempts: int = 1
    locations: List[str] = field(default_factory=lambda: [
        "Warehouse A", "Warehouse B", "Port Terminal", "Rail Yard",
        "Distribution Center", "Retail Park", "Airport Cargo",
    ])

    def validate(self) -> None:
        if self.num_trips < 0:
            raise ValueError("trips.num_trips must be >= 0.")
        lo, hi = self.load_fraction
        if not (0.0 <= lo <= hi <= 1.0):
            raise ValueError("trips.load_fraction must satisfy 0 <= min <= max <= 1.")
        _validate_range(self.distance_km, field_name="trips.distance_km")
        _validate_fraction(self.complete_fraction, field_name="trips.complete_fraction")
        _validate_fraction(self.cancel_fraction, field_name="trips.cancel_fraction")
        if self.complete_fraction + self.cancel_fraction > 1.0:
            raise ValueError("trips.complete_fraction + cancel_fraction must be <= 1.")
        if self.overload_attempts < 0:
            raise ValueError("trips.overload_attempts must be >= 0.")
        if len(self.locations) < 2:
            raise ValueError("trips.locations needs at least two entries.")


# -------------------------
# Ledger config (fuel / expenses / maintenance history)
# -------------------------

@dataclass
class LedgerGenConfig:
    """Per-vehicle counts and value ranges for the cost ledgers."""
    fuel_logs_per_vehicle: Tuple[int, int] = (1, 4)
    liters: Tuple[float, float] = (40.0, 400.0)
    price_per_liter: Tuple[float, float] = (1.2, 2.1)
    expenses_per_vehicle: Tuple[int, int] = (0, 3)
    expense_amount: Tuple[float, float] = (15.0, 900.0)
    expense_categories: List[str] = field(default_factory=lambda: [
        "Tolls", "Parking", "Insurance", "Registration", "Towing", "Cleaning",
    ])
    closed_maintenance_per_vehicle: Tuple[int, int] = (0, 2)
    maintenance_cost: Tuple[float, float] = (80.0, 4500.0)
    history_days: int = 330

    def validate(self) -> None:
        for name in ("fuel_logs_per_vehicle", "expenses_per_vehicle", "closed_maintenance_per_vehicle"):
            _validate_range(getattr(self, name), field_name=f"ledger.{name}", strict=False)
        for name in ("liters", "price_per_liter", "expense_amount", "maintenance_cost"):
            _validate_range(getattr(self, name), field_name=f"ledger.{name}")
        if not self.expense_categories:
            raise ValueError("ledger.expense_categories must not be empty.")
        if self.history_days < 1:
            raise ValueError("ledger.history_days must be >= 1.")


# -------------------------
# Top-level generator config
# -------------------------

@dataclass
class FleetGenConfig:
    """
    Top-level configuration for seed-fleet generation.

    Sub-configs may be passed as dataclass instances OR as plain dicts, e.g.:

        FleetGenConfig(
            seed=7,
            vehicles=dict(num_vehicles=12, in_shop_fraction=0.2),
            drivers=dict(num_drivers=15, expired_fraction=0.1),
            trips=dict(num_trips=8, cancel_fraction=0.25),
            ledger=dict(fuel_logs_per_vehicle=(2, 5)),
        )
    """
    seed: int = 123
    vehicles: Union[VehicleGenConfig, dict] = field(default_factory=VehicleGenConfig)
    drivers: Union[DriverGenConfig, dict] = field(default_factory=DriverGenConfig)
    trips: Union[TripGenConfig, dict] = field(default_factory=TripGenConfig)
    ledger: Union[LedgerGenConfig, dict] = field(default_factory=LedgerGenConfig)

    # Coerce dicts → dataclasses for nested configs (JSON lists → tuples)
    def __post_init__(self):
        if isinstance(self.vehicles, dict):
            self.vehicles = VehicleGenConfig(**_tuples(self.vehicles, VehicleGenConfig))
        if isinstance(self.drivers, dict):
            self.drivers = DriverGenConfig(**_tuples(self.drivers, DriverGenConfig))
        if isinstance(self.trips, dict):
            self.trips = TripGenConfig(**_tuples(self.trips, TripGenConfig))
        if isinstance(self.ledger, dict):
            self.ledger = LedgerGenConfig(**_tuples(self.ledger, LedgerGenConfig))

    def validate(self) -> None:
        if not isinstance(self.seed, int):
            raise ValueError("seed must be an integer.")
        self.vehicles.validate()
        self.drivers.validate()
        self.trips.validate()
        self.ledger.validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _tuples(data: Dict[str, Any], cls) -> Dict[str, Any]:
    """JSON has no tuples; turn 2-element lists back into ranges for tuple fields."""
    tuple_fields = {
        name for name, f in cls.__dataclass_fields__.items()
        if isinstance(f.default, tuple)
    }
    return {
        k: (tuple(v) if k in tuple_fields and isinstance(v, list) else v)
        for k, v in data.items()
    }


# -------------------------
# Application config
# -------------------------

@dataclass
class FleetConfig:
    """
    Everything a run needs: engine policy, generator settings, logging and
    the report directory. Loadable from JSON:

        {
          "log_level": "DEBUG",
          "report_dir": "out/reports",
          "policy": {"strict_odometer": false},
          "generator": {"seed": 7, "vehicles": {"num_vehicles": 12}}
        }
    """
    policy: Union[LifecyclePolicy, dict] = field(default_factory=LifecyclePolicy)
    generator: Union[FleetGenConfig, dict] = field(default_factory=FleetGenConfig)
    log_level: str = "INFO"
    report_dir: str = "reports"

    def __post_init__(self):
        if isinstance(self.policy, dict):
            self.policy = LifecyclePolicy(**self.policy)
        if isinstance(self.generator, dict):
            self.generator = FleetGenConfig(**self.generator)
        self.log_level = str(self.log_level).upper()

    def validate(self) -> None:
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}. Got '{self.log_level}'.")
        if not self.report_dir:
            raise ValueError("report_dir must not be empty.")
        self.policy.validate()
        self.generator.validate()

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "policy": self.policy.to_dict(),
            "generator": self.generator.to_dict(),
            "log_level": self.log_level,
            "report_dir": self.report_dir,
        }

    @classmethod
    def from_json(cls, path: str) -> "FleetConfig":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        cfg = cls(**data)
        cfg.validate()
        return cfg
