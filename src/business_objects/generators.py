# src/business_objects/generators.py
from __future__ import annotations
import os
import json
import logging

import random
from datetime import date, timedelta
from typing import Dict, List, Mapping, Optional

from .common import (
    DriverStatus, EntityKind, FuelType, MaintenanceType, VehicleStatus, VehicleType,
)
from .vehicle import Vehicle
from .driver import Driver
from .trip import Trip
from .maintenance_log import MaintenanceLog
from .fuel_log import FuelLog
from .expense import Expense
from .config import FleetGenConfig
from . import ID_FIELDS

logger = logging.getLogger(__name__)

# Collection name → (store kind, entity class). Order is the file/load order.
COLLECTIONS = {
    "vehicles": (EntityKind.VEHICLE, Vehicle),
    "drivers": (EntityKind.DRIVER, Driver),
    "trips": (EntityKind.TRIP, Trip),
    "maintenance": (EntityKind.MAINTENANCE, MaintenanceLog),
    "fuel": (EntityKind.FUEL, FuelLog),
    "expenses": (EntityKind.EXPENSE, Expense),
}

_MODELS = {
    VehicleType.TRUCK: ["Volvo FH16", "Scania R450", "MAN TGX", "DAF XF", "Mercedes Actros"],
    VehicleType.VAN: ["Ford Transit", "Mercedes Sprinter", "Renault Master", "Iveco Daily"],
    VehicleType.SEDAN: ["Toyota Camry", "Skoda Octavia", "VW Passat"],
    VehicleType.SUV: ["Toyota Land Cruiser", "Ford Explorer", "Nissan Patrol"],
}

_FIRST_NAMES = ["Alex", "Sam", "Jordan", "Taylor", "Morgan", "Casey", "Riley", "Jamie", "Avery", "Quinn"]
_LAST_NAMES = ["Cohen", "Levi", "Garcia", "Smith", "Novak", "Rossi", "Kim", "Haddad", "Berg", "Silva"]


# -------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------

def make_objects(cfg: FleetGenConfig, *, today: Optional[date] = None) -> Dict[str, Dict[str, object]]:
    """
    Generate a deterministic synthetic fleet guided by `cfg`.
    Returns a dict with keys: vehicles, drivers, maintenance, fuel, expenses
    (each a dict keyed by id).

    Steps:
      1) Vehicles (some In Shop, some Retired)
      2) Drivers (some expired, Suspended or Off Duty)
      3) Maintenance history, plus one open log per In Shop vehicle
      4) Fuel and expense ledgers

    Trips are deliberately absent; they are produced by driving the engine.
    """
    cfg.validate()
    rng = random.Random(cfg.seed)
    today = today or date.today()

    vehicles = _gen_vehicles(rng, cfg)
    drivers = _gen_drivers(rng, cfg, today=today)
    maintenance = _gen_maintenance(rng, cfg, vehicles=vehicles, today=today)
    fuel = _gen_fuel(rng, cfg, vehicles=vehicles, today=today)
    expenses = _gen_expenses(rng, cfg, vehicles=vehicles, today=today)

    return {
        "vehicles": vehicles,
        "drivers": drivers,
        "maintenance": maintenance,
        "fuel": fuel,
        "expenses": expenses,
    }


def populate_store(store, objs: Mapping[str, Mapping[str, object]]) -> None:
    """Put every generated (or loaded) object into `store` in collection order."""
    for name, (kind, _cls) in COLLECTIONS.items():
        for entity in objs.get(name, {}).values():
            store.put(kind, entity)
    logger.debug("Populated store: %s",
                 ", ".join(f"{len(objs.get(name, {}))} {name}" for name in COLLECTIONS))


# -------------------------------------------------------------------
# Vehicles
# -------------------------------------------------------------------

def _status_for(rng: random.Random, in_shop: float, retired: float) -> VehicleStatus:
    roll = rng.random()
    if roll < retired:
        return VehicleStatus.RETIRED
    if roll < retired + in_shop:
        return VehicleStatus.IN_SHOP
    return VehicleStatus.AVAILABLE


def _plate(rng: random.Random, used: set) -> str:
    while True:
        plate = f"{rng.randint(10, 99)}-{rng.randint(100, 999)}-{rng.randint(10, 99)}"
        if plate not in used:
            used.add(plate)
            return plate


def _gen_vehicles(rng: random.Random, cfg: FleetGenConfig) -> Dict[str, Vehicle]:
    vcfg = cfg.vehicles
    vehicles: Dict[str, Vehicle] = {}
    plates: set = set()
    for i in range(1, vcfg.num_vehicles + 1):
        vid = f"v{i:03d}"
        vtype = rng.choice(list(VehicleType))
        model = rng.choice(_MODELS[vtype])
        vehicles[vid] = Vehicle(
            vehicle_id=vid,
            name=f"{vtype.value}-{i:02d}",
            model=model,
            license_plate=_plate(rng, plates),
            capacity_kg=round(rng.uniform(*vcfg.capacity_kg), -1),
            odometer_km=round(rng.uniform(*vcfg.odometer_km), 1),
            status=_status_for(rng, vcfg.in_shop_fraction, vcfg.retired_fraction),
            type=vtype,
            region=rng.choice(vcfg.regions),
            fuel_type=rng.choice(list(FuelType)),
            year=rng.randint(*vcfg.year),
        )
    return vehicles


# -------------------------------------------------------------------
# Drivers
# -------------------------------------------------------------------

def _gen_drivers(rng: random.Random, cfg: FleetGenConfig, *, today: date) -> Dict[str, Driver]:
    dcfg = cfg.drivers
    drivers: Dict[str, Driver] = {}
    for i in range(1, dcfg.num_drivers + 1):
        did = f"d{i:03d}"

        if rng.random() < dcfg.expired_fraction:
            expiry = today - timedelta(days=rng.randint(1, 365))
        else:
            expiry = today + timedelta(days=rng.randint(30, 5 * 365))

        roll = rng.random()
        if roll < dcfg.suspended_fraction:
            status = DriverStatus.SUSPENDED
        elif roll < dcfg.suspended_fraction + dcfg.off_duty_fraction:
            status = DriverStatus.OFF_DUTY
        else:
            status = DriverStatus.AVAILABLE

        drivers[did] = Driver(
            driver_id=did,
            name=f"{rng.choice(_FIRST_NAMES)} {rng.choice(_LAST_NAMES)}",
            license_category=rng.choice(dcfg.license_categories),
            license_expiry=expiry,
            status=status,
            phone=f"+1-555-{rng.randint(1000, 9999)}",
            total_trips=rng.randint(*dcfg.total_trips),
            completion_rate=round(rng.uniform(*dcfg.completion_rate), 1),
            safety_score=round(rng.uniform(*dcfg.safety_score), 1),
        )
    return drivers


# -------------------------------------------------------------------
# Ledgers
# -------------------------------------------------------------------

def _past_day(rng: random.Random, today: date, history_days: int) -> date:
    return today - timedelta(days=rng.randint(1, history_days))


def _gen_maintenance(
    rng: random.Random,
    cfg: FleetGenConfig,
    *,
    vehicles: Mapping[str, Vehicle],
    today: date,
) -> Dict[str, MaintenanceLog]:
    lcfg = cfg.ledger
    logs: Dict[str, MaintenanceLog] = {}
    n = 0
    for v in vehicles.values():
        # closed history
        for _ in range(rng.randint(*lcfg.closed_maintenance_per_vehicle)):
            n += 1
            mtype = rng.choice(list(MaintenanceType))
            logs[f"m{n:03d}"] = MaintenanceLog(
                log_id=f"m{n:03d}",
                vehicle_id=v.vehicle_id,
                type=mtype,
                cost=round(rng.uniform(*lcfg.maintenance_cost), 2),
                date=_past_day(rng, today, lcfg.history_days),
                description=f"Scheduled {mtype.value.lower()}",
                completed=True,
            )

        # an In Shop vehicle is always explained by an open log
        if v.status == VehicleStatus.IN_SHOP:
            n += 1
            mtype = rng.choice(list(MaintenanceType))
            logs[f"m{n:03d}"] = MaintenanceLog(
                log_id=f"m{n:03d}",
                vehicle_id=v.vehicle_id,
                type=mtype,
                cost=round(rng.uniform(*lcfg.maintenance_cost), 2),
                date=today - timedelta(days=rng.randint(0, 6)),
                description=f"{mtype.value} in progress",
                completed=False,
            )
    return logs


def _gen_fuel(
    rng: random.Random,
    cfg: FleetGenConfig,
    *,
    vehicles: Mapping[str, Vehicle],
    today: date,
) -> Dict[str, FuelLog]:
    lcfg = cfg.ledger
    logs: Dict[str, FuelLog] = {}
    n = 0
    for v in vehicles.values():
        for _ in range(rng.randint(*lcfg.fuel_logs_per_vehicle)):
            n += 1
            liters = round(rng.uniform(*lcfg.liters), 1)
            logs[f"f{n:03d}"] = FuelLog(
                log_id=f"f{n:03d}",
                vehicle_id=v.vehicle_id,
                liters=liters,
                cost=round(liters * rng.uniform(*lcfg.price_per_liter), 2),
                date=_past_day(rng, today, lcfg.history_days),
                odometer_at_fill_km=round(max(0.0, v.odometer_km - rng.uniform(0, 3000)), 1),
            )
    return logs


def _gen_expenses(
    rng: random.Random,
    cfg: FleetGenConfig,
    *,
    vehicles: Mapping[str, Vehicle],
    today: date,
) -> Dict[str, Expense]:
    lcfg = cfg.ledger
    expenses: Dict[str, Expense] = {}
    n = 0
    for v in vehicles.values():
        for _ in range(rng.randint(*lcfg.expenses_per_vehicle)):
            n += 1
            category = rng.choice(lcfg.expense_categories)
            expenses[f"e{n:03d}"] = Expense(
                expense_id=f"e{n:03d}",
                vehicle_id=v.vehicle_id,
                category=category,
                amount=round(rng.uniform(*lcfg.expense_amount), 2),
                date=_past_day(rng, today, lcfg.history_days),
                description=f"{category} for {v.name}",
            )
    return expenses


# -------------------------------------------------------------------
# JSON helpers
# -------------------------------------------------------------------

def export_as_jsonable_dicts(objs: Mapping[str, Mapping[str, object]]) -> Dict[str, List[dict]]:
    """
    Convert business objects into plain dicts so you can dump to JSON.
    Enums become their display values and dates ISO strings.
    """
    return {
        name: [entity.to_dict() for entity in objs[name].values()]
        for name in COLLECTIONS
        if name in objs
    }


def save_json_files(objs: Mapping[str, Mapping[str, object]], output_dir: str) -> Dict[str, str]:
    """
    Save business objects as separate JSON files inside a given directory.

    Creates (for each collection present):
        vehicles.json
        drivers.json
        trips.json
        maintenance.json
        fuel.json
        expenses.json

    Returns a collection → filepath mapping. The directory is created if needed.
    """
    jsonable = export_as_jsonable_dicts(objs)
    os.makedirs(output_dir, exist_ok=True)

    written: Dict[str, str] = {}
    for name, data in jsonable.items():
        filename = os.path.join(output_dir, f"{name}.json")
        with open(filename, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        logger.info("Saved %d records to %s", len(data), filename)
        written[name] = filename
    return written


def load_json_files(base_dir: str) -> Dict[str, Dict[str, object]]:
    """
    Inverse of save_json_files. Missing files load as empty collections, so a
    directory written before any trip existed is still valid input.
    """
    objs: Dict[str, Dict[str, object]] = {}
    for name, (kind, cls) in COLLECTIONS.items():
        filename = os.path.join(base_dir, f"{name}.json")
        rows: Dict[str, object] = {}
        if os.path.exists(filename):
            with open(filename, "r", encoding="utf-8") as f:
                for raw in json.load(f):
                    entity = cls.from_dict(raw)
                    rows[getattr(entity, ID_FIELDS[kind])] = entity
        objs[name] = rows
    return objs


def collect_objects(view) -> Dict[str, Dict[str, object]]:
    """Inverse of populate_store: read every collection of a store/snapshot back into dicts."""
    return {
        name: {getattr(e, ID_FIELDS[kind]): e for e in view.list(kind)}
        for name, (kind, _cls) in COLLECTIONS.items()
    }
