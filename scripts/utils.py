"""Utility functions for loading a fleet and driving a simulated day through the engine."""

import random
from pathlib import Path
from typing import Any, Dict, List, Optional

from src.business_objects import EntityKind
from src.business_objects.config import FleetConfig, TripGenConfig
from src.business_objects.generators import load_json_files, populate_store
from src.lifecycle.clock import FixedClock, SequentialIdGenerator
from src.lifecycle.engine import FleetEngine
from src.rules.base import Outcome
from src.store.entity_store import EntityStore


def load_store(base_dir: str = "../fleets/fleet_1") -> EntityStore:
    """
    Load vehicles, drivers, trips and ledgers from generated JSONs into a new store.
    Raises FileNotFoundError if the directory is missing.
    """
    base = Path(base_dir)
    if not base.exists():
        raise FileNotFoundError(f"{base} not found")

    store = EntityStore()
    populate_store(store, load_json_files(str(base)))
    return store


def build_engine(store: EntityStore, cfg: FleetConfig, clock: FixedClock) -> FleetEngine:
    """
    Engine wired with sequential ids so run output is readable. Numbering picks
    up after the ids already in (or referenced by) the loaded store.
    """
    return FleetEngine(
        store=store,
        clock=clock,
        id_generator=SequentialIdGenerator.from_store(store),
        policy=cfg.policy,
    )


def _event(events: List[Dict[str, Any]], operation: str, target: str, outcome: Outcome) -> Outcome:
    events.append({
        "step": len(events) + 1,
        "operation": operation,
        "target": target,
        "result": "ok" if outcome.ok else outcome.reason.value,
        "message": outcome.value if outcome.ok else outcome.message,
    })
    return outcome


def simulate_day(
    engine: FleetEngine,
    cfg: TripGenConfig,
    clock: FixedClock,
    *,
    seed: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Drive one operating day through `engine` and return an event log (one row
    per attempted operation, rejections included).

    Order of play:
      1) deliberately oversized / expired-license requests (expected rejections)
      2) num_trips trips over available vehicle/driver pairs: create, dispatch,
         then complete, cancel or leave on the road per the configured fractions
      3) close one open maintenance log and send one idle vehicle to the shop
    """
    rng = random.Random(seed)
    events: List[Dict[str, Any]] = []
    today = clock.today()

    vehicles = engine.available_vehicles()
    drivers = engine.available_drivers()

    # --- 1) expected rejections ---
    if vehicles and drivers:
        for _ in range(cfg.overload_attempts):
            v = rng.choice(vehicles)
            d = rng.choice(drivers)
            _event(events, "create_trip", f"{v.vehicle_id}/{d.driver_id}", engine.create_trip(
                v.vehicle_id, d.driver_id, round(v.capacity_kg * 1.2, 1),
                cfg.locations[0], cfg.locations[1],
            ))

        expired = [
            d for d in engine.store.list(EntityKind.DRIVER)
            if d.is_available and d.license_expired(today)
        ]
        if expired:
            v = vehicles[0]
            _event(events, "create_trip", f"{v.vehicle_id}/{expired[0].driver_id}", engine.create_trip(
                v.vehicle_id, expired[0].driver_id, round(v.capacity_kg / 2, 1),
                cfg.locations[0], cfg.locations[1],
            ))

    # --- 2) trips ---
    rng.shuffle(vehicles)
    rng.shuffle(drivers)
    for v, d in list(zip(vehicles, drivers))[:cfg.num_trips]:
        pickup, delivery = rng.sample(cfg.locations, 2)
        cargo = round(v.capacity_kg * rng.uniform(*cfg.load_fraction), 1)

        created = _event(events, "create_trip", f"{v.vehicle_id}/{d.driver_id}", engine.create_trip(
            v.vehicle_id, d.driver_id, cargo, pickup, delivery,
        ))
        if not created.ok:
            continue
        trip_id = created.value

        clock.advance(minutes=rng.randint(5, 45))
        if not _event(events, "dispatch", trip_id, engine.dispatch(trip_id)).ok:
            continue

        clock.advance(hours=rng.randint(1, 6))
        roll = rng.random()
        if roll < cfg.complete_fraction:
            odometer = engine.store.get(EntityKind.VEHICLE, v.vehicle_id).odometer_km
            final = round(odometer + rng.uniform(*cfg.distance_km), 1)
            _event(events, "complete", trip_id, engine.complete(trip_id, final))
        elif roll < cfg.complete_fraction + cfg.cancel_fraction:
            _event(events, "cancel", trip_id, engine.cancel(trip_id))

    # --- 3) maintenance ---
    open_logs = [m for m in engine.store.list(EntityKind.MAINTENANCE) if not m.completed]
    if open_logs:
        log = rng.choice(open_logs)
        _event(events, "close_maintenance", log.log_id, engine.close_maintenance(log.log_id))

    idle = engine.available_vehicles()
    if idle:
        v = rng.choice(idle)
        _event(events, "open_maintenance", v.vehicle_id, engine.open_maintenance(
            v.vehicle_id, rng.choice(["Oil Change", "Tire Rotation", "General Inspection"]),
            round(rng.uniform(80, 600), 2), description="End-of-day service",
        ))

    return events
