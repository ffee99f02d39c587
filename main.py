# main.py
import logging
from datetime import datetime, timezone

from src.business_objects import EntityKind
from src.business_objects.config import FleetGenConfig
from src.business_objects.generators import make_objects, populate_store, save_json_files
from src.fleet_metrics.export import render_table
from src.fleet_metrics.reports import dashboard_kpis, vehicle_cost_rows
from src.lifecycle.clock import FixedClock, SequentialIdGenerator
from src.lifecycle.engine import FleetEngine
from src.store.entity_store import EntityStore


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # ------------------------------------------------------------
    # Define full configuration
    # ------------------------------------------------------------
    cfg = FleetGenConfig(
        seed=123,
        vehicles=dict(
            num_vehicles=6,
            capacity_kg=(2000.0, 25000.0),
            in_shop_fraction=0.2,   # these get an open maintenance log
            retired_fraction=0.1,
        ),
        drivers=dict(
            num_drivers=6,
            expired_fraction=0.15,
            suspended_fraction=0.1,
        ),
        ledger=dict(
            fuel_logs_per_vehicle=(1, 3),
            expenses_per_vehicle=(0, 2),
        ),
    )

    # ------------------------------------------------------------
    # Generate synthetic objects and load them
    # ------------------------------------------------------------
    clock = FixedClock(datetime.now(timezone.utc).replace(hour=9, minute=0, second=0, microsecond=0))
    objs = make_objects(cfg, today=clock.today())

    store = EntityStore()
    populate_store(store, objs)
    engine = FleetEngine(store=store, clock=clock, id_generator=SequentialIdGenerator())

    print(f"Generated {len(objs['vehicles'])} vehicles, {len(objs['drivers'])} drivers, "
          f"{len(objs['maintenance'])} maintenance logs.\n")

    # ------------------------------------------------------------
    # One trip end to end
    # ------------------------------------------------------------
    vehicles = engine.available_vehicles()
    drivers = engine.available_drivers()
    if vehicles and drivers:
        v, d = vehicles[0], drivers[0]
        outcome = engine.create_trip(v.vehicle_id, d.driver_id, v.capacity_kg * 0.8, "Warehouse A", "Port Terminal")
        print("create_trip:", outcome)
        trip_id = outcome.unwrap()

        clock.advance(minutes=20)
        print("dispatch:", engine.dispatch(trip_id))

        clock.advance(hours=3)
        print("complete:", engine.complete(trip_id, v.odometer_km + 180.0))
        print(store.get(EntityKind.TRIP, trip_id))
    else:
        print("No available vehicle/driver pair in this seed.")

    print()
    print(render_table(vehicle_cost_rows(engine.snapshot()),
                       ["name", "license_plate", "trips", "distance_km", "total_cost", "cost_per_km", "status"]))
    print("\nKPIs:", dashboard_kpis(engine.snapshot()))

    # ------------------------------------------------------------
    # Export to JSON-ready dicts
    # ------------------------------------------------------------
    save_json_files(objs, output_dir="generated_fleet_1")


if __name__ == "__main__":
    main()
