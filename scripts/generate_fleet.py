"""
Generate synthetic seed fleets.

Usage:
    python -m scripts.generate_fleet --output fleets/fleet_1 --seed 123
    python -m scripts.generate_fleet --scenario small
    python -m scripts.generate_fleet --scenario large --vehicles 40
"""

import argparse
import logging
from datetime import date

from src.business_objects.config import FleetGenConfig
from src.business_objects.generators import make_objects, save_json_files

# Predefined scenarios
SCENARIOS = {
    "small": dict(
        seed=42,
        vehicles=dict(num_vehicles=5, in_shop_fraction=0.2, retired_fraction=0.0),
        drivers=dict(num_drivers=6, expired_fraction=0.1, suspended_fraction=0.0),
        trips=dict(num_trips=3),
        ledger=dict(fuel_logs_per_vehicle=(1, 2), expenses_per_vehicle=(0, 1)),
    ),
    "medium": dict(
        seed=123,
        vehicles=dict(num_vehicles=12, in_shop_fraction=0.15, retired_fraction=0.1),
        drivers=dict(num_drivers=15, expired_fraction=0.1, suspended_fraction=0.1),
        trips=dict(num_trips=8),
        ledger=dict(fuel_logs_per_vehicle=(2, 5), expenses_per_vehicle=(0, 3)),
    ),
    "large": dict(
        seed=999,
        vehicles=dict(num_vehicles=40, in_shop_fraction=0.1, retired_fraction=0.08),
        drivers=dict(num_drivers=50, expired_fraction=0.08, suspended_fraction=0.05),
        trips=dict(num_trips=30),
        ledger=dict(fuel_logs_per_vehicle=(3, 8), expenses_per_vehicle=(1, 5)),
    ),
}


def main():
    parser = argparse.ArgumentParser(description="Generate a synthetic fleet")
    parser.add_argument("--output", default="fleets/fleet_1", help="Output directory name")
    parser.add_argument("--scenario", choices=list(SCENARIOS), default="small", help="Use predefined scenario")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--vehicles", type=int, help="Override number of vehicles")
    parser.add_argument("--drivers", type=int, help="Override number of drivers")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # Load configuration
    cfg = FleetGenConfig(**SCENARIOS[args.scenario])
    print(f"Using '{args.scenario}' scenario")

    # Apply overrides
    if args.seed is not None:
        cfg.seed = args.seed
    if args.vehicles is not None:
        cfg.vehicles.num_vehicles = args.vehicles
    if args.drivers is not None:
        cfg.drivers.num_drivers = args.drivers

    # Generate objects
    print(f"\nGenerating with seed={cfg.seed}...")
    objs = make_objects(cfg, today=date.today())

    print(f"✓ Generated {len(objs['vehicles'])} vehicles, {len(objs['drivers'])} drivers, "
          f"{len(objs['maintenance'])} maintenance logs, {len(objs['fuel'])} fuel logs, "
          f"{len(objs['expenses'])} expenses\n")

    # Show preview
    print("Sample Vehicles:")
    for vid, v in list(objs["vehicles"].items())[:3]:
        print(f"  {vid}: {v.name} ({v.license_plate}), {v.capacity_kg:.0f} kg, {v.status.value}")

    print("\nSample Drivers:")
    for did, d in list(objs["drivers"].items())[:3]:
        print(f"  {did}: {d.name}, license {d.license_category} until {d.license_expiry}, {d.status.value}")

    # Save to JSON
    save_json_files(objs, output_dir=args.output)
    print(f"\n✓ Saved to '{args.output}/' directory")


if __name__ == "__main__":
    main()
