from __future__ import annotations
import argparse
import logging
import os
from datetime import datetime, timezone

from src.business_objects.config import FleetConfig
from src.business_objects.generators import collect_objects, save_json_files
from src.fleet_metrics.export import export_reports, export_rows_csv, render_table
from src.fleet_metrics.reports import dashboard_kpis, recent_trips, vehicle_status_counts
from src.lifecycle.clock import FixedClock
from scripts.utils import build_engine, load_store, simulate_day

# ============================================================================
# CONFIGURATION
# ============================================================================

# Paths
INPUT_DIR = "fleets/fleet_1"
OUTPUT_DIR = "reports"

# Day starts at 08:00 UTC today
DAY_START_HOUR = 8


# ============================================================================
# MAIN
# ============================================================================

def main():
    parser = argparse.ArgumentParser(description="Run one simulated fleet day")
    parser.add_argument("--input", default=INPUT_DIR, help="Directory written by generate_fleet")
    parser.add_argument("--config", help="FleetConfig JSON (policy, generator, log_level, report_dir)")
    parser.add_argument("--output", help="Report directory (overrides config.report_dir)")
    args = parser.parse_args()

    cfg = FleetConfig.from_json(args.config) if args.config else FleetConfig(report_dir=OUTPUT_DIR)
    cfg.validate()
    logging.basicConfig(level=cfg.logging_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    output_dir = args.output or cfg.report_dir

    # Load fleet
    store = load_store(args.input)
    start = datetime.now(timezone.utc).replace(hour=DAY_START_HOUR, minute=0, second=0, microsecond=0)
    clock = FixedClock(start)
    engine = build_engine(store, cfg, clock)

    # ========================================
    # PHASE 1: Operate
    # ========================================
    events = simulate_day(engine, cfg.generator.trips, clock, seed=cfg.generator.seed)

    print(f"\n{'=' * 60}")
    print("Operations:")
    print(render_table(events))
    rejected = [e for e in events if e["result"] != "ok"]
    for e in rejected:
        print(f"  ✗ {e['operation']} {e['target']}: {e['message']}")

    # ========================================
    # PHASE 2: Reports
    # ========================================
    snapshot = engine.snapshot()

    print(f"\n{'=' * 60}")
    print("Fleet KPIs:", dashboard_kpis(snapshot))
    print("\nVehicle status:")
    print(render_table(vehicle_status_counts(snapshot)))
    print("\nRecent trips:")
    print(render_table(recent_trips(snapshot)))
    print(f"{'=' * 60}\n")

    export_reports(snapshot, output_dir)
    export_rows_csv(events, os.path.join(output_dir, "events.csv"))
    save_json_files(collect_objects(snapshot), output_dir=os.path.join(output_dir, "state"))
    print(f"✓ Reports saved to: {output_dir}/")


if __name__ == "__main__":
    main()
