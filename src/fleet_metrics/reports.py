# src/fleet_metrics/reports.py
"""
Read-only aggregations over a StoreView (normally a snapshot).

Every function returns flat dict rows or a flat dict so the same output feeds
the CSV exporter, the text table renderer and the tests. Orphaned references
(a trip whose vehicle was deleted, a fuel log for a removed vehicle) never
raise: names resolve to "Unknown" and costs still count toward fleet totals.
"""
from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, List

from src.business_objects import (
    EntityKind, TripStatus, VehicleStatus,
)
from src.store.entity_store import StoreView
from src.fleet_metrics.kpis import (
    cost_per_km, fuel_efficiency, utilization_rate, safe_total,
)

UNKNOWN = "Unknown"
MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


# ───────────────────────────── labels ───────────────────────────── #

def vehicle_label(view: StoreView, vehicle_id: str) -> str:
    vehicle = view.get(EntityKind.VEHICLE, vehicle_id)
    return vehicle.name if vehicle is not None else UNKNOWN


def driver_label(view: StoreView, driver_id: str) -> str:
    driver = view.get(EntityKind.DRIVER, driver_id)
    return driver.name if driver is not None else UNKNOWN


# ───────────────────────────── helpers ───────────────────────────── #

def _completed_trips(view: StoreView) -> list:
    return [t for t in view.list(EntityKind.TRIP) if t.status == TripStatus.COMPLETED]


def _sum_by_vehicle(rows, attr: str) -> Dict[str, float]:
    buckets: Dict[str, list] = defaultdict(list)
    for row in rows:
        buckets[row.vehicle_id].append(getattr(row, attr))
    return {vid: safe_total(values) for vid, values in buckets.items()}


# ───────────────────────────── per-entity rows ───────────────────────────── #

def vehicle_cost_rows(view: StoreView) -> List[Dict[str, Any]]:
    """
    One row per registered vehicle: completed trips, distance and the three
    cost ledgers. Sorted by completed trips, busiest first.
    """
    completed = _completed_trips(view)
    trips_by_vehicle: Dict[str, list] = defaultdict(list)
    for t in completed:
        trips_by_vehicle[t.vehicle_id].append(t)

    fuel = _sum_by_vehicle(view.list(EntityKind.FUEL), "cost")
    maint = _sum_by_vehicle(view.list(EntityKind.MAINTENANCE), "cost")
    other = _sum_by_vehicle(view.list(EntityKind.EXPENSE), "amount")

    rows: List[Dict[str, Any]] = []
    for v in view.list(EntityKind.VEHICLE):
        v_trips = trips_by_vehicle.get(v.vehicle_id, [])
        distance = safe_total(t.distance_km for t in v_trips)
        fuel_cost = fuel.get(v.vehicle_id, 0.0)
        maintenance_cost = maint.get(v.vehicle_id, 0.0)
        expense_cost = other.get(v.vehicle_id, 0.0)
        total = fuel_cost + maintenance_cost + expense_cost
        rows.append({
            "vehicle_id": v.vehicle_id,
            "name": v.name,
            "license_plate": v.license_plate,
            "trips": len(v_trips),
            "distance_km": distance,
            "fuel_cost": fuel_cost,
            "maintenance_cost": maintenance_cost,
            "expense_cost": expense_cost,
            "total_cost": total,
            "cost_per_km": cost_per_km(total, distance),
            "status": v.status.value,
        })

    rows.sort(key=lambda r: r["trips"], reverse=True)
    return rows


def driver_performance_rows(view: StoreView) -> List[Dict[str, Any]]:
    """Driver scorecard, safest first."""
    rows = [
        {
            "driver_id": d.driver_id,
            "name": d.name,
            "trips": d.total_trips,
            "completion_rate": d.completion_rate,
            "safety_score": d.safety_score,
        }
        for d in view.list(EntityKind.DRIVER)
    ]
    rows.sort(key=lambda r: r["safety_score"], reverse=True)
    return rows


def monthly_fuel_rows(view: StoreView) -> List[Dict[str, Any]]:
    """
    Twelve rows Jan..Dec. Buckets by calendar month only, so logs from
    different years that share a month are summed together.
    """
    cost: Dict[int, list] = defaultdict(list)
    liters: Dict[int, list] = defaultdict(list)
    for log in view.list(EntityKind.FUEL):
        cost[log.date.month].append(log.cost)
        liters[log.date.month].append(log.liters)

    return [
        {"month": name, "cost": safe_total(cost[i]), "liters": safe_total(liters[i])}
        for i, name in enumerate(MONTHS, start=1)
    ]


def vehicle_status_counts(view: StoreView) -> List[Dict[str, Any]]:
    vehicles = view.list(EntityKind.VEHICLE)
    return [
        {"status": s.value, "count": sum(1 for v in vehicles if v.status == s)}
        for s in VehicleStatus
    ]


def trip_status_counts(view: StoreView) -> List[Dict[str, Any]]:
    trips = view.list(EntityKind.TRIP)
    return [
        {"status": s.value, "count": sum(1 for t in trips if t.status == s)}
        for s in TripStatus
    ]


def recent_trips(view: StoreView, limit: int = 5) -> List[Dict[str, Any]]:
    """Newest trips first, with vehicle/driver names resolved for display."""
    trips = sorted(view.list(EntityKind.TRIP), key=lambda t: t.created_at, reverse=True)
    return [
        {
            "trip_id": t.trip_id,
            "vehicle": vehicle_label(view, t.vehicle_id),
            "driver": driver_label(view, t.driver_id),
            "route": f"{t.pickup_location} → {t.delivery_location}",
            "cargo_weight_kg": t.cargo_weight_kg,
            "status": t.status.value,
            "created_at": t.created_at.isoformat(),
        }
        for t in trips[:max(0, limit)]
    ]


# ───────────────────────────── fleet totals ───────────────────────────── #

def fleet_summary(view: StoreView) -> Dict[str, Any]:
    """
    Fleet-wide totals.

    Notation:
        D     = ∑ distance over Completed trips
        C_op  = C_fuel + C_maint + C_other
        E     = D / L_fuel          (None if undefined)
        C_km  = C_op / D            (None if D = 0)
    """
    distance = safe_total(t.distance_km for t in _completed_trips(view))
    fuel_logs = view.list(EntityKind.FUEL)
    fuel_cost = safe_total(f.cost for f in fuel_logs)
    fuel_liters = safe_total(f.liters for f in fuel_logs)
    maintenance_cost = safe_total(m.cost for m in view.list(EntityKind.MAINTENANCE))
    expense_cost = safe_total(e.amount for e in view.list(EntityKind.EXPENSE))
    operational = fuel_cost + maintenance_cost + expense_cost

    return {
        "total_distance_km": distance,
        "total_fuel_cost": fuel_cost,
        "total_fuel_liters": fuel_liters,
        "total_maintenance_cost": maintenance_cost,
        "total_expense_cost": expense_cost,
        "total_operational_cost": operational,
        "avg_fuel_efficiency": fuel_efficiency(distance, fuel_liters),
        "cost_per_km": cost_per_km(operational, distance),
    }


def cost_breakdown(view: StoreView) -> List[Dict[str, Any]]:
    """Fuel / Maintenance / Other shares; zero categories are dropped."""
    summary = fleet_summary(view)
    parts = [
        {"name": "Fuel", "value": summary["total_fuel_cost"]},
        {"name": "Maintenance", "value": summary["total_maintenance_cost"]},
        {"name": "Other", "value": summary["total_expense_cost"]},
    ]
    return [p for p in parts if p["value"] > 0]


def dashboard_kpis(view: StoreView) -> Dict[str, Any]:
    vehicles = view.list(EntityKind.VEHICLE)
    active = sum(1 for v in vehicles if v.is_active)
    available = sum(1 for v in vehicles if v.is_available)
    open_logs = sum(1 for m in view.list(EntityKind.MAINTENANCE) if not m.completed)
    pending = safe_total(t.cargo_weight_kg for t in view.list(EntityKind.TRIP) if t.is_active)

    return {
        "active_fleet": active,
        "available_vehicles": available,
        "maintenance_alerts": open_logs,
        "utilization_rate": utilization_rate(active, available),
        "pending_cargo_kg": pending,
    }
