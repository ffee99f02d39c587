# src/fleet_metrics/kpis.py
from __future__ import annotations

from math import floor, fsum
from typing import Iterable, Optional


EPS = 1e-12


# ───────────────────────────── ratio KPIs ───────────────────────────── #

def cost_per_km(total_cost: float, distance_km: float) -> Optional[float]:
    """
    Operating cost per kilometre driven.

    Notation:
        C_{km} = (C_{fuel} + C_{maint} + C_{other}) / D

    Returns:
        None when D <= 0 (shown as "N/A").
    """
    if distance_km <= EPS:
        return None
    return float(total_cost) / float(distance_km)


def fuel_efficiency(distance_km: float, liters: float) -> Optional[float]:
    """
    Kilometres per litre.

    Notation:
        E_{fuel} = D / L

    Returns:
        None when either D or L is <= 0.
    """
    if distance_km <= EPS or liters <= EPS:
        return None
    return float(distance_km) / float(liters)


def utilization_rate(active_fleet: int, available: int) -> int:
    """
    Share of the active (non-Retired) fleet that is not idle, in whole percent.

    Notation:
        U = round( (N_{active} - N_{available}) / N_{active} · 100 )

    Halves round up. Returns 0 for an empty active fleet.
    """
    if active_fleet <= 0:
        return 0
    busy = max(0, int(active_fleet) - int(available))
    return int(floor(busy * 100.0 / active_fleet + 0.5))


# ───────────────────────────── totals ───────────────────────────── #

def safe_total(values: Iterable[Optional[float]]) -> float:
    """Precise sum that treats missing values (None) as 0."""
    return float(fsum(float(v) for v in values if v is not None))
