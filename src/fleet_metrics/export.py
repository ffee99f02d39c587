# src/fleet_metrics/export.py
from __future__ import annotations
import os
import csv
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from src.store.entity_store import StoreView
from src.fleet_metrics.reports import (
    driver_performance_rows,
    fleet_summary,
    monthly_fuel_rows,
    vehicle_cost_rows,
)

logger = logging.getLogger(__name__)

NA = "N/A"


def _cell(value: Any) -> Any:
    if value is None:
        return NA
    if isinstance(value, float):
        return round(value, 2)
    return value


def export_rows_csv(rows: Sequence[Mapping[str, Any]], filepath: str) -> Optional[str]:
    """
    Write report rows to CSV. The header comes from the first row's keys;
    undefined values (None) are written as "N/A".

    Returns the filepath, or None when there was nothing to write.
    """
    if not rows:
        logger.warning("No data to export for %s", filepath)
        return None

    os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
    headers = list(rows[0].keys())
    with open(filepath, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=headers, extrasaction="ignore")
        w.writeheader()
        for r in rows:
            w.writerow({h: _cell(r.get(h)) for h in headers})
    logger.info("Exported %d row(s) to %s", len(rows), filepath)
    return filepath


def export_reports(view: StoreView, dirpath: str) -> Dict[str, str]:
    """
    Write the standard report set into `dirpath`:
      - vehicle_costs.csv       : per-vehicle trips, distance and costs
      - driver_performance.csv  : driver scorecard
      - monthly_fuel.csv        : Jan..Dec fuel cost and liters
      - fleet_summary.csv       : a single row of fleet totals

    Returns a label → filepath mapping for the files actually written.
    """
    os.makedirs(dirpath, exist_ok=True)
    reports = {
        "vehicle_costs": vehicle_cost_rows(view),
        "driver_performance": driver_performance_rows(view),
        "monthly_fuel": monthly_fuel_rows(view),
        "fleet_summary": [fleet_summary(view)],
    }

    written: Dict[str, str] = {}
    for label, rows in reports.items():
        path = export_rows_csv(rows, os.path.join(dirpath, f"{label}.csv"))
        if path is not None:
            written[label] = path
    return written


def render_table(rows: Iterable[Mapping[str, Any]], columns: Optional[List[str]] = None) -> str:
    """Plain-text, left-aligned table for terminal output."""
    rows = list(rows)
    if not rows:
        return "(no rows)"
    columns = columns or list(rows[0].keys())

    cells = [[str(_cell(r.get(c))) for c in columns] for r in rows]
    widths = [
        max(len(c), *(len(row[i]) for row in cells))
        for i, c in enumerate(columns)
    ]

    def _line(values: Sequence[str]) -> str:
        return "  ".join(v.ljust(w) for v, w in zip(values, widths)).rstrip()

    out = [_line(columns), _line(["-" * w for w in widths])]
    out.extend(_line(row) for row in cells)
    return "\n".join(out)
