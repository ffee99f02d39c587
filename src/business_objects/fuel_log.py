from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import date
from typing import Any, Dict

from .common import as_date


@dataclass(frozen=True)
class FuelLog:
    """A fuel purchase for one vehicle."""
    log_id: str
    vehicle_id: str
    liters: float
    cost: float
    date: date
    odometer_at_fill_km: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FuelLog":
        return cls(
            log_id=str(data["log_id"]),
            vehicle_id=str(data["vehicle_id"]),
            liters=float(data["liters"]),
            cost=float(data["cost"]),
            date=as_date(data["date"]),
            odometer_at_fill_km=float(data.get("odometer_at_fill_km", 0.0)),
        )
