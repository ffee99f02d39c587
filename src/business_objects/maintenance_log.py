from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import date
from typing import Any, Dict

from .common import MaintenanceType, parse_enum, as_date


@dataclass(frozen=True)
class MaintenanceLog:
    """
    A service event on one vehicle.
    While `completed` is False the vehicle is expected to be In Shop.
    """
    log_id: str
    vehicle_id: str
    type: MaintenanceType
    cost: float
    date: date
    description: str = ""
    completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        data["date"] = self.date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MaintenanceLog":
        return cls(
            log_id=str(data["log_id"]),
            vehicle_id=str(data["vehicle_id"]),
            type=parse_enum(MaintenanceType, data["type"]),
            cost=float(data.get("cost", 0.0)),
            date=as_date(data["date"]),
            description=str(data.get("description", "")),
            completed=bool(data.get("completed", False)),
        )
