from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import date
from typing import Any, Dict

from .common import as_date


@dataclass(frozen=True)
class Expense:
    """
    Any non-fuel, non-maintenance cost booked against a vehicle
    (tolls, parking, towing, insurance, registration…).
    """
    expense_id: str
    vehicle_id: str
    category: str
    amount: float
    date: date
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        return cls(
            expense_id=str(data["expense_id"]),
            vehicle_id=str(data["vehicle_id"]),
            category=str(data.get("category", "")),
            amount=float(data["amount"]),
            date=as_date(data["date"]),
            description=str(data.get("description", "")),
        )
