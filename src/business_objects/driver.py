from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import date
from typing import Any, Dict

from .common import DriverStatus, parse_enum, as_date


@dataclass(frozen=True)
class Driver:
    """
    Driver profile (fairly permanent) plus duty status.
    The relation to trips is *referential* (trips store `driver_id`).
    """
    driver_id: str
    name: str
    license_category: str
    license_expiry: date
    status: DriverStatus = DriverStatus.AVAILABLE
    phone: str = ""
    total_trips: int = 0
    completion_rate: float = 100.0   # 0–100
    safety_score: float = 100.0      # 0–100

    def license_expired(self, today: date) -> bool:
        """Expired strictly before `today`; expiring today is still valid."""
        return self.license_expiry < today

    @property
    def is_available(self) -> bool:
        return self.status == DriverStatus.AVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["license_expiry"] = self.license_expiry.isoformat()
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Driver":
        return cls(
            driver_id=str(data["driver_id"]),
            name=str(data["name"]),
            license_category=str(data.get("license_category", "")),
            license_expiry=as_date(data["license_expiry"]),
            status=parse_enum(DriverStatus, data.get("status", DriverStatus.AVAILABLE)),
            phone=str(data.get("phone", "")),
            total_trips=int(data.get("total_trips", 0)),
            completion_rate=float(data.get("completion_rate", 100.0)),
            safety_score=float(data.get("safety_score", 100.0)),
        )
