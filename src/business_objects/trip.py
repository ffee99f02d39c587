from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional

from .common import TripStatus, parse_enum, as_datetime, as_optional_datetime


ACTIVE_TRIP_STATUSES = frozenset({TripStatus.DRAFT, TripStatus.DISPATCHED})
TERMINAL_TRIP_STATUSES = frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED})


@dataclass(frozen=True)
class Trip:
    """
    A cargo movement from pickup to delivery on one vehicle with one driver.

    Timestamps
    ----------
    created_at ≤ dispatched_at ≤ completed_at (the engine clamps to keep this).

    Odometer
    --------
    start_odometer_km is the vehicle reading stamped at dispatch; distance_km is
    final_odometer_km − start_odometer_km when both are known.
    """
    trip_id: str
    vehicle_id: str
    driver_id: str
    cargo_weight_kg: float
    pickup_location: str
    delivery_location: str
    created_at: datetime
    status: TripStatus = TripStatus.DRAFT

    dispatched_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    start_odometer_km: Optional[float] = None
    final_odometer_km: Optional[float] = None
    distance_km: Optional[float] = None

    @property
    def is_active(self) -> bool:
        """Draft or Dispatched: holds (or will hold) a resource reservation."""
        return self.status in ACTIVE_TRIP_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TRIP_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        for key in ("created_at", "dispatched_at", "completed_at"):
            value = getattr(self, key)
            data[key] = value.isoformat() if value is not None else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Trip":
        def _opt_float(key: str) -> Optional[float]:
            value = data.get(key)
            return None if value is None else float(value)

        return cls(
            trip_id=str(data["trip_id"]),
            vehicle_id=str(data["vehicle_id"]),
            driver_id=str(data["driver_id"]),
            cargo_weight_kg=float(data["cargo_weight_kg"]),
            pickup_location=str(data.get("pickup_location", "")),
            delivery_location=str(data.get("delivery_location", "")),
            created_at=as_datetime(data["created_at"]),
            status=parse_enum(TripStatus, data.get("status", TripStatus.DRAFT)),
            dispatched_at=as_optional_datetime(data.get("dispatched_at")),
            completed_at=as_optional_datetime(data.get("completed_at")),
            start_odometer_km=_opt_float("start_odometer_km"),
            final_odometer_km=_opt_float("final_odometer_km"),
            distance_km=_opt_float("distance_km"),
        )
