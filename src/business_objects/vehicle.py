from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict

from .common import VehicleStatus, VehicleType, FuelType, parse_enum


@dataclass(frozen=True)
class Vehicle:
    """
    Fleet vehicle with load capacity and odometer.

    `status` is maintained by the lifecycle engine as a side effect of trip and
    maintenance transitions. `odometer_km` never decreases.
    """
    vehicle_id: str
    name: str
    model: str
    license_plate: str
    capacity_kg: float
    odometer_km: float
    status: VehicleStatus = VehicleStatus.AVAILABLE
    type: VehicleType = VehicleType.TRUCK
    region: str = ""
    fuel_type: FuelType = FuelType.DIESEL
    year: int = 0

    # ---------- convenience ----------
    @property
    def is_active(self) -> bool:
        """Everything except Retired counts toward the active fleet."""
        return self.status != VehicleStatus.RETIRED

    @property
    def is_available(self) -> bool:
        return self.status == VehicleStatus.AVAILABLE

    def plate_key(self) -> str:
        """Normalized plate used for uniqueness checks."""
        return self.license_plate.strip().upper()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["type"] = self.type.value
        data["fuel_type"] = self.fuel_type.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Vehicle":
        return cls(
            vehicle_id=str(data["vehicle_id"]),
            name=str(data["name"]),
            model=str(data.get("model", "")),
            license_plate=str(data["license_plate"]),
            capacity_kg=float(data["capacity_kg"]),
            odometer_km=float(data.get("odometer_km", 0.0)),
            status=parse_enum(VehicleStatus, data.get("status", VehicleStatus.AVAILABLE)),
            type=parse_enum(VehicleType, data.get("type", VehicleType.TRUCK)),
            region=str(data.get("region", "")),
            fuel_type=parse_enum(FuelType, data.get("fuel_type", FuelType.DIESEL)),
            year=int(data.get("year", 0)),
        )
