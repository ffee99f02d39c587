from __future__ import annotations
from dataclasses import dataclass, asdict, fields
from typing import Dict


@dataclass
class LifecyclePolicy:
    """
    Knobs for the lifecycle engine where the fleet rules leave room for choice.
    Defaults are the strict behaviour.
    """

    # complete(): final odometer must be strictly greater than the vehicle's.
    strict_odometer: bool = True

    # open_maintenance(): refuse a vehicle that is currently out on a dispatched trip.
    block_maintenance_during_trip: bool = True

    # close_maintenance(): only release the vehicle once its last open log is closed.
    release_only_when_all_logs_closed: bool = True

    # delete_trip(): an active trip releases its resources and is removed (True)
    # or is refused with InvalidTransition (False).
    allow_active_trip_delete: bool = True

    def validate(self) -> None:
        for f in fields(self):
            if not isinstance(getattr(self, f.name), bool):
                raise ValueError(f"policy.{f.name} must be a bool.")

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)
