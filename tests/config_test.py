# tests/config_test.py
from __future__ import annotations

import json
import logging

import pytest

from src.business_objects.config import (
    DriverGenConfig,
    FleetConfig,
    FleetGenConfig,
    LedgerGenConfig,
    TripGenConfig,
    VehicleGenConfig,
)
from src.lifecycle.policy import LifecyclePolicy


def test_defaults_validate():
    FleetGenConfig().validate()
    FleetConfig().validate()


def test_dict_subconfigs_are_coerced():
    cfg = FleetGenConfig(
        seed=7,
        vehicles=dict(num_vehicles=3, capacity_kg=[1000, 2000]),
        drivers=dict(num_drivers=4),
        trips=dict(num_trips=2),
        ledger=dict(fuel_logs_per_vehicle=[0, 1]),
    )
    assert isinstance(cfg.vehicles, VehicleGenConfig)
    assert isinstance(cfg.drivers, DriverGenConfig)
    assert isinstance(cfg.trips, TripGenConfig)
    assert isinstance(cfg.ledger, LedgerGenConfig)
    # JSON lists become range tuples
    assert cfg.vehicles.capacity_kg == (1000, 2000)
    assert cfg.ledger.fuel_logs_per_vehicle == (0, 1)
    cfg.validate()


@pytest.mark.parametrize("bad", [
    dict(vehicles=dict(num_vehicles=-1)),
    dict(vehicles=dict(capacity_kg=(0.0, 100.0))),
    dict(vehicles=dict(in_shop_fraction=0.7, retired_fraction=0.5)),
    dict(drivers=dict(safety_score=(50.0, 120.0))),
    dict(drivers=dict(expired_fraction=1.5)),
    dict(trips=dict(complete_fraction=0.8, cancel_fraction=0.4)),
    dict(trips=dict(locations=["Only one"])),
    dict(ledger=dict(liters=(10.0, 5.0))),
    dict(ledger=dict(history_days=0)),
])
def test_invalid_generator_configs_raise(bad):
    with pytest.raises(ValueError):
        FleetGenConfig(**bad).validate()


def test_seed_must_be_int():
    with pytest.raises(ValueError):
        FleetGenConfig(seed="abc").validate()


def test_policy_rejects_non_bool():
    with pytest.raises(ValueError):
        LifecyclePolicy(strict_odometer="yes").validate()


def test_unknown_log_level_rejected():
    with pytest.raises(ValueError):
        FleetConfig(log_level="verbose").validate()


def test_from_json_round_trip(tmp_path):
    path = tmp_path / "fleet.json"
    path.write_text(json.dumps({
        "log_level": "debug",
        "report_dir": "out/reports",
        "policy": {"strict_odometer": False},
        "generator": {"seed": 9, "vehicles": {"num_vehicles": 4, "odometer_km": [0, 10]}},
    }), encoding="utf-8")

    cfg = FleetConfig.from_json(str(path))
    assert cfg.log_level == "DEBUG"
    assert cfg.logging_level == logging.DEBUG
    assert cfg.policy.strict_odometer is False
    assert cfg.policy.block_maintenance_during_trip is True
    assert cfg.generator.seed == 9
    assert cfg.generator.vehicles.num_vehicles == 4

    data = cfg.to_dict()
    assert data["policy"]["strict_odometer"] is False
    assert data["generator"]["vehicles"]["num_vehicles"] == 4
    assert data["report_dir"] == "out/reports"


def test_from_json_with_bad_policy_raises(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"policy": {"strict_odometer": 1}}), encoding="utf-8")
    with pytest.raises(ValueError):
        FleetConfig.from_json(str(path))
