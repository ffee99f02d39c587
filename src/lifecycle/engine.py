# src/lifecycle/engine.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace, fields
from datetime import datetime
from typing import Any, List, Optional

from src.business_objects import (
    Driver, DriverStatus, EntityKind, Expense, FuelLog, FuelType,
    MaintenanceLog, MaintenanceType, Trip, TripStatus, Vehicle,
    VehicleStatus, VehicleType,
)
from src.business_objects.common import as_date, parse_enum
from src.lifecycle.clock import Clock, IdGenerator
from src.lifecycle.policy import LifecyclePolicy
from src.rules.base import Outcome, RejectionReason
from src.rules.maintenance_rules import (
    other_open_logs,
    validate_close_maintenance,
    validate_open_maintenance,
)
from src.rules.registry_rules import (
    validate_driver_record,
    validate_expense,
    validate_fuel_log,
    validate_vehicle_record,
)
from src.rules.trip_rules import (
    validate_cancellation,
    validate_completion,
    validate_dispatch,
    validate_trip_creation,
)
from src.store.entity_store import EntityStore, StoreSnapshot, Transaction

logger = logging.getLogger(__name__)

R = RejectionReason
MAX_ID_ATTEMPTS = 64


def _not_before(now: datetime, floor: Optional[datetime]) -> datetime:
    """Keep trip timestamps monotonic even if the injected clock steps back."""
    if floor is None:
        return now
    return floor if now < floor else now


@dataclass
class FleetEngine:
    """
    Command handler for every state change in the fleet.

    Each operation runs as one transaction on the store:
      1) read the staged view and resolve entities
      2) run the validation rule(s); on rejection return it, touching nothing
      3) stage every cross-entity mutation (trip + vehicle + driver …)
      4) commit them together when the transaction closes

    Collaborators are injected; there is no ambient state. Operations return an
    Outcome whose value is the affected id.
    """
    store: EntityStore
    clock: Clock
    id_generator: IdGenerator
    policy: LifecyclePolicy = field(default_factory=LifecyclePolicy)

    def __post_init__(self) -> None:
        self.policy.validate()

    # ─────────────────────────── trips ─────────────────────────── #

    def create_trip(
        self,
        vehicle_id: str,
        driver_id: str,
        cargo_weight_kg: float,
        pickup_location: str,
        delivery_location: str,
    ) -> Outcome:
        """Insert a Draft trip. A Draft trip does not change vehicle/driver status."""
        with self.store.transaction() as tx:
            outcome = validate_trip_creation(
                tx, vehicle_id, driver_id, float(cargo_weight_kg), self.clock.today()
            )
            if not outcome.ok:
                return self._rejected("create_trip", outcome)

            trip = Trip(
                trip_id=self._fresh_id(tx, EntityKind.TRIP),
                vehicle_id=vehicle_id,
                driver_id=driver_id,
                cargo_weight_kg=float(cargo_weight_kg),
                pickup_location=pickup_location,
                delivery_location=delivery_location,
                created_at=self.clock.now(),
                status=TripStatus.DRAFT,
            )
            tx.put(EntityKind.TRIP, trip)

        logger.info("Trip %s created: %s -> %s (vehicle %s, driver %s, %.1f kg)",
                    trip.trip_id, pickup_location, delivery_location,
                    vehicle_id, driver_id, trip.cargo_weight_kg)
        return Outcome.accept(trip.trip_id)

    def dispatch(self, trip_id: str) -> Outcome:
        """Draft → Dispatched; vehicle → On Trip, driver → On Duty."""
        with self.store.transaction() as tx:
            trip = tx.get(EntityKind.TRIP, trip_id)
            if trip is None:
                return self._rejected("dispatch", self._trip_not_found(trip_id))

            outcome = validate_dispatch(tx, trip)
            if not outcome.ok:
                return self._rejected("dispatch", outcome)

            vehicle = tx.get(EntityKind.VEHICLE, trip.vehicle_id)
            driver = tx.get(EntityKind.DRIVER, trip.driver_id)

            tx.put(EntityKind.TRIP, replace(
                trip,
                status=TripStatus.DISPATCHED,
                dispatched_at=_not_before(self.clock.now(), trip.created_at),
                start_odometer_km=vehicle.odometer_km,
            ))
            tx.put(EntityKind.VEHICLE, replace(vehicle, status=VehicleStatus.ON_TRIP))
            tx.put(EntityKind.DRIVER, replace(driver, status=DriverStatus.ON_DUTY))

        logger.info("Trip %s dispatched: vehicle %s -> On Trip, driver %s -> On Duty",
                    trip_id, trip.vehicle_id, trip.driver_id)
        return Outcome.accept(trip_id)

    def complete(self, trip_id: str, final_odometer_km: float) -> Outcome:
        """
        Dispatched → Completed.
        Stamps the final odometer and distance, returns vehicle and driver to
        Available, moves the vehicle odometer forward and counts the trip for
        the driver.
        """
        final = float(final_odometer_km)
        with self.store.transaction() as tx:
            trip = tx.get(EntityKind.TRIP, trip_id)
            if trip is None:
                return self._rejected("complete", self._trip_not_found(trip_id))

            outcome = validate_completion(tx, trip, final, strict_odometer=self.policy.strict_odometer)
            if not outcome.ok:
                return self._rejected("complete", outcome)

            distance = None
            if trip.start_odometer_km is not None and final >= trip.start_odometer_km:
                distance = final - trip.start_odometer_km

            tx.put(EntityKind.TRIP, replace(
                trip,
                status=TripStatus.COMPLETED,
                completed_at=_not_before(self.clock.now(), trip.dispatched_at),
                final_odometer_km=final,
                distance_km=distance,
            ))

            vehicle = tx.get(EntityKind.VEHICLE, trip.vehicle_id)
            if vehicle is not None:
                tx.put(EntityKind.VEHICLE, replace(
                    self._released_vehicle(vehicle),
                    odometer_km=max(vehicle.odometer_km, final),
                ))
            driver = tx.get(EntityKind.DRIVER, trip.driver_id)
            if driver is not None:
                tx.put(EntityKind.DRIVER, replace(
                    self._released_driver(driver),
                    total_trips=driver.total_trips + 1,
                ))

        logger.info("Trip %s completed: final odometer %.1f km, distance %s km",
                    trip_id, final, "n/a" if distance is None else f"{distance:.1f}")
        return Outcome.accept(trip_id)

    def cancel(self, trip_id: str) -> Outcome:
        """
        Draft/Dispatched → Cancelled.
        Only a Dispatched trip holds a reservation, so only then are vehicle and
        driver released.
        """
        with self.store.transaction() as tx:
            trip = tx.get(EntityKind.TRIP, trip_id)
            if trip is None:
                return self._rejected("cancel", self._trip_not_found(trip_id))

            outcome = validate_cancellation(trip)
            if not outcome.ok:
                return self._rejected("cancel", outcome)

            if trip.status == TripStatus.DISPATCHED:
                self._release_resources(tx, trip)
            tx.put(EntityKind.TRIP, replace(trip, status=TripStatus.CANCELLED))

        logger.info("Trip %s cancelled (was %s)", trip_id, trip.status.value)
        return Outcome.accept(trip_id)

    def delete_trip(self, trip_id: str) -> Outcome:
        """
        Remove a trip. Completed/Cancelled trips go unconditionally. Active trips
        follow policy.allow_active_trip_delete: release whatever is held, then
        remove; or refuse.
        """
        with self.store.transaction() as tx:
            trip = tx.get(EntityKind.TRIP, trip_id)
            if trip is None:
                return self._rejected("delete_trip", self._trip_not_found(trip_id))

            if not trip.is_terminal:
                if not self.policy.allow_active_trip_delete:
                    return self._rejected("delete_trip", Outcome.reject(
                        R.INVALID_TRANSITION,
                        f"Trip {trip_id} is {trip.status.value}; only completed or cancelled trips can be deleted",
                    ))
                if trip.status == TripStatus.DISPATCHED:
                    self._release_resources(tx, trip)
            tx.delete(EntityKind.TRIP, trip_id)

        logger.info("Trip %s deleted (was %s)", trip_id, trip.status.value)
        return Outcome.accept(trip_id)

    # ─────────────────────────── maintenance ─────────────────────────── #

    def open_maintenance(
        self,
        vehicle_id: str,
        type: Any,
        cost: float,
        date: Optional[Any] = None,
        description: str = "",
    ) -> Outcome:
        """Insert an open maintenance log and send the vehicle to the shop."""
        try:
            mtype = parse_enum(MaintenanceType, type)
            when = self.clock.today() if date is None else as_date(date)
        except ValueError as e:
            return self._rejected("open_maintenance", Outcome.reject(R.INVALID_INPUT, str(e)))

        with self.store.transaction() as tx:
            outcome = validate_open_maintenance(
                tx, vehicle_id, float(cost),
                block_during_trip=self.policy.block_maintenance_during_trip,
            )
            if not outcome.ok:
                return self._rejected("open_maintenance", outcome)

            log = MaintenanceLog(
                log_id=self._fresh_id(tx, EntityKind.MAINTENANCE),
                vehicle_id=vehicle_id,
                type=mtype,
                cost=float(cost),
                date=when,
                description=description,
                completed=False,
            )
            vehicle = tx.get(EntityKind.VEHICLE, vehicle_id)
            tx.put(EntityKind.MAINTENANCE, log)
            tx.put(EntityKind.VEHICLE, replace(vehicle, status=VehicleStatus.IN_SHOP))

        logger.info("Maintenance %s opened on vehicle %s (%s): vehicle -> In Shop",
                    log.log_id, vehicle_id, mtype.value)
        return Outcome.accept(log.log_id)

    def close_maintenance(self, log_id: str) -> Outcome:
        """
        Mark a log completed. The vehicle returns to Available only when it is
        still In Shop (a Retired vehicle stays Retired) and, under the default
        policy, no other open log remains for it.
        """
        with self.store.transaction() as tx:
            log = tx.get(EntityKind.MAINTENANCE, log_id)
            if log is None:
                return self._rejected("close_maintenance", Outcome.reject(
                    R.ENTITY_NOT_FOUND, f"Maintenance log {log_id} not found"))

            outcome = validate_close_maintenance(log)
            if not outcome.ok:
                return self._rejected("close_maintenance", outcome)

            tx.put(EntityKind.MAINTENANCE, replace(log, completed=True))

            released = False
            vehicle = tx.get(EntityKind.VEHICLE, log.vehicle_id)
            if vehicle is not None and vehicle.status == VehicleStatus.IN_SHOP:
                still_open = other_open_logs(tx, log.vehicle_id, exclude_log_id=log_id)
                if not (self.policy.release_only_when_all_logs_closed and still_open):
                    tx.put(EntityKind.VEHICLE, replace(vehicle, status=VehicleStatus.AVAILABLE))
                    released = True

        if released:
            logger.info("Maintenance %s completed: vehicle %s -> Available", log_id, log.vehicle_id)
        else:
            logger.info("Maintenance %s completed: vehicle %s status kept", log_id, log.vehicle_id)
        return Outcome.accept(log_id)

    # ─────────────────────────── registry ─────────────────────────── #

    def add_vehicle(
        self,
        name: str,
        model: str,
        license_plate: str,
        capacity_kg: float,
        odometer_km: float = 0.0,
        *,
        status: Any = VehicleStatus.AVAILABLE,
        type: Any = VehicleType.TRUCK,
        region: str = "",
        fuel_type: Any = FuelType.DIESEL,
        year: int = 0,
    ) -> Outcome:
        with self.store.transaction() as tx:
            try:
                vehicle = Vehicle(
                    vehicle_id=self._fresh_id(tx, EntityKind.VEHICLE),
                    name=name,
                    model=model,
                    license_plate=license_plate,
                    capacity_kg=float(capacity_kg),
                    odometer_km=float(odometer_km),
                    status=parse_enum(VehicleStatus, status),
                    type=parse_enum(VehicleType, type),
                    region=region,
                    fuel_type=parse_enum(FuelType, fuel_type),
                    year=int(year),
                )
            except ValueError as e:
                return self._rejected("add_vehicle", Outcome.reject(R.INVALID_INPUT, str(e)))

            outcome = validate_vehicle_record(tx, vehicle)
            if not outcome.ok:
                return self._rejected("add_vehicle", outcome)
            tx.put(EntityKind.VEHICLE, vehicle)

        logger.info("Vehicle %s added: %s (%s)", vehicle.vehicle_id, vehicle.name, vehicle.license_plate)
        return Outcome.accept(vehicle.vehicle_id)

    def add_driver(
        self,
        name: str,
        license_category: str,
        license_expiry: Any,
        *,
        status: Any = DriverStatus.AVAILABLE,
        phone: str = "",
        total_trips: int = 0,
        completion_rate: float = 100.0,
        safety_score: float = 100.0,
    ) -> Outcome:
        with self.store.transaction() as tx:
            try:
                driver = Driver(
                    driver_id=self._fresh_id(tx, EntityKind.DRIVER),
                    name=name,
                    license_category=license_category,
                    license_expiry=as_date(license_expiry),
                    status=parse_enum(DriverStatus, status),
                    phone=phone,
                    total_trips=int(total_trips),
                    completion_rate=float(completion_rate),
                    safety_score=float(safety_score),
                )
            except ValueError as e:
                return self._rejected("add_driver", Outcome.reject(R.INVALID_INPUT, str(e)))

            outcome = validate_driver_record(tx, driver)
            if not outcome.ok:
                return self._rejected("add_driver", outcome)
            tx.put(EntityKind.DRIVER, driver)

        logger.info("Driver %s added: %s", driver.driver_id, driver.name)
        return Outcome.accept(driver.driver_id)

    def add_fuel_log(
        self,
        vehicle_id: str,
        liters: float,
        cost: float,
        date: Optional[Any] = None,
        odometer_at_fill_km: float = 0.0,
    ) -> Outcome:
        with self.store.transaction() as tx:
            try:
                log = FuelLog(
                    log_id=self._fresh_id(tx, EntityKind.FUEL),
                    vehicle_id=vehicle_id,
                    liters=float(liters),
                    cost=float(cost),
                    date=self.clock.today() if date is None else as_date(date),
                    odometer_at_fill_km=float(odometer_at_fill_km),
                )
            except ValueError as e:
                return self._rejected("add_fuel_log", Outcome.reject(R.INVALID_INPUT, str(e)))

            outcome = validate_fuel_log(tx, log)
            if not outcome.ok:
                return self._rejected("add_fuel_log", outcome)
            tx.put(EntityKind.FUEL, log)

        logger.info("Fuel log %s added for vehicle %s: %.1f L", log.log_id, vehicle_id, log.liters)
        return Outcome.accept(log.log_id)

    def add_expense(
        self,
        vehicle_id: str,
        category: str,
        amount: float,
        date: Optional[Any] = None,
        description: str = "",
    ) -> Outcome:
        with self.store.transaction() as tx:
            try:
                expense = Expense(
                    expense_id=self._fresh_id(tx, EntityKind.EXPENSE),
                    vehicle_id=vehicle_id,
                    category=category,
                    amount=float(amount),
                    date=self.clock.today() if date is None else as_date(date),
                    description=description,
                )
            except ValueError as e:
                return self._rejected("add_expense", Outcome.reject(R.INVALID_INPUT, str(e)))

            outcome = validate_expense(tx, expense)
            if not outcome.ok:
                return self._rejected("add_expense", outcome)
            tx.put(EntityKind.EXPENSE, expense)

        logger.info("Expense %s added for vehicle %s: %s %.2f",
                    expense.expense_id, vehicle_id, category, expense.amount)
        return Outcome.accept(expense.expense_id)

    def update_vehicle(self, vehicle_id: str, **changes: Any) -> Outcome:
        """
        Manual edit. Bypasses the lifecycle rules (a status set here is not
        checked against trips or maintenance) but keeps registry checks.
        """
        return self._manual_update(EntityKind.VEHICLE, vehicle_id, changes,
                                   Vehicle.from_dict, validate_vehicle_record)

    def update_driver(self, driver_id: str, **changes: Any) -> Outcome:
        """Manual edit; see update_vehicle."""
        return self._manual_update(EntityKind.DRIVER, driver_id, changes,
                                   Driver.from_dict, validate_driver_record)

    def delete_vehicle(self, vehicle_id: str) -> Outcome:
        return self._delete_resource(EntityKind.VEHICLE, vehicle_id, "vehicle_id")

    def delete_driver(self, driver_id: str) -> Outcome:
        return self._delete_resource(EntityKind.DRIVER, driver_id, "driver_id")

    # ─────────────────────────── reads ─────────────────────────── #

    def snapshot(self) -> StoreSnapshot:
        return self.store.snapshot()

    def available_vehicles(self) -> List[Vehicle]:
        """Vehicles a dispatcher can pick for a new trip."""
        return [v for v in self.store.list(EntityKind.VEHICLE) if v.is_available]

    def available_drivers(self) -> List[Driver]:
        """Available drivers whose license is still valid today."""
        today = self.clock.today()
        return [
            d for d in self.store.list(EntityKind.DRIVER)
            if d.is_available and not d.license_expired(today)
        ]

    # ─────────────────────────── internals ─────────────────────────── #

    def _fresh_id(self, tx: Transaction, kind: EntityKind) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = self.id_generator(kind)
            if not tx.is_taken(kind, candidate):
                return candidate
        raise RuntimeError(f"Id generator produced {MAX_ID_ATTEMPTS} colliding ids for {kind.value}.")

    @staticmethod
    def _released_vehicle(vehicle: Vehicle) -> Vehicle:
        # Only undo what dispatch did; a manual Retire or shop visit is kept.
        if vehicle.status == VehicleStatus.ON_TRIP:
            return replace(vehicle, status=VehicleStatus.AVAILABLE)
        return vehicle

    @staticmethod
    def _released_driver(driver: Driver) -> Driver:
        if driver.status == DriverStatus.ON_DUTY:
            return replace(driver, status=DriverStatus.AVAILABLE)
        return driver

    def _release_resources(self, tx: Transaction, trip: Trip) -> None:
        vehicle = tx.get(EntityKind.VEHICLE, trip.vehicle_id)
        if vehicle is not None:
            tx.put(EntityKind.VEHICLE, self._released_vehicle(vehicle))
        driver = tx.get(EntityKind.DRIVER, trip.driver_id)
        if driver is not None:
            tx.put(EntityKind.DRIVER, self._released_driver(driver))

    def _manual_update(self, kind, id_, changes, from_dict, validate) -> Outcome:
        op = f"update_{kind.value}"
        with self.store.transaction() as tx:
            current = tx.get(kind, id_)
            if current is None:
                return self._rejected(op, Outcome.reject(
                    R.ENTITY_NOT_FOUND, f"{kind.value.capitalize()} {id_} not found"))

            allowed = {f.name for f in fields(current)}
            id_field = next(iter(allowed & {"vehicle_id", "driver_id"}))
            unknown = sorted(set(changes) - allowed)
            if unknown:
                return self._rejected(op, Outcome.reject(
                    R.INVALID_INPUT, f"Unknown field(s): {', '.join(unknown)}"))
            if id_field in changes and changes[id_field] != id_:
                return self._rejected(op, Outcome.reject(
                    R.INVALID_INPUT, "Identifiers cannot be changed"))

            data = current.to_dict()
            data.update(changes)
            try:
                updated = from_dict(data)
            except (TypeError, ValueError) as e:
                return self._rejected(op, Outcome.reject(R.INVALID_INPUT, str(e)))

            outcome = validate(tx, updated)
            if not outcome.ok:
                return self._rejected(op, outcome)
            tx.put(kind, updated)

        if updated.status != current.status:
            logger.warning("%s %s status set manually: %s -> %s (lifecycle rules bypassed)",
                           kind.value.capitalize(), id_, current.status.value, updated.status.value)
        else:
            logger.info("%s %s updated: %s", kind.value.capitalize(), id_, ", ".join(sorted(changes)))
        return Outcome.accept(id_)

    def _delete_resource(self, kind: EntityKind, id_: str, ref_field: str) -> Outcome:
        op = f"delete_{kind.value}"
        with self.store.transaction() as tx:
            if not tx.contains(kind, id_):
                return self._rejected(op, Outcome.reject(
                    R.ENTITY_NOT_FOUND, f"{kind.value.capitalize()} {id_} not found"))
            tx.delete(kind, id_)
            orphaned = [t.trip_id for t in tx.list(EntityKind.TRIP) if getattr(t, ref_field) == id_]

        if orphaned:
            logger.warning("%s %s deleted; %d trip(s) now reference an unknown %s",
                           kind.value.capitalize(), id_, len(orphaned), kind.value)
        else:
            logger.info("%s %s deleted", kind.value.capitalize(), id_)
        return Outcome.accept(id_)

    @staticmethod
    def _trip_not_found(trip_id: str) -> Outcome:
        return Outcome.reject(R.ENTITY_NOT_FOUND, f"Trip {trip_id} not found")

    @staticmethod
    def _rejected(op: str, outcome: Outcome) -> Outcome:
        logger.info("%s rejected: %s", op, outcome.rejection)
        return outcome
