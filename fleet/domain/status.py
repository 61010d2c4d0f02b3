"""
Lifecycle states for vehicles, drivers and trips.

Transition legality lives in static tables keyed by the current state.
Vehicle and driver tables treat a same-state request as a no-op; trips do
not, since their terminal states must reject repeated completion or
cancellation.
"""

from __future__ import annotations

import enum
from typing import Self

from fleet.errors import InvalidTransition


class _ParsableEnum(enum.Enum):
    @classmethod
    def parse(cls, value: str) -> Self:
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"invalid {cls.__name__}: {value}") from None

    def __str__(self) -> str:
        return str(self.value)


class VehicleStatus(_ParsableEnum):
    AVAILABLE = "Available"
    IN_USE = "InUse"
    MAINTENANCE = "Maintenance"
    OUT_OF_SERVICE = "OutOfService"
    RETIRED = "Retired"

    def can_transition_to(self, target: VehicleStatus) -> bool:
        return target is self or target in _VEHICLE_TRANSITIONS[self]

    def ensure_transition(self, target: VehicleStatus) -> None:
        if not self.can_transition_to(target):
            raise InvalidTransition(self, target)

    @property
    def is_bookable(self) -> bool:
        return self in (VehicleStatus.AVAILABLE, VehicleStatus.IN_USE)


_VEHICLE_TRANSITIONS: dict[VehicleStatus, frozenset[VehicleStatus]] = {
    VehicleStatus.AVAILABLE: frozenset(
        {
            VehicleStatus.IN_USE,
            VehicleStatus.MAINTENANCE,
            VehicleStatus.OUT_OF_SERVICE,
            VehicleStatus.RETIRED,
        }
    ),
    VehicleStatus.IN_USE: frozenset(
        {
            VehicleStatus.AVAILABLE,
            VehicleStatus.MAINTENANCE,
            VehicleStatus.OUT_OF_SERVICE,
        }
    ),
    VehicleStatus.MAINTENANCE: frozenset(
        {
            VehicleStatus.AVAILABLE,
            VehicleStatus.OUT_OF_SERVICE,
            VehicleStatus.RETIRED,
        }
    ),
    VehicleStatus.OUT_OF_SERVICE: frozenset(
        {
            VehicleStatus.AVAILABLE,
            VehicleStatus.MAINTENANCE,
            VehicleStatus.RETIRED,
        }
    ),
    VehicleStatus.RETIRED: frozenset(),
}


class DriverStatus(_ParsableEnum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    ON_LEAVE = "OnLeave"
    TERMINATED = "Terminated"

    def can_transition_to(self, target: DriverStatus) -> bool:
        return target is self or target in _DRIVER_TRANSITIONS[self]

    def ensure_transition(self, target: DriverStatus) -> None:
        if not self.can_transition_to(target):
            raise InvalidTransition(self, target)


_DRIVER_TRANSITIONS: dict[DriverStatus, frozenset[DriverStatus]] = {
    DriverStatus.ACTIVE: frozenset(
        {DriverStatus.INACTIVE, DriverStatus.ON_LEAVE, DriverStatus.TERMINATED}
    ),
    DriverStatus.INACTIVE: frozenset(
        {DriverStatus.ACTIVE, DriverStatus.ON_LEAVE, DriverStatus.TERMINATED}
    ),
    DriverStatus.ON_LEAVE: frozenset(
        {DriverStatus.ACTIVE, DriverStatus.INACTIVE, DriverStatus.TERMINATED}
    ),
    DriverStatus.TERMINATED: frozenset(),
}


class TripStatus(_ParsableEnum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    def can_transition_to(self, target: TripStatus) -> bool:
        return target in _TRIP_TRANSITIONS[self]

    def ensure_transition(self, target: TripStatus) -> None:
        if not self.can_transition_to(target):
            raise InvalidTransition(self, target)

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_TRIP_STATUSES

    @property
    def is_completable(self) -> bool:
        return self.can_transition_to(TripStatus.COMPLETED)

    @property
    def is_cancellable(self) -> bool:
        return self.can_transition_to(TripStatus.CANCELLED)


_TRIP_TRANSITIONS: dict[TripStatus, frozenset[TripStatus]] = {
    TripStatus.SCHEDULED: frozenset(
        {TripStatus.IN_PROGRESS, TripStatus.COMPLETED, TripStatus.CANCELLED}
    ),
    TripStatus.IN_PROGRESS: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
}

ACTIVE_TRIP_STATUSES = (TripStatus.SCHEDULED, TripStatus.IN_PROGRESS)


class ServiceType(_ParsableEnum):
    OIL_CHANGE = "OilChange"
    TIRE_ROTATION = "TireRotation"
    BRAKE_SERVICE = "BrakeService"
    INSPECTION = "Inspection"
    REPAIR = "Repair"
    OTHER = "Other"

    @classmethod
    def _missing_(cls, value: object) -> ServiceType | None:
        if value == "OtherService":
            return cls.OTHER
        return None


class FuelType(_ParsableEnum):
    GASOLINE = "Gasoline"
    DIESEL = "Diesel"
    ELECTRIC = "Electric"
    HYBRID = "Hybrid"
    CNG = "CNG"
