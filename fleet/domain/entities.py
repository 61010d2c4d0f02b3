from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from uuid import UUID, uuid4

from fleet.config import DEFAULT_TRIP_WINDOW
from fleet.domain.status import (
    DriverStatus,
    FuelType,
    ServiceType,
    TripStatus,
    VehicleStatus,
)


@dataclass(frozen=True)
class Vehicle:
    tenant_id: UUID
    make: str
    model: str
    license_plate: str
    status: VehicleStatus = VehicleStatus.AVAILABLE
    current_odometer: int = 0
    registration_expiry: date | None = None
    insurance_expiry: date | None = None
    id: UUID = field(default_factory=uuid4)

    @property
    def display_name(self) -> str:
        return f"{self.make} {self.model}"

    def transition_to(self, status: VehicleStatus) -> Vehicle:
        self.status.ensure_transition(status)
        if status is self.status:
            return self
        return replace(self, status=status)

    def with_odometer(self, odometer: int) -> Vehicle:
        return replace(self, current_odometer=odometer)


@dataclass(frozen=True)
class Driver:
    tenant_id: UUID
    first_name: str
    last_name: str
    license_number: str
    license_expiry: date
    status: DriverStatus = DriverStatus.ACTIVE
    id: UUID = field(default_factory=uuid4)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def license_expired(self, today: date) -> bool:
        """A license expiring today no longer qualifies."""
        return self.license_expiry <= today

    def is_eligible(self, today: date) -> bool:
        return self.status is DriverStatus.ACTIVE and not self.license_expired(today)

    def transition_to(self, status: DriverStatus) -> Driver:
        self.status.ensure_transition(status)
        if status is self.status:
            return self
        return replace(self, status=status)


@dataclass(frozen=True)
class Trip:
    tenant_id: UUID
    vehicle_id: UUID
    driver_id: UUID
    start_time: datetime
    start_odometer: int
    origin: str = ""
    destination: str = ""
    purpose: str = ""
    end_time: datetime | None = None
    end_odometer: int | None = None
    status: TripStatus = TripStatus.SCHEDULED
    id: UUID = field(default_factory=uuid4)

    @property
    def effective_end(self) -> datetime:
        """End of the window this trip occupies its vehicle for."""
        if self.end_time is not None:
            return self.end_time
        return self.start_time + DEFAULT_TRIP_WINDOW

    def start(self) -> Trip:
        self.status.ensure_transition(TripStatus.IN_PROGRESS)
        return replace(self, status=TripStatus.IN_PROGRESS)

    def complete(self, end_time: datetime, end_odometer: int) -> Trip:
        self.status.ensure_transition(TripStatus.COMPLETED)
        return replace(
            self,
            status=TripStatus.COMPLETED,
            end_time=end_time,
            end_odometer=end_odometer,
        )

    def cancel(self, reason: str) -> Trip:
        self.status.ensure_transition(TripStatus.CANCELLED)
        return replace(self, status=TripStatus.CANCELLED, purpose=reason)


@dataclass(frozen=True)
class TripStatistics:
    duration_hours: float
    distance: int
    average_speed: float | None


@dataclass(frozen=True)
class MaintenanceRecord:
    tenant_id: UUID
    vehicle_id: UUID
    service_type: ServiceType
    service_date: date
    odometer: int
    cost: float = 0.0
    description: str = ""
    next_service_due: date | None = None
    next_service_odometer: int | None = None
    id: UUID = field(default_factory=uuid4)

    def with_next_service(
        self, due: date | None, odometer: int | None
    ) -> MaintenanceRecord:
        return replace(self, next_service_due=due, next_service_odometer=odometer)


@dataclass(frozen=True)
class FuelEntry:
    tenant_id: UUID
    vehicle_id: UUID
    date: date
    quantity: float
    cost: float
    odometer: int
    fuel_type: FuelType = FuelType.GASOLINE
    driver_id: UUID | None = None
    id: UUID = field(default_factory=uuid4)

    def efficiency_since(self, previous_odometer: int) -> float:
        """Distance per unit of fuel since the previous reading, 0.0 if undefined."""
        if previous_odometer >= self.odometer or self.quantity <= 0:
            return 0.0
        return (self.odometer - previous_odometer) / self.quantity
