"""
Storage contracts consumed by the fleet services.

Implementations are scoped to one tenant at construction time. Methods that
take an explicit ``tenant_id`` exist for the background scheduler, which
fans out across tenants.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Sequence
from uuid import UUID

from fleet.domain.entities import Driver, FuelEntry, MaintenanceRecord, Trip, Vehicle


class VehicleRepository(ABC):
    @abstractmethod
    async def get_by_id(self, vehicle_id: UUID, *, for_update: bool = False) -> Vehicle:
        """Raise ``NotFound`` if absent. ``for_update`` takes a row lock."""

    @abstractmethod
    async def create(self, vehicle: Vehicle) -> Vehicle: ...

    @abstractmethod
    async def update(self, vehicle: Vehicle) -> Vehicle: ...

    @abstractmethod
    async def list_all(self) -> Sequence[Vehicle]: ...

    @abstractmethod
    async def get_expiring_registrations(
        self, tenant_id: UUID, today: date, days: int
    ) -> Sequence[Vehicle]: ...

    @abstractmethod
    async def get_expiring_insurance(
        self, tenant_id: UUID, today: date, days: int
    ) -> Sequence[Vehicle]: ...


class DriverRepository(ABC):
    @abstractmethod
    async def get_by_id(self, driver_id: UUID) -> Driver: ...

    @abstractmethod
    async def create(self, driver: Driver) -> Driver: ...

    @abstractmethod
    async def update(self, driver: Driver) -> Driver: ...

    @abstractmethod
    async def list_all(self) -> Sequence[Driver]: ...

    @abstractmethod
    async def get_expiring_licenses(
        self, tenant_id: UUID, today: date, days: int
    ) -> Sequence[Driver]: ...

    @abstractmethod
    async def get_available(
        self, today: date, start: datetime, end: datetime
    ) -> Sequence[Driver]:
        """Eligible drivers with no active trip overlapping ``[start, end]``."""


class TripRepository(ABC):
    @abstractmethod
    async def get_by_id(self, trip_id: UUID) -> Trip: ...

    @abstractmethod
    async def create(self, trip: Trip) -> Trip: ...

    @abstractmethod
    async def update(self, trip: Trip) -> Trip: ...

    @abstractmethod
    async def get_by_vehicle(self, vehicle_id: UUID) -> Sequence[Trip]: ...

    @abstractmethod
    async def get_active_trips(self, tenant_id: UUID) -> Sequence[Trip]: ...

    @abstractmethod
    async def get_started_between(
        self, start: datetime, end: datetime
    ) -> Sequence[Trip]:
        """Trips of any status starting in ``[start, end)``."""

    @abstractmethod
    async def get_active_by_vehicle(
        self,
        vehicle_id: UUID,
        *,
        starting_before: datetime | None = None,
        exclude_trip_id: UUID | None = None,
    ) -> Sequence[Trip]:
        """Scheduled or in-progress, not soft-deleted trips of a vehicle."""


class MaintenanceRepository(ABC):
    @abstractmethod
    async def create(self, record: MaintenanceRecord) -> MaintenanceRecord: ...

    @abstractmethod
    async def get_by_vehicle(self, vehicle_id: UUID) -> Sequence[MaintenanceRecord]: ...

    @abstractmethod
    async def get_serviced_between(
        self, start: date, end: date
    ) -> Sequence[MaintenanceRecord]:
        """Records with a service date in ``[start, end)``."""

    @abstractmethod
    async def get_due_maintenance(
        self, tenant_id: UUID, today: date
    ) -> Sequence[MaintenanceRecord]: ...


class FuelEntryRepository(ABC):
    @abstractmethod
    async def create(self, entry: FuelEntry) -> FuelEntry: ...

    @abstractmethod
    async def get_by_vehicle(self, vehicle_id: UUID) -> Sequence[FuelEntry]:
        """Entries of a vehicle in chronological order."""

    @abstractmethod
    async def get_last_entry(self, vehicle_id: UUID) -> FuelEntry | None: ...

    @abstractmethod
    async def get_between(self, start: date, end: date) -> Sequence[FuelEntry]:
        """Entries of every vehicle dated in ``[start, end)``."""
