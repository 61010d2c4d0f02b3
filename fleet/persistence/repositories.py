"""SQLAlchemy implementations of the fleet storage contracts."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from uuid import UUID

from sqlalchemy import Select, and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute, aliased

from fleet.config import DEFAULT_TRIP_WINDOW
from fleet.domain.entities import Driver, FuelEntry, MaintenanceRecord, Trip, Vehicle
from fleet.domain.repository import (
    DriverRepository,
    FuelEntryRepository,
    MaintenanceRepository,
    TripRepository,
    VehicleRepository,
)
from fleet.domain.status import ACTIVE_TRIP_STATUSES, DriverStatus
from fleet.errors import NotFound
from fleet.persistence.models import (
    DriverRecord,
    FuelEntryRecord,
    MaintenanceRecordRow,
    TripRecord,
    VehicleRecord,
)


class _TenantRepository:
    def __init__(self, session: AsyncSession, tenant_id: UUID) -> None:
        self._session = session
        self._tenant_id = tenant_id


# ── Vehicles ──


def _vehicle_from_record(r: VehicleRecord) -> Vehicle:
    return Vehicle(
        id=r.id,
        tenant_id=r.tenant_id,
        make=r.make,
        model=r.model,
        license_plate=r.license_plate,
        status=r.status,
        current_odometer=r.current_odometer,
        registration_expiry=r.registration_expiry,
        insurance_expiry=r.insurance_expiry,
    )


class SqlVehicleRepository(_TenantRepository, VehicleRepository):
    def _scoped(self) -> Select[tuple[VehicleRecord]]:
        return select(VehicleRecord).where(
            VehicleRecord.tenant_id == self._tenant_id,
            VehicleRecord.deleted_at.is_(None),
        )

    async def _load(self, vehicle_id: UUID, for_update: bool = False) -> VehicleRecord:
        stmt = self._scoped().where(VehicleRecord.id == vehicle_id)
        if for_update:
            stmt = stmt.with_for_update()
        record = (await self._session.execute(stmt)).scalar_one_or_none()
        if record is None:
            raise NotFound("vehicle", vehicle_id)
        return record

    async def get_by_id(self, vehicle_id: UUID, *, for_update: bool = False) -> Vehicle:
        return _vehicle_from_record(await self._load(vehicle_id, for_update))

    async def create(self, vehicle: Vehicle) -> Vehicle:
        record = VehicleRecord(
            id=vehicle.id,
            tenant_id=self._tenant_id,
            make=vehicle.make,
            model=vehicle.model,
            license_plate=vehicle.license_plate,
            status=vehicle.status,
            current_odometer=vehicle.current_odometer,
            registration_expiry=vehicle.registration_expiry,
            insurance_expiry=vehicle.insurance_expiry,
        )
        self._session.add(record)
        await self._session.flush()
        return _vehicle_from_record(record)

    async def update(self, vehicle: Vehicle) -> Vehicle:
        record = await self._load(vehicle.id)
        record.make = vehicle.make
        record.model = vehicle.model
        record.license_plate = vehicle.license_plate
        record.status = vehicle.status
        record.current_odometer = vehicle.current_odometer
        record.registration_expiry = vehicle.registration_expiry
        record.insurance_expiry = vehicle.insurance_expiry
        await self._session.flush()
        return _vehicle_from_record(record)

    async def list_all(self) -> list[Vehicle]:
        stmt = self._scoped().order_by(VehicleRecord.license_plate)
        records = (await self._session.execute(stmt)).scalars().all()
        return [_vehicle_from_record(r) for r in records]

    async def get_expiring_registrations(
        self, tenant_id: UUID, today: date, days: int
    ) -> list[Vehicle]:
        column = VehicleRecord.registration_expiry
        return await self._expiring(tenant_id, column, today, days)

    async def get_expiring_insurance(
        self, tenant_id: UUID, today: date, days: int
    ) -> list[Vehicle]:
        column = VehicleRecord.insurance_expiry
        return await self._expiring(tenant_id, column, today, days)

    async def _expiring(
        self,
        tenant_id: UUID,
        column: InstrumentedAttribute[date | None],
        today: date,
        days: int,
    ) -> list[Vehicle]:
        stmt = (
            select(VehicleRecord)
            .where(
                VehicleRecord.tenant_id == tenant_id,
                VehicleRecord.deleted_at.is_(None),
                column >= today,
                column <= today + timedelta(days=days),
            )
            .order_by(column)
        )
        records = (await self._session.execute(stmt)).scalars().all()
        return [_vehicle_from_record(r) for r in records]


# ── Drivers ──


def _driver_from_record(r: DriverRecord) -> Driver:
    return Driver(
        id=r.id,
        tenant_id=r.tenant_id,
        first_name=r.first_name,
        last_name=r.last_name,
        license_number=r.license_number,
        license_expiry=r.license_expiry,
        status=r.status,
    )


class SqlDriverRepository(_TenantRepository, DriverRepository):
    async def _load(self, driver_id: UUID) -> DriverRecord:
        stmt = select(DriverRecord).where(
            DriverRecord.id == driver_id,
            DriverRecord.tenant_id == self._tenant_id,
            DriverRecord.deleted_at.is_(None),
        )
        record = (await self._session.execute(stmt)).scalar_one_or_none()
        if record is None:
            raise NotFound("driver", driver_id)
        return record

    async def get_by_id(self, driver_id: UUID) -> Driver:
        return _driver_from_record(await self._load(driver_id))

    async def create(self, driver: Driver) -> Driver:
        record = DriverRecord(
            id=driver.id,
            tenant_id=self._tenant_id,
            first_name=driver.first_name,
            last_name=driver.last_name,
            license_number=driver.license_number,
            license_expiry=driver.license_expiry,
            status=driver.status,
        )
        self._session.add(record)
        await self._session.flush()
        return _driver_from_record(record)

    async def update(self, driver: Driver) -> Driver:
        record = await self._load(driver.id)
        record.first_name = driver.first_name
        record.last_name = driver.last_name
        record.license_number = driver.license_number
        record.license_expiry = driver.license_expiry
        record.status = driver.status
        await self._session.flush()
        return _driver_from_record(record)

    async def list_all(self) -> list[Driver]:
        stmt = (
            select(DriverRecord)
            .where(
                DriverRecord.tenant_id == self._tenant_id,
                DriverRecord.deleted_at.is_(None),
            )
            .order_by(DriverRecord.last_name, DriverRecord.first_name)
        )
        records = (await self._session.execute(stmt)).scalars().all()
        return [_driver_from_record(r) for r in records]

    async def get_expiring_licenses(
        self, tenant_id: UUID, today: date, days: int
    ) -> list[Driver]:
        stmt = (
            select(DriverRecord)
            .where(
                DriverRecord.tenant_id == tenant_id,
                DriverRecord.deleted_at.is_(None),
                DriverRecord.license_expiry >= today,
                DriverRecord.license_expiry <= today + timedelta(days=days),
            )
            .order_by(DriverRecord.license_expiry)
        )
        records = (await self._session.execute(stmt)).scalars().all()
        return [_driver_from_record(r) for r in records]

    async def get_available(
        self, today: date, start: datetime, end: datetime
    ) -> list[Driver]:
        # A trip without an end time occupies its driver for DEFAULT_TRIP_WINDOW.
        busy = (
            select(TripRecord.id)
            .where(
                TripRecord.driver_id == DriverRecord.id,
                TripRecord.deleted_at.is_(None),
                TripRecord.status.in_(ACTIVE_TRIP_STATUSES),
                TripRecord.start_time <= end,
                or_(
                    TripRecord.end_time >= start,
                    and_(
                        TripRecord.end_time.is_(None),
                        TripRecord.start_time >= start - DEFAULT_TRIP_WINDOW,
                    ),
                ),
            )
            .exists()
        )
        stmt = (
            select(DriverRecord)
            .where(
                DriverRecord.tenant_id == self._tenant_id,
                DriverRecord.deleted_at.is_(None),
                DriverRecord.status == DriverStatus.ACTIVE,
                DriverRecord.license_expiry > today,
                ~busy,
            )
            .order_by(DriverRecord.last_name, DriverRecord.first_name)
        )
        records = (await self._session.execute(stmt)).scalars().all()
        return [_driver_from_record(r) for r in records]


# ── Trips ──


def _trip_from_record(r: TripRecord) -> Trip:
    return Trip(
        id=r.id,
        tenant_id=r.tenant_id,
        vehicle_id=r.vehicle_id,
        driver_id=r.driver_id,
        origin=r.origin,
        destination=r.destination,
        purpose=r.purpose,
        start_time=r.start_time,
        end_time=r.end_time,
        start_odometer=r.start_odometer,
        end_odometer=r.end_odometer,
        status=r.status,
    )


class SqlTripRepository(_TenantRepository, TripRepository):
    def _scoped(self) -> Select[tuple[TripRecord]]:
        return select(TripRecord).where(
            TripRecord.tenant_id == self._tenant_id,
            TripRecord.deleted_at.is_(None),
        )

    async def _load(self, trip_id: UUID) -> TripRecord:
        stmt = self._scoped().where(TripRecord.id == trip_id)
        record = (await self._session.execute(stmt)).scalar_one_or_none()
        if record is None:
            raise NotFound("trip", trip_id)
        return record

    async def get_by_id(self, trip_id: UUID) -> Trip:
        return _trip_from_record(await self._load(trip_id))

    async def create(self, trip: Trip) -> Trip:
        record = TripRecord(
            id=trip.id,
            tenant_id=self._tenant_id,
            vehicle_id=trip.vehicle_id,
            driver_id=trip.driver_id,
            origin=trip.origin,
            destination=trip.destination,
            purpose=trip.purpose,
            start_time=trip.start_time,
            end_time=trip.end_time,
            start_odometer=trip.start_odometer,
            end_odometer=trip.end_odometer,
            status=trip.status,
        )
        self._session.add(record)
        await self._session.flush()
        return _trip_from_record(record)

    async def update(self, trip: Trip) -> Trip:
        record = await self._load(trip.id)
        record.origin = trip.origin
        record.destination = trip.destination
        record.purpose = trip.purpose
        record.end_time = trip.end_time
        record.end_odometer = trip.end_odometer
        record.status = trip.status
        await self._session.flush()
        return _trip_from_record(record)

    async def get_by_vehicle(self, vehicle_id: UUID) -> list[Trip]:
        stmt = (
            self._scoped()
            .where(TripRecord.vehicle_id == vehicle_id)
            .order_by(TripRecord.start_time.desc())
        )
        records = (await self._session.execute(stmt)).scalars().all()
        return [_trip_from_record(r) for r in records]

    async def get_active_trips(self, tenant_id: UUID) -> list[Trip]:
        stmt = (
            select(TripRecord)
            .where(
                TripRecord.tenant_id == tenant_id,
                TripRecord.deleted_at.is_(None),
                TripRecord.status.in_(ACTIVE_TRIP_STATUSES),
            )
            .order_by(TripRecord.start_time)
        )
        records = (await self._session.execute(stmt)).scalars().all()
        return [_trip_from_record(r) for r in records]

    async def get_started_between(self, start: datetime, end: datetime) -> list[Trip]:
        stmt = (
            self._scoped()
            .where(TripRecord.start_time >= start, TripRecord.start_time < end)
            .order_by(TripRecord.start_time)
        )
        records = (await self._session.execute(stmt)).scalars().all()
        return [_trip_from_record(r) for r in records]

    async def get_active_by_vehicle(
        self,
        vehicle_id: UUID,
        *,
        starting_before: datetime | None = None,
        exclude_trip_id: UUID | None = None,
    ) -> list[Trip]:
        stmt = self._scoped().where(
            TripRecord.vehicle_id == vehicle_id,
            TripRecord.status.in_(ACTIVE_TRIP_STATUSES),
        )
        if starting_before is not None:
            stmt = stmt.where(TripRecord.start_time <= starting_before)
        if exclude_trip_id is not None:
            stmt = stmt.where(TripRecord.id != exclude_trip_id)

        records = (
            (await self._session.execute(stmt.order_by(TripRecord.start_time)))
            .scalars()
            .all()
        )
        return [_trip_from_record(r) for r in records]


# ── Maintenance ──


def _maintenance_from_record(r: MaintenanceRecordRow) -> MaintenanceRecord:
    return MaintenanceRecord(
        id=r.id,
        tenant_id=r.tenant_id,
        vehicle_id=r.vehicle_id,
        service_type=r.service_type,
        service_date=r.service_date,
        odometer=r.odometer,
        cost=r.cost,
        description=r.description,
        next_service_due=r.next_service_due,
        next_service_odometer=r.next_service_odometer,
    )


class SqlMaintenanceRepository(_TenantRepository, MaintenanceRepository):
    async def create(self, record: MaintenanceRecord) -> MaintenanceRecord:
        row = MaintenanceRecordRow(
            id=record.id,
            tenant_id=self._tenant_id,
            vehicle_id=record.vehicle_id,
            service_type=record.service_type,
            service_date=record.service_date,
            odometer=record.odometer,
            cost=record.cost,
            description=record.description,
            next_service_due=record.next_service_due,
            next_service_odometer=record.next_service_odometer,
        )
        self._session.add(row)
        await self._session.flush()
        return _maintenance_from_record(row)

    async def get_by_vehicle(self, vehicle_id: UUID) -> list[MaintenanceRecord]:
        stmt = (
            select(MaintenanceRecordRow)
            .where(
                MaintenanceRecordRow.tenant_id == self._tenant_id,
                MaintenanceRecordRow.vehicle_id == vehicle_id,
                MaintenanceRecordRow.deleted_at.is_(None),
            )
            .order_by(MaintenanceRecordRow.service_date.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_maintenance_from_record(r) for r in rows]

    async def get_serviced_between(
        self, start: date, end: date
    ) -> list[MaintenanceRecord]:
        stmt = (
            select(MaintenanceRecordRow)
            .where(
                MaintenanceRecordRow.tenant_id == self._tenant_id,
                MaintenanceRecordRow.deleted_at.is_(None),
                MaintenanceRecordRow.service_date >= start,
                MaintenanceRecordRow.service_date < end,
            )
            .order_by(MaintenanceRecordRow.service_date)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_maintenance_from_record(r) for r in rows]

    async def get_due_maintenance(
        self, tenant_id: UUID, today: date
    ) -> list[MaintenanceRecord]:
        """
        Records whose follow-up is due by date or by the vehicle's odometer.

        A record is skipped once a later service of the same type exists for
        the vehicle, since that service already answered it.
        """
        newer = aliased(MaintenanceRecordRow)
        superseded = (
            select(newer.id)
            .where(
                newer.vehicle_id == MaintenanceRecordRow.vehicle_id,
                newer.service_type == MaintenanceRecordRow.service_type,
                newer.service_date > MaintenanceRecordRow.service_date,
                newer.deleted_at.is_(None),
            )
            .exists()
        )
        stmt = (
            select(MaintenanceRecordRow)
            .join(VehicleRecord, VehicleRecord.id == MaintenanceRecordRow.vehicle_id)
            .where(
                MaintenanceRecordRow.tenant_id == tenant_id,
                MaintenanceRecordRow.deleted_at.is_(None),
                VehicleRecord.deleted_at.is_(None),
                or_(
                    MaintenanceRecordRow.next_service_due <= today,
                    MaintenanceRecordRow.next_service_odometer
                    <= VehicleRecord.current_odometer,
                ),
                ~superseded,
            )
            .order_by(
                MaintenanceRecordRow.next_service_due,
                MaintenanceRecordRow.service_date,
            )
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_maintenance_from_record(r) for r in rows]


# ── Fuel ──


def _fuel_entry_from_record(r: FuelEntryRecord) -> FuelEntry:
    return FuelEntry(
        id=r.id,
        tenant_id=r.tenant_id,
        vehicle_id=r.vehicle_id,
        driver_id=r.driver_id,
        date=r.entry_date,
        quantity=r.quantity,
        cost=r.cost,
        odometer=r.odometer,
        fuel_type=r.fuel_type,
    )


class SqlFuelEntryRepository(_TenantRepository, FuelEntryRepository):
    def _by_vehicle(self, vehicle_id: UUID) -> Select[tuple[FuelEntryRecord]]:
        return select(FuelEntryRecord).where(
            FuelEntryRecord.tenant_id == self._tenant_id,
            FuelEntryRecord.vehicle_id == vehicle_id,
            FuelEntryRecord.deleted_at.is_(None),
        )

    async def create(self, entry: FuelEntry) -> FuelEntry:
        record = FuelEntryRecord(
            id=entry.id,
            tenant_id=self._tenant_id,
            vehicle_id=entry.vehicle_id,
            driver_id=entry.driver_id,
            entry_date=entry.date,
            quantity=entry.quantity,
            cost=entry.cost,
            odometer=entry.odometer,
            fuel_type=entry.fuel_type,
        )
        self._session.add(record)
        await self._session.flush()
        return _fuel_entry_from_record(record)

    async def get_by_vehicle(self, vehicle_id: UUID) -> list[FuelEntry]:
        stmt = self._by_vehicle(vehicle_id).order_by(
            FuelEntryRecord.entry_date, FuelEntryRecord.odometer
        )
        records = (await self._session.execute(stmt)).scalars().all()
        return [_fuel_entry_from_record(r) for r in records]

    async def get_last_entry(self, vehicle_id: UUID) -> FuelEntry | None:
        stmt = (
            self._by_vehicle(vehicle_id)
            .order_by(FuelEntryRecord.entry_date.desc(), FuelEntryRecord.odometer.desc())
            .limit(1)
        )
        record = (await self._session.execute(stmt)).scalar_one_or_none()
        return _fuel_entry_from_record(record) if record is not None else None

    async def get_between(self, start: date, end: date) -> list[FuelEntry]:
        stmt = (
            select(FuelEntryRecord)
            .where(
                FuelEntryRecord.tenant_id == self._tenant_id,
                FuelEntryRecord.deleted_at.is_(None),
                FuelEntryRecord.entry_date >= start,
                FuelEntryRecord.entry_date < end,
            )
            .order_by(FuelEntryRecord.entry_date, FuelEntryRecord.odometer)
        )
        records = (await self._session.execute(stmt)).scalars().all()
        return [_fuel_entry_from_record(r) for r in records]


async def list_tenant_ids(session: AsyncSession) -> list[UUID]:
    """Tenants owning at least one live vehicle or driver."""
    stmt = (
        select(VehicleRecord.tenant_id)
        .where(VehicleRecord.deleted_at.is_(None))
        .union(
            select(DriverRecord.tenant_id).where(DriverRecord.deleted_at.is_(None))
        )
    )
    return list((await session.execute(stmt)).scalars().all())
