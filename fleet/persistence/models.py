from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Date, Enum, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fleet.base.models import TenantDbModel, UTCDateTime
from fleet.domain.status import (
    DriverStatus,
    FuelType,
    ServiceType,
    TripStatus,
    VehicleStatus,
)


class VehicleRecord(TenantDbModel):
    __tablename__ = "fleet_vehicles"

    make: Mapped[str] = mapped_column(String, nullable=False)
    model: Mapped[str] = mapped_column(String, nullable=False)
    license_plate: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[VehicleStatus] = mapped_column(
        Enum(VehicleStatus), nullable=False, default=VehicleStatus.AVAILABLE
    )
    current_odometer: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    registration_expiry: Mapped[date | None] = mapped_column(Date, nullable=True)
    insurance_expiry: Mapped[date | None] = mapped_column(Date, nullable=True)


class DriverRecord(TenantDbModel):
    __tablename__ = "fleet_drivers"

    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    license_number: Mapped[str] = mapped_column(String, nullable=False)
    license_expiry: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[DriverStatus] = mapped_column(
        Enum(DriverStatus), nullable=False, default=DriverStatus.ACTIVE
    )


class TripRecord(TenantDbModel):
    __tablename__ = "fleet_trips"
    __table_args__ = (Index("ix_fleet_trips_vehicle_start", "vehicle_id", "start_time"),)

    vehicle_id: Mapped[UUID] = mapped_column(
        ForeignKey("fleet_vehicles.id"), nullable=False
    )
    driver_id: Mapped[UUID] = mapped_column(
        ForeignKey("fleet_drivers.id"), nullable=False
    )
    origin: Mapped[str] = mapped_column(String, nullable=False, default="")
    destination: Mapped[str] = mapped_column(String, nullable=False, default="")
    purpose: Mapped[str] = mapped_column(Text, nullable=False, default="")
    start_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    start_odometer: Mapped[int] = mapped_column(Integer, nullable=False)
    end_odometer: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[TripStatus] = mapped_column(
        Enum(TripStatus), nullable=False, default=TripStatus.SCHEDULED
    )


class MaintenanceRecordRow(TenantDbModel):
    __tablename__ = "fleet_maintenance"

    vehicle_id: Mapped[UUID] = mapped_column(
        ForeignKey("fleet_vehicles.id"), nullable=False, index=True
    )
    service_type: Mapped[ServiceType] = mapped_column(
        Enum(ServiceType), nullable=False
    )
    service_date: Mapped[date] = mapped_column(Date, nullable=False)
    odometer: Mapped[int] = mapped_column(Integer, nullable=False)
    cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    next_service_due: Mapped[date | None] = mapped_column(Date, nullable=True)
    next_service_odometer: Mapped[int | None] = mapped_column(Integer, nullable=True)


class FuelEntryRecord(TenantDbModel):
    __tablename__ = "fleet_fuel_entries"

    vehicle_id: Mapped[UUID] = mapped_column(
        ForeignKey("fleet_vehicles.id"), nullable=False, index=True
    )
    driver_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("fleet_drivers.id"), nullable=True
    )
    entry_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    cost: Mapped[float] = mapped_column(Float, nullable=False)
    odometer: Mapped[int] = mapped_column(Integer, nullable=False)
    fuel_type: Mapped[FuelType] = mapped_column(Enum(FuelType), nullable=False)
