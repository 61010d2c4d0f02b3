from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from fleet.analytics.service import AnalyticsService
from fleet.driver.service import DriverService
from fleet.events import EventPublisher
from fleet.fuel.service import FuelService
from fleet.maintenance.service import MaintenanceService
from fleet.notification.service import NotificationService
from fleet.persistence.repositories import (
    SqlDriverRepository,
    SqlFuelEntryRepository,
    SqlMaintenanceRepository,
    SqlTripRepository,
    SqlVehicleRepository,
)
from fleet.trip.service import TripService
from fleet.vehicle.service import VehicleService


@dataclass(frozen=True)
class FleetServices:
    vehicles: VehicleService
    drivers: DriverService
    trips: TripService
    maintenance: MaintenanceService
    fuel: FuelService
    notifications: NotificationService
    analytics: AnalyticsService


def build_services(
    session: AsyncSession, tenant_id: UUID, publisher: EventPublisher
) -> FleetServices:
    """Wire every service to SQL repositories sharing one session and tenant."""
    vehicle_repo = SqlVehicleRepository(session, tenant_id)
    driver_repo = SqlDriverRepository(session, tenant_id)
    trip_repo = SqlTripRepository(session, tenant_id)
    maintenance_repo = SqlMaintenanceRepository(session, tenant_id)
    fuel_repo = SqlFuelEntryRepository(session, tenant_id)

    vehicles = VehicleService(vehicle_repo, publisher)
    drivers = DriverService(driver_repo, publisher)
    maintenance = MaintenanceService(maintenance_repo, vehicle_repo, publisher)
    fuel = FuelService(fuel_repo, vehicle_repo, publisher)

    return FleetServices(
        vehicles=vehicles,
        drivers=drivers,
        trips=TripService(trip_repo, vehicle_repo, driver_repo, publisher),
        maintenance=maintenance,
        fuel=fuel,
        notifications=NotificationService(
            vehicles, drivers, maintenance, fuel, publisher
        ),
        analytics=AnalyticsService(
            vehicle_repo, driver_repo, trip_repo, maintenance_repo, fuel_repo
        ),
    )
