from datetime import date, datetime, timezone
from uuid import UUID

import pytest

from fleet.analytics.service import AnalyticsService, VehicleCost
from fleet.auth import Permission, RequestContext
from fleet.domain.entities import Driver, FuelEntry, MaintenanceRecord, Trip, Vehicle
from fleet.domain.status import DriverStatus, ServiceType, TripStatus, VehicleStatus
from fleet.errors import AuthorizationDenied, InvariantViolation
from tests.fakes import (
    FakeDriverRepository,
    FakeFuelEntryRepository,
    FakeMaintenanceRepository,
    FakeTripRepository,
    FakeVehicleRepository,
)

TODAY = date(2025, 1, 15)


def _at(day: int, hour: int) -> datetime:
    return datetime(2025, 1, day, hour, 0, tzinfo=timezone.utc)


class _Fleet:
    def __init__(self, tenant_id: UUID, vehicle: Vehicle, driver: Driver) -> None:
        self.tenant_id = tenant_id
        self.van = vehicle
        self.truck = Vehicle(
            tenant_id=tenant_id,
            make="Ford",
            model="Transit",
            license_plate="KR 3003",
            status=VehicleStatus.IN_USE,
            current_odometer=1_000,
        )
        self.workshop = Vehicle(
            tenant_id=tenant_id,
            make="Fiat",
            model="Ducato",
            license_plate="KR 3004",
            status=VehicleStatus.MAINTENANCE,
        )
        self.vehicles = FakeVehicleRepository(
            tenant_id, self.van, self.truck, self.workshop
        )
        on_leave = Driver(
            tenant_id=tenant_id,
            first_name="Marek",
            last_name="Nowicki",
            license_number="DL-0043",
            license_expiry=date(2027, 1, 1),
            status=DriverStatus.ON_LEAVE,
        )
        self.drivers = FakeDriverRepository(tenant_id, driver, on_leave)
        self.trips = FakeTripRepository(tenant_id)
        self.maintenance = FakeMaintenanceRepository(tenant_id, self.vehicles)
        self.fuel = FakeFuelEntryRepository(tenant_id)
        self.driver = driver

        self.service = AnalyticsService(
            self.vehicles,
            self.drivers,
            self.trips,
            self.maintenance,
            self.fuel,
            today=lambda: TODAY,
        )

    def add_trip(
        self,
        vehicle: Vehicle,
        start: datetime,
        end: datetime | None = None,
        distance: int | None = None,
        status: TripStatus = TripStatus.COMPLETED,
    ) -> Trip:
        trip = Trip(
            tenant_id=self.tenant_id,
            vehicle_id=vehicle.id,
            driver_id=self.driver.id,
            start_time=start,
            end_time=end,
            start_odometer=vehicle.current_odometer,
            end_odometer=(
                vehicle.current_odometer + distance if distance is not None else None
            ),
            status=status,
        )
        self.trips.items[trip.id] = trip
        return trip

    def add_fuel(self, vehicle: Vehicle, day: date, cost: float) -> None:
        entry = FuelEntry(
            tenant_id=self.tenant_id,
            vehicle_id=vehicle.id,
            date=day,
            quantity=40.0,
            cost=cost,
            odometer=vehicle.current_odometer,
        )
        self.fuel.items[entry.id] = entry

    def add_service(
        self,
        vehicle: Vehicle,
        day: date,
        cost: float,
        next_due: date | None = None,
    ) -> None:
        record = MaintenanceRecord(
            tenant_id=self.tenant_id,
            vehicle_id=vehicle.id,
            service_type=ServiceType.OIL_CHANGE,
            service_date=day,
            odometer=vehicle.current_odometer,
            cost=cost,
            next_service_due=next_due,
        )
        self.maintenance.items[record.id] = record


@pytest.fixture
def fleet(tenant_id: UUID, vehicle: Vehicle, driver: Driver) -> _Fleet:
    fleet = _Fleet(tenant_id, vehicle, driver)

    fleet.add_fuel(fleet.van, date(2025, 1, 3), 60.0)
    fleet.add_fuel(fleet.van, date(2025, 1, 20), 40.0)
    fleet.add_fuel(fleet.truck, date(2024, 12, 31), 100.0)

    fleet.add_service(fleet.van, date(2025, 1, 5), 200.0, next_due=date(2025, 1, 10))
    fleet.add_service(fleet.truck, date(2024, 12, 1), 500.0)

    fleet.add_trip(fleet.van, _at(10, 8), _at(10, 12), distance=120)
    fleet.add_trip(fleet.van, _at(10, 14), _at(10, 16), status=TripStatus.CANCELLED)
    fleet.add_trip(fleet.van, _at(11, 8), status=TripStatus.SCHEDULED)
    fleet.add_trip(fleet.truck, _at(10, 20), _at(11, 4), distance=300)
    return fleet


class TestDashboard:
    async def test_counts_and_monthly_spend(
        self, fleet: _Fleet, ctx: RequestContext
    ) -> None:
        stats = await fleet.service.dashboard(ctx)

        assert stats.total_vehicles == 3
        assert stats.available_vehicles == 1
        assert stats.vehicles_in_use == 1
        assert stats.vehicles_in_maintenance == 1
        assert stats.active_drivers == 1
        assert stats.due_maintenance == 1
        assert stats.fuel_cost_month == 100.0
        assert stats.maintenance_cost_month == 200.0

    async def test_empty_fleet(
        self, tenant_id: UUID, vehicle: Vehicle, driver: Driver, ctx: RequestContext
    ) -> None:
        fleet = _Fleet(tenant_id, vehicle, driver)
        fleet.vehicles.items.clear()
        fleet.drivers.items.clear()

        stats = await fleet.service.dashboard(ctx)

        assert stats.total_vehicles == 0
        assert stats.active_drivers == 0
        assert stats.fuel_cost_month == 0

    async def test_requires_vehicle_read(
        self, fleet: _Fleet, tenant_id: UUID
    ) -> None:
        reader = RequestContext(
            tenant_id=tenant_id, permissions=frozenset({Permission.TRIP_READ})
        )
        with pytest.raises(AuthorizationDenied):
            await fleet.service.dashboard(reader)


class TestUtilization:
    async def test_hours_and_distance_per_vehicle(
        self, fleet: _Fleet, ctx: RequestContext
    ) -> None:
        reports = await fleet.service.utilization(ctx, _at(10, 0), _at(11, 0))
        by_vehicle = {r.vehicle_id: r for r in reports}

        van = by_vehicle[fleet.van.id]
        assert van.vehicle_name == "Toyota Hilux"
        assert van.trip_count == 1
        assert van.hours == 4.0
        assert van.distance == 120
        assert van.utilization_pct == pytest.approx(100 * 4 / 24)

        # the overnight trip is clipped at the end of the period
        truck = by_vehicle[fleet.truck.id]
        assert truck.hours == 4.0
        assert truck.distance == 300

        idle = by_vehicle[fleet.workshop.id]
        assert (idle.trip_count, idle.hours, idle.utilization_pct) == (0, 0, 0.0)

    async def test_empty_period(self, fleet: _Fleet, ctx: RequestContext) -> None:
        reports = await fleet.service.utilization(ctx, _at(10, 0), _at(10, 0))

        assert all(r.utilization_pct == 0.0 for r in reports)

    async def test_inverted_period(self, fleet: _Fleet, ctx: RequestContext) -> None:
        with pytest.raises(InvariantViolation):
            await fleet.service.utilization(ctx, _at(11, 0), _at(10, 0))


class TestCosts:
    async def test_cost_per_km(self, fleet: _Fleet, ctx: RequestContext) -> None:
        costs = await fleet.service.costs(ctx, date(2025, 1, 1), date(2025, 2, 1))
        by_vehicle = {c.vehicle_id: c for c in costs}

        van = by_vehicle[fleet.van.id]
        assert van.fuel_cost == 100.0
        assert van.maintenance_cost == 200.0
        assert van.total_cost == 300.0
        assert van.distance == 120
        assert van.cost_per_km == 2.5

        truck = by_vehicle[fleet.truck.id]
        assert truck.total_cost == 0.0
        assert truck.distance == 300

    def test_no_distance_means_no_cost_per_km(self, vehicle: Vehicle) -> None:
        cost = VehicleCost(
            vehicle_id=vehicle.id,
            vehicle_name=vehicle.display_name,
            fuel_cost=50.0,
            maintenance_cost=0.0,
            distance=0,
        )
        assert cost.cost_per_km == 0.0

    async def test_end_day_is_excluded(
        self, fleet: _Fleet, ctx: RequestContext
    ) -> None:
        costs = await fleet.service.costs(ctx, date(2025, 1, 1), date(2025, 1, 3))

        assert all(c.total_cost == 0.0 for c in costs)


class TestTrends:
    async def test_one_row_per_day(self, fleet: _Fleet, ctx: RequestContext) -> None:
        trends = await fleet.service.trends(ctx, date(2025, 1, 3), date(2025, 1, 6))

        assert [t.day for t in trends] == [
            date(2025, 1, 3),
            date(2025, 1, 4),
            date(2025, 1, 5),
        ]
        assert [t.fuel_cost for t in trends] == [60.0, 0.0, 0.0]
        assert [t.maintenance_cost for t in trends] == [0.0, 0.0, 200.0]

    async def test_trips_by_start_day(
        self, fleet: _Fleet, ctx: RequestContext
    ) -> None:
        first, second = await fleet.service.trends(
            ctx, date(2025, 1, 10), date(2025, 1, 12)
        )

        assert (first.trip_count, first.distance) == (2, 420)
        assert (second.trip_count, second.distance) == (1, 0)

    async def test_empty_range(self, fleet: _Fleet, ctx: RequestContext) -> None:
        assert await fleet.service.trends(ctx, TODAY, TODAY) == []
