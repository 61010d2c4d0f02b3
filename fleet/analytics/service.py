"""
Fleet reporting: dashboard counters, utilization, cost and daily trends.

Periods are half-open. Trip hours and distance only count once a trip has
an end time and an end odometer. Cancelled trips are left out of every
figure.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Sequence
from uuid import UUID

from dateutil.relativedelta import relativedelta

from fleet.auth import Permission, RequestContext
from fleet.domain.entities import Trip
from fleet.domain.repository import (
    DriverRepository,
    FuelEntryRepository,
    MaintenanceRepository,
    TripRepository,
    VehicleRepository,
)
from fleet.domain.status import DriverStatus, TripStatus, VehicleStatus
from fleet.errors import InvariantViolation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardStats:
    total_vehicles: int
    available_vehicles: int
    vehicles_in_use: int
    vehicles_in_maintenance: int
    active_drivers: int
    due_maintenance: int
    fuel_cost_month: float
    maintenance_cost_month: float


@dataclass(frozen=True)
class VehicleUtilization:
    vehicle_id: UUID
    vehicle_name: str
    trip_count: int
    hours: float
    distance: int
    utilization_pct: float


@dataclass(frozen=True)
class VehicleCost:
    vehicle_id: UUID
    vehicle_name: str
    fuel_cost: float
    maintenance_cost: float
    distance: int

    @property
    def total_cost(self) -> float:
        return self.fuel_cost + self.maintenance_cost

    @property
    def cost_per_km(self) -> float:
        if self.distance <= 0:
            return 0.0
        return self.total_cost / self.distance


@dataclass(frozen=True)
class DailyTrend:
    day: date
    fuel_cost: float
    maintenance_cost: float
    trip_count: int
    distance: int


def _distance(trip: Trip) -> int:
    if trip.end_odometer is None:
        return 0
    return trip.end_odometer - trip.start_odometer


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _check_period(start: date | datetime, end: date | datetime) -> None:
    if end < start:
        raise InvariantViolation("period end must not be before its start")


class AnalyticsService:
    def __init__(
        self,
        vehicles: VehicleRepository,
        drivers: DriverRepository,
        trips: TripRepository,
        maintenance: MaintenanceRepository,
        fuel: FuelEntryRepository,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._vehicles = vehicles
        self._drivers = drivers
        self._trips = trips
        self._maintenance = maintenance
        self._fuel = fuel
        self._today = today

    async def _trips_between(self, start: datetime, end: datetime) -> list[Trip]:
        trips = await self._trips.get_started_between(start, end)
        return [t for t in trips if t.status is not TripStatus.CANCELLED]

    async def dashboard(self, ctx: RequestContext) -> DashboardStats:
        """Fleet counters plus fuel and maintenance spend of the current month."""
        ctx.require(Permission.VEHICLE_READ)

        vehicles = await self._vehicles.list_all()
        drivers = await self._drivers.list_all()

        today = self._today()
        due = await self._maintenance.get_due_maintenance(ctx.tenant_id, today)

        month_start = today.replace(day=1)
        month_end = month_start + relativedelta(months=1)
        fuel = await self._fuel.get_between(month_start, month_end)
        serviced = await self._maintenance.get_serviced_between(month_start, month_end)

        def count(status: VehicleStatus) -> int:
            return sum(1 for v in vehicles if v.status is status)

        return DashboardStats(
            total_vehicles=len(vehicles),
            available_vehicles=count(VehicleStatus.AVAILABLE),
            vehicles_in_use=count(VehicleStatus.IN_USE),
            vehicles_in_maintenance=count(VehicleStatus.MAINTENANCE),
            active_drivers=sum(1 for d in drivers if d.status is DriverStatus.ACTIVE),
            due_maintenance=len(due),
            fuel_cost_month=sum(e.cost for e in fuel),
            maintenance_cost_month=sum(r.cost for r in serviced),
        )

    async def utilization(
        self, ctx: RequestContext, start: datetime, end: datetime
    ) -> Sequence[VehicleUtilization]:
        """
        Per-vehicle trips started in ``[start, end)``.

        Hours are clipped at ``end`` so a vehicle never exceeds 100%.
        """
        ctx.require(Permission.VEHICLE_READ)
        _check_period(start, end)

        by_vehicle: dict[UUID, list[Trip]] = defaultdict(list)
        for trip in await self._trips_between(start, end):
            by_vehicle[trip.vehicle_id].append(trip)

        period_hours = (end - start).total_seconds() / 3600
        reports = []
        for vehicle in await self._vehicles.list_all():
            trips = by_vehicle.get(vehicle.id, [])
            hours = sum(
                (min(t.end_time, end) - t.start_time).total_seconds() / 3600
                for t in trips
                if t.end_time is not None
            )
            reports.append(
                VehicleUtilization(
                    vehicle_id=vehicle.id,
                    vehicle_name=vehicle.display_name,
                    trip_count=len(trips),
                    hours=hours,
                    distance=sum(_distance(t) for t in trips),
                    utilization_pct=(
                        hours / period_hours * 100 if period_hours > 0 else 0.0
                    ),
                )
            )
        return reports

    async def costs(
        self, ctx: RequestContext, start: date, end: date
    ) -> Sequence[VehicleCost]:
        """Fuel and maintenance spend per vehicle for days in ``[start, end)``."""
        ctx.require(Permission.VEHICLE_READ)
        _check_period(start, end)

        fuel: dict[UUID, float] = defaultdict(float)
        for entry in await self._fuel.get_between(start, end):
            fuel[entry.vehicle_id] += entry.cost

        maintenance: dict[UUID, float] = defaultdict(float)
        for record in await self._maintenance.get_serviced_between(start, end):
            maintenance[record.vehicle_id] += record.cost

        distance: dict[UUID, int] = defaultdict(int)
        for trip in await self._trips_between(_midnight(start), _midnight(end)):
            distance[trip.vehicle_id] += _distance(trip)

        return [
            VehicleCost(
                vehicle_id=v.id,
                vehicle_name=v.display_name,
                fuel_cost=fuel[v.id],
                maintenance_cost=maintenance[v.id],
                distance=distance[v.id],
            )
            for v in await self._vehicles.list_all()
        ]

    async def trends(
        self, ctx: RequestContext, start: date, end: date
    ) -> Sequence[DailyTrend]:
        """One row per UTC day in ``[start, end)``, including empty days."""
        ctx.require(Permission.VEHICLE_READ)
        _check_period(start, end)

        fuel: dict[date, float] = defaultdict(float)
        for entry in await self._fuel.get_between(start, end):
            fuel[entry.date] += entry.cost

        maintenance: dict[date, float] = defaultdict(float)
        for record in await self._maintenance.get_serviced_between(start, end):
            maintenance[record.service_date] += record.cost

        trips: dict[date, list[Trip]] = defaultdict(list)
        for trip in await self._trips_between(_midnight(start), _midnight(end)):
            trips[trip.start_time.astimezone(timezone.utc).date()].append(trip)

        days = (end - start).days
        logger.debug("Building %d days of trends from %s", days, start)
        return [
            DailyTrend(
                day=day,
                fuel_cost=fuel[day],
                maintenance_cost=maintenance[day],
                trip_count=len(trips[day]),
                distance=sum(_distance(t) for t in trips[day]),
            )
            for day in (start + timedelta(days=n) for n in range(days))
        ]
