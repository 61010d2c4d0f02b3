"""
Trip lifecycle orchestration.

Each operation is expected to run inside one transaction owned by the
caller. ``create`` locks the vehicle row before checking for conflicts, so
concurrent bookings of the same vehicle are serialized until commit.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from fleet.auth import Permission, RequestContext
from fleet.domain.entities import Trip, TripStatistics
from fleet.domain.repository import DriverRepository, TripRepository, VehicleRepository
from fleet.domain.status import TripStatus, VehicleStatus
from fleet.errors import InvariantViolation, ResourceUnavailable, SchedulingConflict
from fleet.events import (
    EventPublisher,
    TripCancelled,
    TripCompleted,
    TripCreated,
    TripStarted,
)
from fleet.trip.conflict import ConflictDetector

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TripService:
    def __init__(
        self,
        trips: TripRepository,
        vehicles: VehicleRepository,
        drivers: DriverRepository,
        publisher: EventPublisher,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._trips = trips
        self._vehicles = vehicles
        self._drivers = drivers
        self._publisher = publisher
        self._clock = clock
        self._conflicts = ConflictDetector(trips)

    async def get(self, ctx: RequestContext, trip_id: UUID) -> Trip:
        ctx.require(Permission.TRIP_READ)
        return await self._trips.get_by_id(trip_id)

    async def active_trips(self, ctx: RequestContext) -> Sequence[Trip]:
        ctx.require(Permission.TRIP_READ)
        return await self._trips.get_active_trips(ctx.tenant_id)

    async def create(self, ctx: RequestContext, trip: Trip) -> Trip:
        ctx.require(Permission.TRIP_CREATE)

        vehicle = await self._vehicles.get_by_id(trip.vehicle_id, for_update=True)
        if not vehicle.status.is_bookable:
            raise ResourceUnavailable(
                f"vehicle {vehicle.id} is not available for trips ({vehicle.status})"
            )

        driver = await self._drivers.get_by_id(trip.driver_id)
        today = self._clock().date()
        if not driver.is_eligible(today):
            reason = (
                "license has expired"
                if driver.license_expired(today)
                else f"is {driver.status}"
            )
            raise ResourceUnavailable(f"driver {driver.id} {reason}")

        if trip.end_time is not None and trip.end_time < trip.start_time:
            raise InvariantViolation("end time must not be before start time")

        if await self._conflicts.has_conflict(
            trip.vehicle_id, trip.start_time, trip.effective_end
        ):
            raise SchedulingConflict(
                f"vehicle {trip.vehicle_id} is already assigned to another trip "
                "during this time"
            )

        created = await self._trips.create(trip)
        await self._vehicles.update(vehicle.transition_to(VehicleStatus.IN_USE))

        logger.info("Trip %s created for vehicle %s", created.id, created.vehicle_id)
        self._publisher.publish(TripCreated(trip=created, user_id=ctx.user_id))
        return created

    async def start(self, ctx: RequestContext, trip_id: UUID) -> Trip:
        ctx.require(Permission.TRIP_UPDATE)

        trip = await self._trips.get_by_id(trip_id)
        updated = await self._trips.update(trip.start())

        self._publisher.publish(TripStarted(trip=updated, user_id=ctx.user_id))
        return updated

    async def complete(
        self,
        ctx: RequestContext,
        trip_id: UUID,
        end_time: datetime,
        end_odometer: int,
    ) -> Trip:
        ctx.require(Permission.TRIP_UPDATE)

        trip = await self._trips.get_by_id(trip_id)
        trip.status.ensure_transition(TripStatus.COMPLETED)
        if end_odometer < trip.start_odometer:
            raise InvariantViolation(
                f"end odometer {end_odometer} is less than start odometer "
                f"{trip.start_odometer}"
            )
        if end_time < trip.start_time:
            raise InvariantViolation("end time must not be before start time")

        updated = await self._trips.update(trip.complete(end_time, end_odometer))

        vehicle = await self._vehicles.get_by_id(trip.vehicle_id, for_update=True)
        await self._vehicles.update(
            vehicle.transition_to(VehicleStatus.AVAILABLE).with_odometer(end_odometer)
        )

        logger.info("Trip %s completed at odometer %d", updated.id, end_odometer)
        self._publisher.publish(TripCompleted(trip=updated, user_id=ctx.user_id))
        return updated

    async def cancel(self, ctx: RequestContext, trip_id: UUID, reason: str) -> Trip:
        ctx.require(Permission.TRIP_UPDATE)

        trip = await self._trips.get_by_id(trip_id)
        updated = await self._trips.update(trip.cancel(reason))

        if trip.status is TripStatus.IN_PROGRESS:
            vehicle = await self._vehicles.get_by_id(trip.vehicle_id, for_update=True)
            await self._vehicles.update(vehicle.transition_to(VehicleStatus.AVAILABLE))

        logger.info("Trip %s cancelled: %s", updated.id, reason)
        self._publisher.publish(
            TripCancelled(trip=updated, reason=reason, user_id=ctx.user_id)
        )
        return updated

    @staticmethod
    def statistics(trip: Trip) -> TripStatistics | None:
        """Duration, distance and average speed of a finished trip."""
        if trip.end_time is None or trip.end_odometer is None:
            return None

        hours = (trip.end_time - trip.start_time).total_seconds() / 3600
        distance = trip.end_odometer - trip.start_odometer
        return TripStatistics(
            duration_hours=hours,
            distance=distance,
            average_speed=distance / hours if hours > 0 else None,
        )
