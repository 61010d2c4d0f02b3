from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from typing import Sequence
from uuid import UUID

from fleet.auth import Permission, RequestContext
from fleet.domain.entities import Vehicle
from fleet.domain.repository import VehicleRepository
from fleet.domain.status import VehicleStatus
from fleet.events import EventPublisher, VehicleStatusChanged

logger = logging.getLogger(__name__)


class VehicleService:
    def __init__(
        self,
        vehicles: VehicleRepository,
        publisher: EventPublisher,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._vehicles = vehicles
        self._publisher = publisher
        self._today = today

    async def get(self, ctx: RequestContext, vehicle_id: UUID) -> Vehicle:
        ctx.require(Permission.VEHICLE_READ)
        return await self._vehicles.get_by_id(vehicle_id)

    async def update_status(
        self, ctx: RequestContext, vehicle_id: UUID, status: VehicleStatus
    ) -> Vehicle:
        ctx.require(Permission.VEHICLE_UPDATE)

        vehicle = await self._vehicles.get_by_id(vehicle_id, for_update=True)
        old_status = vehicle.status
        changed = vehicle.transition_to(status)
        if changed is vehicle:
            return vehicle

        updated = await self._vehicles.update(changed)
        logger.info("Vehicle %s: %s -> %s", vehicle_id, old_status, status)
        self._publisher.publish(
            VehicleStatusChanged(
                vehicle=updated,
                old_status=old_status,
                new_status=status,
                user_id=ctx.user_id,
            )
        )
        return updated

    async def expiring_registrations(
        self, ctx: RequestContext, tenant_id: UUID, days: int
    ) -> Sequence[Vehicle]:
        ctx.require(Permission.VEHICLE_READ)
        return await self._vehicles.get_expiring_registrations(
            tenant_id, self._today(), days
        )

    async def expiring_insurance(
        self, ctx: RequestContext, tenant_id: UUID, days: int
    ) -> Sequence[Vehicle]:
        ctx.require(Permission.VEHICLE_READ)
        return await self._vehicles.get_expiring_insurance(
            tenant_id, self._today(), days
        )
