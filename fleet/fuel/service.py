from __future__ import annotations

import logging
from typing import Sequence
from uuid import UUID

from fleet.auth import Permission, RequestContext
from fleet.domain.entities import FuelEntry
from fleet.domain.repository import FuelEntryRepository, VehicleRepository
from fleet.events import EventPublisher, FuelEntryCreated
from fleet.fuel.anomaly import current_efficiency, detect_anomaly
from fleet.notification import messages

logger = logging.getLogger(__name__)


class FuelService:
    def __init__(
        self,
        entries: FuelEntryRepository,
        vehicles: VehicleRepository,
        publisher: EventPublisher,
    ) -> None:
        self._entries = entries
        self._vehicles = vehicles
        self._publisher = publisher

    async def create(self, ctx: RequestContext, entry: FuelEntry) -> FuelEntry:
        ctx.require(Permission.FUEL_ENTRY_CREATE)

        await self._vehicles.get_by_id(entry.vehicle_id)
        history = await self._entries.get_by_vehicle(entry.vehicle_id)

        created = await self._entries.create(entry)
        self._publisher.publish(FuelEntryCreated(entry=created, user_id=ctx.user_id))

        if detect_anomaly(created, history):
            logger.warning(
                "Fuel anomaly for vehicle %s on %s", created.vehicle_id, created.date
            )
            self._publisher.publish(messages.fuel_anomaly(created))

        return created

    async def by_vehicle(
        self, ctx: RequestContext, vehicle_id: UUID
    ) -> Sequence[FuelEntry]:
        ctx.require(Permission.FUEL_ENTRY_READ)
        return await self._entries.get_by_vehicle(vehicle_id)

    async def efficiency(self, ctx: RequestContext, entry: FuelEntry) -> float:
        """Efficiency of ``entry`` against the vehicle's preceding entry."""
        ctx.require(Permission.FUEL_ENTRY_READ)
        history = await self._entries.get_by_vehicle(entry.vehicle_id)
        return current_efficiency(entry, history)

    async def detect_anomaly(self, ctx: RequestContext, entry: FuelEntry) -> bool:
        ctx.require(Permission.FUEL_ENTRY_READ)
        history = await self._entries.get_by_vehicle(entry.vehicle_id)
        return detect_anomaly(entry, history)
