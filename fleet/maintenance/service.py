from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from typing import Sequence
from uuid import UUID

from fleet.auth import Permission, RequestContext
from fleet.domain.entities import MaintenanceRecord
from fleet.domain.repository import MaintenanceRepository, VehicleRepository
from fleet.events import EventPublisher, MaintenanceCreated
from fleet.maintenance.predictor import predict_next_service

logger = logging.getLogger(__name__)


class MaintenanceService:
    def __init__(
        self,
        records: MaintenanceRepository,
        vehicles: VehicleRepository,
        publisher: EventPublisher,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._records = records
        self._vehicles = vehicles
        self._publisher = publisher
        self._today = today

    async def create(
        self, ctx: RequestContext, record: MaintenanceRecord
    ) -> MaintenanceRecord:
        ctx.require(Permission.MAINTENANCE_CREATE)

        # Rejects records for vehicles outside the caller's tenant.
        await self._vehicles.get_by_id(record.vehicle_id)

        next_service = predict_next_service(
            record.service_type, record.service_date, record.odometer
        )
        created = await self._records.create(
            record.with_next_service(next_service.due_date, next_service.due_odometer)
        )

        logger.info(
            "Maintenance %s recorded for vehicle %s, next due %s / %s",
            record.service_type,
            record.vehicle_id,
            next_service.due_date,
            next_service.due_odometer,
        )
        self._publisher.publish(MaintenanceCreated(record=created, user_id=ctx.user_id))
        return created

    async def by_vehicle(
        self, ctx: RequestContext, vehicle_id: UUID
    ) -> Sequence[MaintenanceRecord]:
        ctx.require(Permission.MAINTENANCE_READ)
        return await self._records.get_by_vehicle(vehicle_id)

    async def due(
        self, ctx: RequestContext, tenant_id: UUID
    ) -> Sequence[MaintenanceRecord]:
        ctx.require(Permission.MAINTENANCE_READ)
        return await self._records.get_due_maintenance(tenant_id, self._today())
