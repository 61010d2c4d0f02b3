from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from typing import Sequence
from uuid import UUID

from fleet.auth import Permission, RequestContext
from fleet.domain.entities import Driver
from fleet.domain.repository import DriverRepository
from fleet.domain.status import DriverStatus
from fleet.errors import InvariantViolation
from fleet.events import DriverStatusChanged, EventPublisher


class DriverService:
    def __init__(
        self,
        drivers: DriverRepository,
        publisher: EventPublisher,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._drivers = drivers
        self._publisher = publisher
        self._today = today

    async def get(self, ctx: RequestContext, driver_id: UUID) -> Driver:
        ctx.require(Permission.DRIVER_READ)
        return await self._drivers.get_by_id(driver_id)

    async def available(
        self, ctx: RequestContext, start: datetime, end: datetime
    ) -> Sequence[Driver]:
        """Drivers that can take a trip running from ``start`` to ``end``."""
        ctx.require(Permission.DRIVER_READ)
        if end < start:
            raise InvariantViolation("end time must not be before start time")
        return await self._drivers.get_available(self._today(), start, end)

    async def update_status(
        self, ctx: RequestContext, driver_id: UUID, status: DriverStatus
    ) -> Driver:
        ctx.require(Permission.DRIVER_UPDATE)

        driver = await self._drivers.get_by_id(driver_id)
        changed = driver.transition_to(status)
        if changed is driver:
            return driver

        updated = await self._drivers.update(changed)
        self._publisher.publish(
            DriverStatusChanged(
                driver_id=driver_id,
                old_status=driver.status,
                new_status=status,
                user_id=ctx.user_id,
            )
        )
        return updated

    async def expiring_licenses(
        self, ctx: RequestContext, tenant_id: UUID, days: int
    ) -> Sequence[Driver]:
        ctx.require(Permission.DRIVER_READ)
        return await self._drivers.get_expiring_licenses(tenant_id, self._today(), days)
