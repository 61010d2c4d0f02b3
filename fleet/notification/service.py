"""
Periodic compliance checks producing user-facing notifications.

A failure to deliver one notification is logged and does not stop the rest
of the check; a failure to load the candidates propagates to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from uuid import UUID

from fleet.auth import RequestContext
from fleet.domain.entities import FuelEntry
from fleet.driver.service import DriverService
from fleet.events import EventPublisher, Notification
from fleet.fuel.service import FuelService
from fleet.maintenance.service import MaintenanceService
from fleet.notification import messages
from fleet.vehicle.service import VehicleService

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(
        self,
        vehicles: VehicleService,
        drivers: DriverService,
        maintenance: MaintenanceService,
        fuel: FuelService,
        publisher: EventPublisher,
    ) -> None:
        self._vehicles = vehicles
        self._drivers = drivers
        self._maintenance = maintenance
        self._fuel = fuel
        self._publisher = publisher

    async def check_expiring_licenses(
        self, ctx: RequestContext, tenant_id: UUID, days: int
    ) -> int:
        drivers = await self._drivers.expiring_licenses(ctx, tenant_id, days)
        return self._send_all(messages.license_expiry(d, days) for d in drivers)

    async def check_expiring_registrations(
        self, ctx: RequestContext, tenant_id: UUID, days: int
    ) -> int:
        vehicles = await self._vehicles.expiring_registrations(ctx, tenant_id, days)
        return self._send_all(messages.registration_expiry(v, days) for v in vehicles)

    async def check_expiring_insurance(
        self, ctx: RequestContext, tenant_id: UUID, days: int
    ) -> int:
        vehicles = await self._vehicles.expiring_insurance(ctx, tenant_id, days)
        return self._send_all(messages.insurance_expiry(v, days) for v in vehicles)

    async def check_due_maintenance(self, ctx: RequestContext, tenant_id: UUID) -> int:
        records = await self._maintenance.due(ctx, tenant_id)
        return self._send_all(messages.maintenance_due(r) for r in records)

    async def check_fuel_anomaly(self, ctx: RequestContext, entry: FuelEntry) -> bool:
        if not await self._fuel.detect_anomaly(ctx, entry):
            return False
        self._send_all([messages.fuel_anomaly(entry)])
        return True

    def _send_all(self, notifications: Iterable[Notification]) -> int:
        sent = 0
        for notification in notifications:
            try:
                self._send(notification)
                sent += 1
            except Exception:
                logger.exception(
                    "Failed to send %s notification %s",
                    notification.type.value,
                    notification.id,
                )
        return sent

    def _send(self, notification: Notification) -> None:
        logger.info(
            "Fleet notification %s [%s] tenant=%s: %s",
            notification.id,
            notification.type.value,
            notification.tenant_id,
            notification.message,
        )
        self._publisher.publish(notification)
