"""Domain events and the notification sink they are published to."""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from fleet.domain.entities import FuelEntry, MaintenanceRecord, Trip, Vehicle
from fleet.domain.status import DriverStatus, VehicleStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TripCreated:
    trip: Trip
    user_id: UUID | None = None


@dataclass(frozen=True)
class TripStarted:
    trip: Trip
    user_id: UUID | None = None


@dataclass(frozen=True)
class TripCompleted:
    trip: Trip
    user_id: UUID | None = None


@dataclass(frozen=True)
class TripCancelled:
    trip: Trip
    reason: str
    user_id: UUID | None = None


@dataclass(frozen=True)
class VehicleStatusChanged:
    vehicle: Vehicle
    old_status: VehicleStatus
    new_status: VehicleStatus
    user_id: UUID | None = None


@dataclass(frozen=True)
class DriverStatusChanged:
    driver_id: UUID
    old_status: DriverStatus
    new_status: DriverStatus
    user_id: UUID | None = None


@dataclass(frozen=True)
class MaintenanceCreated:
    record: MaintenanceRecord
    user_id: UUID | None = None


@dataclass(frozen=True)
class FuelEntryCreated:
    entry: FuelEntry
    user_id: UUID | None = None


class NotificationType(enum.Enum):
    LICENSE_EXPIRY = "license_expiry"
    REGISTRATION_EXPIRY = "registration_expiry"
    INSURANCE_EXPIRY = "insurance_expiry"
    MAINTENANCE_DUE = "maintenance_due"
    FUEL_ANOMALY = "fuel_anomaly"


class Notification(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    tenant_id: UUID
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EventPublisher(ABC):
    @abstractmethod
    def publish(self, event: object) -> None:
        """Fire-and-forget; never awaits delivery."""


class EventBus(EventPublisher):
    """In-process publisher fanning events out to subscribed handlers."""

    def __init__(self) -> None:
        self._handlers: list[Callable[[object], None]] = []

    def subscribe(self, handler: Callable[[object], None]) -> None:
        self._handlers.append(handler)

    def publish(self, event: object) -> None:
        logger.debug("Publishing %s", type(event).__name__)
        for handler in self._handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Event handler %r failed for %s", handler, type(event).__name__
                )
