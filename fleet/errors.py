from __future__ import annotations

from typing import Any
from uuid import UUID


class FleetError(Exception):
    """Base class for every error raised by the fleet core."""


class NotFound(FleetError):
    def __init__(self, entity: str, entity_id: UUID) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransition(FleetError):
    def __init__(self, current: Any, target: Any) -> None:
        super().__init__(f"cannot transition from {current} to {target}")
        self.current = current
        self.target = target


class ResourceUnavailable(FleetError):
    pass


class SchedulingConflict(FleetError):
    pass


class InvariantViolation(FleetError):
    pass


class AuthorizationDenied(FleetError):
    def __init__(self, permission: Any) -> None:
        super().__init__(f"missing permission {permission}")
        self.permission = permission
