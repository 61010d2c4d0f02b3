from __future__ import annotations

import enum
from dataclasses import dataclass
from uuid import UUID

from fastapi import Header, HTTPException

from fleet.errors import AuthorizationDenied


class Permission(enum.Enum):
    VEHICLE_READ = "vehicle.read"
    VEHICLE_UPDATE = "vehicle.update"
    DRIVER_READ = "driver.read"
    DRIVER_UPDATE = "driver.update"
    TRIP_READ = "trip.read"
    TRIP_CREATE = "trip.create"
    TRIP_UPDATE = "trip.update"
    MAINTENANCE_READ = "maintenance.read"
    MAINTENANCE_CREATE = "maintenance.create"
    FUEL_ENTRY_READ = "fuel_entry.read"
    FUEL_ENTRY_CREATE = "fuel_entry.create"
    JOBS_RUN = "jobs.run"


@dataclass(frozen=True)
class RequestContext:
    """Caller identity every service operation is checked against."""

    tenant_id: UUID
    permissions: frozenset[Permission]
    user_id: UUID | None = None

    def require(self, permission: Permission) -> None:
        if permission not in self.permissions:
            raise AuthorizationDenied(permission)


def system_context(tenant_id: UUID) -> RequestContext:
    """Context for background work; holds every permission for one tenant."""
    return RequestContext(tenant_id=tenant_id, permissions=frozenset(Permission))


def _parse_uuid(value: str, header: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(
            status_code=400, detail=f"{header} must be a UUID"
        ) from None


async def get_request_context(
    x_tenant_id: str = Header(),
    x_user_id: str | None = Header(default=None),
    x_permissions: str = Header(default=""),
) -> RequestContext:
    tenant_id = _parse_uuid(x_tenant_id, "X-Tenant-ID")
    user_id = _parse_uuid(x_user_id, "X-User-ID") if x_user_id else None

    permissions: set[Permission] = set()
    for raw in x_permissions.split(","):
        name = raw.strip()
        if not name:
            continue
        try:
            permissions.add(Permission(name))
        except ValueError:
            raise HTTPException(
                status_code=400, detail=f"Unknown permission: {name}"
            ) from None

    return RequestContext(
        tenant_id=tenant_id, permissions=frozenset(permissions), user_id=user_id
    )
