from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import AwareDatetime, BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fleet.auth import RequestContext, get_request_context
from fleet.base.dependencies import get_publisher, get_session
from fleet.domain.entities import Trip
from fleet.domain.status import TripStatus
from fleet.events import EventPublisher
from fleet.persistence import build_services
from fleet.trip.service import TripService

router = APIRouter(prefix="/trips")


class TripCreate(BaseModel):
    vehicle_id: UUID
    driver_id: UUID
    start_time: AwareDatetime
    end_time: AwareDatetime | None = None
    start_odometer: int = Field(ge=0)
    origin: str = ""
    destination: str = ""
    purpose: str = ""


class TripComplete(BaseModel):
    end_time: AwareDatetime
    end_odometer: int = Field(ge=0)


class TripCancel(BaseModel):
    reason: str = ""


class TripResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    vehicle_id: UUID
    driver_id: UUID
    origin: str
    destination: str
    purpose: str
    start_time: datetime
    end_time: datetime | None
    start_odometer: int
    end_odometer: int | None
    status: TripStatus


async def get_trip_service(
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
    publisher: EventPublisher = Depends(get_publisher),
) -> TripService:
    return build_services(session, ctx.tenant_id, publisher).trips


@router.post("", response_model=TripResponse, status_code=201)
async def create_trip(
    body: TripCreate,
    ctx: RequestContext = Depends(get_request_context),
    service: TripService = Depends(get_trip_service),
) -> Trip:
    trip = Trip(tenant_id=ctx.tenant_id, **body.model_dump())
    return await service.create(ctx, trip)


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    service: TripService = Depends(get_trip_service),
) -> Trip:
    return await service.get(ctx, trip_id)


@router.post("/{trip_id}/start", response_model=TripResponse)
async def start_trip(
    trip_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    service: TripService = Depends(get_trip_service),
) -> Trip:
    return await service.start(ctx, trip_id)


@router.post("/{trip_id}/complete", response_model=TripResponse)
async def complete_trip(
    trip_id: UUID,
    body: TripComplete,
    ctx: RequestContext = Depends(get_request_context),
    service: TripService = Depends(get_trip_service),
) -> Trip:
    return await service.complete(ctx, trip_id, body.end_time, body.end_odometer)


@router.post("/{trip_id}/cancel", response_model=TripResponse)
async def cancel_trip(
    trip_id: UUID,
    body: TripCancel,
    ctx: RequestContext = Depends(get_request_context),
    service: TripService = Depends(get_trip_service),
) -> Trip:
    return await service.cancel(ctx, trip_id, body.reason)
