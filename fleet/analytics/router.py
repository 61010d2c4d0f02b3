from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import AwareDatetime, BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from fleet.analytics.service import (
    AnalyticsService,
    DailyTrend,
    DashboardStats,
    VehicleUtilization,
)
from fleet.auth import RequestContext, get_request_context
from fleet.base.dependencies import get_publisher, get_session
from fleet.events import EventPublisher
from fleet.persistence import build_services

router = APIRouter(prefix="/analytics")


class DashboardResponse(BaseModel):
    model_config = {"from_attributes": True}

    total_vehicles: int
    available_vehicles: int
    vehicles_in_use: int
    vehicles_in_maintenance: int
    active_drivers: int
    due_maintenance: int
    fuel_cost_month: float
    maintenance_cost_month: float


class UtilizationResponse(BaseModel):
    model_config = {"from_attributes": True}

    vehicle_id: UUID
    vehicle_name: str
    trip_count: int
    hours: float
    distance: int
    utilization_pct: float


class CostResponse(BaseModel):
    model_config = {"from_attributes": True}

    vehicle_id: UUID
    vehicle_name: str
    fuel_cost: float
    maintenance_cost: float
    total_cost: float
    distance: int
    cost_per_km: float


class TrendResponse(BaseModel):
    model_config = {"from_attributes": True}

    day: date
    fuel_cost: float
    maintenance_cost: float
    trip_count: int
    distance: int


async def get_analytics_service(
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
    publisher: EventPublisher = Depends(get_publisher),
) -> AnalyticsService:
    return build_services(session, ctx.tenant_id, publisher).analytics


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    ctx: RequestContext = Depends(get_request_context),
    service: AnalyticsService = Depends(get_analytics_service),
) -> DashboardStats:
    return await service.dashboard(ctx)


@router.get("/utilization", response_model=list[UtilizationResponse])
async def utilization(
    start: AwareDatetime,
    end: AwareDatetime,
    ctx: RequestContext = Depends(get_request_context),
    service: AnalyticsService = Depends(get_analytics_service),
) -> list[VehicleUtilization]:
    return list(await service.utilization(ctx, start, end))


@router.get("/costs", response_model=list[CostResponse])
async def costs(
    start: date,
    end: date,
    ctx: RequestContext = Depends(get_request_context),
    service: AnalyticsService = Depends(get_analytics_service),
) -> list[CostResponse]:
    # dataclasses.asdict would drop the computed totals
    return [
        CostResponse.model_validate(cost)
        for cost in await service.costs(ctx, start, end)
    ]


@router.get("/trends", response_model=list[TrendResponse])
async def trends(
    start: date,
    end: date,
    ctx: RequestContext = Depends(get_request_context),
    service: AnalyticsService = Depends(get_analytics_service),
) -> list[DailyTrend]:
    return list(await service.trends(ctx, start, end))
