import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from fleet.analytics.router import router as analytics_router
from fleet.auth import Permission, RequestContext, get_request_context
from fleet.base.db import async_session
from fleet.config import SCHEDULER_ENABLED
from fleet.errors import (
    AuthorizationDenied,
    FleetError,
    NotFound,
    SchedulingConflict,
)
from fleet.events import EventBus
from fleet.scheduler import JobScheduler, SqlTenantProvider, build_notification_jobs
from fleet.trip.router import router as trip_router

logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)

_ERROR_STATUS: dict[type[FleetError], int] = {
    NotFound: 404,
    AuthorizationDenied: 403,
    SchedulingConflict: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    publisher = EventBus()
    scheduler = JobScheduler(SqlTenantProvider(async_session))
    for job in build_notification_jobs(async_session, publisher):
        scheduler.register(job)

    app.state.publisher = publisher
    app.state.scheduler = scheduler

    if SCHEDULER_ENABLED:
        scheduler.start()
    yield
    await scheduler.stop()


app = FastAPI(title="Fleet", lifespan=lifespan)
app.include_router(trip_router)
app.include_router(analytics_router)


@app.exception_handler(FleetError)
async def fleet_error_handler(request: Request, exc: FleetError) -> JSONResponse:
    status_code = _ERROR_STATUS.get(type(exc), 422)
    if status_code == 403:
        logger.warning("Denied %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/jobs/run-once", status_code=202)
async def run_jobs_once(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
) -> dict[str, list[str]]:
    ctx.require(Permission.JOBS_RUN)
    scheduler: JobScheduler = request.app.state.scheduler
    await scheduler.run_once()
    return {"jobs": [job.name for job in scheduler.jobs]}
