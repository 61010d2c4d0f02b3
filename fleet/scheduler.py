"""
Periodic multi-tenant jobs.

Every job fans out over a snapshot of tenant ids and runs its unit for each
tenant one after another. A failing or slow tenant is logged and skipped so
it never blocks the others or the scheduler itself.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fleet.auth import system_context
from fleet.config import CHECK_INTERVAL, EXPIRY_WARNING_DAYS, JOB_TIMEOUT_SECONDS
from fleet.events import EventPublisher
from fleet.persistence import FleetServices, build_services
from fleet.persistence.repositories import list_tenant_ids

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobContext:
    job_name: str
    tick_started_at: datetime
    is_stopping: Callable[[], bool]


JobUnit = Callable[[JobContext, UUID], Awaitable[None]]
TenantProvider = Callable[[], Awaitable[Sequence[UUID]]]


@dataclass(frozen=True)
class Job:
    name: str
    interval: timedelta
    unit: JobUnit
    timeout: float = JOB_TIMEOUT_SECONDS


class StaticTenantProvider:
    """Tenant ids held in memory; each tick reads the current snapshot."""

    def __init__(self, tenant_ids: Sequence[UUID] = ()) -> None:
        self._tenant_ids: tuple[UUID, ...] = tuple(tenant_ids)

    def set_tenant_ids(self, tenant_ids: Sequence[UUID]) -> None:
        self._tenant_ids = tuple(tenant_ids)

    async def __call__(self) -> Sequence[UUID]:
        return self._tenant_ids


class SqlTenantProvider:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def __call__(self) -> Sequence[UUID]:
        async with self._session_factory() as session:
            return await list_tenant_ids(session)


class JobScheduler:
    def __init__(self, tenants: TenantProvider) -> None:
        self._tenants = tenants
        self._jobs: dict[str, Job] = {}
        self._running: dict[str, asyncio.Task[None]] = {}
        self._scheduler: AsyncIOScheduler | None = None
        self._stopping = False
        self._stop_calls = 0

    @property
    def jobs(self) -> list[Job]:
        return list(self._jobs.values())

    def register(self, job: Job) -> None:
        if job.name in self._jobs:
            raise ValueError(f"Job {job.name!r} is already registered")
        self._jobs[job.name] = job
        logger.info("Registered job %s every %s", job.name, job.interval)

    def start(self) -> None:
        if self._scheduler is not None:
            raise RuntimeError("Scheduler is already running")

        self._stopping = False
        self._scheduler = AsyncIOScheduler()
        for job in self._jobs.values():
            self._scheduler.add_job(
                self._fire,
                "interval",
                seconds=job.interval.total_seconds(),
                next_run_time=datetime.now(timezone.utc),
                args=[job.name],
                id=job.name,
            )
        self._scheduler.start()
        logger.info("Job scheduler started with %d jobs", len(self._jobs))

    async def _fire(self, name: str) -> None:
        if self._stopping:
            return

        previous = self._running.get(name)
        if previous is not None and not previous.done():
            logger.warning("Job %s is still running, skipping this tick", name)
            return

        # The tick runs outside APScheduler's executor so shutdown never
        # cancels a tenant execution half way.
        self._running[name] = asyncio.create_task(
            self._execute(self._jobs[name], self._stop_requested())
        )

    def _stop_requested(self) -> Callable[[], bool]:
        """True once ``stop()`` is called after this check was taken."""
        seen = self._stop_calls
        return lambda: self._stop_calls != seen

    async def _execute(self, job: Job, is_stopping: Callable[[], bool]) -> None:
        ctx = JobContext(
            job_name=job.name,
            tick_started_at=datetime.now(timezone.utc),
            is_stopping=is_stopping,
        )
        try:
            tenant_ids = tuple(await self._tenants())
        except Exception:
            logger.exception("Job %s could not list tenants", job.name)
            return

        logger.info("Running job %s for %d tenants", job.name, len(tenant_ids))
        failed = 0
        for tenant_id in tenant_ids:
            if is_stopping():
                logger.info("Job %s interrupted by shutdown", job.name)
                break
            try:
                await asyncio.wait_for(job.unit(ctx, tenant_id), timeout=job.timeout)
            except asyncio.TimeoutError:
                failed += 1
                logger.error(
                    "Job %s timed out after %ss for tenant %s",
                    job.name,
                    job.timeout,
                    tenant_id,
                )
            except Exception:
                failed += 1
                logger.exception("Job %s failed for tenant %s", job.name, tenant_id)

        logger.info(
            "Job %s finished: %d tenants, %d failed",
            job.name,
            len(tenant_ids),
            failed,
        )

    async def run_once(self) -> None:
        """Run every registered job a single time, ignoring intervals."""
        is_stopping = self._stop_requested()
        for job in list(self._jobs.values()):
            if is_stopping():
                break
            await self._execute(job, is_stopping)

    async def stop(self) -> None:
        self._stopping = True
        self._stop_calls += 1
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        in_flight = [t for t in self._running.values() if not t.done()]
        if in_flight:
            logger.info("Waiting for %d running jobs", len(in_flight))
            await asyncio.gather(*in_flight, return_exceptions=True)
        self._running.clear()
        logger.info("Job scheduler stopped")


ServicesFactory = Callable[[AsyncSession, UUID, EventPublisher], FleetServices]


@dataclass
class _NotificationCheck:
    session_factory: async_sessionmaker[AsyncSession]
    publisher: EventPublisher
    check: Callable[[FleetServices, UUID], Awaitable[int]]
    services_factory: ServicesFactory = build_services

    async def __call__(self, ctx: JobContext, tenant_id: UUID) -> None:
        async with self.session_factory() as session:
            services = self.services_factory(session, tenant_id, self.publisher)
            sent = await self.check(services, tenant_id)
            await session.commit()
        if sent:
            logger.info(
                "Job %s sent %d notifications for tenant %s",
                ctx.job_name,
                sent,
                tenant_id,
            )


def build_notification_jobs(
    session_factory: async_sessionmaker[AsyncSession],
    publisher: EventPublisher,
    days: int = EXPIRY_WARNING_DAYS,
    interval: timedelta = CHECK_INTERVAL,
) -> list[Job]:
    """The four compliance checks, each run per tenant on ``interval``."""

    def job(name: str, check: Callable[[FleetServices, UUID], Awaitable[int]]) -> Job:
        return Job(
            name=name,
            interval=interval,
            unit=_NotificationCheck(session_factory, publisher, check),
        )

    return [
        job(
            "check_expiring_licenses",
            lambda s, t: s.notifications.check_expiring_licenses(
                system_context(t), t, days
            ),
        ),
        job(
            "check_expiring_registrations",
            lambda s, t: s.notifications.check_expiring_registrations(
                system_context(t), t, days
            ),
        ),
        job(
            "check_expiring_insurance",
            lambda s, t: s.notifications.check_expiring_insurance(
                system_context(t), t, days
            ),
        ),
        job(
            "check_due_maintenance",
            lambda s, t: s.notifications.check_due_maintenance(system_context(t), t),
        ),
    ]
