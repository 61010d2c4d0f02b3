import asyncio
import os
from datetime import date, datetime, timedelta, timezone
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fleet.auth import RequestContext
from fleet.domain.entities import Driver, Trip, Vehicle
from fleet.domain.status import VehicleStatus
from fleet.errors import SchedulingConflict
from fleet.persistence import build_services
from fleet.persistence.repositories import (
    SqlDriverRepository,
    SqlTripRepository,
    SqlVehicleRepository,
)
from tests.fakes import RecordingPublisher

# SQLite ignores SELECT ... FOR UPDATE, so only PostgreSQL shows the lock.
pytestmark = pytest.mark.skipif(
    os.environ.get("FLEET_TEST_POSTGRES") != "1",
    reason="row locks need PostgreSQL (FLEET_TEST_POSTGRES=1)",
)

START = datetime(2030, 3, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
async def booked_resources(
    session_factory: async_sessionmaker[AsyncSession],
    tenant_id: UUID,
    vehicle: Vehicle,
) -> tuple[Vehicle, Driver]:
    driver = Driver(
        tenant_id=tenant_id,
        first_name="Ewa",
        last_name="Wójcik",
        license_number="DL-7001",
        license_expiry=date(2099, 1, 1),
    )
    async with session_factory() as session:
        await SqlVehicleRepository(session, tenant_id).create(vehicle)
        await SqlDriverRepository(session, tenant_id).create(driver)
        await session.commit()
    return vehicle, driver


class TestConcurrentBooking:
    async def test_only_one_of_two_overlapping_bookings_commits(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        tenant_id: UUID,
        ctx: RequestContext,
        booked_resources: tuple[Vehicle, Driver],
    ) -> None:
        vehicle, driver = booked_resources

        async def book() -> Trip:
            async with session_factory() as session:
                services = build_services(session, tenant_id, RecordingPublisher())
                created = await services.trips.create(
                    ctx,
                    Trip(
                        tenant_id=tenant_id,
                        vehicle_id=vehicle.id,
                        driver_id=driver.id,
                        start_time=START,
                        end_time=START + timedelta(hours=4),
                        start_odometer=vehicle.current_odometer,
                    ),
                )
                # keep the transaction open so the other booking runs into it
                await asyncio.sleep(0.3)
                await session.commit()
                return created

        results = await asyncio.wait_for(
            asyncio.gather(book(), book(), return_exceptions=True), timeout=30
        )

        created = [r for r in results if isinstance(r, Trip)]
        conflicts = [r for r in results if isinstance(r, SchedulingConflict)]
        assert len(created) == 1
        assert len(conflicts) == 1

        async with session_factory() as session:
            trips = await SqlTripRepository(session, tenant_id).get_by_vehicle(
                vehicle.id
            )
            stored = await SqlVehicleRepository(session, tenant_id).get_by_id(
                vehicle.id
            )
        assert [t.id for t in trips] == [created[0].id]
        assert stored.status is VehicleStatus.IN_USE
