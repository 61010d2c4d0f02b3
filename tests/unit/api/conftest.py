from collections.abc import AsyncGenerator, Generator
from uuid import UUID, uuid4

import httpx
import pytest
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession

from fleet.app import app as fleet_app
from fleet.base.dependencies import get_session
from tests.fakes import RecordingPublisher

ALL = ",".join(
    ["trip.read", "trip.create", "trip.update", "vehicle.read", "jobs.run"]
)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def app(
    db_session: AsyncSession, publisher: RecordingPublisher
) -> Generator[FastAPI]:
    async def override_session() -> AsyncSession:  # type: ignore[misc]
        yield db_session  # type: ignore[misc]

    fleet_app.dependency_overrides[get_session] = override_session
    fleet_app.state.publisher = publisher
    yield fleet_app
    fleet_app.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)  # type: ignore[arg-type]
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def headers(tenant_id: UUID) -> dict[str, str]:
    return {
        "X-Tenant-ID": str(tenant_id),
        "X-User-ID": str(uuid4()),
        "X-Permissions": ALL,
    }
