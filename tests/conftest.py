import os
from collections.abc import AsyncGenerator, Generator
from datetime import date, datetime, timezone
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from testcontainers.postgres import PostgresContainer

from fleet.auth import Permission, RequestContext
from fleet.base.models import BaseDbModel
from fleet.domain.entities import Driver, Vehicle


@pytest.fixture(scope="session")
def database_url(tmp_path_factory: pytest.TempPathFactory) -> Generator[str]:
    if os.environ.get("FLEET_TEST_POSTGRES") == "1":
        with PostgresContainer("postgres:17") as pg:
            # Convert sync URL to async (postgresql:// -> postgresql+asyncpg://)
            sync_url = pg.get_connection_url()
            yield sync_url.replace("postgresql+psycopg2://", "postgresql+asyncpg://")
        return

    path = tmp_path_factory.mktemp("db") / "fleet.db"
    yield f"sqlite+aiosqlite:///{path}"


@pytest.fixture
async def db_engine(database_url: str) -> AsyncGenerator[AsyncEngine]:
    # Import all models so metadata knows about them
    import fleet.persistence.models  # noqa: F401

    engine = create_async_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(BaseDbModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(BaseDbModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def tenant_id() -> UUID:
    return uuid4()


@pytest.fixture
def ctx(tenant_id: UUID) -> RequestContext:
    return RequestContext(
        tenant_id=tenant_id, permissions=frozenset(Permission), user_id=uuid4()
    )


@pytest.fixture
def today() -> date:
    return date(2025, 1, 10)


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 1, 10, 7, 0, tzinfo=timezone.utc)


@pytest.fixture
def vehicle(tenant_id: UUID) -> Vehicle:
    return Vehicle(
        tenant_id=tenant_id,
        make="Toyota",
        model="Hilux",
        license_plate="WX 12345",
        current_odometer=50_000,
    )


@pytest.fixture
def driver(tenant_id: UUID) -> Driver:
    return Driver(
        tenant_id=tenant_id,
        first_name="Anna",
        last_name="Nowak",
        license_number="DL-0042",
        license_expiry=date(2027, 6, 30),
    )
