from datetime import date, timedelta
from uuid import UUID, uuid4

import pytest

from fleet.auth import Permission, RequestContext
from fleet.domain.entities import FuelEntry, Vehicle
from fleet.errors import AuthorizationDenied, NotFound
from fleet.events import FuelEntryCreated, Notification, NotificationType
from fleet.fuel.service import FuelService
from tests.fakes import (
    FakeFuelEntryRepository,
    FakeVehicleRepository,
    RecordingPublisher,
)


def _entry(vehicle: Vehicle, day: int, odometer: int) -> FuelEntry:
    return FuelEntry(
        tenant_id=vehicle.tenant_id,
        vehicle_id=vehicle.id,
        date=date(2025, 1, 1) + timedelta(days=day),
        quantity=10.0,
        cost=62.0,
        odometer=odometer,
    )


@pytest.fixture
def entries(tenant_id: UUID, vehicle: Vehicle) -> FakeFuelEntryRepository:
    return FakeFuelEntryRepository(
        tenant_id,
        _entry(vehicle, 0, 50_000),
        _entry(vehicle, 7, 50_100),
        _entry(vehicle, 14, 50_200),
        _entry(vehicle, 21, 50_300),
    )


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def service(
    tenant_id: UUID,
    vehicle: Vehicle,
    entries: FakeFuelEntryRepository,
    publisher: RecordingPublisher,
) -> FuelService:
    return FuelService(entries, FakeVehicleRepository(tenant_id, vehicle), publisher)


class TestCreateFuelEntry:
    async def test_normal_entry(
        self,
        service: FuelService,
        ctx: RequestContext,
        vehicle: Vehicle,
        publisher: RecordingPublisher,
    ) -> None:
        created = await service.create(ctx, _entry(vehicle, 28, 50_405))

        assert len(publisher.of_type(FuelEntryCreated)) == 1
        assert publisher.of_type(Notification) == []
        assert created.odometer == 50_405

    async def test_anomalous_entry_publishes_notification(
        self,
        service: FuelService,
        ctx: RequestContext,
        vehicle: Vehicle,
        publisher: RecordingPublisher,
    ) -> None:
        created = await service.create(ctx, _entry(vehicle, 28, 50_450))

        [notification] = publisher.of_type(Notification)
        assert notification.type is NotificationType.FUEL_ANOMALY
        assert notification.data["fuel_entry_id"] == str(created.id)

    async def test_unknown_vehicle(
        self, service: FuelService, ctx: RequestContext, vehicle: Vehicle
    ) -> None:
        entry = _entry(vehicle, 28, 50_400)
        with pytest.raises(NotFound):
            await service.create(
                ctx,
                FuelEntry(
                    tenant_id=entry.tenant_id,
                    vehicle_id=uuid4(),
                    date=entry.date,
                    quantity=entry.quantity,
                    cost=entry.cost,
                    odometer=entry.odometer,
                ),
            )

    async def test_requires_permission(
        self, service: FuelService, vehicle: Vehicle, tenant_id: UUID
    ) -> None:
        reader = RequestContext(
            tenant_id=tenant_id, permissions=frozenset({Permission.FUEL_ENTRY_READ})
        )
        with pytest.raises(AuthorizationDenied):
            await service.create(reader, _entry(vehicle, 28, 50_400))


class TestEfficiency:
    async def test_against_preceding_entry(
        self, service: FuelService, ctx: RequestContext, vehicle: Vehicle
    ) -> None:
        assert await service.efficiency(ctx, _entry(vehicle, 28, 50_420)) == 12.0

    async def test_no_history(
        self, tenant_id: UUID, vehicle: Vehicle, ctx: RequestContext
    ) -> None:
        service = FuelService(
            FakeFuelEntryRepository(tenant_id),
            FakeVehicleRepository(tenant_id, vehicle),
            RecordingPublisher(),
        )
        assert await service.efficiency(ctx, _entry(vehicle, 0, 100)) == 0.0

    async def test_stored_entry_uses_its_predecessor(
        self,
        service: FuelService,
        ctx: RequestContext,
        vehicle: Vehicle,
        entries: FakeFuelEntryRepository,
    ) -> None:
        stored = await entries.create(_entry(vehicle, 28, 50_400))

        assert await service.efficiency(ctx, stored) == 10.0

    async def test_stored_entry_in_the_middle_of_history(
        self,
        service: FuelService,
        ctx: RequestContext,
        entries: FakeFuelEntryRepository,
    ) -> None:
        second = sorted(entries.items.values(), key=lambda e: e.date)[1]

        assert await service.efficiency(ctx, second) == 10.0

    async def test_first_stored_entry_has_no_efficiency(
        self,
        service: FuelService,
        ctx: RequestContext,
        entries: FakeFuelEntryRepository,
    ) -> None:
        first = min(entries.items.values(), key=lambda e: e.date)

        assert await service.efficiency(ctx, first) == 0.0

    async def test_detect_anomaly_for_stored_entry(
        self,
        service: FuelService,
        ctx: RequestContext,
        vehicle: Vehicle,
        entries: FakeFuelEntryRepository,
    ) -> None:
        stored = await entries.create(_entry(vehicle, 28, 50_430))

        assert await service.detect_anomaly(ctx, stored)
