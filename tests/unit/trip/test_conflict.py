from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

from fleet.domain.entities import Trip
from fleet.domain.status import TripStatus
from fleet.trip.conflict import ConflictDetector, windows_overlap
from tests.fakes import FakeTripRepository

T0 = datetime(2025, 1, 10, 8, 0, tzinfo=timezone.utc)
H = timedelta(hours=1)


def _trip(
    tenant_id: UUID,
    vehicle_id: UUID,
    start: datetime,
    end: datetime | None,
    status: TripStatus = TripStatus.SCHEDULED,
) -> Trip:
    return Trip(
        tenant_id=tenant_id,
        vehicle_id=vehicle_id,
        driver_id=uuid4(),
        start_time=start,
        end_time=end,
        start_odometer=0,
        status=status,
    )


class TestWindowsOverlap:
    def test_partial_overlap(self) -> None:
        assert windows_overlap(T0, T0 + 4 * H, T0 + 2 * H, T0 + 6 * H)

    def test_containment(self) -> None:
        assert windows_overlap(T0, T0 + 8 * H, T0 + 2 * H, T0 + 3 * H)

    def test_shared_endpoint_counts(self) -> None:
        assert windows_overlap(T0, T0 + 4 * H, T0 + 4 * H, T0 + 6 * H)

    def test_disjoint(self) -> None:
        assert not windows_overlap(T0, T0 + 4 * H, T0 + 5 * H, T0 + 6 * H)


class TestConflictDetector:
    async def test_detects_existing_booking(self, tenant_id: UUID) -> None:
        vehicle_id = uuid4()
        repo = FakeTripRepository(tenant_id, _trip(tenant_id, vehicle_id, T0, T0 + 4 * H))

        detector = ConflictDetector(repo)

        assert await detector.has_conflict(vehicle_id, T0 + 2 * H, T0 + 6 * H)
        assert not await detector.has_conflict(vehicle_id, T0 + 5 * H, T0 + 6 * H)

    async def test_other_vehicles_do_not_conflict(self, tenant_id: UUID) -> None:
        repo = FakeTripRepository(tenant_id, _trip(tenant_id, uuid4(), T0, T0 + 4 * H))

        assert not await ConflictDetector(repo).has_conflict(uuid4(), T0, T0 + H)

    async def test_finished_trips_are_ignored(self, tenant_id: UUID) -> None:
        vehicle_id = uuid4()
        repo = FakeTripRepository(
            tenant_id,
            _trip(tenant_id, vehicle_id, T0, T0 + 4 * H, TripStatus.COMPLETED),
            _trip(tenant_id, vehicle_id, T0, T0 + 4 * H, TripStatus.CANCELLED),
        )

        assert not await ConflictDetector(repo).has_conflict(vehicle_id, T0, T0 + H)

    async def test_open_trip_occupies_default_window(self, tenant_id: UUID) -> None:
        vehicle_id = uuid4()
        repo = FakeTripRepository(tenant_id, _trip(tenant_id, vehicle_id, T0, None))
        detector = ConflictDetector(repo)

        assert await detector.has_conflict(vehicle_id, T0 + 23 * H, T0 + 25 * H)
        assert not await detector.has_conflict(vehicle_id, T0 + 25 * H, T0 + 26 * H)

    async def test_excluded_trip_is_skipped(self, tenant_id: UUID) -> None:
        vehicle_id = uuid4()
        existing = _trip(tenant_id, vehicle_id, T0, T0 + 4 * H)
        repo = FakeTripRepository(tenant_id, existing)

        assert not await ConflictDetector(repo).has_conflict(
            vehicle_id, T0, T0 + H, exclude_trip_id=existing.id
        )
