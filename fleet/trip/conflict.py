from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from fleet.domain.repository import TripRepository

logger = logging.getLogger(__name__)


def windows_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    return start_a <= end_b and start_b <= end_a


class ConflictDetector:
    """Finds active trips that already occupy a vehicle during a window."""

    def __init__(self, trips: TripRepository) -> None:
        self._trips = trips

    async def has_conflict(
        self,
        vehicle_id: UUID,
        start: datetime,
        end: datetime,
        exclude_trip_id: UUID | None = None,
    ) -> bool:
        candidates = await self._trips.get_active_by_vehicle(
            vehicle_id, starting_before=end, exclude_trip_id=exclude_trip_id
        )
        for trip in candidates:
            if windows_overlap(trip.start_time, trip.effective_end, start, end):
                logger.info(
                    "Vehicle %s already booked by trip %s (%s - %s)",
                    vehicle_id,
                    trip.id,
                    trip.start_time,
                    trip.effective_end,
                )
                return True
        return False
