from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from dateutil.relativedelta import relativedelta

from fleet.domain.status import ServiceType


@dataclass(frozen=True)
class NextService:
    due_date: date | None = None
    due_odometer: int | None = None


@dataclass(frozen=True)
class _Interval:
    months: int
    distance: int | None


_INTERVALS: dict[ServiceType, _Interval] = {
    ServiceType.OIL_CHANGE: _Interval(months=6, distance=10_000),
    ServiceType.TIRE_ROTATION: _Interval(months=6, distance=12_000),
    ServiceType.BRAKE_SERVICE: _Interval(months=12, distance=20_000),
    ServiceType.INSPECTION: _Interval(months=12, distance=None),
}


def predict_next_service(
    service_type: ServiceType, service_date: date, odometer: int
) -> NextService:
    """Next due date and odometer for a service; repairs have no follow-up."""
    interval = _INTERVALS.get(service_type)
    if interval is None:
        return NextService()

    return NextService(
        due_date=service_date + relativedelta(months=interval.months),
        due_odometer=(
            odometer + interval.distance if interval.distance is not None else None
        ),
    )
