from datetime import date

import pytest

from fleet.domain.status import ServiceType
from fleet.maintenance.predictor import NextService, predict_next_service


class TestPredictNextService:
    def test_oil_change(self) -> None:
        assert predict_next_service(
            ServiceType.OIL_CHANGE, date(2025, 1, 1), 50_000
        ) == NextService(due_date=date(2025, 7, 1), due_odometer=60_000)

    def test_tire_rotation(self) -> None:
        assert predict_next_service(
            ServiceType.TIRE_ROTATION, date(2025, 3, 15), 20_000
        ) == NextService(due_date=date(2025, 9, 15), due_odometer=32_000)

    def test_brake_service(self) -> None:
        assert predict_next_service(
            ServiceType.BRAKE_SERVICE, date(2025, 2, 1), 40_000
        ) == NextService(due_date=date(2026, 2, 1), due_odometer=60_000)

    def test_inspection_has_no_distance(self) -> None:
        assert predict_next_service(
            ServiceType.INSPECTION, date(2025, 5, 20), 10_000
        ) == NextService(due_date=date(2026, 5, 20), due_odometer=None)

    @pytest.mark.parametrize("service_type", [ServiceType.REPAIR, ServiceType.OTHER])
    def test_no_follow_up(self, service_type: ServiceType) -> None:
        assert predict_next_service(service_type, date(2025, 1, 1), 1) == NextService()

    def test_month_end_is_clamped(self) -> None:
        result = predict_next_service(ServiceType.OIL_CHANGE, date(2024, 8, 31), 0)
        assert result.due_date == date(2025, 2, 28)
