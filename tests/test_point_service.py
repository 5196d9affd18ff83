import pytest
from unittest.mock import Mock, patch

from lifecurve.core.exceptions import (
    InsufficientBalanceError,
    InternalServerError,
    ValidationError,
)
from lifecurve.schemas.points import PointsAdjustResult
from lifecurve.services.point_service import PointService


@pytest.fixture
def point_service():
    with patch("lifecurve.services.point_service.DeviceRepository") as device_cls, patch(
        "lifecurve.services.point_service.PointsRepository"
    ) as points_cls, patch(
        "lifecurve.services.point_service.AdminLogRepository"
    ) as admin_log_cls:
        device_cls.return_value = Mock()
        points_cls.return_value = Mock()
        admin_log_cls.return_value = Mock()
        yield PointService(Mock())


class TestPointService:
    """PointService 테스트"""

    def test_adjust_creates_device_and_returns_balance(self, point_service):
        # Given
        point_service.points_repo.adjust_balance.return_value = PointsAdjustResult(
            device_id="dev-1", delta=-50, new_balance=0
        )

        # When
        result = point_service.adjust("dev-1", -50, "admin")

        # Then
        assert result.new_balance == 0
        point_service.device_repo.ensure_device.assert_called_once_with("dev-1")
        kwargs = point_service.points_repo.adjust_balance.call_args.kwargs
        assert kwargs["delta"] == -50
        assert kwargs["commit"] is True

    def test_adjust_requires_device_id(self, point_service):
        with pytest.raises(ValidationError):
            point_service.adjust("", 10, "x")

    def test_adjust_wraps_repository_failure(self, point_service):
        point_service.points_repo.adjust_balance.side_effect = RuntimeError("db down")

        with pytest.raises(InternalServerError):
            point_service.adjust("dev-1", 10, "x")

    def test_consume_insufficient_balance(self, point_service):
        # Given
        point_service.points_repo.deduct_if_sufficient.return_value = None
        point_service.points_repo.get_balance.return_value = 5

        # When / Then
        with pytest.raises(InsufficientBalanceError) as exc_info:
            point_service.consume("dev-1", 10, "overview")

        assert exc_info.value.details == {"required": 10, "current": 5}

    def test_consume_rejects_non_positive_cost(self, point_service):
        with pytest.raises(ValidationError):
            point_service.consume("dev-1", 0, "x")

    def test_history_clamps_page_size(self, point_service):
        point_service.points_repo.get_history.return_value = ([], 0)
        point_service.points_repo.get_balance.return_value = 7

        result = point_service.get_history("dev-1", page=0, page_size=1000)

        assert result.page == 1
        assert result.page_size == 100
        assert result.points == 7
        point_service.points_repo.get_history.assert_called_once_with(
            "dev-1", limit=100, offset=0
        )

    def test_admin_adjust_writes_admin_log(self, point_service):
        # Given
        point_service.points_repo.adjust_balance.return_value = PointsAdjustResult(
            device_id="dev-1", delta=100, new_balance=100
        )

        # When
        result = point_service.admin_adjust("dev-1", 100)

        # Then
        assert result.new_balance == 100
        assert point_service.points_repo.adjust_balance.call_args.kwargs["commit"] is False
        assert (
            point_service.points_repo.adjust_balance.call_args.kwargs["description"]
            == "管理员增加积分"
        )
        log_kwargs = point_service.admin_log_repo.record.call_args.kwargs
        assert log_kwargs["action"] == "adjust_points"
        assert log_kwargs["target_id"] == "dev-1"
        assert log_kwargs["commit"] is True
        assert log_kwargs["detail"] == {
            "points": 100,
            "reason": "管理员增加积分",
            "newBalance": 100,
        }

    def test_admin_adjust_accepts_zero(self, point_service):
        # Given: 변동량 0은 잔액을 바꾸지 않는 기록용 조정
        point_service.points_repo.adjust_balance.return_value = PointsAdjustResult(
            device_id="dev-1", delta=0, new_balance=40
        )

        # When
        result = point_service.admin_adjust("dev-1", 0, "对账")

        # Then
        assert result.new_balance == 40
        assert point_service.points_repo.adjust_balance.call_args.kwargs["delta"] == 0
        detail = point_service.admin_log_repo.record.call_args.kwargs["detail"]
        assert detail["reason"] == "对账"
        assert "description" not in detail
