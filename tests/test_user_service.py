import json

import pytest

from lifecurve.core.exceptions import NotFoundError, ValidationError
from lifecurve.models.points import PointsLog
from lifecurve.models.system import AdminLog
from lifecurve.models.user import UserAccount
from lifecurve.services.user_service import UserService


@pytest.fixture
def user_service(db_session):
    db_session.add(UserAccount(id="user-1", phone="13800000000", points=40))
    db_session.commit()
    return UserService(db_session)


class TestAdjustUserPoints:
    """회원 포인트 조정 테스트 (SQLite)"""

    def test_deduct_clamps_and_logs(self, user_service, db_session):
        # When
        result = user_service.adjust_points("user-1", -100, "  违规使用 ")

        # Then
        assert result.previous_points == 40
        assert result.new_points == 0
        assert result.adjustment == -100
        entry = db_session.query(PointsLog).filter(PointsLog.user_id == "user-1").one()
        assert entry.description == "管理员调整: 违规使用"
        assert entry.type == "consume"
        admin_log = db_session.query(AdminLog).one()
        assert admin_log.action == "adjust_user_points"
        assert json.loads(admin_log.detail)["reason"] == "违规使用"

    def test_credit(self, user_service):
        result = user_service.adjust_points("user-1", 60, "活动奖励")

        assert result.new_points == 100

    @pytest.mark.parametrize("adjustment", [0, None, "10", 1.5, True])
    def test_rejects_invalid_adjustment(self, user_service, db_session, adjustment):
        with pytest.raises(ValidationError) as exc_info:
            user_service.adjust_points("user-1", adjustment, "原因")

        assert exc_info.value.message == "请输入有效的积分变动值"
        assert db_session.query(PointsLog).count() == 0

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_requires_reason(self, user_service, reason):
        with pytest.raises(ValidationError) as exc_info:
            user_service.adjust_points("user-1", 10, reason)

        assert exc_info.value.message == "请输入变动原因"

    def test_unknown_user(self, user_service):
        with pytest.raises(NotFoundError) as exc_info:
            user_service.adjust_points("ghost", 10, "原因")

        assert exc_info.value.message == "用户不存在"


class TestListUsers:
    def test_pagination(self, user_service):
        result = user_service.list_users(page=1, page_size=500)

        assert result.total == 1
        assert result.total_pages == 1
        assert result.users[0].phone == "13800000000"
