import pytest

from lifecurve.config import Settings
from lifecurve.core.exceptions import InsufficientBalanceError, ValidationError
from lifecurve.repositories.points_repository import PointsRepository
from lifecurve.repositories.system_repository import SystemConfigRepository
from lifecurve.schemas.usage import UsageConsumeRequest
from lifecurve.services.system_config_service import SystemConfigService
from lifecurve.services.usage_service import UsageService


@pytest.fixture
def settings():
    return Settings(UNLOCK_POINTS=50, OVERVIEW_POINTS=10, FREE_USAGE_LIMIT=3)


class TestSystemConfigUpdate:
    """런타임 설정 갱신 검증 테스트 (SQLite)"""

    @pytest.mark.parametrize(
        "key, value",
        [
            ("unlock_points", "-50"),
            ("unlock_points", 0),
            ("overview_points", "abc"),
            ("overview_points", 9.5),
            ("overview_points", True),
            ("free_limit", -1),
        ],
    )
    def test_rejects_invalid_numbers(self, db_session, settings, key, value):
        service = SystemConfigService(db_session, settings)

        with pytest.raises(ValidationError):
            service.update({key: value})

        assert SystemConfigRepository(db_session).get_all() == {}

    def test_accepts_positive_prices_and_zero_free_limit(self, db_session, settings):
        service = SystemConfigService(db_session, settings)

        merged = service.update({"unlock_points": " 60 ", "free_limit": 0, "notice": "hi"})

        assert merged["unlock_points"] == "60"
        assert merged["free_limit"] == "0"
        assert merged["notice"] == "hi"
        values = service.get_values()
        assert values.unlock_points == 60
        assert values.free_limit == 0


class TestSystemConfigValues:
    def test_invalid_stored_values_fall_back_to_defaults(self, db_session, settings):
        # Given: 검증 이전에 저장된 잘못된 값
        SystemConfigRepository(db_session).upsert_many(
            {"unlock_points": "-50", "overview_points": "0", "free_limit": "x"}
        )

        # When
        values = SystemConfigService(db_session, settings).get_values()

        # Then
        assert values.unlock_points == 50
        assert values.overview_points == 10
        assert values.free_limit == 3

    def test_negative_price_cannot_credit_points(self, db_session, settings):
        SystemConfigRepository(db_session).upsert_many({"unlock_points": "-50"})
        service = UsageService(db_session, settings)

        with pytest.raises(InsufficientBalanceError):
            service.consume(UsageConsumeRequest(device_id="dev-1", action="detailed"))

        assert PointsRepository(db_session).get_balance("dev-1") == 0
