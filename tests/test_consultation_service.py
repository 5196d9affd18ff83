import pytest
from unittest.mock import Mock, patch

from lifecurve.config import Settings
from lifecurve.core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    NotFoundError,
    ValidationError,
)
from lifecurve.models.master import Master
from lifecurve.repositories.consultation_repository import ConsultationRepository
from lifecurve.schemas.consultation import ConsultationRecord, CreateConsultationRequest
from lifecurve.schemas.master import MasterRecord
from lifecurve.schemas.payment import GatewayVerifyResult, PaymentNotification
from lifecurve.services.consultation_service import (
    ConsultationService,
    generate_consultation_id,
    get_focus_hint,
)
from lifecurve.services.payment_service import WECHAT_ACK

QUESTION = "今年事业上会不会有大的变动呢"


def _request(**overrides):
    values = dict(
        device_id="dev-1",
        master_id="master_abc123",
        birth_year=1990,
        birth_month=5,
        birth_day=12,
        gender="male",
        wechat_id=" wx_zhang ",
        question=QUESTION,
        pay_method="wechat",
    )
    values.update(overrides)
    return CreateConsultationRequest(**values)


def _consultation(**overrides):
    values = dict(
        id="MS_20250101_ABCDE",
        device_id="dev-1",
        master_id="master_abc123",
        master_name="张大师",
        price=9900,
        birth_year=1990,
        birth_month=5,
        birth_day=12,
        gender="male",
        wechat_id="wx_zhang",
        question=QUESTION,
        pay_method="wechat",
        status="paid",
    )
    values.update(overrides)
    return ConsultationRecord(**values)


@pytest.fixture
def consultation_service():
    module = "lifecurve.services.consultation_service"
    with patch(f"{module}.ConsultationRepository") as consultation_cls, patch(
        f"{module}.MasterRepository"
    ) as master_cls, patch(f"{module}.AdminLogRepository") as admin_log_cls, patch(
        f"{module}.WechatPayGateway"
    ) as wechat_cls, patch(f"{module}.AlipayGateway") as alipay_cls:
        for cls in (consultation_cls, master_cls, admin_log_cls, wechat_cls, alipay_cls):
            cls.return_value = Mock()
        yield ConsultationService(Mock(), Settings())


class TestConsultationHelpers:
    def test_id_format(self):
        prefix, date, suffix = generate_consultation_id().split("_")
        assert prefix == "MS"
        assert len(date) == 8 and date.isdigit()
        assert len(suffix) == 5
        assert suffix == suffix.upper()

    @pytest.mark.parametrize(
        "birth_year,gender,label",
        [
            (2015, "female", "前程发展"),
            (1960, "male", "健康运势"),
            (1990, "male", "事业财运"),
            (1990, "female", "感情婚姻"),
        ],
    )
    def test_focus_hint(self, birth_year, gender, label):
        assert get_focus_hint(birth_year, gender, 2025).startswith(f"【{label}】")


class TestCreateConsultation:
    """상담 주문 생성 테스트"""

    def test_create_snapshots_master_price(self, consultation_service):
        # Given
        consultation_service.master_repo.get_by_id.return_value = MasterRecord(
            id="master_abc123", name="张大师", price=9900, word_count=3000, follow_ups=2
        )
        consultation_service.consultation_repo.create.side_effect = (
            lambda **kw: ConsultationRecord(**kw)
        )

        # When
        result = consultation_service.create(_request())

        # Then
        assert result.consultation_id.startswith("MS_")
        assert result.amount == 9900
        assert result.status == "pending"
        kwargs = consultation_service.consultation_repo.create.call_args.kwargs
        assert kwargs["wechat_id"] == "wx_zhang"
        assert kwargs["master_name"] == "张大师"
        assert kwargs["follow_ups"] == 2
        assert kwargs["focus_hint"].startswith("【")

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"master_id": None}, "请选择大师"),
            ({"birth_day": None}, "请填写出生日期"),
            ({"gender": "other"}, "请选择性别"),
            ({"wechat_id": "  "}, "请填写微信号"),
            ({"question": "太短了"}, "问题描述至少10个字"),
            ({"question": "问" * 501}, "问题描述不能超过500字"),
            ({"pay_method": "paypal"}, "支付方式无效，仅支持 wechat 或 alipay"),
            ({"device_id": ""}, "缺少设备ID"),
        ],
    )
    def test_create_validation(self, consultation_service, overrides, message):
        with pytest.raises(ValidationError) as exc_info:
            consultation_service.create(_request(**overrides))

        assert exc_info.value.message == message
        consultation_service.consultation_repo.create.assert_not_called()

    def test_inactive_master_rejected(self, consultation_service):
        consultation_service.master_repo.get_by_id.return_value = MasterRecord(
            id="master_abc123", name="张大师", price=9900, word_count=3000, is_active=False
        )

        with pytest.raises(ValidationError) as exc_info:
            consultation_service.create(_request())

        assert exc_info.value.message == "该大师暂不接单"

    def test_other_device_cannot_view(self, consultation_service):
        consultation_service.consultation_repo.get_by_id.return_value = _consultation()

        with pytest.raises(AuthorizationError):
            consultation_service.get_for_device("MS_20250101_ABCDE", "dev-2")

        assert consultation_service.get_for_device("MS_20250101_ABCDE", "dev-1").id == (
            "MS_20250101_ABCDE"
        )


class TestConsultationReconcile:
    """상담 주문 결제 정산 테스트"""

    def test_recharge_order_ids_are_skipped(self, consultation_service):
        result = consultation_service.reconcile("ORD_1700000000_abcdef", "wx-1")

        assert result.transitioned is False
        consultation_service.consultation_repo.mark_paid.assert_not_called()

    def test_wechat_notify_reconciles_success(self, consultation_service):
        # Given
        consultation_service.wechat.parse_notification.return_value = GatewayVerifyResult(
            success=True,
            data=PaymentNotification(
                order_id="MS_20250101_ABCDE", trade_no="wx-9", trade_state="SUCCESS"
            ),
        )
        consultation_service.consultation_repo.mark_paid.return_value = _consultation()

        # When
        ack = consultation_service.handle_wechat_notify({}, b"{}")

        # Then
        assert ack == WECHAT_ACK
        consultation_service.consultation_repo.mark_paid.assert_called_once_with(
            "MS_20250101_ABCDE", "wx-9"
        )

    def test_wechat_notify_acks_on_error(self, consultation_service):
        consultation_service.wechat.parse_notification.side_effect = RuntimeError("boom")

        assert consultation_service.handle_wechat_notify({}, b"{}") == WECHAT_ACK

    def test_alipay_unsigned_is_failure(self, consultation_service):
        consultation_service.alipay.parse_notification.return_value = GatewayVerifyResult(
            success=False, error="invalid signature"
        )

        assert consultation_service.handle_alipay_notify({"out_trade_no": "MS_1"}) == "failure"
        consultation_service.consultation_repo.mark_paid.assert_not_called()

    def test_alipay_other_state_acks_without_transition(self, consultation_service):
        consultation_service.alipay.parse_notification.return_value = GatewayVerifyResult(
            success=True,
            data=PaymentNotification(
                order_id="MS_20250101_ABCDE", trade_no="ali-1", trade_state="WAIT_BUYER_PAY"
            ),
        )

        assert consultation_service.handle_alipay_notify({}) == "success"
        consultation_service.consultation_repo.mark_paid.assert_not_called()


class TestConsultationAdminActions:
    """관리자 상태 변경 테스트"""

    @pytest.mark.parametrize(
        "action,to_status,message",
        [("complete", "completed", "订单已标记为完成"), ("refund", "refunded", "退款成功")],
    )
    def test_paid_consultation_transitions(
        self, consultation_service, action, to_status, message
    ):
        consultation_service.consultation_repo.get_by_id.return_value = _consultation()
        consultation_service.consultation_repo.transition.return_value = _consultation(
            status=to_status
        )

        updated, result_message = consultation_service.apply_action("MS_20250101_ABCDE", action)

        assert updated.status == to_status
        assert result_message == message
        consultation_service.consultation_repo.transition.assert_called_once_with(
            "MS_20250101_ABCDE", "paid", to_status, commit=False
        )
        log_kwargs = consultation_service.admin_log_repo.record.call_args.kwargs
        assert log_kwargs["action"] == f"consultation_{action}"
        assert log_kwargs["commit"] is True

    def test_unpaid_consultation_cannot_be_refunded(self, consultation_service):
        consultation_service.consultation_repo.get_by_id.return_value = _consultation(
            status="pending"
        )

        with pytest.raises(BusinessLogicError) as exc_info:
            consultation_service.apply_action("MS_20250101_ABCDE", "refund")

        assert exc_info.value.message == "只能退款已支付的订单"
        consultation_service.consultation_repo.transition.assert_not_called()

    def test_unknown_action(self, consultation_service):
        with pytest.raises(ValidationError) as exc_info:
            consultation_service.apply_action("MS_20250101_ABCDE", "delete")

        assert exc_info.value.message == "无效的操作"

    def test_missing_consultation(self, consultation_service):
        consultation_service.consultation_repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            consultation_service.apply_action("MS_missing", "complete")

    def test_list_all_status_with_stats(self, consultation_service):
        consultation_service.consultation_repo.list_consultations.return_value = (
            [_consultation()],
            1,
        )
        consultation_service.consultation_repo.get_stats.return_value = {
            "total": 1,
            "pending": 0,
            "paid": 1,
            "completed": 0,
            "refunded": 0,
            "total_revenue": 9900,
        }

        result = consultation_service.list_consultations(status="all", include_stats=True)

        assert result.total == 1
        assert result.consultations[0].trade_no is None
        assert result.stats.total_revenue == 9900
        consultation_service.consultation_repo.list_consultations.assert_called_once_with(
            status=None, master_id=None, search=None, limit=50, offset=0
        )


class TestConsultationPaymentFlow:
    """생성 -> 결제 알림 중복 수신 (SQLite)"""

    def test_duplicate_notify_pays_once(self, db_session):
        # Given
        db_session.add(
            Master(id="master_abc123", name="张大师", price=9900, word_count=3000, tags=[])
        )
        db_session.commit()
        service = ConsultationService(db_session, Settings())
        created = service.create(_request(pay_method="alipay"))
        notification = GatewayVerifyResult(
            success=True,
            data=PaymentNotification(
                order_id=created.consultation_id, trade_no="ali-1", trade_state="TRADE_SUCCESS"
            ),
        )
        service.alipay = Mock()
        service.alipay.parse_notification.return_value = notification

        # When
        first = service.handle_alipay_notify({})
        second = service.handle_alipay_notify({})

        # Then
        assert (first, second) == ("success", "success")
        stored = ConsultationRepository(db_session).get_by_id(created.consultation_id)
        assert stored.status == "paid"
        assert stored.trade_no == "ali-1"
        assert stored.paid_at is not None
        assert service.reconcile(created.consultation_id, "ali-2").transitioned is False
