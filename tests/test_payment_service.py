import pytest
from unittest.mock import Mock, patch

from lifecurve.config import Settings
from lifecurve.core.exceptions import (
    BusinessLogicError,
    InternalServerError,
    NotFoundError,
    ValidationError,
)
from lifecurve.repositories.device_repository import DeviceRepository
from lifecurve.repositories.order_repository import OrderRepository
from lifecurve.repositories.points_repository import PointsRepository
from lifecurve.schemas.order import (
    CreateOrderRequest,
    OrderRecord,
    RechargeOptionInput,
    RechargeOptionRecord,
)
from lifecurve.schemas.payment import GatewayVerifyResult, PaymentNotification
from lifecurve.schemas.points import PointsAdjustResult
from lifecurve.services.payment_service import (
    DEFAULT_RECHARGE_OPTIONS,
    PaymentService,
    generate_order_id,
)
from lifecurve.utils.timezone_utils import minutes_from_now


def _order(**overrides):
    values = dict(
        id="ORD_1700000000_abcdef",
        device_id="dev-1",
        amount=990,
        points=100,
        pay_method="wechat",
        status="paid",
        trade_no="wx-1",
    )
    values.update(overrides)
    return OrderRecord(**values)


@pytest.fixture
def payment_service():
    module = "lifecurve.services.payment_service"
    with patch(f"{module}.OrderRepository") as order_cls, patch(
        f"{module}.RechargeOptionRepository"
    ) as option_cls, patch(f"{module}.DeviceRepository") as device_cls, patch(
        f"{module}.PointsRepository"
    ) as points_cls, patch(f"{module}.WechatPayGateway") as wechat_cls, patch(
        f"{module}.AlipayGateway"
    ) as alipay_cls, patch(f"{module}.AdminLogRepository") as admin_log_cls:
        for cls in (
            order_cls, option_cls, device_cls, points_cls, wechat_cls, alipay_cls, admin_log_cls
        ):
            cls.return_value = Mock()
        yield PaymentService(Mock(), Settings(SITE_URL="https://example.com"))


class TestCreateOrder:
    """주문 생성 테스트"""

    def test_order_id_format(self):
        order_id = generate_order_id()
        prefix, ts, suffix = order_id.split("_")
        assert prefix == "ORD"
        assert ts.isdigit()
        assert len(suffix) == 6

    def test_create_order(self, payment_service):
        # Given
        payment_service.option_repo.get_active.return_value = RechargeOptionRecord(
            id=2, price=1990, points=220
        )
        payment_service.order_repo.create_order.side_effect = lambda **kw: OrderRecord(
            id=kw["order_id"],
            device_id=kw["device_id"],
            amount=kw["amount"],
            points=kw["points"],
            pay_method=kw["pay_method"],
            expire_at=kw["expire_at"],
        )

        # When
        result = payment_service.create_order(
            CreateOrderRequest(device_id="dev-1", option_id=2, pay_method="alipay")
        )

        # Then
        assert result.order_id.startswith("ORD_")
        assert result.amount == 1990
        assert result.points == 220
        assert result.pay_method == "alipay"
        payment_service.device_repo.ensure_device.assert_called_once_with("dev-1")

    @pytest.mark.parametrize(
        "request_kwargs,message",
        [
            ({"option_id": 1, "pay_method": "wechat"}, "缺少设备ID"),
            ({"device_id": "dev-1", "pay_method": "wechat"}, "缺少充值选项ID"),
            ({"device_id": "dev-1", "option_id": 1, "pay_method": "paypal"}, "支付方式无效，仅支持 wechat 或 alipay"),
        ],
    )
    def test_create_order_validation(self, payment_service, request_kwargs, message):
        with pytest.raises(ValidationError) as exc_info:
            payment_service.create_order(CreateOrderRequest(**request_kwargs))

        assert exc_info.value.message == message

    def test_unknown_option(self, payment_service):
        payment_service.option_repo.get_active.return_value = None

        with pytest.raises(ValidationError) as exc_info:
            payment_service.create_order(
                CreateOrderRequest(device_id="dev-1", option_id=99, pay_method="wechat")
            )

        assert exc_info.value.message == "充值选项不存在"

    def test_status_not_found(self, payment_service):
        payment_service.order_repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            payment_service.get_status("ORD_missing")


class TestReconcile:
    """결제 정산 테스트"""

    def test_first_call_credits_points(self, payment_service):
        # Given
        payment_service.order_repo.mark_paid.return_value = _order()
        payment_service.points_repo.credit_order.return_value = PointsAdjustResult(
            device_id="dev-1", delta=100, new_balance=100
        )

        # When
        result = payment_service.reconcile_payment("ORD_1700000000_abcdef", "wx-1")

        # Then
        assert result.transitioned is True
        assert result.points_credited == 100
        payment_service.order_repo.mark_paid.assert_called_once_with(
            "ORD_1700000000_abcdef", "wx-1", commit=False
        )
        kwargs = payment_service.points_repo.credit_order.call_args.kwargs
        assert kwargs["amount"] == 990
        assert kwargs["commit"] is True

    def test_second_call_credits_nothing(self, payment_service):
        payment_service.order_repo.mark_paid.return_value = None

        result = payment_service.reconcile_payment("ORD_1700000000_abcdef", "wx-1")

        assert result.transitioned is False
        assert result.points_credited == 0
        payment_service.points_repo.credit_order.assert_not_called()

    def test_credit_failure_rolls_back(self, payment_service):
        payment_service.order_repo.mark_paid.return_value = _order()
        payment_service.points_repo.credit_order.side_effect = LookupError("device missing")

        with pytest.raises(LookupError):
            payment_service.reconcile_payment("ORD_1700000000_abcdef", "wx-1")

        payment_service.db.rollback.assert_called()


class TestRefund:
    """관리자 환불 테스트"""

    def test_refund_reverses_credit(self, payment_service):
        # Given
        payment_service.order_repo.get_by_id.return_value = _order()
        payment_service.order_repo.mark_refunded.return_value = _order(status="refunded")
        payment_service.points_repo.adjust_balance.return_value = PointsAdjustResult(
            device_id="dev-1", delta=-100, new_balance=0
        )

        # When
        result = payment_service.refund("ORD_1700000000_abcdef")

        # Then
        assert result.status == "refunded"
        assert result.points_deducted == 100
        assert result.new_balance == 0
        payment_service.order_repo.mark_refunded.assert_called_once_with(
            "ORD_1700000000_abcdef", commit=False
        )
        kwargs = payment_service.points_repo.adjust_balance.call_args.kwargs
        assert kwargs["delta"] == -100
        assert kwargs["description"] == "订单退款 (ORD_1700000000_abcdef)"
        assert kwargs["log_type"] == "consume"
        assert kwargs["commit"] is False
        log_kwargs = payment_service.admin_log_repo.record.call_args.kwargs
        assert log_kwargs["action"] == "refund"
        assert log_kwargs["commit"] is True

    @pytest.mark.parametrize("status", ["pending", "failed", "refunded"])
    def test_refund_requires_paid(self, payment_service, status):
        payment_service.order_repo.get_by_id.return_value = _order(status=status)

        with pytest.raises(BusinessLogicError) as exc_info:
            payment_service.refund("ORD_1700000000_abcdef")

        assert exc_info.value.message == "订单状态不允许退款"
        payment_service.order_repo.mark_refunded.assert_not_called()
        payment_service.points_repo.adjust_balance.assert_not_called()

    def test_concurrent_refund_loses_transition(self, payment_service):
        # Given: 조회 시점엔 paid였지만 다른 요청이 먼저 전이
        payment_service.order_repo.get_by_id.return_value = _order()
        payment_service.order_repo.mark_refunded.return_value = None

        with pytest.raises(BusinessLogicError):
            payment_service.refund("ORD_1700000000_abcdef")

        payment_service.db.rollback.assert_called()
        payment_service.points_repo.adjust_balance.assert_not_called()

    def test_refund_unknown_order(self, payment_service):
        payment_service.order_repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            payment_service.refund("ORD_missing")

    def test_refund_debit_failure_rolls_back(self, payment_service):
        payment_service.order_repo.get_by_id.return_value = _order()
        payment_service.order_repo.mark_refunded.return_value = _order(status="refunded")
        payment_service.points_repo.adjust_balance.side_effect = LookupError("device missing")

        with pytest.raises(InternalServerError):
            payment_service.refund("ORD_1700000000_abcdef")

        payment_service.db.rollback.assert_called()
        payment_service.admin_log_repo.record.assert_not_called()


class TestNotifications:
    """결제 알림 처리 테스트"""

    def _verified(self, state):
        return GatewayVerifyResult(
            success=True,
            data=PaymentNotification(
                order_id="ORD_1700000000_abcdef", trade_no="wx-1", trade_state=state
            ),
        )

    def test_wechat_success_reconciles(self, payment_service):
        payment_service.wechat.parse_notification.return_value = self._verified("SUCCESS")
        payment_service.order_repo.mark_paid.return_value = None

        ack = payment_service.handle_wechat_notify({}, b"{}")

        assert ack == {"code": "SUCCESS", "message": "成功"}
        payment_service.order_repo.mark_paid.assert_called_once()

    def test_wechat_always_acknowledges(self, payment_service):
        payment_service.wechat.parse_notification.return_value = GatewayVerifyResult(
            success=False, error="invalid signature"
        )
        assert payment_service.handle_wechat_notify({}, b"{}")["code"] == "SUCCESS"

        payment_service.wechat.parse_notification.return_value = self._verified("SUCCESS")
        payment_service.order_repo.mark_paid.side_effect = RuntimeError("db down")
        assert payment_service.handle_wechat_notify({}, b"{}")["code"] == "SUCCESS"

    def test_wechat_non_success_state_ignored(self, payment_service):
        payment_service.wechat.parse_notification.return_value = self._verified("NOTPAY")

        payment_service.handle_wechat_notify({}, b"{}")

        payment_service.order_repo.mark_paid.assert_not_called()

    def test_alipay_bad_signature(self, payment_service):
        payment_service.alipay.parse_notification.return_value = GatewayVerifyResult(
            success=False, error="invalid signature"
        )

        assert payment_service.handle_alipay_notify({"sign": "x"}) == "failure"

    def test_alipay_trade_success(self, payment_service):
        payment_service.alipay.parse_notification.return_value = self._verified("TRADE_SUCCESS")
        payment_service.order_repo.mark_paid.return_value = None

        assert payment_service.handle_alipay_notify({}) == "success"
        payment_service.order_repo.mark_paid.assert_called_once()

    def test_alipay_return_url(self, payment_service):
        assert (
            payment_service.alipay_return_url("ORD_1")
            == "https://example.com/?payment=success&orderId=ORD_1"
        )
        assert payment_service.alipay_return_url(None) == "https://example.com/"


class TestRechargeOptions:
    """충전 옵션 테스트"""

    def test_public_options_fallback(self, payment_service):
        payment_service.option_repo.list_options.side_effect = RuntimeError("db down")

        options = payment_service.list_public_options()

        assert options == DEFAULT_RECHARGE_OPTIONS
        assert [o.price for o in options][:2] == [990, 1990]

    def test_replace_defaults_sort_order_and_active(self, payment_service):
        payment_service.option_repo.replace_all.return_value = []

        payment_service.replace_options(
            [
                RechargeOptionInput(price=990, points=100),
                RechargeOptionInput(price=1990, points=220, sort_order=9, is_active=False),
            ]
        )

        rows = payment_service.option_repo.replace_all.call_args.args[0]
        assert rows[0] == {"price": 990, "points": 100, "sort_order": 1, "is_active": True}
        assert rows[1]["sort_order"] == 9
        assert rows[1]["is_active"] is False

    def test_replace_rejects_empty(self, payment_service):
        with pytest.raises(ValidationError) as exc_info:
            payment_service.replace_options([])

        assert exc_info.value.message == "充值选项不能为空"

    def test_list_orders_all_status(self, payment_service):
        payment_service.order_repo.list_orders.return_value = ([], 0)

        payment_service.list_orders(status="all", page=2, page_size=10)

        payment_service.order_repo.list_orders.assert_called_once_with(
            status=None, device_id=None, limit=10, offset=10
        )


class TestRefundLedger:
    """환불 후 잔액 clamp (SQLite)"""

    def test_refund_after_spending_clamps_to_zero(self, db_session):
        # Given: 100 포인트 주문 결제 후 60 포인트 사용
        service = PaymentService(db_session, Settings())
        OrderRepository(db_session).create_order(
            order_id="ORD_1_aaaaaa",
            device_id="dev-1",
            amount=990,
            points=100,
            pay_method="alipay",
            expire_at=minutes_from_now(30),
        )
        DeviceRepository(db_session).ensure_device("dev-1")
        service.reconcile_payment("ORD_1_aaaaaa", "ali-1")
        PointsRepository(db_session).deduct_if_sufficient("dev-1", 60, "detailed")

        # When
        result = service.refund("ORD_1_aaaaaa")

        # Then
        assert result.new_balance == 0
        points_repo = PointsRepository(db_session)
        assert points_repo.get_balance("dev-1") == 0
        logs, _ = points_repo.get_history("dev-1")
        assert logs[0].description == "订单退款 (ORD_1_aaaaaa)"
        assert logs[0].points == -100
        assert logs[0].type == "consume"
        with pytest.raises(BusinessLogicError):
            service.refund("ORD_1_aaaaaa")
