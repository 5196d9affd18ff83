"""
주문 / 결제 서비스

- 주문 생성: 충전 옵션 기준 금액/포인트로 pending 주문 생성 (30분 만료)
- 결제 정산: pending -> paid 조건부 전이와 포인트 지급을 한 트랜잭션으로 처리
  같은 주문에 대한 중복 알림은 전이에 실패하므로 포인트가 한 번만 지급된다
- WeChat / Alipay 알림 처리
- 관리자 환불: paid -> refunded 전이 + 지급 포인트 회수 (0 하한)
- 관리자: 주문 목록, 매출 통계, 충전 옵션 교체
"""

import logging
import secrets
import time
from typing import List, Mapping, Optional

from sqlalchemy.orm import Session

from lifecurve.config import Settings, settings as default_settings
from lifecurve.core.exceptions import (
    BaseAPIException,
    BusinessLogicError,
    InternalServerError,
    NotFoundError,
    ValidationError,
)
from lifecurve.providers.payment.alipay import TRADE_SUCCESS, AlipayGateway
from lifecurve.providers.payment.wechat import TRADE_STATE_SUCCESS, WechatPayGateway
from lifecurve.repositories.device_repository import DeviceRepository
from lifecurve.repositories.order_repository import (
    OrderRepository,
    RechargeOptionRepository,
)
from lifecurve.repositories.points_repository import LOG_TYPE_CONSUME, PointsRepository
from lifecurve.repositories.system_repository import AdminLogRepository
from lifecurve.schemas.order import (
    AdminOrderListResponse,
    CreateOrderRequest,
    CreateOrderResponse,
    OrderStatsResponse,
    OrderStatus,
    OrderStatusResponse,
    PayMethod,
    PublicRechargeOption,
    RechargeOptionInput,
    RechargeOptionRecord,
    RefundOrderResponse,
)
from lifecurve.schemas.payment import ReconcileResult
from lifecurve.utils.timezone_utils import get_local_day_start_utc, minutes_from_now

logger = logging.getLogger(__name__)

# 옵션 테이블 조회 실패 시 공개 목록 (가격: 分)
DEFAULT_RECHARGE_OPTIONS = [
    PublicRechargeOption(id=1, price=990, points=100),
    PublicRechargeOption(id=2, price=1990, points=220),
    PublicRechargeOption(id=3, price=4990, points=600),
    PublicRechargeOption(id=4, price=9990, points=1300),
    PublicRechargeOption(id=5, price=19990, points=2800),
    PublicRechargeOption(id=6, price=49990, points=8000),
]

WECHAT_ACK = {"code": "SUCCESS", "message": "成功"}
ALIPAY_ACK_SUCCESS = "success"
ALIPAY_ACK_FAILURE = "failure"


def generate_order_id() -> str:
    return f"ORD_{int(time.time())}_{secrets.token_hex(3)}"


class PaymentService:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings
        self.order_repo = OrderRepository(db)
        self.option_repo = RechargeOptionRepository(db)
        self.device_repo = DeviceRepository(db)
        self.points_repo = PointsRepository(db)
        self.admin_log_repo = AdminLogRepository(db)
        self.wechat = WechatPayGateway(self.settings)
        self.alipay = AlipayGateway(self.settings)

    # ------------------------------------------------------------------
    # 주문
    # ------------------------------------------------------------------

    def create_order(self, request: CreateOrderRequest) -> CreateOrderResponse:
        """
        충전 주문 생성

        Args:
            request: deviceId, optionId, payMethod (wechat | alipay)

        Returns:
            CreateOrderResponse: 주문 ID, 금액(分), 포인트, 만료 시각
        """
        if not request.device_id:
            raise ValidationError("缺少设备ID")
        if request.option_id is None:
            raise ValidationError("缺少充值选项ID")
        try:
            pay_method = PayMethod(request.pay_method)
        except ValueError:
            raise ValidationError("支付方式无效，仅支持 wechat 或 alipay")

        option = self.option_repo.get_active(request.option_id)
        if option is None:
            raise ValidationError("充值选项不存在")

        order_id = generate_order_id()
        try:
            self.device_repo.ensure_device(request.device_id)
            order = self.order_repo.create_order(
                order_id=order_id,
                device_id=request.device_id,
                amount=option.price,
                points=option.points,
                pay_method=pay_method.value,
                expire_at=minutes_from_now(self.settings.ORDER_EXPIRE_MINUTES),
            )
        except Exception as e:
            logger.error(f"Failed to create order for device {request.device_id}: {str(e)}")
            raise InternalServerError("创建订单失败")

        logger.info(
            f"Order {order_id} created: device={request.device_id}, amount={option.price}, method={pay_method.value}"
        )
        return CreateOrderResponse(
            order_id=order.id,
            amount=order.amount,
            points=order.points,
            pay_method=order.pay_method,
            expire_at=order.expire_at,
        )

    def get_status(self, order_id: str) -> OrderStatusResponse:
        if not order_id:
            raise ValidationError("缺少订单号")
        order = self.order_repo.get_by_id(order_id)
        if order is None:
            raise NotFoundError("订单不存在")
        return OrderStatusResponse(
            order_id=order.id,
            status=order.status,
            points=order.points,
            amount=order.amount,
        )

    # ------------------------------------------------------------------
    # 정산
    # ------------------------------------------------------------------

    def reconcile_payment(self, order_id: str, trade_no: str) -> ReconcileResult:
        """
        결제 완료 정산 (멱등)

        pending 주문만 paid로 전이되며, 전이에 성공한 호출만 포인트를 지급한다.
        두 단계는 한 트랜잭션으로 커밋되어 부분 반영이 없다.

        Args:
            order_id: 가맹점 주문번호
            trade_no: 결제사 거래번호

        Returns:
            ReconcileResult: transitioned=False면 이미 처리됐거나 없는 주문
        """
        try:
            order = self.order_repo.mark_paid(order_id, trade_no, commit=False)
            if order is None:
                self.db.rollback()
                logger.info(f"Order {order_id} not pending, skip crediting")
                return ReconcileResult(order_id=order_id, transitioned=False)

            credit = self.points_repo.credit_order(
                device_id=order.device_id,
                points=order.points,
                amount=order.amount,
                order_id=order.id,
                commit=True,
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to reconcile order {order_id}: {str(e)}")
            raise

        logger.info(
            f"Order {order_id} paid: +{order.points} points to {order.device_id} (balance {credit.new_balance})"
        )
        return ReconcileResult(
            order_id=order_id,
            transitioned=True,
            points_credited=order.points,
            new_balance=credit.new_balance,
        )

    def handle_wechat_notify(self, headers: Mapping[str, str], body: bytes) -> dict:
        """WeChat 결제 알림 처리 - 결과와 무관하게 항상 SUCCESS 응답"""
        try:
            result = self.wechat.parse_notification(headers, body)
            if not result.success:
                logger.warning(f"WeChat notify rejected: {result.error}")
            elif result.data.trade_state == TRADE_STATE_SUCCESS:
                self.reconcile_payment(result.data.order_id, result.data.trade_no)
            else:
                logger.info(
                    f"WeChat notify for {result.data.order_id} with state {result.data.trade_state}"
                )
        except Exception as e:
            logger.error(f"WeChat notify handling failed: {str(e)}")
        return dict(WECHAT_ACK)

    def handle_alipay_notify(self, params: Mapping[str, str]) -> str:
        """Alipay 비동기 알림 처리 - 'success' 또는 'failure' 평문 응답"""
        try:
            result = self.alipay.parse_notification(params)
            if not result.success:
                logger.warning(f"Alipay notify rejected: {result.error}")
                return ALIPAY_ACK_FAILURE
            if result.data.trade_state == TRADE_SUCCESS:
                self.reconcile_payment(result.data.order_id, result.data.trade_no)
            return ALIPAY_ACK_SUCCESS
        except Exception as e:
            logger.error(f"Alipay notify handling failed: {str(e)}")
            return ALIPAY_ACK_FAILURE

    def alipay_return_url(self, order_id: Optional[str]) -> str:
        site = self.settings.SITE_URL.rstrip("/")
        if order_id:
            return f"{site}/?payment=success&orderId={order_id}"
        return f"{site}/"

    # ------------------------------------------------------------------
    # 환불
    # ------------------------------------------------------------------

    def refund(self, order_id: str) -> RefundOrderResponse:
        """
        관리자 환불 - paid -> refunded 전이와 포인트 회수를 한 트랜잭션으로 처리

        지급했던 포인트만큼 차감하되 잔액은 0 아래로 내려가지 않는다.
        결제사 환불 API 호출은 이 서비스 밖에서 처리한다.

        Args:
            order_id: 주문 ID

        Returns:
            RefundOrderResponse: 회수한 포인트와 변동 후 잔액

        Raises:
            ValidationError: 주문 ID 누락
            NotFoundError: 주문 없음
            BusinessLogicError: paid 상태가 아닌 주문 (중복 환불 포함)
        """
        if not order_id:
            raise ValidationError("缺少订单号")
        order = self.order_repo.get_by_id(order_id)
        if order is None:
            raise NotFoundError("订单不存在")
        if order.status != OrderStatus.PAID.value:
            raise BusinessLogicError("ORDER_NOT_REFUNDABLE", "订单状态不允许退款")

        try:
            refunded = self.order_repo.mark_refunded(order_id, commit=False)
            if refunded is None:
                self.db.rollback()
                raise BusinessLogicError("ORDER_NOT_REFUNDABLE", "订单状态不允许退款")

            self.device_repo.ensure_device(order.device_id)
            debit = self.points_repo.adjust_balance(
                device_id=order.device_id,
                delta=-order.points,
                description=f"订单退款 ({order_id})",
                log_type=LOG_TYPE_CONSUME,
                related_key=order_id,
                commit=False,
            )
            self.admin_log_repo.record(
                action="refund",
                target_id=order_id,
                detail={
                    "amount": order.amount,
                    "points": order.points,
                    "deviceId": order.device_id,
                    "newBalance": debit.new_balance,
                },
                commit=True,
            )
        except BaseAPIException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to refund order {order_id}: {str(e)}")
            raise InternalServerError("退款处理失败")

        logger.info(
            f"Order {order_id} refunded: -{order.points} points from {order.device_id} (balance {debit.new_balance})"
        )
        return RefundOrderResponse(
            order_id=order_id,
            status=refunded.status,
            points_deducted=order.points,
            new_balance=debit.new_balance,
        )

    # ------------------------------------------------------------------
    # 충전 옵션
    # ------------------------------------------------------------------

    def list_public_options(self) -> List[PublicRechargeOption]:
        """활성 충전 옵션 (조회 실패 시 기본 옵션)"""
        try:
            options = self.option_repo.list_options(active_only=True)
        except Exception as e:
            logger.warning(f"Failed to load recharge options, using defaults: {str(e)}")
            return list(DEFAULT_RECHARGE_OPTIONS)
        return [
            PublicRechargeOption(id=o.id, price=o.price, points=o.points) for o in options
        ]

    def list_all_options(self) -> List[RechargeOptionRecord]:
        return self.option_repo.list_options(active_only=False)

    def replace_options(
        self, options: List[RechargeOptionInput]
    ) -> List[RechargeOptionRecord]:
        if not options:
            raise ValidationError("充值选项不能为空")
        rows = [
            {
                "price": option.price,
                "points": option.points,
                "sort_order": option.sort_order if option.sort_order is not None else index + 1,
                "is_active": True if option.is_active is None else option.is_active,
            }
            for index, option in enumerate(options)
        ]
        try:
            updated = self.option_repo.replace_all(rows)
        except Exception as e:
            logger.error(f"Failed to replace recharge options: {str(e)}")
            raise InternalServerError("保存充值选项失败")
        logger.info(f"Recharge options replaced: {len(updated)} options")
        return updated

    # ------------------------------------------------------------------
    # 관리자 조회
    # ------------------------------------------------------------------

    def list_orders(
        self,
        status: Optional[str] = None,
        device_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> AdminOrderListResponse:
        page = max(1, page)
        page_size = max(1, min(page_size, 100))
        if status == "all":
            status = None
        orders, total = self.order_repo.list_orders(
            status=status,
            device_id=device_id or None,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return AdminOrderListResponse(
            orders=orders, total=total, page=page, page_size=page_size
        )

    def get_stats(self) -> OrderStatsResponse:
        try:
            stats = self.order_repo.get_stats(
                get_local_day_start_utc(self.settings.TIMEZONE)
            )
        except BaseAPIException:
            raise
        except Exception as e:
            logger.error(f"Failed to load order stats: {str(e)}")
            raise InternalServerError("获取统计失败")
        return OrderStatsResponse(**stats)
