"""
마스터 상담 주문 서비스

- 주문 생성: 활성 마스터의 가격/조건을 스냅샷으로 pending 주문 생성
- 결제 정산: 기존 WeChat / Alipay 어댑터로 알림을 검증하고 pending -> paid 조건부 전이
  (MS_ 접두어가 아닌 주문번호는 충전 주문이므로 건너뜀)
- 관리자: 목록 / 통계 / 완료 처리 / 환불 처리 (paid 상태에서만)
"""

import logging
import secrets
import string
from typing import Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from lifecurve.config import Settings, settings as default_settings
from lifecurve.core.exceptions import (
    AuthorizationError,
    BaseAPIException,
    BusinessLogicError,
    InternalServerError,
    NotFoundError,
    ValidationError,
)
from lifecurve.providers.payment.alipay import TRADE_SUCCESS, AlipayGateway
from lifecurve.providers.payment.wechat import TRADE_STATE_SUCCESS, WechatPayGateway
from lifecurve.repositories.consultation_repository import ConsultationRepository
from lifecurve.repositories.master_repository import MasterRepository
from lifecurve.repositories.system_repository import AdminLogRepository
from lifecurve.schemas.consultation import (
    AdminConsultationListResponse,
    AdminConsultationResponse,
    ConsultationRecord,
    ConsultationStats,
    ConsultationStatus,
    CreateConsultationRequest,
    CreateConsultationResponse,
)
from lifecurve.schemas.order import PayMethod
from lifecurve.schemas.payment import ReconcileResult
from lifecurve.services.payment_service import (
    ALIPAY_ACK_FAILURE,
    ALIPAY_ACK_SUCCESS,
    WECHAT_ACK,
)
from lifecurve.utils.timezone_utils import get_local_now, utc_now

logger = logging.getLogger(__name__)

CONSULTATION_ID_PREFIX = "MS_"
CONSULTATION_ID_CHARSET = string.ascii_uppercase + string.digits

QUESTION_MIN_LENGTH = 10
QUESTION_MAX_LENGTH = 500

GENDERS = ("male", "female")

# action -> (전이 대상 상태, 상태 위반 메시지, 성공 메시지)
ADMIN_ACTIONS = {
    "complete": (
        ConsultationStatus.COMPLETED.value,
        "只能标记已支付的订单为已完成",
        "订单已标记为完成",
    ),
    "refund": (
        ConsultationStatus.REFUNDED.value,
        "只能退款已支付的订单",
        "退款成功",
    ),
}


def generate_consultation_id() -> str:
    suffix = "".join(secrets.choice(CONSULTATION_ID_CHARSET) for _ in range(5))
    return f"{CONSULTATION_ID_PREFIX}{utc_now().strftime('%Y%m%d')}_{suffix}"


def get_focus_hint(birth_year: int, gender: str, current_year: int) -> str:
    """나이/성별로 상담 관심 분야 결정 (18세 미만 前程, 60세 이상 健康, 그 외 성별)"""
    age = current_year - birth_year
    if age < 18:
        label, description = "前程发展", "学业运势、未来发展方向、天赋潜能"
    elif age >= 60:
        label, description = "健康运势", "身体健康、养生调理、晚年福运"
    elif gender == "male":
        label, description = "事业财运", "事业发展、财运走势、贵人运势"
    else:
        label, description = "感情婚姻", "感情运势、婚姻家庭、桃花运势"
    return f"【{label}】{description}"


class ConsultationService:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings
        self.consultation_repo = ConsultationRepository(db)
        self.master_repo = MasterRepository(db)
        self.admin_log_repo = AdminLogRepository(db)
        self.wechat = WechatPayGateway(self.settings)
        self.alipay = AlipayGateway(self.settings)

    # ------------------------------------------------------------------
    # 주문
    # ------------------------------------------------------------------

    def create(self, request: CreateConsultationRequest) -> CreateConsultationResponse:
        """
        상담 주문 생성

        Args:
            request: 마스터 ID, 생년월일, 성별, 微信号, 질문(10~500자), 결제 수단

        Returns:
            CreateConsultationResponse: MS_ 주문번호와 금액(分)
        """
        if not request.master_id:
            raise ValidationError("请选择大师")
        if not (request.birth_year and request.birth_month and request.birth_day):
            raise ValidationError("请填写出生日期")
        if request.gender not in GENDERS:
            raise ValidationError("请选择性别")
        if not request.wechat_id or not request.wechat_id.strip():
            raise ValidationError("请填写微信号")
        question = (request.question or "").strip()
        if len(question) < QUESTION_MIN_LENGTH:
            raise ValidationError("问题描述至少10个字")
        if len(question) > QUESTION_MAX_LENGTH:
            raise ValidationError("问题描述不能超过500字")
        try:
            pay_method = PayMethod(request.pay_method)
        except ValueError:
            raise ValidationError("支付方式无效，仅支持 wechat 或 alipay")
        if not request.device_id:
            raise ValidationError("缺少设备ID")

        master = self.master_repo.get_by_id(request.master_id)
        if master is None:
            raise ValidationError("大师不存在")
        if not master.is_active:
            raise ValidationError("该大师暂不接单")

        consultation_id = generate_consultation_id()
        current_year = get_local_now(self.settings.TIMEZONE).year
        try:
            consultation = self.consultation_repo.create(
                id=consultation_id,
                device_id=request.device_id,
                master_id=master.id,
                master_name=master.name,
                price=master.price,
                word_count=master.word_count,
                follow_ups=master.follow_ups,
                birth_year=request.birth_year,
                birth_month=request.birth_month,
                birth_day=request.birth_day,
                birth_time=request.birth_time or None,
                gender=request.gender,
                name=request.name or None,
                wechat_id=request.wechat_id.strip(),
                question=question,
                focus_hint=get_focus_hint(request.birth_year, request.gender, current_year),
                pay_method=pay_method.value,
                status=ConsultationStatus.PENDING.value,
            )
        except Exception as e:
            logger.error(f"Failed to create consultation for master {master.id}: {str(e)}")
            raise InternalServerError("创建订单失败，请重试")

        logger.info(
            f"Consultation {consultation_id} created: master={master.id}, price={master.price}, method={pay_method.value}"
        )
        return CreateConsultationResponse(
            consultation_id=consultation.id,
            amount=consultation.price,
            pay_method=consultation.pay_method,
            status=consultation.status,
        )

    def get_for_device(self, consultation_id: str, device_id: str) -> ConsultationRecord:
        """주문 조회 - 주문을 만든 기기만 볼 수 있음"""
        if not device_id:
            raise ValidationError("缺少设备ID")
        consultation = self.consultation_repo.get_by_id(consultation_id)
        if consultation is None:
            raise NotFoundError("订单不存在")
        if consultation.device_id != device_id:
            raise AuthorizationError("无权查看此订单")
        return consultation

    # ------------------------------------------------------------------
    # 정산
    # ------------------------------------------------------------------

    def reconcile(self, consultation_id: str, trade_no: str) -> ReconcileResult:
        """결제 완료 정산 (멱등) - pending 주문만 paid로 전이"""
        if not consultation_id.startswith(CONSULTATION_ID_PREFIX):
            logger.info(f"{consultation_id} is not a consultation order, skip")
            return ReconcileResult(order_id=consultation_id, transitioned=False)

        consultation = self.consultation_repo.mark_paid(consultation_id, trade_no)
        if consultation is None:
            logger.info(f"Consultation {consultation_id} not pending, skip")
            return ReconcileResult(order_id=consultation_id, transitioned=False)

        logger.info(
            f"Consultation {consultation_id} paid: master={consultation.master_name}, price={consultation.price}"
        )
        return ReconcileResult(order_id=consultation_id, transitioned=True)

    def handle_wechat_notify(self, headers: Mapping[str, str], body: bytes) -> dict:
        """WeChat 결제 알림 처리 - 결과와 무관하게 항상 SUCCESS 응답"""
        try:
            result = self.wechat.parse_notification(headers, body)
            if not result.success:
                logger.warning(f"WeChat consultation notify rejected: {result.error}")
            elif result.data.trade_state == TRADE_STATE_SUCCESS:
                self.reconcile(result.data.order_id, result.data.trade_no)
            else:
                logger.info(
                    f"WeChat consultation notify for {result.data.order_id} with state {result.data.trade_state}"
                )
        except Exception as e:
            logger.error(f"WeChat consultation notify handling failed: {str(e)}")
        return dict(WECHAT_ACK)

    def handle_alipay_notify(self, params: Mapping[str, str]) -> str:
        """Alipay 비동기 알림 처리 - 'success' 또는 'failure' 평문 응답"""
        try:
            result = self.alipay.parse_notification(params)
            if not result.success:
                logger.warning(f"Alipay consultation notify rejected: {result.error}")
                return ALIPAY_ACK_FAILURE
            if result.data.trade_state == TRADE_SUCCESS:
                self.reconcile(result.data.order_id, result.data.trade_no)
            return ALIPAY_ACK_SUCCESS
        except Exception as e:
            logger.error(f"Alipay consultation notify handling failed: {str(e)}")
            return ALIPAY_ACK_FAILURE

    # ------------------------------------------------------------------
    # 관리자
    # ------------------------------------------------------------------

    def list_consultations(
        self,
        status: Optional[str] = None,
        master_id: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
        include_stats: bool = False,
    ) -> AdminConsultationListResponse:
        page = max(1, page)
        page_size = max(1, min(page_size, 100))
        if status == "all":
            status = None
        consultations, total = self.consultation_repo.list_consultations(
            status=status,
            master_id=master_id or None,
            search=search or None,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        stats = None
        if include_stats:
            stats = ConsultationStats(**self.consultation_repo.get_stats())
        return AdminConsultationListResponse(
            consultations=[AdminConsultationResponse.model_validate(c) for c in consultations],
            total=total,
            page=page,
            page_size=page_size,
            stats=stats,
        )

    def get_consultation(self, consultation_id: str) -> ConsultationRecord:
        consultation = self.consultation_repo.get_by_id(consultation_id)
        if consultation is None:
            raise NotFoundError("订单不存在")
        return consultation

    def apply_action(
        self, consultation_id: str, action: Optional[str]
    ) -> Tuple[ConsultationRecord, str]:
        """
        관리자 상태 변경 (paid 주문만)

        Args:
            consultation_id: 상담 주문 ID
            action: complete | refund

        Returns:
            (변경된 주문, 결과 메시지)
        """
        if action not in ADMIN_ACTIONS:
            raise ValidationError("无效的操作")
        to_status, conflict_message, success_message = ADMIN_ACTIONS[action]

        current = self.get_consultation(consultation_id)
        if current.status != ConsultationStatus.PAID.value:
            raise BusinessLogicError("CONSULTATION_INVALID_STATUS", conflict_message)

        try:
            updated = self.consultation_repo.transition(
                consultation_id,
                ConsultationStatus.PAID.value,
                to_status,
                commit=False,
            )
            if updated is None:
                self.db.rollback()
                raise BusinessLogicError("CONSULTATION_INVALID_STATUS", conflict_message)
            self.admin_log_repo.record(
                action=f"consultation_{action}",
                target_id=consultation_id,
                detail={"price": updated.price, "deviceId": updated.device_id},
                commit=True,
            )
        except BaseAPIException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Consultation {consultation_id} {action} failed: {str(e)}")
            raise InternalServerError("操作失败")

        logger.info(f"Consultation {consultation_id} -> {to_status}")
        return updated, success_message
