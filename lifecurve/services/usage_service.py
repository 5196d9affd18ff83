"""
사용량 서비스 - 무료 사용 한도와 포인트 기반 유료 사용 판정

- 기기별로 곡선 모드(life / wealth)마다 독립된 무료 카운터를 가진다
- 유료 사용 가능 여부는 잔액과 가격(overview_points / unlock_points)의 단순 비교
- 무료 슬롯 사용은 "카운터 < 한도"일 때만 증가하는 조건부 UPDATE로 처리
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from lifecurve.config import Settings, settings as default_settings
from lifecurve.core.exceptions import (
    BaseAPIException,
    BusinessLogicError,
    InsufficientBalanceError,
    InternalServerError,
    ValidationError,
)
from lifecurve.repositories.device_repository import (
    DeviceRepository,
    UsageLogRepository,
    free_usage_column,
)
from lifecurve.repositories.points_repository import PointsRepository
from lifecurve.schemas.system import SystemConfigValues
from lifecurve.schemas.usage import (
    CurveMode,
    FreeEligibility,
    UsageAction,
    UsageCheckResponse,
    UsageConsumeRequest,
    UsageConsumeResponse,
)
from lifecurve.services.system_config_service import SystemConfigService

logger = logging.getLogger(__name__)

OVERVIEW_LABELS = {
    CurveMode.LIFE.value: "人生曲线概览（积分）",
    CurveMode.WEALTH.value: "财富曲线概览（积分）",
}
DETAILED_LABEL = "精批详解"


class UsageService:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings
        self.device_repo = DeviceRepository(db)
        self.usage_log_repo = UsageLogRepository(db)
        self.points_repo = PointsRepository(db)
        self.config_service = SystemConfigService(db, self.settings)

    def _pricing(self) -> SystemConfigValues:
        return self.config_service.get_values()

    def check_free_eligibility(
        self, device_id: str, curve_mode: str = CurveMode.LIFE.value
    ) -> FreeEligibility:
        """
        무료 사용 가능 여부 판정

        Args:
            device_id: 기기 ID
            curve_mode: life | wealth

        Returns:
            FreeEligibility: allowed = remaining > 0, remaining = max(0, limit - used)
        """
        device = self.device_repo.get_or_create(device_id)
        limit = self._pricing().free_limit
        used = getattr(device, free_usage_column(curve_mode))
        remaining = max(0, limit - used)
        return FreeEligibility(allowed=remaining > 0, remaining=remaining)

    def _fallback_response(self, curve_mode: CurveMode) -> UsageCheckResponse:
        limit = self.settings.FREE_USAGE_LIMIT
        return UsageCheckResponse(
            curve_mode=curve_mode,
            allowed=True,
            remaining=limit,
            free_used=0,
            free_remaining=limit,
            free_limit=limit,
            points=0,
            can_use_free=True,
            can_use_paid=False,
            can_use_detailed=False,
            fallback=True,
        )

    def check(
        self, device_id: str, curve_mode: CurveMode = CurveMode.LIFE
    ) -> UsageCheckResponse:
        """사용 가능 여부 조회 (무료 잔여 횟수 + 포인트 기반 유료 가능 여부)

        조회 실패 시 기본적으로 500을 반환한다. USAGE_CHECK_FAIL_OPEN이 켜져 있으면
        무료 사용을 허용하는 기본값 응답(fallback=True)을 반환한다.
        """
        if not device_id:
            raise ValidationError("缺少设备ID")

        try:
            device = self.device_repo.get_or_create(device_id)
            pricing = self._pricing()
        except Exception as e:
            if self.settings.USAGE_CHECK_FAIL_OPEN:
                logger.warning(
                    f"Usage check failed for device {device_id}, failing open: {str(e)}"
                )
                return self._fallback_response(curve_mode)
            logger.error(f"Usage check failed for device {device_id}: {str(e)}")
            raise InternalServerError("检查使用次数失败")

        used = getattr(device, free_usage_column(curve_mode.value))
        remaining = max(0, pricing.free_limit - used)
        return UsageCheckResponse(
            device_id=device.device_id,
            curve_mode=curve_mode,
            allowed=remaining > 0,
            remaining=remaining,
            free_used=used,
            free_remaining=remaining,
            free_limit=pricing.free_limit,
            points=device.points,
            can_use_free=remaining > 0,
            can_use_paid=device.points >= pricing.overview_points,
            can_use_detailed=device.points >= pricing.unlock_points,
        )

    def _consume_points(
        self,
        request: UsageConsumeRequest,
        action: UsageAction,
        cost: int,
        description: str,
    ) -> UsageConsumeResponse:
        result = self.points_repo.deduct_if_sufficient(
            request.device_id, cost, description, related_key=request.result_id, commit=False
        )
        if result is None:
            current = self.points_repo.get_balance(request.device_id)
            if action == UsageAction.DETAILED:
                raise InsufficientBalanceError(
                    f"积分不足，需要{cost}积分",
                    details={"required": cost, "current": current},
                )
            raise BusinessLogicError(
                "NO_FREE_NO_POINTS",
                "免费次数已用完，请充值积分",
                details={"required": cost, "current": current},
            )

        self.usage_log_repo.create_log(
            device_id=request.device_id,
            action=action.value,
            points_cost=cost,
            curve_mode=request.curve_mode.value,
            birth_info=request.birth_info,
            result_id=request.result_id,
            commit=True,
        )
        return UsageConsumeResponse(
            type="points", points_used=cost, points=result.new_balance
        )

    def consume(self, request: UsageConsumeRequest) -> UsageConsumeResponse:
        """
        기능 사용 처리

        - free_overview: 무료 슬롯이 있으면 사용, 없으면 overview_points 차감
        - paid_overview: overview_points 차감
        - detailed: unlock_points 차감

        성공 시 usage_log에 한 줄 기록한다.
        """
        if not request.device_id:
            raise ValidationError("缺少设备ID")
        try:
            action = UsageAction(request.action)
        except ValueError:
            raise ValidationError("无效的操作类型")

        mode = request.curve_mode.value
        try:
            self.device_repo.ensure_device(request.device_id)
            pricing = self._pricing()

            if action == UsageAction.FREE_OVERVIEW:
                if self.device_repo.try_use_free_slot(
                    request.device_id, mode, pricing.free_limit, commit=False
                ):
                    self.usage_log_repo.create_log(
                        device_id=request.device_id,
                        action=UsageAction.FREE_OVERVIEW.value,
                        points_cost=0,
                        curve_mode=mode,
                        birth_info=request.birth_info,
                        result_id=request.result_id,
                        commit=True,
                    )
                    device = self.device_repo.get_by_device_id(request.device_id)
                    used = getattr(device, free_usage_column(mode))
                    logger.info(f"Free overview used by {request.device_id} ({mode})")
                    return UsageConsumeResponse(
                        type="free",
                        free_remaining=max(0, pricing.free_limit - used),
                        points=device.points,
                    )
                return self._consume_points(
                    request,
                    UsageAction.PAID_OVERVIEW,
                    pricing.overview_points,
                    OVERVIEW_LABELS.get(mode, OVERVIEW_LABELS[CurveMode.LIFE.value]),
                )

            if action == UsageAction.PAID_OVERVIEW:
                return self._consume_points(
                    request,
                    UsageAction.PAID_OVERVIEW,
                    pricing.overview_points,
                    OVERVIEW_LABELS.get(mode, OVERVIEW_LABELS[CurveMode.LIFE.value]),
                )

            return self._consume_points(
                request, UsageAction.DETAILED, pricing.unlock_points, DETAILED_LABEL
            )
        except BaseAPIException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Usage consume failed for device {request.device_id}: {str(e)}")
            raise InternalServerError("操作失败")
