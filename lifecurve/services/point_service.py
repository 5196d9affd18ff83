from typing import Optional
from sqlalchemy.orm import Session

from lifecurve.repositories.device_repository import DeviceRepository
from lifecurve.repositories.points_repository import PointsRepository
from lifecurve.repositories.system_repository import AdminLogRepository
from lifecurve.core.exceptions import (
    BaseAPIException,
    InsufficientBalanceError,
    InternalServerError,
    ValidationError,
)
from lifecurve.schemas.points import (
    AdminAdjustPointsResponse,
    PointsAdjustResult,
    PointsHistoryResponse,
)
import logging

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class PointService:
    """포인트 관련 비즈니스 로직을 담당하는 서비스"""

    def __init__(self, db: Session):
        self.db = db
        self.device_repo = DeviceRepository(db)
        self.points_repo = PointsRepository(db)
        self.admin_log_repo = AdminLogRepository(db)

    def get_balance(self, device_id: str) -> int:
        """기기 포인트 잔액 조회"""
        return self.points_repo.get_balance(device_id)

    def adjust(
        self,
        device_id: str,
        delta: int,
        reason: str,
        log_type: Optional[str] = None,
        related_key: Optional[str] = None,
        commit: bool = True,
    ) -> PointsAdjustResult:
        """잔액 조정 - new_balance = max(0, balance + delta)

        Args:
            device_id: 기기 ID
            delta: 변동량 (음수면 차감)
            reason: 로그 설명
            log_type: recharge | consume (생략 시 부호로 결정)
            related_key: 출처 식별자
            commit: False면 호출자가 커밋

        Returns:
            PointsAdjustResult: 변동 후 잔액 포함
        """
        if not device_id:
            raise ValidationError("缺少设备ID")

        try:
            self.device_repo.ensure_device(device_id)
            result = self.points_repo.adjust_balance(
                device_id=device_id,
                delta=delta,
                description=reason,
                log_type=log_type,
                related_key=related_key,
                commit=commit,
            )
            logger.info(
                f"Adjusted points for device {device_id}: delta={delta}, balance={result.new_balance}"
            )
            return result
        except Exception as e:
            logger.error(f"Failed to adjust points for device {device_id}: {str(e)}")
            raise InternalServerError("积分调整失败")

    def consume(
        self,
        device_id: str,
        cost: int,
        description: str,
        related_key: Optional[str] = None,
        commit: bool = True,
    ) -> PointsAdjustResult:
        """잔액이 충분할 때만 차감

        Raises:
            InsufficientBalanceError: 잔액 부족 (잔액은 변경되지 않음)
        """
        if cost <= 0:
            raise ValidationError("Cost must be positive")

        try:
            self.device_repo.ensure_device(device_id)
            result = self.points_repo.deduct_if_sufficient(
                device_id, cost, description, related_key=related_key, commit=commit
            )
        except Exception as e:
            logger.error(f"Failed to consume points for device {device_id}: {str(e)}")
            raise InternalServerError("积分扣除失败")

        if result is None:
            current = self.points_repo.get_balance(device_id)
            raise InsufficientBalanceError(
                f"积分不足，需要{cost}积分",
                details={"required": cost, "current": current},
            )
        logger.info(f"Consumed {cost} points for device {device_id}: {description}")
        return result

    def get_history(
        self, device_id: str, page: int = 1, page_size: int = 20
    ) -> PointsHistoryResponse:
        """포인트 변동 내역 조회

        Args:
            device_id: 기기 ID
            page: 페이지 (1부터)
            page_size: 페이지 크기 (최대 100)

        Returns:
            PointsHistoryResponse: 최신순 로그와 현재 잔액
        """
        if not device_id:
            raise ValidationError("缺少设备ID")
        page = max(1, page)
        page_size = max(1, min(page_size, MAX_PAGE_SIZE))

        try:
            logs, total = self.points_repo.get_history(
                device_id, limit=page_size, offset=(page - 1) * page_size
            )
            balance = self.points_repo.get_balance(device_id)
        except Exception as e:
            logger.error(f"Failed to get history for device {device_id}: {str(e)}")
            raise InternalServerError("获取积分记录失败")

        return PointsHistoryResponse(
            points=balance, logs=logs, total=total, page=page, page_size=page_size
        )

    def admin_adjust(
        self, device_id: str, delta: int, description: Optional[str] = None
    ) -> AdminAdjustPointsResponse:
        """관리자 포인트 조정 - 조정과 관리자 로그를 한 트랜잭션으로 기록"""
        if not device_id:
            raise ValidationError("缺少设备ID")

        reason = description or ("管理员增加积分" if delta > 0 else "管理员扣除积分")
        try:
            result = self.adjust(device_id, delta, reason, commit=False)
            self.admin_log_repo.record(
                action="adjust_points",
                target_id=device_id,
                detail={
                    "points": delta,
                    "reason": reason,
                    "newBalance": result.new_balance,
                },
                commit=True,
            )
        except BaseAPIException:
            raise
        except Exception as e:
            logger.error(f"Admin adjust failed for device {device_id}: {str(e)}")
            raise InternalServerError("积分调整失败")

        logger.info(f"Admin adjusted device {device_id} by {delta}: {result.new_balance}")
        return AdminAdjustPointsResponse(device_id=device_id, new_balance=result.new_balance)
