"""
회원 계정 관리 (관리자)

- 휴대폰 번호 부분 검색 목록
- 포인트 조정: 0이 아닌 정수 + 사유 필수, 잔액은 0 아래로 내려가지 않음
"""

import logging
import math
from typing import Any, Optional

from sqlalchemy.orm import Session

from lifecurve.core.exceptions import (
    BaseAPIException,
    InternalServerError,
    NotFoundError,
    ValidationError,
)
from lifecurve.repositories.points_repository import PointsRepository
from lifecurve.repositories.system_repository import AdminLogRepository
from lifecurve.repositories.user_repository import UserRepository
from lifecurve.schemas.user import AdminAdjustUserPointsResponse, UserListResponse

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)
        self.points_repo = PointsRepository(db)
        self.admin_log_repo = AdminLogRepository(db)

    def list_users(
        self, phone: Optional[str] = None, page: int = 1, page_size: int = 20
    ) -> UserListResponse:
        page = max(1, page)
        page_size = max(1, min(page_size, MAX_PAGE_SIZE))
        users, total = self.user_repo.list_users(
            phone=phone or None, limit=page_size, offset=(page - 1) * page_size
        )
        return UserListResponse(
            users=users,
            total=total,
            page=page,
            total_pages=math.ceil(total / page_size),
        )

    def adjust_points(
        self, user_id: str, adjustment: Any, reason: Optional[str]
    ) -> AdminAdjustUserPointsResponse:
        """
        회원 포인트 조정

        Args:
            user_id: 회원 ID
            adjustment: 0이 아닌 정수 (음수면 차감)
            reason: 변동 사유 (로그 설명에 "管理员调整: " 접두어로 기록)

        Returns:
            AdminAdjustUserPointsResponse: 조정 전/후 잔액

        Raises:
            ValidationError: 변동량이 정수가 아니거나 0, 사유 누락
            NotFoundError: 회원 없음
        """
        if isinstance(adjustment, bool) or not isinstance(adjustment, int) or adjustment == 0:
            raise ValidationError("请输入有效的积分变动值")
        if not reason or not reason.strip():
            raise ValidationError("请输入变动原因")
        reason = reason.strip()

        if self.user_repo.get_by_id(user_id) is None:
            raise NotFoundError("用户不存在")

        try:
            result = self.points_repo.adjust_user_balance(
                user_id=user_id,
                delta=adjustment,
                description=f"管理员调整: {reason}",
                commit=False,
            )
            self.admin_log_repo.record(
                action="adjust_user_points",
                target_id=user_id,
                detail={
                    "points": adjustment,
                    "reason": reason,
                    "newBalance": result.new_balance,
                },
                commit=True,
            )
        except BaseAPIException:
            raise
        except LookupError:
            raise NotFoundError("用户不存在")
        except Exception as e:
            logger.error(f"Admin adjust failed for user {user_id}: {str(e)}")
            raise InternalServerError("调整积分失败")

        logger.info(
            f"Admin adjusted user {user_id} by {adjustment}: "
            f"{result.previous_balance} -> {result.new_balance}"
        )
        return AdminAdjustUserPointsResponse(
            user_id=user_id,
            previous_points=result.previous_balance,
            new_points=result.new_balance,
            adjustment=adjustment,
        )
