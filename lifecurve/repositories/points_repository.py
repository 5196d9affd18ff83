"""
포인트 리포지토리 - 잔액 변동과 로그 기록

이 파일은 포인트 시스템의 데이터 접근을 담당합니다:
1. 잔액 조정 (0 하한 clamp, 기기 / 회원 계정)
2. 잔액이 충분할 때만 차감
3. 주문 결제에 따른 충전 (누적 결제 금액 포함)
4. 포인트 로그 조회 및 집계

핵심 특징:
- 잔액 변경은 항상 device_usage / users에 대한 단일 조건부 UPDATE 한 번으로 처리됩니다
  (읽고-계산하고-쓰는 구간이 없어 동시 조정 시 업데이트 유실이 없음)
- 변경 직후 같은 트랜잭션에서 잔액을 다시 읽어 로그의 balance 스냅샷으로 저장합니다
- 잔액 변경과 로그 추가는 하나의 트랜잭션으로 커밋됩니다
"""

from typing import Dict, List, Optional, Tuple

from sqlalchemy import case, desc, func, select, update
from sqlalchemy.orm import Session

from lifecurve.models.device import DeviceUsage as DeviceUsageModel
from lifecurve.models.points import PointsLog as PointsLogModel
from lifecurve.models.user import UserAccount as UserAccountModel
from lifecurve.repositories.base import BaseRepository
from lifecurve.schemas.points import PointsAdjustResult, PointsLogEntry, UserPointsAdjustResult

LOG_TYPE_RECHARGE = "recharge"
LOG_TYPE_CONSUME = "consume"


class PointsRepository(BaseRepository[PointsLogModel, PointsLogEntry]):
    """
    포인트 리포지토리

    주요 기능:
    1. 원자성 - 잔액 변경은 조건부 UPDATE 한 문장
    2. 음수 방지 - CASE 식으로 0 하한 clamp, 또는 WHERE points >= cost
    3. 감사 추적 - 모든 변동을 points_log에 기록
    """

    def __init__(self, db: Session):
        super().__init__(PointsLogModel, PointsLogEntry, db)

    def get_balance(self, device_id: str) -> int:
        """현재 잔액 조회 (기기 레코드가 없으면 0)"""
        balance = self.db.execute(
            select(DeviceUsageModel.points).where(
                DeviceUsageModel.device_id == device_id
            )
        ).scalar_one_or_none()
        return int(balance or 0)

    def _append_log(
        self,
        device_id: Optional[str],
        log_type: str,
        delta: int,
        balance: int,
        description: Optional[str],
        related_key: Optional[str],
        user_id: Optional[str],
    ) -> PointsLogModel:
        entry = self.model_class(
            device_id=device_id,
            user_id=user_id,
            type=log_type,
            points=delta,
            balance=balance,
            description=description,
            related_key=related_key,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def adjust_balance(
        self,
        device_id: str,
        delta: int,
        description: Optional[str] = None,
        log_type: Optional[str] = None,
        related_key: Optional[str] = None,
        user_id: Optional[str] = None,
        commit: bool = True,
    ) -> PointsAdjustResult:
        """
        잔액 조정 - new_balance = max(0, balance + delta)

        Args:
            device_id: 기기 ID (레코드가 존재해야 함)
            delta: 변동량 (음수면 차감, 잔액보다 크면 0으로 clamp)
            description: 로그 설명
            log_type: recharge | consume (생략 시 delta 부호로 결정)
            related_key: 출처 식별자
            user_id: 사용자 ID (선택)
            commit: False면 호출자가 트랜잭션을 커밋

        Returns:
            PointsAdjustResult: 변동량과 변동 후 잔액

        Raises:
            LookupError: 기기 레코드가 없는 경우
        """
        if log_type is None:
            log_type = LOG_TYPE_RECHARGE if delta > 0 else LOG_TYPE_CONSUME

        next_points = DeviceUsageModel.points + delta
        stmt = (
            update(DeviceUsageModel)
            .where(DeviceUsageModel.device_id == device_id)
            .values(points=case((next_points < 0, 0), else_=next_points))
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            if result.rowcount != 1:
                raise LookupError(f"device not found: {device_id}")

            new_balance = self.get_balance(device_id)
            entry = self._append_log(
                device_id, log_type, delta, new_balance, description, related_key, user_id
            )
            if commit:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return PointsAdjustResult(
            device_id=device_id, delta=delta, new_balance=new_balance, log_id=entry.id
        )

    def adjust_user_balance(
        self,
        user_id: str,
        delta: int,
        description: Optional[str] = None,
        commit: bool = True,
    ) -> UserPointsAdjustResult:
        """
        회원 계정 잔액 조정 - new_balance = max(0, balance + delta)

        adjust_balance와 같은 clamp 규칙으로 users 테이블을 갱신하고,
        device_id 없이 user_id만 가진 로그를 남긴다.

        Raises:
            LookupError: 회원 레코드가 없는 경우
        """
        log_type = LOG_TYPE_RECHARGE if delta > 0 else LOG_TYPE_CONSUME
        next_points = UserAccountModel.points + delta
        stmt = (
            update(UserAccountModel)
            .where(UserAccountModel.id == user_id)
            .values(points=case((next_points < 0, 0), else_=next_points))
            .execution_options(synchronize_session=False)
        )
        try:
            previous = self.db.execute(
                select(UserAccountModel.points).where(UserAccountModel.id == user_id)
            ).scalar_one_or_none()
            if previous is None:
                raise LookupError(f"user not found: {user_id}")
            self.db.execute(stmt)

            new_balance = int(
                self.db.execute(
                    select(UserAccountModel.points).where(UserAccountModel.id == user_id)
                ).scalar_one()
            )
            entry = self._append_log(
                None, log_type, delta, new_balance, description, None, user_id
            )
            if commit:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return UserPointsAdjustResult(
            user_id=user_id,
            delta=delta,
            previous_balance=int(previous),
            new_balance=new_balance,
            log_id=entry.id,
        )

    def deduct_if_sufficient(
        self,
        device_id: str,
        cost: int,
        description: str,
        related_key: Optional[str] = None,
        commit: bool = True,
    ) -> Optional[PointsAdjustResult]:
        """잔액이 cost 이상일 때만 차감. 잔액 부족이면 아무것도 바꾸지 않고 None 반환"""
        stmt = (
            update(DeviceUsageModel)
            .where(
                DeviceUsageModel.device_id == device_id,
                DeviceUsageModel.points >= cost,
            )
            .values(points=DeviceUsageModel.points - cost)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            if result.rowcount != 1:
                return None

            new_balance = self.get_balance(device_id)
            entry = self._append_log(
                device_id, LOG_TYPE_CONSUME, -cost, new_balance, description, related_key, None
            )
            if commit:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return PointsAdjustResult(
            device_id=device_id, delta=-cost, new_balance=new_balance, log_id=entry.id
        )

    def credit_order(
        self,
        device_id: str,
        points: int,
        amount: int,
        order_id: str,
        commit: bool = True,
    ) -> PointsAdjustResult:
        """결제 완료 주문의 포인트 지급 + 누적 결제 금액 증가"""
        stmt = (
            update(DeviceUsageModel)
            .where(DeviceUsageModel.device_id == device_id)
            .values(
                points=DeviceUsageModel.points + points,
                total_paid=DeviceUsageModel.total_paid + amount,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            if result.rowcount != 1:
                raise LookupError(f"device not found: {device_id}")

            new_balance = self.get_balance(device_id)
            entry = self._append_log(
                device_id,
                LOG_TYPE_RECHARGE,
                points,
                new_balance,
                f"订单充值 ({order_id})",
                order_id,
                None,
            )
            if commit:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return PointsAdjustResult(
            device_id=device_id, delta=points, new_balance=new_balance, log_id=entry.id
        )

    def get_history(
        self, device_id: str, limit: int = 20, offset: int = 0
    ) -> Tuple[List[PointsLogEntry], int]:
        """기기 포인트 로그 조회 (최신순, 페이징)"""
        query = self.db.query(self.model_class).filter(
            self.model_class.device_id == device_id
        )
        total = query.count()
        instances = (
            query.order_by(desc(self.model_class.id)).offset(offset).limit(limit).all()
        )
        return self._to_schemas(instances), total

    def consumed_by_devices(self, device_ids: List[str]) -> Dict[str, int]:
        """기기별 누적 소비 포인트 (consume 로그의 절대값 합)"""
        if not device_ids:
            return {}
        rows = (
            self.db.query(
                self.model_class.device_id, func.sum(func.abs(self.model_class.points))
            )
            .filter(
                self.model_class.device_id.in_(device_ids),
                self.model_class.type == LOG_TYPE_CONSUME,
            )
            .group_by(self.model_class.device_id)
            .all()
        )
        return {device_id: int(total or 0) for device_id, total in rows}

    def totals_for_device(self, device_id: str) -> Tuple[int, int]:
        """(누적 소비, 누적 충전) 합계"""
        consumed = (
            self.db.query(func.sum(func.abs(self.model_class.points)))
            .filter(
                self.model_class.device_id == device_id,
                self.model_class.type == LOG_TYPE_CONSUME,
            )
            .scalar()
        )
        recharged = (
            self.db.query(func.sum(self.model_class.points))
            .filter(
                self.model_class.device_id == device_id,
                self.model_class.type == LOG_TYPE_RECHARGE,
            )
            .scalar()
        )
        return int(consumed or 0), int(recharged or 0)
