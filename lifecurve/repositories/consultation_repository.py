"""
상담 주문 리포지토리

상태 전이는 모두 현재 상태 조건이 걸린 UPDATE 한 문장으로 수행한다.
중복 결제 콜백이나 동시 관리자 처리에서 두 번째 UPDATE는 0건이 된다.
"""

from typing import Dict, List, Optional, Tuple

from sqlalchemy import desc, func, or_, update
from sqlalchemy.orm import Session

from lifecurve.models.consultation import Consultation as ConsultationModel
from lifecurve.repositories.base import BaseRepository
from lifecurve.schemas.consultation import ConsultationRecord, ConsultationStatus
from lifecurve.utils.timezone_utils import utc_now

# 전이 대상 상태 -> 전이 시각 컬럼
TRANSITION_TIMESTAMPS = {
    ConsultationStatus.PAID.value: "paid_at",
    ConsultationStatus.COMPLETED.value: "completed_at",
    ConsultationStatus.REFUNDED.value: "refunded_at",
}


class ConsultationRepository(BaseRepository[ConsultationModel, ConsultationRecord]):
    def __init__(self, db: Session):
        super().__init__(ConsultationModel, ConsultationRecord, db)

    def _reload(self, consultation_id: str) -> Optional[ConsultationRecord]:
        instance = (
            self.db.query(self.model_class)
            .filter(self.model_class.id == consultation_id)
            .populate_existing()
            .first()
        )
        return self._to_schema(instance)

    def transition(
        self,
        consultation_id: str,
        from_status: str,
        to_status: str,
        commit: bool = True,
        **values,
    ) -> Optional[ConsultationRecord]:
        """
        from_status일 때만 to_status로 전이

        Args:
            consultation_id: 상담 주문 ID
            from_status: 현재 상태 조건
            to_status: 전이할 상태 (전이 시각 컬럼 자동 기록)
            commit: False면 호출자가 커밋
            **values: 함께 기록할 컬럼 (trade_no 등)

        Returns:
            전이된 주문. 상태 조건이 맞지 않거나 없는 주문이면 None
        """
        values["status"] = to_status
        timestamp_field = TRANSITION_TIMESTAMPS.get(to_status)
        if timestamp_field:
            values[timestamp_field] = utc_now()

        stmt = (
            update(self.model_class)
            .where(
                self.model_class.id == consultation_id,
                self.model_class.status == from_status,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            return None
        self._commit(commit)
        return self._reload(consultation_id)

    def mark_paid(
        self, consultation_id: str, trade_no: str, commit: bool = True
    ) -> Optional[ConsultationRecord]:
        return self.transition(
            consultation_id,
            ConsultationStatus.PENDING.value,
            ConsultationStatus.PAID.value,
            commit=commit,
            trade_no=trade_no,
        )

    def list_consultations(
        self,
        status: Optional[str],
        master_id: Optional[str],
        search: Optional[str],
        limit: int,
        offset: int,
    ) -> Tuple[List[ConsultationRecord], int]:
        """최신 생성순 목록 (search: 주문 ID / 微信号 / 이름 부분 일치)"""
        query = self.db.query(self.model_class)
        if status:
            query = query.filter(self.model_class.status == status)
        if master_id:
            query = query.filter(self.model_class.master_id == master_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    self.model_class.id.ilike(pattern),
                    self.model_class.wechat_id.ilike(pattern),
                    self.model_class.name.ilike(pattern),
                )
            )
        total = query.count()
        instances = (
            query.order_by(desc(self.model_class.created_at), desc(self.model_class.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return self._to_schemas(instances), total

    def get_stats(self) -> Dict[str, int]:
        rows = (
            self.db.query(self.model_class.status, func.count(self.model_class.id))
            .group_by(self.model_class.status)
            .all()
        )
        counts = {status: int(count) for status, count in rows}
        revenue = (
            self.db.query(func.coalesce(func.sum(self.model_class.price), 0))
            .filter(
                self.model_class.status.in_(
                    [ConsultationStatus.PAID.value, ConsultationStatus.COMPLETED.value]
                )
            )
            .scalar()
        )
        stats = {status.value: counts.get(status.value, 0) for status in ConsultationStatus}
        stats["total"] = sum(counts.values())
        stats["total_revenue"] = int(revenue or 0)
        return stats
