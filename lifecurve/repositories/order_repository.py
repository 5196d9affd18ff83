"""
주문 리포지토리

pending -> paid, paid -> refunded 전이는 현재 상태 조건이 걸린 UPDATE 한 문장으로만 수행한다.
중복 콜백이 와도 두 번째 UPDATE는 0건이 되어 포인트가 다시 지급되지 않는다.
"""

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import desc, func, update
from sqlalchemy.orm import Session

from lifecurve.models.order import Order as OrderModel
from lifecurve.models.order import RechargeOption as RechargeOptionModel
from lifecurve.repositories.base import BaseRepository
from lifecurve.schemas.order import OrderRecord, OrderStatus, RechargeOptionRecord
from lifecurve.utils.timezone_utils import utc_now


class OrderRepository(BaseRepository[OrderModel, OrderRecord]):
    def __init__(self, db: Session):
        super().__init__(OrderModel, OrderRecord, db)

    def create_order(
        self,
        order_id: str,
        device_id: str,
        amount: int,
        points: int,
        pay_method: str,
        expire_at: datetime,
    ) -> Optional[OrderRecord]:
        return self.create(
            id=order_id,
            device_id=device_id,
            amount=amount,
            points=points,
            pay_method=pay_method,
            status=OrderStatus.PENDING.value,
            expire_at=expire_at,
        )

    def _reload(self, order_id: str) -> Optional[OrderRecord]:
        instance = (
            self.db.query(self.model_class)
            .filter(self.model_class.id == order_id)
            .populate_existing()
            .first()
        )
        return self._to_schema(instance)

    def mark_paid(
        self, order_id: str, trade_no: str, commit: bool = True
    ) -> Optional[OrderRecord]:
        """
        주문을 paid로 전이 (현재 상태가 pending일 때만)

        Args:
            order_id: 주문 ID
            trade_no: 결제사 거래번호
            commit: False면 호출자가 커밋 (포인트 지급과 같은 트랜잭션으로 묶을 때)

        Returns:
            전이된 주문. 이미 paid/failed이거나 없는 주문이면 None
        """
        stmt = (
            update(self.model_class)
            .where(
                self.model_class.id == order_id,
                self.model_class.status == OrderStatus.PENDING.value,
            )
            .values(
                status=OrderStatus.PAID.value,
                trade_no=trade_no,
                paid_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            return None
        self._commit(commit)
        return self._reload(order_id)

    def mark_refunded(self, order_id: str, commit: bool = True) -> Optional[OrderRecord]:
        """
        주문을 refunded로 전이 (현재 상태가 paid일 때만)

        Returns:
            전이된 주문. paid가 아니거나 이미 환불된 주문이면 None
        """
        stmt = (
            update(self.model_class)
            .where(
                self.model_class.id == order_id,
                self.model_class.status == OrderStatus.PAID.value,
            )
            .values(status=OrderStatus.REFUNDED.value, refunded_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            return None
        self._commit(commit)
        return self._reload(order_id)

    def list_orders(
        self,
        status: Optional[str],
        device_id: Optional[str],
        limit: int,
        offset: int,
    ) -> Tuple[List[OrderRecord], int]:
        query = self.db.query(self.model_class)
        if status:
            query = query.filter(self.model_class.status == status)
        if device_id:
            query = query.filter(self.model_class.device_id == device_id)
        total = query.count()
        instances = (
            query.order_by(desc(self.model_class.created_at), desc(self.model_class.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return self._to_schemas(instances), total

    def get_stats(self, day_start: datetime) -> Dict[str, int]:
        """주문 통계 (금액 단위: 分)"""
        paid = self.model_class.status == OrderStatus.PAID.value

        total_orders = self.db.query(func.count(self.model_class.id)).scalar() or 0
        paid_orders, total_revenue = (
            self.db.query(
                func.count(self.model_class.id), func.coalesce(func.sum(self.model_class.amount), 0)
            )
            .filter(paid)
            .one()
        )
        today_orders, today_revenue = (
            self.db.query(
                func.count(self.model_class.id), func.coalesce(func.sum(self.model_class.amount), 0)
            )
            .filter(paid, self.model_class.paid_at >= day_start)
            .one()
        )
        total_users = (
            self.db.query(func.count(func.distinct(self.model_class.device_id)))
            .filter(paid)
            .scalar()
            or 0
        )
        total_refunded = (
            self.db.query(func.coalesce(func.sum(self.model_class.amount), 0))
            .filter(self.model_class.status == OrderStatus.REFUNDED.value)
            .scalar()
        )
        return {
            "today_revenue": int(today_revenue or 0),
            "today_orders": int(today_orders or 0),
            "total_revenue": int(total_revenue or 0),
            "total_orders": int(total_orders),
            "paid_orders": int(paid_orders or 0),
            "total_users": int(total_users),
            "total_refunded": int(total_refunded or 0),
        }


class RechargeOptionRepository(BaseRepository[RechargeOptionModel, RechargeOptionRecord]):
    def __init__(self, db: Session):
        super().__init__(RechargeOptionModel, RechargeOptionRecord, db)

    def list_options(self, active_only: bool = True) -> List[RechargeOptionRecord]:
        query = self.db.query(self.model_class)
        if active_only:
            query = query.filter(self.model_class.is_active.is_(True))
        instances = query.order_by(self.model_class.sort_order, self.model_class.id).all()
        return self._to_schemas(instances)

    def get_active(self, option_id: int) -> Optional[RechargeOptionRecord]:
        instance = (
            self.db.query(self.model_class)
            .filter(
                self.model_class.id == option_id,
                self.model_class.is_active.is_(True),
            )
            .first()
        )
        return self._to_schema(instance)

    def replace_all(self, options: List[dict]) -> List[RechargeOptionRecord]:
        """기존 옵션 전체 삭제 후 새 옵션 삽입 (한 트랜잭션)"""
        try:
            self.db.query(self.model_class).delete(synchronize_session=False)
            instances = [self.model_class(**option) for option in options]
            self.db.add_all(instances)
            self.db.flush()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self._to_schemas(instances)
