"""
기기 사용량 리포지토리

- 기기 레코드는 처음 조회될 때 생성된다 (first touch)
- 무료 사용 카운터 증가는 "한도 미만일 때만 +1" 하는 단일 조건부 UPDATE로 처리하여
  동시 요청이 한도를 넘겨 사용하는 경우를 막는다
"""

from typing import Dict, List, Optional, Tuple

from sqlalchemy import desc, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lifecurve.models.device import DeviceUsage as DeviceUsageModel
from lifecurve.models.device import UsageLog as UsageLogModel
from lifecurve.repositories.base import BaseRepository
from lifecurve.schemas.points import DeviceUsageRecord
from lifecurve.schemas.usage import CurveMode, UsageLogEntry

FREE_USAGE_COLUMNS = {
    CurveMode.LIFE.value: "free_used_life",
    CurveMode.WEALTH.value: "free_used_wealth",
}


def free_usage_column(curve_mode: str) -> str:
    return FREE_USAGE_COLUMNS.get(curve_mode, FREE_USAGE_COLUMNS[CurveMode.LIFE.value])


class DeviceRepository(BaseRepository[DeviceUsageModel, DeviceUsageRecord]):
    def __init__(self, db: Session):
        super().__init__(DeviceUsageModel, DeviceUsageRecord, db)

    def get_by_device_id(self, device_id: str) -> Optional[DeviceUsageRecord]:
        instance = (
            self.db.query(self.model_class)
            .filter(self.model_class.device_id == device_id)
            .first()
        )
        return self._to_schema(instance)

    def ensure_device(self, device_id: str) -> None:
        """기기 레코드가 없으면 생성 (동시 생성 경합은 unique 제약으로 흡수)"""
        exists = (
            self.db.query(self.model_class.id)
            .filter(self.model_class.device_id == device_id)
            .first()
        )
        if exists:
            return

        self.db.add(self.model_class(device_id=device_id))
        try:
            self.db.commit()
        except IntegrityError:
            # 다른 요청이 먼저 생성함
            self.db.rollback()

    def get_or_create(self, device_id: str) -> DeviceUsageRecord:
        """
        기기 조회, 없으면 생성

        Args:
            device_id: 기기 ID

        Returns:
            DeviceUsageRecord: 기기 사용량 레코드
        """
        self.ensure_device(device_id)
        record = self.get_by_device_id(device_id)
        if record is None:
            raise RuntimeError(f"device row missing after create: {device_id}")
        return record

    def try_use_free_slot(
        self, device_id: str, curve_mode: str, limit: int, commit: bool = True
    ) -> bool:
        """무료 사용 횟수가 한도 미만이면 1 증가시키고 True 반환"""
        column = getattr(self.model_class, free_usage_column(curve_mode))
        stmt = (
            update(self.model_class)
            .where(self.model_class.device_id == device_id, column < limit)
            .values({column: column + 1})
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            return False
        self._commit(commit)
        return True

    def list_devices(self, limit: int, offset: int) -> Tuple[List[DeviceUsageRecord], int]:
        total = self.db.query(func.count(self.model_class.id)).scalar() or 0
        instances = (
            self.db.query(self.model_class)
            .order_by(desc(self.model_class.updated_at), desc(self.model_class.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return self._to_schemas(instances), total


class UsageLogRepository(BaseRepository[UsageLogModel, UsageLogEntry]):
    """기능 사용 기록 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(UsageLogModel, UsageLogEntry, db)

    def create_log(
        self,
        device_id: str,
        action: str,
        points_cost: int,
        curve_mode: str,
        birth_info: Optional[dict] = None,
        result_id: Optional[str] = None,
        commit: bool = True,
    ) -> Optional[UsageLogEntry]:
        return self.create(
            commit=commit,
            device_id=device_id,
            action=action,
            points_cost=points_cost,
            curve_mode=curve_mode,
            birth_info=birth_info,
            result_id=result_id,
        )

    def list_recent(self, device_id: str, limit: int = 100) -> List[UsageLogEntry]:
        instances = (
            self.db.query(self.model_class)
            .filter(self.model_class.device_id == device_id)
            .order_by(desc(self.model_class.id))
            .limit(limit)
            .all()
        )
        return self._to_schemas(instances)

    def count_for_device(self, device_id: str) -> int:
        return (
            self.db.query(func.count(self.model_class.id))
            .filter(self.model_class.device_id == device_id)
            .scalar()
            or 0
        )

    def count_by_devices(self, device_ids: List[str]) -> Dict[str, int]:
        if not device_ids:
            return {}
        rows = (
            self.db.query(self.model_class.device_id, func.count(self.model_class.id))
            .filter(self.model_class.device_id.in_(device_ids))
            .group_by(self.model_class.device_id)
            .all()
        )
        return {device_id: count for device_id, count in rows}
