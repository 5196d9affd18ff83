from typing import List

from sqlalchemy.orm import Session

from lifecurve.models.master import Master as MasterModel
from lifecurve.repositories.base import BaseRepository
from lifecurve.schemas.master import MasterRecord


class MasterRepository(BaseRepository[MasterModel, MasterRecord]):
    def __init__(self, db: Session):
        super().__init__(MasterModel, MasterRecord, db)

    def list_masters(self, include_inactive: bool = False) -> List[MasterRecord]:
        """정렬 순서 -> 등록 순으로 조회"""
        query = self.db.query(self.model_class)
        if not include_inactive:
            query = query.filter(self.model_class.is_active.is_(True))
        instances = query.order_by(
            self.model_class.sort_order, self.model_class.created_at
        ).all()
        return self._to_schemas(instances)
