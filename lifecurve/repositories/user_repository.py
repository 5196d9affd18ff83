from typing import List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.orm import Session

from lifecurve.models.user import UserAccount as UserAccountModel
from lifecurve.repositories.base import BaseRepository
from lifecurve.schemas.user import UserRecord


class UserRepository(BaseRepository[UserAccountModel, UserRecord]):
    def __init__(self, db: Session):
        super().__init__(UserAccountModel, UserRecord, db)

    def list_users(
        self, phone: Optional[str], limit: int, offset: int
    ) -> Tuple[List[UserRecord], int]:
        """가입 최신순 목록 (phone: 부분 일치 검색)"""
        query = self.db.query(self.model_class)
        if phone:
            query = query.filter(self.model_class.phone.ilike(f"%{phone}%"))
        total = query.count()
        instances = (
            query.order_by(desc(self.model_class.created_at), desc(self.model_class.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return self._to_schemas(instances), total
