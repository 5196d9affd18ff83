from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from lifecurve.models.system import AdminSession as AdminSessionModel
from lifecurve.repositories.base import BaseRepository


class AdminSessionEntry(BaseModel):
    session_token: str
    expires_at: datetime

    class Config:
        from_attributes = True


class AdminSessionRepository(BaseRepository[AdminSessionModel, AdminSessionEntry]):
    """admin_sessions 테이블 접근"""

    pk_field = "session_token"

    def __init__(self, db: Session):
        super().__init__(AdminSessionModel, AdminSessionEntry, db)

    def create_session(self, token: str, expires_at: datetime) -> Optional[AdminSessionEntry]:
        return self.create(session_token=token, expires_at=expires_at)

    def get_valid(self, token: str, now: datetime) -> Optional[AdminSessionEntry]:
        instance = (
            self.db.query(self.model_class)
            .filter(
                self.model_class.session_token == token,
                self.model_class.expires_at > now,
            )
            .first()
        )
        return self._to_schema(instance)

    def purge_expired(self, now: datetime) -> int:
        deleted = (
            self.db.query(self.model_class)
            .filter(self.model_class.expires_at <= now)
            .delete(synchronize_session=False)
        )
        self._commit()
        return int(deleted or 0)
