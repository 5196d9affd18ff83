"""
시스템 설정 / 사이트 통계 / 관리자 로그 리포지토리
"""

import json
from typing import Any, Dict, Optional

from pydantic import BaseModel
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lifecurve.models.system import AdminLog as AdminLogModel
from lifecurve.models.system import SiteStat as SiteStatModel
from lifecurve.models.system import SystemConfig as SystemConfigModel
from lifecurve.repositories.base import BaseRepository


class ConfigEntry(BaseModel):
    key: str
    value: str

    class Config:
        from_attributes = True


class SiteStatEntry(BaseModel):
    key: str
    value: int

    class Config:
        from_attributes = True


class AdminLogEntry(BaseModel):
    id: int
    action: str
    target_id: Optional[str] = None
    detail: Optional[str] = None

    class Config:
        from_attributes = True


class SystemConfigRepository(BaseRepository[SystemConfigModel, ConfigEntry]):
    pk_field = "key"

    def __init__(self, db: Session):
        super().__init__(SystemConfigModel, ConfigEntry, db)

    def get_all(self) -> Dict[str, str]:
        return {row.key: row.value for row in self.db.query(self.model_class).all()}

    def upsert_many(self, values: Dict[str, str]) -> Dict[str, str]:
        try:
            for key, value in values.items():
                instance = self.db.get(self.model_class, key)
                if instance is None:
                    self.db.add(self.model_class(key=key, value=value))
                else:
                    instance.value = value
            self.db.flush()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self.get_all()


class SiteStatsRepository(BaseRepository[SiteStatModel, SiteStatEntry]):
    pk_field = "key"

    def __init__(self, db: Session):
        super().__init__(SiteStatModel, SiteStatEntry, db)

    def get_value(self, key: str) -> Optional[int]:
        instance = self.db.get(self.model_class, key)
        return None if instance is None else int(instance.value)

    def increment(self, key: str, initial: int, by: int = 1) -> int:
        """카운터 원자적 증가. 행이 없으면 initial + by로 생성"""
        stmt = (
            update(self.model_class)
            .where(self.model_class.key == key)
            .values(value=self.model_class.value + by)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            self.db.add(self.model_class(key=key, value=initial + by))
            try:
                self.db.commit()
                return initial + by
            except IntegrityError:
                self.db.rollback()
                return self.increment(key, initial, by)
        self._commit()
        return int(
            self.db.query(self.model_class.value)
            .filter(self.model_class.key == key)
            .scalar()
        )


class AdminLogRepository(BaseRepository[AdminLogModel, AdminLogEntry]):
    def __init__(self, db: Session):
        super().__init__(AdminLogModel, AdminLogEntry, db)

    def record(
        self,
        action: str,
        target_id: Optional[str],
        detail: Dict[str, Any],
        commit: bool = True,
    ) -> Optional[AdminLogEntry]:
        return self.create(
            commit=commit,
            action=action,
            target_id=target_id,
            detail=json.dumps(detail, ensure_ascii=False),
        )
