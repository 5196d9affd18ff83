from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lifecurve.models.result_cache import ResultCache as ResultCacheModel
from lifecurve.repositories.base import BaseRepository
from lifecurve.schemas.result_cache import ResultCacheRecord


class ResultCacheRepository(BaseRepository[ResultCacheModel, ResultCacheRecord]):
    """결과 캐시 - cache_key 기준 조회/저장 (마지막 저장이 우선)"""

    def __init__(self, db: Session):
        super().__init__(ResultCacheModel, ResultCacheRecord, db)

    def get_by_key(self, cache_key: str) -> Optional[ResultCacheRecord]:
        instance = (
            self.db.query(self.model_class)
            .filter(self.model_class.cache_key == cache_key)
            .first()
        )
        return self._to_schema(instance)

    def _apply(self, instance: ResultCacheModel, values: dict) -> None:
        for key, value in values.items():
            setattr(instance, key, value)

    def upsert(
        self,
        cache_key: str,
        device_id: str,
        curve_mode: str,
        is_paid: bool,
        result_data: Any,
        birth_info: Optional[dict] = None,
    ) -> Optional[ResultCacheRecord]:
        values = {
            "device_id": device_id,
            "curve_mode": curve_mode,
            "is_paid": is_paid,
            "result_data": result_data,
            "birth_info": birth_info,
        }
        instance = (
            self.db.query(self.model_class)
            .filter(self.model_class.cache_key == cache_key)
            .first()
        )
        if instance is None:
            instance = self.model_class(cache_key=cache_key, **values)
            self.db.add(instance)
            try:
                self.db.commit()
                return self._to_schema(instance)
            except IntegrityError:
                # 동시에 같은 키가 저장됨 - 기존 행을 덮어씀
                self.db.rollback()
                instance = (
                    self.db.query(self.model_class)
                    .filter(self.model_class.cache_key == cache_key)
                    .one()
                )

        self._apply(instance, values)
        self._commit()
        return self._to_schema(instance)
