from abc import ABC
from typing import Any, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Session

T = TypeVar("T")
SchemaType = TypeVar("SchemaType", bound=BaseModel)


class BaseRepository(Generic[T, SchemaType], ABC):
    """리포지토리 공통 베이스 - ORM 인스턴스는 밖으로 내보내지 않고 Pydantic 레코드로 변환

    pk_field: 기본 키 컬럼 이름 (system_config, admin_sessions 처럼 id가 아닌 테이블용)

    트랜잭션 규칙:
        commit=True  -> 즉시 커밋
        commit=False -> flush만 하고 호출자가 같은 세션에서 이어서 커밋/롤백
    """

    pk_field: str = "id"

    def __init__(
        self, model_class: Type[T], schema_class: Type[SchemaType], db: Session
    ):
        self.model_class = model_class
        self.schema_class = schema_class
        self.db = db

    def _to_schema(self, model_instance: Any) -> Optional[SchemaType]:
        if model_instance is None:
            return None
        return self.schema_class.model_validate(model_instance)

    def _to_schemas(self, instances: List[Any]) -> List[SchemaType]:
        return [self.schema_class.model_validate(i) for i in instances]

    def _pk(self):
        return getattr(self.model_class, self.pk_field)

    def _get_instance(self, instance_id: Any) -> Optional[T]:
        return self.db.query(self.model_class).filter(self._pk() == instance_id).first()

    def _commit(self, commit: bool = True) -> None:
        try:
            if commit:
                self.db.commit()
            else:
                self.db.flush()
        except Exception:
            self.db.rollback()
            raise

    def _persist(self, instance: T, commit: bool) -> Optional[SchemaType]:
        """flush + refresh 후 레코드 반환 (서버 기본값 반영)"""
        self.db.add(instance)
        try:
            self.db.flush()
            self.db.refresh(instance)
            if commit:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self._to_schema(instance)

    def get_by_id(self, id: Any) -> Optional[SchemaType]:
        return self._to_schema(self._get_instance(id))

    def create(self, commit: bool = True, **kwargs) -> Optional[SchemaType]:
        return self._persist(self.model_class(**kwargs), commit)

    def update(
        self, instance_id: Any, commit: bool = True, **kwargs
    ) -> Optional[SchemaType]:
        """알려진 컬럼만 반영, 없는 레코드면 None"""
        instance = self._get_instance(instance_id)
        if instance is None:
            return None

        for key, value in kwargs.items():
            if hasattr(instance, key):
                setattr(instance, key, value)
        return self._persist(instance, commit)

    def delete(self, instance_id: Any, commit: bool = True) -> bool:
        instance = self._get_instance(instance_id)
        if instance is None:
            return False

        self.db.delete(instance)
        self._commit(commit)
        return True
