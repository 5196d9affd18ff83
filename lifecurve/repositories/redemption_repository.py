"""
卡密 리포지토리

사용 처리(is_used=false -> true)는 조건부 UPDATE 한 문장으로 수행하여
같은 코드를 동시에 두 번 사용하는 경우 한쪽만 성공하도록 한다.
"""

from typing import Iterable, List, Optional, Set, Tuple

from sqlalchemy import desc, update
from sqlalchemy.orm import Session

from lifecurve.models.redemption import RedemptionCode as RedemptionCodeModel
from lifecurve.repositories.base import BaseRepository
from lifecurve.schemas.redemption import CodeListFilter, RedemptionCodeRecord
from lifecurve.utils.timezone_utils import utc_now

_IN_CLAUSE_CHUNK = 500


class RedemptionRepository(BaseRepository[RedemptionCodeModel, RedemptionCodeRecord]):
    def __init__(self, db: Session):
        super().__init__(RedemptionCodeModel, RedemptionCodeRecord, db)

    def get_by_code(self, code: str) -> Optional[RedemptionCodeRecord]:
        instance = (
            self.db.query(self.model_class).filter(self.model_class.code == code).first()
        )
        return self._to_schema(instance)

    def mark_used(self, code: str, device_id: str, commit: bool = True) -> bool:
        """미사용 코드만 사용 처리. 이번 호출이 사용 처리에 성공했으면 True"""
        stmt = (
            update(self.model_class)
            .where(self.model_class.code == code, self.model_class.is_used.is_(False))
            .values(is_used=True, used_by=device_id, used_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            return False
        self._commit(commit)
        return True

    def find_existing(self, codes: Iterable[str]) -> Set[str]:
        codes = list(codes)
        found: Set[str] = set()
        for i in range(0, len(codes), _IN_CLAUSE_CHUNK):
            chunk = codes[i : i + _IN_CLAUSE_CHUNK]
            rows = (
                self.db.query(self.model_class.code)
                .filter(self.model_class.code.in_(chunk))
                .all()
            )
            found.update(row[0] for row in rows)
        return found

    def bulk_create(
        self,
        codes: List[str],
        points: int,
        report_level: str,
        test_slug: Optional[str] = None,
        batch_name: Optional[str] = None,
    ) -> int:
        """배치 생성 - 전체가 한 트랜잭션"""
        self.db.add_all(
            [
                self.model_class(
                    code=code,
                    points=points,
                    test_slug=test_slug,
                    report_level=report_level,
                    batch_name=batch_name,
                    is_used=False,
                )
                for code in codes
            ]
        )
        self._commit()
        return len(codes)

    def _filtered_query(self, filters: CodeListFilter):
        query = self.db.query(self.model_class)
        if filters.test_slug:
            query = query.filter(self.model_class.test_slug == filters.test_slug)
        if filters.is_used is not None:
            query = query.filter(self.model_class.is_used.is_(filters.is_used))
        if filters.batch_name:
            query = query.filter(self.model_class.batch_name == filters.batch_name)
        return query

    def list_codes(
        self, filters: CodeListFilter, limit: int, offset: int
    ) -> Tuple[List[RedemptionCodeRecord], int]:
        query = self._filtered_query(filters)
        total = query.count()
        instances = (
            query.order_by(desc(self.model_class.id)).offset(offset).limit(limit).all()
        )
        return self._to_schemas(instances), total

    def export_codes(self, filters: CodeListFilter) -> List[RedemptionCodeRecord]:
        """최신 생성순 (created_at 내림차순, 같은 시각이면 id 내림차순)"""
        instances = (
            self._filtered_query(filters)
            .order_by(desc(self.model_class.created_at), desc(self.model_class.id))
            .all()
        )
        return self._to_schemas(instances)

    def list_batches(self) -> List[str]:
        rows = (
            self.db.query(self.model_class.batch_name)
            .filter(self.model_class.batch_name.isnot(None))
            .distinct()
            .order_by(self.model_class.batch_name)
            .all()
        )
        return [row[0] for row in rows]

    def delete_unused_in_batch(self, batch_name: str) -> int:
        deleted = (
            self.db.query(self.model_class)
            .filter(
                self.model_class.batch_name == batch_name,
                self.model_class.is_used.is_(False),
            )
            .delete(synchronize_session=False)
        )
        self._commit()
        return int(deleted or 0)
