import logging
import secrets
import string
from typing import List

from sqlalchemy.orm import Session

from lifecurve.core.exceptions import InternalServerError, NotFoundError, ValidationError
from lifecurve.repositories.master_repository import MasterRepository
from lifecurve.schemas.master import MasterRecord, MasterUpsertRequest

logger = logging.getLogger(__name__)

MASTER_ID_PREFIX = "master_"
MASTER_ID_CHARSET = string.ascii_lowercase + string.digits


def generate_master_id() -> str:
    suffix = "".join(secrets.choice(MASTER_ID_CHARSET) for _ in range(6))
    return f"{MASTER_ID_PREFIX}{suffix}"


def yuan_to_fen(price: float) -> int:
    return int(round(price * 100))


class MasterService:
    """상담 마스터 프로필 관리"""

    def __init__(self, db: Session):
        self.db = db
        self.master_repo = MasterRepository(db)

    def list_active(self) -> List[MasterRecord]:
        return self.master_repo.list_masters(include_inactive=False)

    def list_all(self) -> List[MasterRecord]:
        return self.master_repo.list_masters(include_inactive=True)

    def get_master(self, master_id: str) -> MasterRecord:
        master = self.master_repo.get_by_id(master_id)
        if master is None:
            raise NotFoundError("大师不存在")
        return master

    def get_public_master(self, master_id: str) -> MasterRecord:
        """공개 조회 - 비활성 마스터는 404"""
        master = self.get_master(master_id)
        if not master.is_active:
            raise NotFoundError("大师已下架")
        return master

    def create_master(self, request: MasterUpsertRequest) -> MasterRecord:
        """
        마스터 등록

        Args:
            request: name, price(元), wordCount 필수

        Returns:
            MasterRecord: 가격은 分 단위로 저장됨
        """
        if not request.name or not request.name.strip():
            raise ValidationError("名称不能为空")
        if request.price is None or request.price <= 0:
            raise ValidationError("价格必须大于0")
        if request.word_count is None or request.word_count <= 0:
            raise ValidationError("报告字数必须大于0")

        try:
            master = self.master_repo.create(
                id=generate_master_id(),
                name=request.name.strip(),
                avatar=request.avatar,
                price=yuan_to_fen(request.price),
                word_count=request.word_count,
                follow_ups=request.follow_ups or 0,
                years=request.years or 0,
                intro=request.intro,
                tags=request.tags or [],
                sort_order=request.sort_order or 0,
                is_active=True,
            )
        except Exception as e:
            logger.error(f"Failed to create master {request.name}: {str(e)}")
            raise InternalServerError("创建大师失败")

        logger.info(f"Master created: {master.id} ({master.name})")
        return master

    def update_master(self, master_id: str, request: MasterUpsertRequest) -> MasterRecord:
        """부분 수정 - 전달된 필드만 반영"""
        self.get_master(master_id)

        values = request.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in values:
            if not values["name"].strip():
                raise ValidationError("名称不能为空")
            values["name"] = values["name"].strip()
        if "price" in values:
            if values["price"] <= 0:
                raise ValidationError("价格必须大于0")
            values["price"] = yuan_to_fen(values["price"])
        if "word_count" in values and values["word_count"] <= 0:
            raise ValidationError("报告字数必须大于0")

        master = self.master_repo.update(master_id, **values)
        logger.info(f"Master updated: {master_id} fields={sorted(values)}")
        return master

    def delete_master(self, master_id: str) -> None:
        if not self.master_repo.delete(master_id):
            raise NotFoundError("大师不存在")
        logger.info(f"Master deleted: {master_id}")

    def set_active(self, master_id: str, is_active: object) -> MasterRecord:
        if not isinstance(is_active, bool):
            raise ValidationError("isActive 参数必须是布尔值")
        self.get_master(master_id)
        master = self.master_repo.update(master_id, is_active=is_active)
        logger.info(f"Master {master_id} active={is_active}")
        return master
