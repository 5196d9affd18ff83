from sqlalchemy import Boolean, Column, DateTime, Integer, String, false

from lifecurve.models.base import BaseModel, BigIntPK


class RedemptionCode(BaseModel):
    """卡密(리딤 코드) - 관리자가 배치로 생성, 1회만 사용 가능"""

    __tablename__ = "redemption_codes"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    code = Column(String(32), nullable=False, unique=True, index=True)
    points = Column(Integer, nullable=False, default=0)

    # 특정 테스트 전용 코드면 해당 slug, 범용이면 NULL
    test_slug = Column(String(64))
    report_level = Column(String(16), nullable=False, default="basic")
    batch_name = Column(String(128), index=True)

    is_used = Column(Boolean, nullable=False, default=False, server_default=false())
    used_by = Column(String(128))
    used_at = Column(DateTime(timezone=True))
