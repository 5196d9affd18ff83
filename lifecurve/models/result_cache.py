from sqlalchemy import Boolean, Column, JSON, String

from lifecurve.models.base import BaseModel, BigIntPK


class ResultCache(BaseModel):
    """
    분석 결과 캐시 - cache_key는 입력값의 결정적 함수

    TTL/용량 제한/만료 정책 없음. 같은 키로 저장하면 마지막 값이 남는다.
    """

    __tablename__ = "result_cache"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    cache_key = Column(String(64), nullable=False, unique=True, index=True)
    device_id = Column(String(128), nullable=False, index=True)
    curve_mode = Column(String(16), nullable=False, default="life")
    is_paid = Column(Boolean, nullable=False, default=False)
    result_data = Column(JSON, nullable=False)
    birth_info = Column(JSON)
