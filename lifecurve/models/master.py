from sqlalchemy import Boolean, Column, Integer, JSON, String, Text

from lifecurve.models.base import BaseModel


class Master(BaseModel):
    """상담 마스터 프로필"""

    __tablename__ = "masters"

    id = Column(String(32), primary_key=True)  # master_xxxxxx
    name = Column(String(64), nullable=False)
    avatar = Column(Text)
    price = Column(Integer, nullable=False)  # 分
    word_count = Column(Integer, nullable=False)
    follow_ups = Column(Integer, nullable=False, default=0)  # -1 = 무제한
    years = Column(Integer, nullable=False, default=0)
    intro = Column(Text)
    tags = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
