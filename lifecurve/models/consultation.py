"""
상담 주문 데이터 모델

상태 전이:
- pending -> paid (결제 콜백, 정확히 한 번)
- paid -> completed (관리자 완료 처리)
- paid -> refunded (관리자 환불)
"""

from sqlalchemy import Column, DateTime, Integer, String, Text

from lifecurve.models.base import BaseModel


class Consultation(BaseModel):
    """마스터 상담 주문 - 생성 시점의 마스터 가격/조건을 스냅샷으로 보관"""

    __tablename__ = "consultations"

    # MS_{YYYYMMDD}_{5자리 대문자/숫자}
    id = Column(String(32), primary_key=True)
    device_id = Column(String(128), nullable=False, index=True)

    master_id = Column(String(32), nullable=False, index=True)
    master_name = Column(String(64))
    price = Column(Integer, nullable=False)  # 分
    word_count = Column(Integer)
    follow_ups = Column(Integer)

    birth_year = Column(Integer, nullable=False)
    birth_month = Column(Integer, nullable=False)
    birth_day = Column(Integer, nullable=False)
    birth_time = Column(String(16))
    gender = Column(String(8), nullable=False)
    name = Column(String(64))
    wechat_id = Column(String(64), nullable=False)
    question = Column(Text, nullable=False)
    focus_hint = Column(Text)

    pay_method = Column(String(16), nullable=False)  # wechat | alipay
    status = Column(String(16), nullable=False, default="pending", index=True)
    trade_no = Column(String(128))
    paid_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    refunded_at = Column(DateTime(timezone=True))
