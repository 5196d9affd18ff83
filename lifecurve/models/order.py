"""
주문/충전 옵션 데이터 모델

주문 상태 전이: pending -> paid (성공), pending -> failed, paid -> refunded (관리자 환불)
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, true

from lifecurve.models.base import BaseModel, BigIntPK


class Order(BaseModel):
    """충전 주문 - 결제 콜백에 의해 pending에서 paid로 정확히 한 번 전이"""

    __tablename__ = "orders"

    # ORD_{unix timestamp}_{6자리 hex}
    id = Column(String(64), primary_key=True)
    device_id = Column(String(128), nullable=False, index=True)

    amount = Column(Integer, nullable=False)  # 결제 금액 (分)
    points = Column(Integer, nullable=False)
    pay_method = Column(String(16), nullable=False)  # wechat | alipay
    status = Column(String(16), nullable=False, default="pending", index=True)

    # 결제사 거래 번호 (wechat transaction_id / alipay trade_no)
    trade_no = Column(String(128))
    paid_at = Column(DateTime(timezone=True))
    refunded_at = Column(DateTime(timezone=True))
    expire_at = Column(DateTime(timezone=True))


class RechargeOption(BaseModel):
    """충전 옵션 (가격 단위: 分)"""

    __tablename__ = "recharge_options"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    price = Column(Integer, nullable=False)
    points = Column(Integer, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
