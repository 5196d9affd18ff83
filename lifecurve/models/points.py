"""
포인트 로그 데이터 모델

잔액 변동은 모두 이 테이블에 한 줄씩 추가된다(append-only).
balance 필드는 변동 직후의 잔액 스냅샷이며, 조회 측은 합계를 다시 계산하지 않고
이 값을 그대로 신뢰한다.
"""

from sqlalchemy import BigInteger, Column, String, Text

from lifecurve.models.base import BaseModel, BigIntPK


class PointsLog(BaseModel):
    """
    포인트 로그 테이블

    - type: recharge(충전/지급) | consume(차감)
    - points: 요청된 변동량 (clamp 이전 값, 부호 포함)
    - balance: 변동 후 잔액
    """

    __tablename__ = "points_log"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    # 회원 계정 조정 로그는 device_id 없이 user_id만 가진다
    device_id = Column(String(128), index=True)
    user_id = Column(String(64), index=True)
    type = Column(String(16), nullable=False)
    points = Column(BigInteger, nullable=False)
    balance = Column(BigInteger, nullable=False)
    description = Column(Text)
    # 주문 ID, 卡密 등 변동 출처
    related_key = Column(Text)
