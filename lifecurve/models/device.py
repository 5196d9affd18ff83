"""
기기 사용량 데이터 모델

로그인 없이 기기 식별자(device fingerprint) 단위로 무료 사용 횟수와
포인트 잔액을 관리한다.
"""

from sqlalchemy import BigInteger, CheckConstraint, Column, Integer, JSON, String, Text

from lifecurve.models.base import BaseModel, BigIntPK


class DeviceUsage(BaseModel):
    """
    기기별 잔액/무료 사용량 테이블

    - 처음 요청이 들어올 때 생성됨 (first touch)
    - points는 음수가 될 수 없음 (조정 시 0으로 clamp)
    - 곡선 모드(life / wealth)별로 무료 사용 카운터가 독립적
    """

    __tablename__ = "device_usage"
    __table_args__ = (CheckConstraint("points >= 0", name="ck_device_usage_points"),)

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    device_id = Column(String(128), nullable=False, unique=True, index=True)

    # 현재 포인트 잔액
    points = Column(BigInteger, nullable=False, default=0, server_default="0")

    # 무료 사용 횟수 (모드별)
    free_used_life = Column(Integer, nullable=False, default=0, server_default="0")
    free_used_wealth = Column(Integer, nullable=False, default=0, server_default="0")

    # 누적 결제 금액 (단위: 分)
    total_paid = Column(BigInteger, nullable=False, default=0, server_default="0")


class UsageLog(BaseModel):
    """기능 사용 기록 (무료 개요 / 포인트 개요 / 상세 해설)"""

    __tablename__ = "usage_log"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    device_id = Column(String(128), nullable=False, index=True)
    action = Column(String(32), nullable=False)
    points_cost = Column(Integer, nullable=False, default=0)
    curve_mode = Column(String(16), nullable=False, default="life")
    birth_info = Column(JSON)
    result_id = Column(Text)
