from sqlalchemy import BigInteger, CheckConstraint, Column, String

from lifecurve.models.base import BaseModel


class UserAccount(BaseModel):
    """회원 계정 잔액 (가입/로그인 흐름은 별도 서비스가 관리)"""

    __tablename__ = "users"
    __table_args__ = (CheckConstraint("points >= 0", name="ck_users_points"),)

    id = Column(String(64), primary_key=True)
    phone = Column(String(32), unique=True, index=True)
    nickname = Column(String(64))
    points = Column(BigInteger, nullable=False, default=0)
