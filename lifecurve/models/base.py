from sqlalchemy import BigInteger, Column, DateTime, Integer, func
from sqlalchemy.orm import declarative_base, declared_attr

Base = declarative_base()

# 운영(Postgres)은 BIGINT, 테스트(sqlite)는 INTEGER PRIMARY KEY로 자동 증가
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")


class BaseModel(Base):
    """created_at / updated_at을 DB 서버 시각으로 채우는 추상 모델"""

    __abstract__ = True

    @declared_attr
    def created_at(cls):
        return Column(DateTime(timezone=True), server_default=func.now())

    @declared_attr
    def updated_at(cls):
        return Column(
            DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
        )
