"""
시스템 설정 / 통계 / 관리자 세션 데이터 모델
"""

from sqlalchemy import BigInteger, Column, DateTime, String, Text

from lifecurve.models.base import BaseModel, BigIntPK


class SystemConfig(BaseModel):
    """키-값 시스템 설정 (unlock_points, overview_points, free_limit 등)"""

    __tablename__ = "system_config"

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)


class SiteStat(BaseModel):
    """사이트 전역 카운터 (예: total_generated)"""

    __tablename__ = "site_stats"

    key = Column(String(64), primary_key=True)
    value = Column(BigInteger, nullable=False, default=0)


class AdminSession(BaseModel):
    """관리자 세션 토큰 (database 백엔드에서 사용)"""

    __tablename__ = "admin_sessions"

    session_token = Column(String(64), primary_key=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)


class AdminLog(BaseModel):
    """관리자 작업 감사 로그"""

    __tablename__ = "admin_logs"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    action = Column(String(64), nullable=False)
    target_id = Column(String(128))
    detail = Column(Text)
