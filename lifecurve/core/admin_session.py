"""
관리자 세션 저장소

세션 토큰은 32바이트 난수(hex 64자)이며 발급 후 ADMIN_SESSION_TTL_DAYS 동안 유효하다.
저장 위치는 ADMIN_SESSION_BACKEND 설정으로 고른다.

- database: admin_sessions 테이블 (기본값, 서버리스 다중 인스턴스에서도 공유)
- redis: TTL 키 (admin_session:{token})
- memory: 프로세스 메모리 (로컬 개발/테스트 전용)
"""

import logging
import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy.orm import Session

from lifecurve.config import Settings
from lifecurve.repositories.admin_session_repository import AdminSessionRepository
from lifecurve.schemas.admin import AdminSessionInfo
from lifecurve.services.redis_service import RedisService
from lifecurve.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)

REDIS_KEY_PREFIX = "admin_session:"


def new_session_token() -> str:
    return secrets.token_hex(32)


class SessionStore(ABC):
    def __init__(self, settings: Settings):
        self.ttl = timedelta(days=settings.ADMIN_SESSION_TTL_DAYS)

    def _new_session(self) -> AdminSessionInfo:
        return AdminSessionInfo(token=new_session_token(), expires_at=utc_now() + self.ttl)

    @abstractmethod
    async def create(self) -> AdminSessionInfo:
        """새 세션 발급"""

    @abstractmethod
    async def is_valid(self, token: Optional[str]) -> bool:
        """토큰이 존재하고 만료되지 않았는지"""

    @abstractmethod
    async def revoke(self, token: Optional[str]) -> None:
        """세션 폐기 (없는 토큰이어도 오류 없음)"""


class DatabaseSessionStore(SessionStore):
    def __init__(self, db: Session, settings: Settings):
        super().__init__(settings)
        self.session_repo = AdminSessionRepository(db)

    async def create(self) -> AdminSessionInfo:
        session = self._new_session()
        self.session_repo.create_session(session.token, session.expires_at)
        try:
            self.session_repo.purge_expired(utc_now())
        except Exception as e:
            logger.warning(f"Failed to purge expired admin sessions: {e}")
        return session

    async def is_valid(self, token: Optional[str]) -> bool:
        if not token:
            return False
        return self.session_repo.get_valid(token, utc_now()) is not None

    async def revoke(self, token: Optional[str]) -> None:
        if token:
            self.session_repo.delete(token)


class RedisSessionStore(SessionStore):
    def __init__(self, redis_service: RedisService, settings: Settings):
        super().__init__(settings)
        self.redis = redis_service

    async def create(self) -> AdminSessionInfo:
        session = self._new_session()
        stored = await self.redis.set(
            f"{REDIS_KEY_PREFIX}{session.token}",
            {"expiresAt": session.expires_at.isoformat()},
            int(self.ttl.total_seconds()),
        )
        if not stored:
            raise RuntimeError("failed to store admin session in redis")
        return session

    async def is_valid(self, token: Optional[str]) -> bool:
        if not token:
            return False
        return await self.redis.get(f"{REDIS_KEY_PREFIX}{token}") is not None

    async def revoke(self, token: Optional[str]) -> None:
        if token:
            await self.redis.delete(f"{REDIS_KEY_PREFIX}{token}")


class MemorySessionStore(SessionStore):
    def __init__(self, settings: Settings):
        super().__init__(settings)
        self._sessions: Dict[str, datetime] = {}

    async def create(self) -> AdminSessionInfo:
        session = self._new_session()
        self._sessions[session.token] = session.expires_at
        return session

    async def is_valid(self, token: Optional[str]) -> bool:
        if not token:
            return False
        expires_at = self._sessions.get(token)
        if expires_at is None:
            return False
        if expires_at <= utc_now():
            self._sessions.pop(token, None)
            return False
        return True

    async def revoke(self, token: Optional[str]) -> None:
        if token:
            self._sessions.pop(token, None)
