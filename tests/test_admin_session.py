import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, Mock, patch

import pytest

from lifecurve.config import Settings
from lifecurve.core.admin_session import (
    DatabaseSessionStore,
    MemorySessionStore,
    RedisSessionStore,
)
from lifecurve.core.exceptions import AuthenticationError
from lifecurve.services.admin_service import AdminService
from lifecurve.utils.timezone_utils import utc_now


def run(coro):
    return asyncio.run(coro)


class TestMemorySessionStore:
    """메모리 세션 저장소 테스트"""

    def test_create_validate_revoke(self):
        store = MemorySessionStore(Settings())

        session = run(store.create())

        assert len(session.token) == 64
        assert run(store.is_valid(session.token)) is True
        run(store.revoke(session.token))
        assert run(store.is_valid(session.token)) is False

    def test_unknown_and_empty_tokens(self):
        store = MemorySessionStore(Settings())

        assert run(store.is_valid(None)) is False
        assert run(store.is_valid("nope")) is False

    def test_expired_session(self):
        store = MemorySessionStore(Settings())
        session = run(store.create())
        store._sessions[session.token] = utc_now() - timedelta(seconds=1)

        assert run(store.is_valid(session.token)) is False

    def test_ttl_follows_settings(self):
        store = MemorySessionStore(Settings(ADMIN_SESSION_TTL_DAYS=7))

        session = run(store.create())

        remaining = session.expires_at - utc_now()
        assert timedelta(days=6, hours=23) < remaining <= timedelta(days=7)


class TestDatabaseSessionStore:
    """DB 세션 저장소 테스트 (SQLite)"""

    def test_round_trip(self, db_session):
        store = DatabaseSessionStore(db_session, Settings())

        session = run(store.create())

        assert run(store.is_valid(session.token)) is True
        run(store.revoke(session.token))
        assert run(store.is_valid(session.token)) is False


class TestRedisSessionStore:
    """Redis 세션 저장소 테스트"""

    def test_uses_prefixed_keys_with_ttl(self):
        redis_service = Mock()
        redis_service.set = AsyncMock(return_value=True)
        redis_service.get = AsyncMock(return_value={"expiresAt": "x"})
        redis_service.delete = AsyncMock(return_value=True)
        store = RedisSessionStore(redis_service, Settings(ADMIN_SESSION_TTL_DAYS=7))

        session = run(store.create())
        valid = run(store.is_valid(session.token))
        run(store.revoke(session.token))

        key, _, ttl = redis_service.set.call_args.args
        assert key == f"admin_session:{session.token}"
        assert ttl == 7 * 24 * 60 * 60
        assert valid is True
        redis_service.delete.assert_awaited_once_with(key)

    def test_create_fails_when_redis_unavailable(self):
        redis_service = Mock()
        redis_service.set = AsyncMock(return_value=False)
        store = RedisSessionStore(redis_service, Settings())

        with pytest.raises(RuntimeError):
            run(store.create())


class TestAdminLogin:
    """관리자 로그인 테스트"""

    def _service(self, password):
        with patch("lifecurve.services.admin_service.DeviceRepository"), patch(
            "lifecurve.services.admin_service.UsageLogRepository"
        ), patch("lifecurve.services.admin_service.PointsRepository"):
            settings = Settings(ADMIN_PASSWORD=password)
            return AdminService(Mock(), MemorySessionStore(settings), settings)

    def test_correct_password(self):
        service = self._service("s3cret")

        session = run(service.login("s3cret"))

        assert run(service.verify(session.token)) is True

    def test_wrong_password(self):
        service = self._service("s3cret")

        with pytest.raises(AuthenticationError) as exc_info:
            run(service.login("wrong"))

        assert exc_info.value.message == "密码错误"

    def test_empty_configured_password_refuses_login(self):
        service = self._service("")

        with pytest.raises(AuthenticationError):
            run(service.login(""))
