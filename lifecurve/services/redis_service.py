"""
Redis 클라이언트 래퍼 (관리자 세션 저장소용)

- 예외를 던지지 않는다: 실패 시 None / False 반환 후 경고 로그
- 첫 사용 시 연결하고 ping으로 확인, 실패하면 다음 호출에서 재시도
- 값은 JSON 문자열로 저장
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import redis.asyncio as redis

from lifecurve.config import Settings

logger = logging.getLogger(__name__)

R = TypeVar("R")


class RedisService:
    def __init__(self, settings: Settings):
        self._settings = settings
        self._client: Optional[redis.Redis] = None

    def _connection_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "host": self._settings.REDIS_HOST,
            "port": self._settings.REDIS_PORT,
            "db": self._settings.REDIS_DB,
            "decode_responses": True,
            "socket_connect_timeout": 5,
            "health_check_interval": 30,
        }
        if self._settings.REDIS_PASSWORD:
            kwargs["password"] = self._settings.REDIS_PASSWORD
        return kwargs

    async def _connect(self) -> Optional[redis.Redis]:
        if self._client is not None:
            return self._client
        client = redis.Redis(**self._connection_kwargs())
        try:
            await client.ping()
        except Exception as e:
            logger.warning(f"Redis connection failed: {e}")
            await client.aclose()
            return None
        self._client = client
        return client

    async def _run(
        self,
        op: str,
        key: str,
        action: Callable[[redis.Redis], Awaitable[R]],
        default: R,
    ) -> R:
        try:
            client = await self._connect()
            if client is None:
                return default
            return await action(client)
        except Exception as e:
            logger.warning(f"Redis {op} failed for {key}: {e}")
            return default

    async def get(self, key: str) -> Optional[Any]:
        async def action(client: redis.Redis) -> Optional[Any]:
            raw = await client.get(key)
            return json.loads(raw) if raw else None

        return await self._run("GET", key, action, None)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        async def action(client: redis.Redis) -> bool:
            await client.set(key, json.dumps(value, ensure_ascii=False), ex=ttl_seconds)
            return True

        return await self._run("SET", key, action, False)

    async def delete(self, key: str) -> bool:
        async def action(client: redis.Redis) -> bool:
            await client.delete(key)
            return True

        return await self._run("DELETE", key, action, False)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
