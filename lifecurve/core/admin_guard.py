from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Depends, Request

from lifecurve.config import settings
from lifecurve.containers import Container
from lifecurve.core.admin_session import SessionStore
from lifecurve.core.exceptions import AuthenticationError


def get_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(settings.ADMIN_SESSION_COOKIE)


@inject
async def require_admin_session(
    request: Request,
    session_store: SessionStore = Depends(Provide[Container.services.session_store]),
) -> str:
    """관리자 API 가드 - 유효한 세션 쿠키가 없으면 401 未授权"""
    token = get_session_token(request)
    if not token or not await session_store.is_valid(token):
        raise AuthenticationError()
    return token
