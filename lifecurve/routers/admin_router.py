"""
관리자 API

인증:
- POST /admin/login: 비밀번호 확인 후 admin_session 쿠키 발급
- POST /admin/logout: 세션 폐기 및 쿠키 삭제
- GET /admin/verify: 현재 쿠키의 세션 유효성 확인

세션 필요 (require_admin_session):
- POST /admin/adjust-points: 포인트 조정
- GET /admin/devices, /admin/devices/{device_id}: 기기 조회
- GET /admin/users, PUT /admin/users/{user_id}/points: 회원 조회 / 포인트 조정
- GET /admin/orders, /admin/stats: 주문 조회 / 매출 통계
- POST /admin/refund: 주문 환불
- GET, PUT /admin/settings: 충전 옵션
- GET, PUT /admin/config: 시스템 설정
"""

import logging
from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Path, Query, Request, Response

from lifecurve.config import settings
from lifecurve.containers import Container
from lifecurve.core.admin_guard import get_session_token, require_admin_session
from lifecurve.core.exceptions import AuthenticationError
from lifecurve.schemas.admin import (
    AdminAuthResponse,
    AdminLoginRequest,
    DeviceDetailResponse,
    DeviceListResponse,
)
from lifecurve.schemas.base import SuccessResponse
from lifecurve.schemas.order import (
    AdminOrderListResponse,
    AdminRechargeOptionsResponse,
    OrderStatsResponse,
    RechargeOptionsUpdateRequest,
    RefundOrderRequest,
    RefundOrderResponse,
)
from lifecurve.schemas.points import AdminAdjustPointsRequest, AdminAdjustPointsResponse
from lifecurve.schemas.system import AdminConfigResponse, AdminConfigUpdateRequest
from lifecurve.schemas.user import (
    AdminAdjustUserPointsRequest,
    AdminAdjustUserPointsResponse,
    UserListResponse,
)
from lifecurve.services.admin_service import AdminService
from lifecurve.services.payment_service import PaymentService
from lifecurve.services.point_service import PointService
from lifecurve.services.system_config_service import SystemConfigService
from lifecurve.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# ----------------------------------------------------------------------
# 인증
# ----------------------------------------------------------------------


@router.post("/login", response_model=AdminAuthResponse)
@inject
async def admin_login(
    request: AdminLoginRequest,
    response: Response,
    admin_service: AdminService = Depends(Provide[Container.services.admin_service]),
) -> AdminAuthResponse:
    """
    관리자 로그인

    HTTP Status:
        200: 로그인 성공, httpOnly 쿠키 설정
        401: 비밀번호 불일치 (密码错误)
    """
    session = await admin_service.login(request.password)
    response.set_cookie(
        key=settings.ADMIN_SESSION_COOKIE,
        value=session.token,
        max_age=settings.ADMIN_SESSION_TTL_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )
    return AdminAuthResponse(expires_at=session.expires_at)


@router.post("/logout", response_model=SuccessResponse)
@inject
async def admin_logout(
    request: Request,
    response: Response,
    admin_service: AdminService = Depends(Provide[Container.services.admin_service]),
) -> SuccessResponse:
    await admin_service.logout(get_session_token(request))
    response.delete_cookie(settings.ADMIN_SESSION_COOKIE, path="/")
    return SuccessResponse(message="已退出登录")


@router.get("/verify", response_model=AdminAuthResponse)
@inject
async def admin_verify(
    request: Request,
    admin_service: AdminService = Depends(Provide[Container.services.admin_service]),
) -> AdminAuthResponse:
    if not await admin_service.verify(get_session_token(request)):
        raise AuthenticationError()
    return AdminAuthResponse()


# ----------------------------------------------------------------------
# 포인트 / 기기
# ----------------------------------------------------------------------


@router.post(
    "/adjust-points",
    response_model=AdminAdjustPointsResponse,
    dependencies=[Depends(require_admin_session)],
)
@inject
async def admin_adjust_points(
    request: AdminAdjustPointsRequest,
    point_service: PointService = Depends(Provide[Container.services.point_service]),
) -> AdminAdjustPointsResponse:
    """관리자 포인트 조정 (음수면 차감, 잔액은 0 미만으로 내려가지 않음)"""
    return point_service.admin_adjust(request.device_id, request.points, request.description)


@router.get(
    "/devices",
    response_model=DeviceListResponse,
    dependencies=[Depends(require_admin_session)],
)
@inject
async def admin_list_devices(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    admin_service: AdminService = Depends(Provide[Container.services.admin_service]),
) -> DeviceListResponse:
    return admin_service.list_devices(page=page, page_size=page_size)


@router.get(
    "/devices/{device_id}",
    response_model=DeviceDetailResponse,
    dependencies=[Depends(require_admin_session)],
)
@inject
async def admin_get_device(
    device_id: str = Path(...),
    admin_service: AdminService = Depends(Provide[Container.services.admin_service]),
) -> DeviceDetailResponse:
    return admin_service.get_device_detail(device_id)


# ----------------------------------------------------------------------
# 회원 계정
# ----------------------------------------------------------------------


@router.get(
    "/users",
    response_model=UserListResponse,
    dependencies=[Depends(require_admin_session)],
)
@inject
async def admin_list_users(
    phone: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    user_service: UserService = Depends(Provide[Container.services.user_service]),
) -> UserListResponse:
    return user_service.list_users(phone=phone, page=page, page_size=page_size)


@router.put(
    "/users/{user_id}/points",
    response_model=AdminAdjustUserPointsResponse,
    dependencies=[Depends(require_admin_session)],
)
@inject
async def admin_adjust_user_points(
    request: AdminAdjustUserPointsRequest,
    user_id: str = Path(...),
    user_service: UserService = Depends(Provide[Container.services.user_service]),
) -> AdminAdjustUserPointsResponse:
    """
    회원 포인트 조정 (잔액은 0 아래로 내려가지 않음)

    HTTP Status:
        200: 조정 전/후 잔액
        400: 변동량이 0이거나 정수가 아님, 사유 누락
        404: 회원 없음
    """
    return user_service.adjust_points(user_id, request.adjustment, request.reason)


# ----------------------------------------------------------------------
# 주문 / 충전 옵션
# ----------------------------------------------------------------------


@router.get(
    "/orders",
    response_model=AdminOrderListResponse,
    dependencies=[Depends(require_admin_session)],
)
@inject
async def admin_list_orders(
    status: Optional[str] = Query(None),
    device_id: Optional[str] = Query(None, alias="deviceId"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    payment_service: PaymentService = Depends(Provide[Container.services.payment_service]),
) -> AdminOrderListResponse:
    """주문 목록 (status=all 또는 생략 시 전체)"""
    return payment_service.list_orders(
        status=status, device_id=device_id, page=page, page_size=page_size
    )


@router.get(
    "/stats",
    response_model=OrderStatsResponse,
    dependencies=[Depends(require_admin_session)],
)
@inject
async def admin_order_stats(
    payment_service: PaymentService = Depends(Provide[Container.services.payment_service]),
) -> OrderStatsResponse:
    return payment_service.get_stats()


@router.post(
    "/refund",
    response_model=RefundOrderResponse,
    dependencies=[Depends(require_admin_session)],
)
@inject
async def admin_refund_order(
    request: RefundOrderRequest,
    payment_service: PaymentService = Depends(Provide[Container.services.payment_service]),
) -> RefundOrderResponse:
    """
    주문 환불 (paid 주문만, 지급 포인트 회수)

    HTTP Status:
        200: refunded로 전이, 잔액은 0 아래로 내려가지 않음
        400: 주문 ID 누락 또는 paid가 아닌 주문 (订单状态不允许退款)
        404: 주문 없음
    """
    return payment_service.refund(request.order_id)


@router.get(
    "/settings",
    response_model=AdminRechargeOptionsResponse,
    dependencies=[Depends(require_admin_session)],
)
@inject
async def admin_get_recharge_options(
    payment_service: PaymentService = Depends(Provide[Container.services.payment_service]),
) -> AdminRechargeOptionsResponse:
    return AdminRechargeOptionsResponse(options=payment_service.list_all_options())


@router.put(
    "/settings",
    response_model=AdminRechargeOptionsResponse,
    dependencies=[Depends(require_admin_session)],
)
@inject
async def admin_replace_recharge_options(
    request: RechargeOptionsUpdateRequest,
    payment_service: PaymentService = Depends(Provide[Container.services.payment_service]),
) -> AdminRechargeOptionsResponse:
    """충전 옵션 전체 교체"""
    return AdminRechargeOptionsResponse(
        options=payment_service.replace_options(request.options)
    )


# ----------------------------------------------------------------------
# 시스템 설정
# ----------------------------------------------------------------------


@router.get(
    "/config",
    response_model=AdminConfigResponse,
    dependencies=[Depends(require_admin_session)],
)
@inject
async def admin_get_config(
    config_service: SystemConfigService = Depends(
        Provide[Container.services.system_config_service]
    ),
) -> AdminConfigResponse:
    return AdminConfigResponse(config=config_service.get_all())


@router.put(
    "/config",
    response_model=AdminConfigResponse,
    dependencies=[Depends(require_admin_session)],
)
@inject
async def admin_update_config(
    request: AdminConfigUpdateRequest,
    config_service: SystemConfigService = Depends(
        Provide[Container.services.system_config_service]
    ),
) -> AdminConfigResponse:
    return AdminConfigResponse(config=config_service.update(request.config))
