"""
결제 API

사용자용:
- POST /pay/create: 충전 주문 생성
- GET /pay/status: 주문 상태 조회
- GET /pay/options: 활성 충전 옵션

결제사 콜백:
- POST /pay/wechat/notify: 항상 {"code": "SUCCESS"} 응답
- POST /pay/alipay/notify: 평문 success / failure
- GET /pay/alipay/return: 결제 완료 후 사이트로 리다이렉트
"""

import logging
from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse, RedirectResponse

from lifecurve.containers import Container
from lifecurve.schemas.order import (
    CreateOrderRequest,
    CreateOrderResponse,
    OrderStatusResponse,
    RechargeOptionsResponse,
)
from lifecurve.services.payment_service import ALIPAY_ACK_FAILURE, PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pay", tags=["pay"])


@router.post("/create", response_model=CreateOrderResponse)
@inject
async def create_order(
    request: CreateOrderRequest,
    payment_service: PaymentService = Depends(Provide[Container.services.payment_service]),
) -> CreateOrderResponse:
    """
    충전 주문 생성

    HTTP Status:
        200: pending 주문 생성 (30분 후 만료)
        400: 기기 ID/옵션 누락, 잘못된 결제 수단, 존재하지 않는 옵션
    """
    return payment_service.create_order(request)


@router.get("/status", response_model=OrderStatusResponse)
@inject
async def get_order_status(
    order_id: str = Query("", alias="orderId"),
    payment_service: PaymentService = Depends(Provide[Container.services.payment_service]),
) -> OrderStatusResponse:
    return payment_service.get_status(order_id)


@router.get("/options", response_model=RechargeOptionsResponse)
@inject
async def list_recharge_options(
    payment_service: PaymentService = Depends(Provide[Container.services.payment_service]),
) -> RechargeOptionsResponse:
    return RechargeOptionsResponse(options=payment_service.list_public_options())


@router.post("/wechat/notify")
@inject
async def wechat_notify(
    request: Request,
    payment_service: PaymentService = Depends(Provide[Container.services.payment_service]),
) -> dict:
    """WeChat Pay 결제 알림 - 처리 결과와 무관하게 SUCCESS로 응답 (실패는 로그만)"""
    body = await request.body()
    return payment_service.handle_wechat_notify(request.headers, body)


@router.post("/alipay/notify", response_class=PlainTextResponse)
@inject
async def alipay_notify(
    request: Request,
    payment_service: PaymentService = Depends(Provide[Container.services.payment_service]),
) -> PlainTextResponse:
    """Alipay 비동기 알림 (form-urlencoded)"""
    try:
        form = await request.form()
        params = {key: str(value) for key, value in form.items()}
    except Exception as e:
        logger.error(f"Failed to parse Alipay notify body: {str(e)}")
        return PlainTextResponse(ALIPAY_ACK_FAILURE)
    return PlainTextResponse(payment_service.handle_alipay_notify(params))


@router.get("/alipay/return")
@inject
async def alipay_return(
    order_id: Optional[str] = Query(None, alias="orderId"),
    payment_service: PaymentService = Depends(Provide[Container.services.payment_service]),
) -> RedirectResponse:
    return RedirectResponse(payment_service.alipay_return_url(order_id), status_code=307)
