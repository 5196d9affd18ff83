"""
상담 주문 API

- POST /consultations/create: 상담 주문 생성
- GET /consultations/{id}?deviceId=: 주문 조회 (생성한 기기만)
- POST /consultations/notify/wechat: 항상 {"code": "SUCCESS"} 응답
- POST /consultations/notify/alipay: 평문 success / failure
"""

import logging

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Path, Query, Request
from fastapi.responses import PlainTextResponse

from lifecurve.containers import Container
from lifecurve.schemas.consultation import (
    ConsultationDetailResponse,
    ConsultationResponse,
    CreateConsultationRequest,
    CreateConsultationResponse,
)
from lifecurve.services.consultation_service import ConsultationService
from lifecurve.services.payment_service import ALIPAY_ACK_FAILURE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/consultations", tags=["consultations"])


@router.post("/create", response_model=CreateConsultationResponse)
@inject
async def create_consultation(
    request: CreateConsultationRequest,
    consultation_service: ConsultationService = Depends(
        Provide[Container.services.consultation_service]
    ),
) -> CreateConsultationResponse:
    """
    상담 주문 생성

    HTTP Status:
        200: pending 주문 생성 (가격은 마스터 가격, 分)
        400: 필수 항목 누락, 질문 길이 위반, 잘못된 결제 수단, 없는/비활성 마스터
    """
    return consultation_service.create(request)


@router.post("/notify/wechat")
@inject
async def consultation_wechat_notify(
    request: Request,
    consultation_service: ConsultationService = Depends(
        Provide[Container.services.consultation_service]
    ),
) -> dict:
    body = await request.body()
    return consultation_service.handle_wechat_notify(request.headers, body)


@router.post("/notify/alipay", response_class=PlainTextResponse)
@inject
async def consultation_alipay_notify(
    request: Request,
    consultation_service: ConsultationService = Depends(
        Provide[Container.services.consultation_service]
    ),
) -> PlainTextResponse:
    try:
        form = await request.form()
        params = {key: str(value) for key, value in form.items()}
    except Exception as e:
        logger.error(f"Failed to parse Alipay consultation notify body: {str(e)}")
        return PlainTextResponse(ALIPAY_ACK_FAILURE)
    return PlainTextResponse(consultation_service.handle_alipay_notify(params))


@router.get("/{consultation_id}", response_model=ConsultationDetailResponse)
@inject
async def get_consultation(
    consultation_id: str = Path(...),
    device_id: str = Query("", alias="deviceId"),
    consultation_service: ConsultationService = Depends(
        Provide[Container.services.consultation_service]
    ),
) -> ConsultationDetailResponse:
    """
    HTTP Status:
        200: 주문 상세
        403: 다른 기기의 주문 (无权查看此订单)
        404: 주문 없음
    """
    consultation = consultation_service.get_for_device(consultation_id, device_id)
    return ConsultationDetailResponse(
        consultation=ConsultationResponse.model_validate(consultation)
    )
