"""
사용량 API

- GET /usage/check: 무료 잔여 횟수와 포인트 기반 사용 가능 여부
- POST /usage/consume: 무료 슬롯 또는 포인트로 기능 사용 처리
"""

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query

from lifecurve.containers import Container
from lifecurve.core.exceptions import ValidationError
from lifecurve.schemas.usage import (
    CurveMode,
    UsageCheckResponse,
    UsageConsumeRequest,
    UsageConsumeResponse,
)
from lifecurve.services.usage_service import UsageService

router = APIRouter(prefix="/usage", tags=["usage"])


@router.get("/check", response_model=UsageCheckResponse)
@inject
async def check_usage(
    device_id: str = Query("", alias="deviceId"),
    curve_mode: str = Query(CurveMode.LIFE.value, alias="curveMode"),
    usage_service: UsageService = Depends(Provide[Container.services.usage_service]),
) -> UsageCheckResponse:
    """기기의 무료/유료 사용 가능 여부 조회"""
    try:
        mode = CurveMode(curve_mode)
    except ValueError:
        raise ValidationError("无效的曲线模式")
    return usage_service.check(device_id, mode)


@router.post("/consume", response_model=UsageConsumeResponse)
@inject
async def consume_usage(
    request: UsageConsumeRequest,
    usage_service: UsageService = Depends(Provide[Container.services.usage_service]),
) -> UsageConsumeResponse:
    """
    기능 사용 처리

    HTTP Status:
        200: 성공 (type = free | points)
        400: 입력 오류, NO_FREE_NO_POINTS, INSUFFICIENT_POINTS
        500: 내부 서버 오류
    """
    return usage_service.consume(request)
