from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends

from lifecurve.containers import Container
from lifecurve.schemas.redemption import (
    RedeemRequest,
    RedeemResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from lifecurve.services.redemption_service import RedemptionService

router = APIRouter(prefix="/redeem", tags=["redeem"])


@router.post("", response_model=RedeemResponse)
@inject
async def redeem_code(
    request: RedeemRequest,
    redemption_service: RedemptionService = Depends(
        Provide[Container.services.redemption_service]
    ),
) -> RedeemResponse:
    """
    卡密 사용 - 코드당 한 번만 포인트가 지급된다

    HTTP Status:
        200: 지급 완료
        400: 입력 오류 / 형식 오류 / 사용된 코드 / 다른 테스트 전용 코드
        404: 존재하지 않는 코드
    """
    return redemption_service.redeem(request.raw_code, request.device_id, request.test_slug)


@router.post("/verify", response_model=VerifyCodeResponse)
@inject
async def verify_code(
    request: VerifyCodeRequest,
    redemption_service: RedemptionService = Depends(
        Provide[Container.services.redemption_service]
    ),
) -> VerifyCodeResponse:
    """卡密 사용 가능 여부 확인 (상태 변경 없음)"""
    return redemption_service.verify(request.code, request.test_slug)
