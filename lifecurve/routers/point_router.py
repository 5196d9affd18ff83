from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query

from lifecurve.containers import Container
from lifecurve.schemas.points import PointsHistoryResponse
from lifecurve.services.point_service import PointService

router = APIRouter(prefix="/points", tags=["points"])


@router.get("/history", response_model=PointsHistoryResponse)
@inject
async def get_points_history(
    device_id: str = Query("", alias="deviceId"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    point_service: PointService = Depends(Provide[Container.services.point_service]),
) -> PointsHistoryResponse:
    """
    포인트 변동 내역 (최신순)

    Returns:
        PointsHistoryResponse: 현재 잔액, 로그, 전체 개수
    """
    return point_service.get_history(device_id, page=page, page_size=page_size)
