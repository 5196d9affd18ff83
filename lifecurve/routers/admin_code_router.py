"""
관리자 卡密 API

- GET /admin/codes: 목록 (testSlug, isUsed, batchName 필터, 페이징) + 배치명 목록
- POST /admin/codes: 배치 생성 (1-10000개)
- DELETE /admin/codes: ?id= 단건 삭제, ?batchName=&deleteUnused=true 배치 미사용분 삭제
- GET /admin/codes/export: CSV 내보내기
"""

from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import Response

from lifecurve.containers import Container
from lifecurve.core.admin_guard import require_admin_session
from lifecurve.core.exceptions import ValidationError
from lifecurve.schemas.redemption import (
    CodeListFilter,
    CodeListResponse,
    DeleteCodesResponse,
    GenerateCodesRequest,
    GenerateCodesResponse,
)
from lifecurve.services.redemption_service import RedemptionService
from lifecurve.utils.timezone_utils import epoch_millis

router = APIRouter(
    prefix="/admin/codes",
    tags=["admin-codes"],
    dependencies=[Depends(require_admin_session)],
)


@router.get("", response_model=CodeListResponse)
@inject
async def list_codes(
    test_slug: Optional[str] = Query(None, alias="testSlug"),
    is_used: Optional[bool] = Query(None, alias="isUsed"),
    batch_name: Optional[str] = Query(None, alias="batchName"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500, alias="pageSize"),
    redemption_service: RedemptionService = Depends(
        Provide[Container.services.redemption_service]
    ),
) -> CodeListResponse:
    filters = CodeListFilter(
        test_slug=test_slug or None, is_used=is_used, batch_name=batch_name or None
    )
    return redemption_service.list_codes(filters, page=page, page_size=page_size)


@router.post("", response_model=GenerateCodesResponse)
@inject
async def generate_codes(
    payload: Optional[dict] = Body(None),
    redemption_service: RedemptionService = Depends(
        Provide[Container.services.redemption_service]
    ),
) -> GenerateCodesResponse:
    """
    卡密 배치 생성

    HTTP Status:
        200: 생성 완료
        400: 파라미터 누락 (参数错误) 또는 개수 범위 초과
    """
    if not payload or payload.get("count") is None or payload.get("points") is None:
        raise ValidationError("参数错误")
    try:
        request = GenerateCodesRequest.model_validate(payload)
    except ValueError:
        raise ValidationError("参数错误")
    return redemption_service.generate_batch(request)


@router.delete("", response_model=DeleteCodesResponse)
@inject
async def delete_codes(
    code_id: Optional[int] = Query(None, alias="id"),
    batch_name: Optional[str] = Query(None, alias="batchName"),
    delete_unused: bool = Query(False, alias="deleteUnused"),
    redemption_service: RedemptionService = Depends(
        Provide[Container.services.redemption_service]
    ),
) -> DeleteCodesResponse:
    return redemption_service.delete_codes(
        code_id=code_id, batch_name=batch_name, delete_unused=delete_unused
    )


@router.get("/export")
@inject
async def export_codes(
    batch_name: Optional[str] = Query(None, alias="batchName"),
    test_slug: Optional[str] = Query(None, alias="testSlug"),
    only_unused: bool = Query(False, alias="onlyUnused"),
    redemption_service: RedemptionService = Depends(
        Provide[Container.services.redemption_service]
    ),
) -> Response:
    """필터에 맞는 卡密 CSV 다운로드"""
    content = redemption_service.export_csv(
        batch_name=batch_name or None,
        test_slug=test_slug or None,
        only_unused=only_unused,
    )
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f"attachment; filename=codes_{epoch_millis()}.csv"
        },
    )
