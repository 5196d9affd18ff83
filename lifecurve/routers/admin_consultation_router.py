from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Path, Query

from lifecurve.containers import Container
from lifecurve.core.admin_guard import require_admin_session
from lifecurve.schemas.consultation import (
    AdminConsultationDetailResponse,
    AdminConsultationListResponse,
    AdminConsultationResponse,
    ConsultationActionRequest,
    ConsultationActionResponse,
)
from lifecurve.services.consultation_service import ConsultationService

router = APIRouter(
    prefix="/admin/consultations",
    tags=["admin-consultations"],
    dependencies=[Depends(require_admin_session)],
)


@router.get("", response_model=AdminConsultationListResponse)
@inject
async def admin_list_consultations(
    status: Optional[str] = Query(None),
    master_id: Optional[str] = Query(None, alias="masterId"),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100, alias="pageSize"),
    include_stats: str = Query("false", alias="includeStats"),
    consultation_service: ConsultationService = Depends(
        Provide[Container.services.consultation_service]
    ),
) -> AdminConsultationListResponse:
    """상담 주문 목록 (status=all 또는 생략 시 전체, includeStats=true면 상태별 통계 포함)"""
    return consultation_service.list_consultations(
        status=status,
        master_id=master_id,
        search=search,
        page=page,
        page_size=page_size,
        include_stats=include_stats == "true",
    )


@router.get("/{consultation_id}", response_model=AdminConsultationDetailResponse)
@inject
async def admin_get_consultation(
    consultation_id: str = Path(...),
    consultation_service: ConsultationService = Depends(
        Provide[Container.services.consultation_service]
    ),
) -> AdminConsultationDetailResponse:
    consultation = consultation_service.get_consultation(consultation_id)
    return AdminConsultationDetailResponse(
        consultation=AdminConsultationResponse.model_validate(consultation)
    )


@router.patch("/{consultation_id}", response_model=ConsultationActionResponse)
@inject
async def admin_update_consultation(
    request: ConsultationActionRequest,
    consultation_id: str = Path(...),
    consultation_service: ConsultationService = Depends(
        Provide[Container.services.consultation_service]
    ),
) -> ConsultationActionResponse:
    """
    상태 변경 - action: complete | refund (paid 주문만)

    HTTP Status:
        200: completed / refunded로 전이
        400: 알 수 없는 action, paid가 아닌 주문
        404: 주문 없음
    """
    consultation, message = consultation_service.apply_action(consultation_id, request.action)
    return ConsultationActionResponse(
        consultation=AdminConsultationResponse.model_validate(consultation),
        message=message,
    )
