from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Path

from lifecurve.containers import Container
from lifecurve.schemas.master import MasterDetailResponse, MasterListResponse, MasterResponse
from lifecurve.services.master_service import MasterService

router = APIRouter(prefix="/masters", tags=["masters"])


@router.get("", response_model=MasterListResponse)
@inject
async def list_masters(
    master_service: MasterService = Depends(Provide[Container.services.master_service]),
) -> MasterListResponse:
    """활성 마스터 목록 (정렬 순서 기준)"""
    masters = master_service.list_active()
    return MasterListResponse(masters=[MasterResponse.model_validate(m) for m in masters])


@router.get("/{master_id}", response_model=MasterDetailResponse)
@inject
async def get_master(
    master_id: str = Path(...),
    master_service: MasterService = Depends(Provide[Container.services.master_service]),
) -> MasterDetailResponse:
    master = master_service.get_public_master(master_id)
    return MasterDetailResponse(master=MasterResponse.model_validate(master))
