from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Path

from lifecurve.containers import Container
from lifecurve.core.admin_guard import require_admin_session
from lifecurve.schemas.base import SuccessResponse
from lifecurve.schemas.master import (
    MasterDetailResponse,
    MasterListResponse,
    MasterResponse,
    MasterToggleRequest,
    MasterToggleResponse,
    MasterUpsertRequest,
)
from lifecurve.services.master_service import MasterService

router = APIRouter(
    prefix="/admin/masters",
    tags=["admin-masters"],
    dependencies=[Depends(require_admin_session)],
)


@router.get("", response_model=MasterListResponse)
@inject
async def admin_list_masters(
    master_service: MasterService = Depends(Provide[Container.services.master_service]),
) -> MasterListResponse:
    """전체 마스터 (비활성 포함)"""
    masters = master_service.list_all()
    return MasterListResponse(masters=[MasterResponse.model_validate(m) for m in masters])


@router.post("", response_model=MasterDetailResponse)
@inject
async def admin_create_master(
    request: MasterUpsertRequest,
    master_service: MasterService = Depends(Provide[Container.services.master_service]),
) -> MasterDetailResponse:
    """마스터 등록 - price는 元 단위"""
    master = master_service.create_master(request)
    return MasterDetailResponse(master=MasterResponse.model_validate(master))


@router.get("/{master_id}", response_model=MasterDetailResponse)
@inject
async def admin_get_master(
    master_id: str = Path(...),
    master_service: MasterService = Depends(Provide[Container.services.master_service]),
) -> MasterDetailResponse:
    master = master_service.get_master(master_id)
    return MasterDetailResponse(master=MasterResponse.model_validate(master))


@router.put("/{master_id}", response_model=MasterDetailResponse)
@inject
async def admin_update_master(
    request: MasterUpsertRequest,
    master_id: str = Path(...),
    master_service: MasterService = Depends(Provide[Container.services.master_service]),
) -> MasterDetailResponse:
    master = master_service.update_master(master_id, request)
    return MasterDetailResponse(master=MasterResponse.model_validate(master))


@router.delete("/{master_id}", response_model=SuccessResponse)
@inject
async def admin_delete_master(
    master_id: str = Path(...),
    master_service: MasterService = Depends(Provide[Container.services.master_service]),
) -> SuccessResponse:
    master_service.delete_master(master_id)
    return SuccessResponse(message="大师已删除")


@router.patch("/{master_id}", response_model=MasterToggleResponse)
@inject
async def admin_toggle_master(
    request: MasterToggleRequest,
    master_id: str = Path(...),
    master_service: MasterService = Depends(Provide[Container.services.master_service]),
) -> MasterToggleResponse:
    """上架 / 下架 전환 (isActive는 boolean이어야 함)"""
    master = master_service.set_active(master_id, request.is_active)
    return MasterToggleResponse(
        master=MasterResponse.model_validate(master),
        message="大师已上架" if master.is_active else "大师已下架",
    )
