from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends

from lifecurve.containers import Container
from lifecurve.schemas.system import PublicConfigResponse
from lifecurve.services.system_config_service import SystemConfigService

router = APIRouter(prefix="/config", tags=["config"])


@router.get("", response_model=PublicConfigResponse)
@inject
async def get_public_config(
    config_service: SystemConfigService = Depends(
        Provide[Container.services.system_config_service]
    ),
) -> PublicConfigResponse:
    """가격/무료 한도 설정 (기본값 + system_config)"""
    values = config_service.get_values()
    return PublicConfigResponse(
        config=config_service.get_all(),
        unlock_points=values.unlock_points,
        overview_points=values.overview_points,
        free_limit=values.free_limit,
    )
