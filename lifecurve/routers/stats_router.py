from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends

from lifecurve.containers import Container
from lifecurve.schemas.system import SiteStatsResponse
from lifecurve.services.site_stats_service import SiteStatsService

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=SiteStatsResponse)
@inject
async def get_site_stats(
    stats_service: SiteStatsService = Depends(Provide[Container.services.site_stats_service]),
) -> SiteStatsResponse:
    return stats_service.get_total_generated()


@router.post("", response_model=SiteStatsResponse)
@inject
async def increment_site_stats(
    stats_service: SiteStatsService = Depends(Provide[Container.services.site_stats_service]),
) -> SiteStatsResponse:
    """누적 생성 수 +1"""
    return stats_service.increment_generated()
