from typing import Dict, Optional

from pydantic import Field

from lifecurve.schemas.base import CamelModel


class SystemConfigValues(CamelModel):
    """가격/무료 한도 런타임 설정"""

    unlock_points: int = Field(50, description="상세 해설 비용")
    overview_points: int = Field(10, description="개요 해제 비용")
    free_limit: int = Field(3, description="모드별 무료 횟수")


class PublicConfigResponse(CamelModel):
    success: bool = True
    config: Dict[str, str]
    unlock_points: int
    overview_points: int
    free_limit: int


class AdminConfigResponse(CamelModel):
    success: bool = True
    config: Dict[str, str]


class AdminConfigUpdateRequest(CamelModel):
    config: Optional[Dict[str, object]] = None


class SiteStatsResponse(CamelModel):
    success: bool = True
    total_generated: int
    fallback: bool = False
